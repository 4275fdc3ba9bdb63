# ABOUTME: Core catalog pipeline: importers, feed synthesis, and catalog warm-up.
# ABOUTME: Exports the synthesizer, registry builder, and scanner entry points.

from uopds.core.feed import FeedSynthesizer
from uopds.core.importer import ImporterRegistry, build_registry
from uopds.core.scanner import ScanResult, scan_library

__all__ = [
    "FeedSynthesizer",
    "ImporterRegistry",
    "ScanResult",
    "build_registry",
    "scan_library",
]
