# ABOUTME: uopds serves a directory tree of e-books as a browsable OPDS catalog.
# ABOUTME: Metadata is read lazily from each file on first listing and cached in SQLite.

__version__ = "0.1.0"
