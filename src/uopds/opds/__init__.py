# ABOUTME: OPDS wire format for uopds feeds.
# ABOUTME: Exports the Atom serializer and the feed content type.

from uopds.opds.atom import FEED_CONTENT_TYPE, render_feed

__all__ = ["FEED_CONTENT_TYPE", "render_feed"]
