# ABOUTME: Public API for the uopds metadata store layer.
# ABOUTME: Exports connection management, the store, identity generation, and errors.

from uopds.db.catalog import CatalogError, CatalogStore, DuplicatePathError
from uopds.db.connection import DEFAULT_DB_PATH, open_catalog
from uopds.db.identity import IdentityMode, identity_policy, new_identifier

__all__ = [
    "DEFAULT_DB_PATH",
    "CatalogError",
    "CatalogStore",
    "DuplicatePathError",
    "IdentityMode",
    "identity_policy",
    "new_identifier",
    "open_catalog",
]
