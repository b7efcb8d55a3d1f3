"""
PetShelf services.

Collection state, catalog loading and the share-link session.
"""

from petshelf.services.catalog_loader import (
    build_catalog,
    catalog_available,
    download_catalog,
    get_catalog,
    load_catalog,
    parse_catalog,
)
from petshelf.services.collection_store import CollectionStore
from petshelf.services.session import CollectionOperation, CollectionSession

__all__ = [
    # Catalog loading
    "build_catalog",
    "catalog_available",
    "download_catalog",
    "get_catalog",
    "load_catalog",
    "parse_catalog",
    # Collection state
    "CollectionStore",
    # Share-link session
    "CollectionOperation",
    "CollectionSession",
]
