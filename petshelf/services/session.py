"""
Collection session.

Wires the share-link lifecycle together:

    fragment --decode--> CollectionStore --change--> fragment (re-encoded)
                         CollectionStore --change--> ViewPipeline (refreshed)

A session is seeded from a fragment once, then every store mutation
re-encodes the fragment. Callers mutate through the store (or `apply`)
and read views; they never encode or decode links themselves.
"""

import logging
from enum import Enum

from petshelf.config import settings
from petshelf.filtering.view_pipeline import DEFAULT_SORT, SortSpec, ViewPipeline
from petshelf.models.catalog import Catalog, ItemDefinition
from petshelf.models.collection import ResolvedInstance
from petshelf.models.failure import FailureKind, KnownError
from petshelf.parsers.share_link import LinkCodec
from petshelf.services.collection_store import CollectionStore

logger = logging.getLogger(__name__)


class CollectionOperation(str, Enum):
    """Store mutations that can be replayed on a session."""

    ADD = "add"
    REMOVE = "remove"
    DELETE_ALL = "delete_all"
    SET_MUTATION = "set_mutation"
    SET_WEIGHT = "set_weight"
    SET_AGE = "set_age"
    CLEAR = "clear"


class CollectionSession:
    """One user's collection, kept in sync with its share-link fragment."""

    def __init__(
        self,
        catalog: Catalog,
        fragment: str | None = None,
        codec: LinkCodec | None = None,
        base_url: str | None = None,
    ) -> None:
        self.catalog = catalog
        self.codec = codec or LinkCodec(
            catalog, include_annotations=settings.share_link_annotations
        )
        self.base_url = base_url or settings.share_base_url
        self.store = CollectionStore(catalog)
        self.pipeline = ViewPipeline(catalog)
        self.fragment = self.codec.to_fragment(())

        self.pipeline.track(self.store)
        self.store.subscribe(self._sync_fragment)
        self.store.replace_all(self.codec.from_fragment(fragment))

    def _sync_fragment(self, store: CollectionStore) -> None:
        self.fragment = self.codec.to_fragment(store.instances())

    @property
    def share_url(self) -> str:
        return self.codec.share_url(self.base_url, self.store.instances())

    def snapshot(self) -> tuple[ResolvedInstance, ...]:
        return self.store.snapshot()

    def catalog_view(
        self,
        query: str | None = "",
        sort: SortSpec = DEFAULT_SORT,
    ) -> list[ItemDefinition]:
        return self.pipeline.catalog_view(query, sort)

    def collection_view(
        self,
        query: str | None = "",
        sort: SortSpec = DEFAULT_SORT,
    ) -> list[ResolvedInstance]:
        return self.pipeline.collection_view(None, query, sort)

    def apply(
        self,
        operation: CollectionOperation,
        item_id: int | None = None,
        mutation_id: int | None = None,
        value: str | float | None = None,
    ) -> None:
        """
        Replay one store mutation.

        Raises:
            KnownError: If an item-scoped operation has no item_id
        """
        logger.debug(
            "collection_operation_applied",
            extra={"operation": operation.value, "item_id": item_id},
        )
        if operation is CollectionOperation.CLEAR:
            self.store.clear()
            return

        if item_id is None:
            raise KnownError(
                kind=FailureKind.MISSING_REQUIRED,
                message=f"Operation '{operation.value}' needs an item_id.",
                suggestion="Include the pet's catalog id in the operation.",
            )

        if operation is CollectionOperation.ADD:
            self.store.add(item_id, mutation_id)
        elif operation is CollectionOperation.REMOVE:
            self.store.remove(item_id)
        elif operation is CollectionOperation.DELETE_ALL:
            self.store.delete_all(item_id)
        elif operation is CollectionOperation.SET_MUTATION:
            self.store.set_mutation(item_id, mutation_id)
        elif operation is CollectionOperation.SET_WEIGHT:
            self.store.set_weight(item_id, value)
        elif operation is CollectionOperation.SET_AGE:
            self.store.set_age(item_id, value)
