"""
View Pipeline: Filtered, Sorted Views Over Catalog and Collection.

Derives what the catalog panel and the collection panel display from a
text query and a sort order.

INVARIANTS:
- Inputs are never mutated (views are new lists)
- Filtering is case-insensitive substring matching, not fuzzy
- Sorting is stable in both directions: equal keys keep input order
- Views are recomputed from scratch on every call
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from petshelf.models.catalog import Catalog, ItemDefinition
from petshelf.models.collection import ResolvedInstance

if TYPE_CHECKING:
    from petshelf.services.collection_store import CollectionStore

logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    """What a view is ordered by."""

    NAME = "name"
    RARITY = "rarity"
    # Collection view only; the catalog view keeps catalog order
    MUTATION = "mutation"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    """A (key, direction) pair, written as "<key>-<direction>" (e.g., "rarity-desc")."""

    key: SortKey = SortKey.NAME
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, value: str) -> "SortSpec":
        """
        Parse "name-asc", "rarity-desc", "mutation-asc", ...

        Raises:
            ValueError: If the key or direction is not recognized
        """
        key, _, direction = value.strip().lower().partition("-")
        try:
            return cls(
                key=SortKey(key),
                direction=SortDirection(direction or SortDirection.ASC.value),
            )
        except ValueError as e:
            raise ValueError(f"Invalid sort order: {value!r}") from e

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    def __str__(self) -> str:
        return f"{self.key.value}-{self.direction.value}"


DEFAULT_SORT = SortSpec()


def normalize_query(query: str | None) -> str:
    """Trim and lowercase a search query."""
    return (query or "").strip().lower()


def item_matches(item: ItemDefinition, query: str) -> bool:
    """
    Check whether a catalog item matches a normalized query.

    Matches on item name or rarity tier name.
    """
    if not query:
        return True
    return query in item.name.lower() or query in item.rarity_tier.lower()


def instance_matches(entry: ResolvedInstance, query: str) -> bool:
    """
    Check whether a collection instance matches a normalized query.

    Matches on item name, rarity tier name, or assigned mutation name.
    """
    if not query:
        return True
    return item_matches(entry.item, query) or query in entry.mutation_name.lower()


def sort_items(items: Iterable[ItemDefinition], sort: SortSpec) -> list[ItemDefinition]:
    """Sort catalog items. A mutation sort leaves catalog order unchanged."""
    if sort.key is SortKey.NAME:
        return sorted(items, key=lambda item: item.name.lower(), reverse=sort.descending)
    if sort.key is SortKey.RARITY:
        return sorted(
            items,
            key=lambda item: Catalog.rarity_rank(item.rarity_tier),
            reverse=sort.descending,
        )
    return list(items)


def sort_instances(
    entries: Iterable[ResolvedInstance],
    sort: SortSpec,
) -> list[ResolvedInstance]:
    """Sort collection instances; instances without mutation sort as ""."""
    if sort.key is SortKey.NAME:
        return sorted(entries, key=lambda entry: entry.item.name.lower(), reverse=sort.descending)
    if sort.key is SortKey.RARITY:
        return sorted(
            entries,
            key=lambda entry: Catalog.rarity_rank(entry.item.rarity_tier),
            reverse=sort.descending,
        )
    return sorted(entries, key=lambda entry: entry.mutation_name.lower(), reverse=sort.descending)


class ViewPipeline:
    """
    Computes catalog and collection views.

    The only state kept between calls is the last collection snapshot
    seen through `track()`, so the collection view can be refreshed
    without the caller passing the snapshot again.
    """

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self._last_snapshot: tuple[ResolvedInstance, ...] = ()

    @property
    def last_snapshot(self) -> tuple[ResolvedInstance, ...]:
        return self._last_snapshot

    def track(self, store: "CollectionStore") -> Callable[[], None]:
        """
        Follow a store's changes, remembering its latest snapshot.

        Returns a callable that stops tracking.
        """
        self._last_snapshot = store.snapshot()

        def _on_change(changed: "CollectionStore") -> None:
            self._last_snapshot = changed.snapshot()

        return store.subscribe(_on_change)

    def catalog_view(
        self,
        query: str | None = "",
        sort: SortSpec = DEFAULT_SORT,
    ) -> list[ItemDefinition]:
        """Catalog items matching `query`, ordered by `sort`."""
        needle = normalize_query(query)
        matched = [item for item in self._catalog if item_matches(item, needle)]
        return sort_items(matched, sort)

    def collection_view(
        self,
        snapshot: Sequence[ResolvedInstance] | None = None,
        query: str | None = "",
        sort: SortSpec = DEFAULT_SORT,
    ) -> list[ResolvedInstance]:
        """
        Collection instances matching `query`, ordered by `sort`.

        Uses the last tracked snapshot when `snapshot` is None.
        """
        if snapshot is None:
            snapshot = self._last_snapshot
        needle = normalize_query(query)
        matched = [entry for entry in snapshot if instance_matches(entry, needle)]
        logger.debug(
            "collection_view_computed",
            extra={"query": needle, "sort": str(sort), "matched": len(matched)},
        )
        return sort_instances(matched, sort)
