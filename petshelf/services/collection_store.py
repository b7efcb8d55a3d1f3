"""
Collection store.

Owns the ordered list of held pet instances and notifies subscribers
after every change.

INVARIANTS:
- At most one instance per (item_id, mutation_id) pair
- Every instance references an item present in the catalog
- Every instance has count >= 1
- Instance order is insertion order, preserved by all operations

All operations are total. Unknown item ids are silent no-ops and invalid
weight/age input becomes None; nothing here raises on bad input.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace

from petshelf.models.catalog import Catalog
from petshelf.models.collection import (
    CollectionInstance,
    ResolvedInstance,
    parse_age,
    parse_weight,
)

logger = logging.getLogger(__name__)

Listener = Callable[["CollectionStore"], None]


class CollectionStore:
    """
    In-memory collection state with change notification.

    Listeners are called synchronously, in subscription order, once the
    state is fully updated. A listener may read the store freely; it must
    not mutate the store from inside its own notification.

    Mutation is serialized behind a re-entrant lock so the store stays
    single-writer when shared across threads.
    """

    def __init__(
        self,
        catalog: Catalog,
        instances: Iterable[CollectionInstance] = (),
    ) -> None:
        self._catalog = catalog
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._rows: list[CollectionInstance] = self._normalize(instances)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns a callable that removes this listener again.
        """
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def instances(self) -> tuple[CollectionInstance, ...]:
        """Raw instances in insertion order."""
        with self._lock:
            return tuple(self._rows)

    def snapshot(self) -> tuple[ResolvedInstance, ...]:
        """Instances in insertion order, resolved against the catalog."""
        with self._lock:
            return tuple(self._resolve(row) for row in self._rows)

    def has(self, item_id: int) -> bool:
        return self._first_index(item_id) is not None

    def get_count(self, item_id: int) -> int:
        """Count of the first instance of `item_id`, or 0."""
        index = self._first_index(item_id)
        return self._rows[index].count if index is not None else 0

    def get_mutation(self, item_id: int) -> int | None:
        """Mutation of the first instance of `item_id`, or None."""
        index = self._first_index(item_id)
        return self._rows[index].mutation_id if index is not None else None

    def total_count(self) -> int:
        """Total copies held across all instances."""
        return sum(row.count for row in self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, item_id: int, mutation_id: int | None = None) -> None:
        """
        Add one copy of a pet with the given mutation.

        An existing (item_id, mutation_id) instance is incremented;
        otherwise a new instance with count 1 is appended.
        """
        with self._lock:
            if item_id not in self._catalog:
                logger.debug("collection_add_unknown_item", extra={"item_id": item_id})
                return
            mutation_id = self._known_mutation(mutation_id)

            index = self._pair_index(item_id, mutation_id)
            if index is not None:
                row = self._rows[index]
                self._rows[index] = replace(row, count=row.count + 1)
            else:
                self._rows.append(CollectionInstance(item_id=item_id, mutation_id=mutation_id))
            self._emit()

    def remove(self, item_id: int) -> None:
        """
        Remove one copy of the first instance of `item_id`.

        The instance is deleted when its last copy is removed.
        No matching instance is a no-op and does not notify.
        """
        with self._lock:
            index = self._first_index(item_id)
            if index is None:
                return

            row = self._rows[index]
            if row.count > 1:
                self._rows[index] = replace(row, count=row.count - 1)
            else:
                del self._rows[index]
            self._emit()

    def delete_all(self, item_id: int) -> None:
        """Delete every instance of `item_id`, whatever its mutation or count."""
        with self._lock:
            self._rows = [row for row in self._rows if row.item_id != item_id]
            self._emit()

    def set_mutation(self, item_id: int, mutation_id: int | None) -> None:
        """
        Change the mutation of the first instance of `item_id`.

        If another instance already holds the target pair, it is merged into
        the changed instance (counts summed) so pairs stay unique.
        """
        with self._lock:
            index = self._first_index(item_id)
            if index is None:
                return
            mutation_id = self._known_mutation(mutation_id)

            row = self._rows[index]
            clash = self._pair_index(item_id, mutation_id)
            if clash is not None and clash != index:
                other = self._rows[clash]
                row = replace(
                    row,
                    count=row.count + other.count,
                    weight=row.weight if row.weight is not None else other.weight,
                    age=row.age if row.age is not None else other.age,
                )
                logger.debug(
                    "collection_instances_merged",
                    extra={"item_id": item_id, "mutation_id": mutation_id},
                )
            self._rows[index] = replace(row, mutation_id=mutation_id)
            if clash is not None and clash != index:
                del self._rows[clash]
            self._emit()

    def set_weight(self, item_id: int, raw_value: object) -> None:
        """Set the weight of the first instance of `item_id` (invalid -> None)."""
        with self._lock:
            index = self._first_index(item_id)
            if index is None:
                return
            self._rows[index] = replace(self._rows[index], weight=parse_weight(raw_value))
            self._emit()

    def set_age(self, item_id: int, raw_value: object) -> None:
        """Set the age of the first instance of `item_id` (invalid -> None)."""
        with self._lock:
            index = self._first_index(item_id)
            if index is None:
                return
            self._rows[index] = replace(self._rows[index], age=parse_age(raw_value))
            self._emit()

    def clear(self) -> None:
        """Remove every instance."""
        with self._lock:
            self._rows = []
            self._emit()

    def replace_all(self, instances: Iterable[CollectionInstance]) -> None:
        """
        Replace the whole collection, e.g. when hydrating from a share link.

        Input is normalized: unknown items dropped, duplicate pairs merged.
        """
        with self._lock:
            self._rows = self._normalize(instances)
            self._emit()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _first_index(self, item_id: int) -> int | None:
        for index, row in enumerate(self._rows):
            if row.item_id == item_id:
                return index
        return None

    def _pair_index(self, item_id: int, mutation_id: int | None) -> int | None:
        for index, row in enumerate(self._rows):
            if row.item_id == item_id and row.mutation_id == mutation_id:
                return index
        return None

    def _known_mutation(self, mutation_id: int | None) -> int | None:
        if mutation_id is None or self._catalog.has_mutation(mutation_id):
            return mutation_id
        logger.debug("collection_unknown_mutation_ignored", extra={"mutation_id": mutation_id})
        return None

    def _resolve(self, row: CollectionInstance) -> ResolvedInstance:
        # _normalize and add() only admit catalog items
        item = self._catalog[row.item_id]
        return ResolvedInstance(
            instance=row,
            item=item,
            mutation=self._catalog.get_mutation(row.mutation_id),
        )

    def _normalize(self, instances: Iterable[CollectionInstance]) -> list[CollectionInstance]:
        rows: list[CollectionInstance] = []
        positions: dict[tuple[int, int | None], int] = {}
        dropped: list[int] = []

        for instance in instances:
            if instance.item_id not in self._catalog or instance.count < 1:
                dropped.append(instance.item_id)
                continue

            instance = replace(
                instance,
                mutation_id=self._known_mutation(instance.mutation_id),
                weight=parse_weight(instance.weight),
                age=parse_age(instance.age),
            )
            position = positions.get(instance.key)
            if position is None:
                positions[instance.key] = len(rows)
                rows.append(instance)
                continue

            existing = rows[position]
            rows[position] = replace(
                existing,
                count=existing.count + instance.count,
                weight=existing.weight if existing.weight is not None else instance.weight,
                age=existing.age if existing.age is not None else instance.age,
            )

        if dropped:
            logger.debug(
                "collection_instances_dropped",
                extra={"dropped_count": len(dropped), "item_ids": dropped[:10]},
            )
        return rows
