"""
Catalog Models.

The catalog is the fixed, read-only set of pet and mutation definitions
loaded once at startup. Every other component receives it explicitly.

INVARIANTS:
- Item ids are unique
- Mutation ids are unique
- Every mutation has a non-empty, unique link code
- Definitions are frozen (immutable after construction)
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class RarityTier(str, Enum):
    """Known rarity tiers, declared from lowest to highest."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    LEGENDARY = "Legendary"
    MYTHICAL = "Mythical"
    DIVINE = "Divine"
    PRISMATIC = "Prismatic"


# Rank 1 is the lowest tier; unknown tiers rank 0
RARITY_RANK: dict[str, int] = {tier.value: rank for rank, tier in enumerate(RarityTier, start=1)}


@dataclass(frozen=True, slots=True)
class ItemDefinition:
    """
    A pet that can be held in a collection.

    Attributes:
        id: Unique numeric id, used in share links
        name: Display name
        rarity_tier: Tier name (e.g., "Legendary"); may be outside RarityTier
        image_ref: Image path or URL, passed through to presentation
    """

    id: int
    name: str
    rarity_tier: str
    image_ref: str = ""


@dataclass(frozen=True, slots=True)
class MutationDefinition:
    """
    A trait that can be attached to a held pet.

    Attributes:
        id: Unique numeric id
        name: Display name
        code: Short token used in share links
        overrides_rarity: Presentation hint, never interpreted by the core
        visual_style: Opaque style payload, never interpreted by the core
    """

    id: int
    name: str
    code: str
    overrides_rarity: bool = False
    visual_style: Mapping[str, Any] = field(default_factory=dict, compare=False)


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value} in base 36")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def effective_mutation_code(index: int, code: str | None) -> str:
    """
    Resolve the link code for a mutation at catalog position `index`.

    An explicit non-empty code wins; otherwise the position in base 36.
    """
    if code:
        return code
    return to_base36(index)


class Catalog:
    """
    Read-only lookup over item and mutation definitions.

    Iteration order is catalog order (the order definitions were supplied).
    """

    def __init__(
        self,
        items: Iterable[ItemDefinition],
        mutations: Iterable[MutationDefinition] = (),
    ) -> None:
        self._items: dict[int, ItemDefinition] = {}
        self._mutations: dict[int, MutationDefinition] = {}
        self._code_to_mutation: dict[str, int] = {}

        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate item id {item.id}")
            self._items[item.id] = item

        for mutation in mutations:
            if mutation.id in self._mutations:
                raise ValueError(f"Duplicate mutation id {mutation.id}")
            if not mutation.code:
                raise ValueError(f"Mutation {mutation.id} has no link code")
            if mutation.code in self._code_to_mutation:
                raise ValueError(
                    f"Mutation code {mutation.code!r} used by both "
                    f"{self._code_to_mutation[mutation.code]} and {mutation.id}"
                )
            self._mutations[mutation.id] = mutation
            self._code_to_mutation[mutation.code] = mutation.id

    @property
    def items(self) -> tuple[ItemDefinition, ...]:
        return tuple(self._items.values())

    @property
    def mutations(self) -> tuple[MutationDefinition, ...]:
        return tuple(self._mutations.values())

    def __iter__(self) -> Iterator[ItemDefinition]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __getitem__(self, item_id: int) -> ItemDefinition:
        """Item definition by id. Raises KeyError for unknown ids."""
        return self._items[item_id]

    def get_item(self, item_id: int) -> ItemDefinition | None:
        return self._items.get(item_id)

    def get_mutation(self, mutation_id: int | None) -> MutationDefinition | None:
        if mutation_id is None:
            return None
        return self._mutations.get(mutation_id)

    def has_mutation(self, mutation_id: int | None) -> bool:
        return mutation_id is not None and mutation_id in self._mutations

    def mutation_id_for_code(self, code: str) -> int | None:
        """Look up a mutation id by link code. Unknown codes return None."""
        return self._code_to_mutation.get(code)

    def mutation_code(self, mutation_id: int | None) -> str:
        """Link code for a mutation id, or "" when there is no such mutation."""
        mutation = self.get_mutation(mutation_id)
        return mutation.code if mutation else ""

    @staticmethod
    def rarity_rank(tier: str) -> int:
        """Sort rank for a rarity tier (Common=1 ... Prismatic=7, unknown=0)."""
        return RARITY_RANK.get(tier, 0)
