import math
import re
from dataclasses import dataclass

from petshelf.models.catalog import ItemDefinition, MutationDefinition

# Leading decimal number, e.g. "3.5kg" -> "3.5", ".25" -> ".25", "1e3" -> "1e3"
_LEADING_DECIMAL = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# Leading integer, e.g. "4.7" -> "4", "12 years" -> "12"
_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True, slots=True)
class CollectionInstance:
    """
    One held (item, mutation) pairing.

    Attributes:
        item_id: References an ItemDefinition
        mutation_id: References a MutationDefinition, None for no mutation
        count: Copies held (always >= 1)
        weight: Optional weight, 2 decimal places
        age: Optional age in whole years (>= 0)
    """

    item_id: int
    mutation_id: int | None = None
    count: int = 1
    weight: float | None = None
    age: int | None = None

    @property
    def key(self) -> tuple[int, int | None]:
        """Uniqueness key within a collection."""
        return (self.item_id, self.mutation_id)


@dataclass(frozen=True, slots=True)
class ResolvedInstance:
    """
    A collection instance paired with its catalog definitions.

    This is what snapshots hand to views and presentation.
    """

    instance: CollectionInstance
    item: ItemDefinition
    mutation: MutationDefinition | None = None

    @property
    def item_id(self) -> int:
        return self.instance.item_id

    @property
    def mutation_id(self) -> int | None:
        return self.instance.mutation_id

    @property
    def count(self) -> int:
        return self.instance.count

    @property
    def weight(self) -> float | None:
        return self.instance.weight

    @property
    def age(self) -> int | None:
        return self.instance.age

    @property
    def mutation_name(self) -> str:
        return self.mutation.name if self.mutation else ""


def parse_weight(raw: object) -> float | None:
    """
    Parse a user-entered weight.

    Returns None for empty, unparseable or non-finite input.
    Otherwise rounds half-up to 2 decimal places ("3.14159" -> 3.14).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        value = float(raw)
    else:
        match = _LEADING_DECIMAL.match(str(raw))
        if not match:
            return None
        value = float(match.group(1))
    scaled = value * 100
    # Values near the float limit overflow once scaled
    if not math.isfinite(scaled):
        return None
    return math.floor(scaled + 0.5) / 100


def parse_age(raw: object) -> int | None:
    """
    Parse a user-entered age in whole years.

    Fractions are truncated ("4.7" -> 4). Empty, unparseable
    or negative input returns None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        value = int(raw)
    elif isinstance(raw, int):
        value = raw
    else:
        match = _LEADING_INTEGER.match(str(raw))
        if not match:
            return None
        try:
            value = int(match.group(1))
        except ValueError:
            # Longer than the interpreter allows for int() on a string
            return None
    return value if value >= 0 else None
