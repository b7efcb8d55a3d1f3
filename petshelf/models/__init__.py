from petshelf.models.catalog import (
    RARITY_RANK,
    Catalog,
    ItemDefinition,
    MutationDefinition,
    RarityTier,
    effective_mutation_code,
    to_base36,
)
from petshelf.models.collection import (
    CollectionInstance,
    ResolvedInstance,
    parse_age,
    parse_weight,
)
from petshelf.models.failure import (
    CatalogError,
    FailureDetail,
    FailureKind,
    KnownError,
)

__all__ = [
    "Catalog",
    "CatalogError",
    "CollectionInstance",
    "FailureDetail",
    "FailureKind",
    "ItemDefinition",
    "KnownError",
    "MutationDefinition",
    "RARITY_RANK",
    "RarityTier",
    "ResolvedInstance",
    "effective_mutation_code",
    "parse_age",
    "parse_weight",
    "to_base36",
]
