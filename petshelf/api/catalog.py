"""
Catalog API endpoints.

Read-only browsing of the pet catalog, with the same filter and sort
rules as the collection view.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from petshelf.filtering.view_pipeline import SortSpec, ViewPipeline
from petshelf.models.catalog import Catalog, ItemDefinition, MutationDefinition
from petshelf.services.catalog_loader import get_catalog

router = APIRouter(prefix="/catalog", tags=["catalog"])

# Catalog items have no mutation, so only name and rarity sorts apply
CATALOG_SORT_PATTERN = r"^(name|rarity)-(asc|desc)$"


class ItemResponse(BaseModel):
    """A pet definition."""

    id: int
    name: str
    rarity_tier: str
    image_ref: str = ""

    @classmethod
    def from_definition(cls, item: ItemDefinition) -> "ItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            rarity_tier=item.rarity_tier,
            image_ref=item.image_ref,
        )


class MutationResponse(BaseModel):
    """A mutation definition with its effective link code."""

    id: int
    name: str
    code: str
    overrides_rarity: bool = False
    visual_style: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_definition(cls, mutation: MutationDefinition) -> "MutationResponse":
        return cls(
            id=mutation.id,
            name=mutation.name,
            code=mutation.code,
            overrides_rarity=mutation.overrides_rarity,
            visual_style=dict(mutation.visual_style),
        )


class CatalogViewResponse(BaseModel):
    """Filtered, sorted catalog items."""

    query: str = ""
    sort: str
    items: list[ItemResponse] = Field(default_factory=list)
    total: int = 0


@router.get("/items", response_model=CatalogViewResponse)
async def list_items(
    catalog: Annotated[Catalog, Depends(get_catalog)],
    q: Annotated[str, Query(description="Case-insensitive name or rarity substring")] = "",
    sort: Annotated[
        str,
        Query(pattern=CATALOG_SORT_PATTERN, description="e.g. name-asc, rarity-desc"),
    ] = "name-asc",
) -> CatalogViewResponse:
    """
    Browse the catalog.

    Matches `q` against pet names and rarity tiers, then orders by `sort`.
    """
    spec = SortSpec.parse(sort)
    items = ViewPipeline(catalog).catalog_view(q, spec)
    return CatalogViewResponse(
        query=q,
        sort=str(spec),
        items=[ItemResponse.from_definition(item) for item in items],
        total=len(items),
    )


@router.get("/mutations", response_model=list[MutationResponse])
async def list_mutations(
    catalog: Annotated[Catalog, Depends(get_catalog)],
) -> list[MutationResponse]:
    """List mutations in catalog order, with the codes used in share links."""
    return [MutationResponse.from_definition(m) for m in catalog.mutations]
