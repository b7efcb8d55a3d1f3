"""
Collection API endpoints.

The server stores nothing: every request carries the collection as a
share-link fragment ("inv=1::2,2:g") and every response hands back the
fragment for the resulting state.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from petshelf.filtering.view_pipeline import SortSpec
from petshelf.models.catalog import Catalog
from petshelf.models.collection import CollectionInstance, ResolvedInstance
from petshelf.services.catalog_loader import get_catalog
from petshelf.services.session import CollectionOperation, CollectionSession

router = APIRouter(prefix="/collection", tags=["collection"])

COLLECTION_SORT_PATTERN = r"^(name|rarity|mutation)-(asc|desc)$"


class InstanceInput(BaseModel):
    """One held pet, as supplied by a client."""

    item_id: int
    mutation_id: int | None = None
    count: int = Field(default=1, ge=1)
    weight: float | None = None
    age: int | None = Field(default=None, ge=0)


class InstanceResponse(BaseModel):
    """One held pet, resolved against the catalog."""

    item_id: int
    mutation_id: int | None = None
    count: int
    weight: float | None = None
    age: int | None = None
    name: str
    rarity_tier: str
    image_ref: str = ""
    mutation_name: str | None = None
    mutation_code: str | None = None

    @classmethod
    def from_resolved(cls, entry: ResolvedInstance) -> "InstanceResponse":
        return cls(
            item_id=entry.item_id,
            mutation_id=entry.mutation_id,
            count=entry.count,
            weight=entry.weight,
            age=entry.age,
            name=entry.item.name,
            rarity_tier=entry.item.rarity_tier,
            image_ref=entry.item.image_ref,
            mutation_name=entry.mutation.name if entry.mutation else None,
            mutation_code=entry.mutation.code if entry.mutation else None,
        )


class CollectionResponse(BaseModel):
    """A collection state and the link that reproduces it."""

    fragment: str
    share_url: str
    instances: list[InstanceResponse] = Field(default_factory=list)
    total_count: int = 0
    unique_count: int = 0


class FragmentRequest(BaseModel):
    """Request carrying a share-link fragment."""

    fragment: str = Field(
        default="",
        description="Fragment, '#inv=...' string, or full share URL",
        examples=["inv=1::2,2:g"],
    )


class EncodeRequest(BaseModel):
    """Request model for encoding a collection into a link."""

    instances: list[InstanceInput] = Field(
        default_factory=list,
        examples=[[{"item_id": 1, "count": 2}, {"item_id": 2, "mutation_id": 9}]],
    )


class OperationInput(BaseModel):
    """One store mutation to replay."""

    op: CollectionOperation
    item_id: int | None = None
    mutation_id: int | None = None
    value: str | float | None = Field(
        default=None,
        description="Raw weight or age input for set_weight / set_age",
    )


class ApplyRequest(FragmentRequest):
    """Request model for replaying mutations on a collection."""

    operations: list[OperationInput] = Field(default_factory=list)


class ViewRequest(FragmentRequest):
    """Request model for a filtered, sorted collection view."""

    q: str = ""
    sort: str = Field(default="name-asc", pattern=COLLECTION_SORT_PATTERN)


class CollectionViewResponse(BaseModel):
    """Filtered, sorted collection instances."""

    query: str = ""
    sort: str
    instances: list[InstanceResponse] = Field(default_factory=list)
    total: int = 0


def _collection_response(session: CollectionSession) -> CollectionResponse:
    snapshot = session.snapshot()
    return CollectionResponse(
        fragment=session.fragment,
        share_url=session.share_url,
        instances=[InstanceResponse.from_resolved(entry) for entry in snapshot],
        total_count=session.store.total_count(),
        unique_count=len(snapshot),
    )


@router.post("/decode", response_model=CollectionResponse)
async def decode_collection(
    request: FragmentRequest,
    catalog: Annotated[Catalog, Depends(get_catalog)],
) -> CollectionResponse:
    """
    Open a share link.

    Unknown pets and malformed tokens are dropped; unknown mutation codes
    decode as no mutation. The returned fragment is the canonical form.
    """
    return _collection_response(CollectionSession(catalog, request.fragment))


@router.post("/encode", response_model=CollectionResponse)
async def encode_collection(
    request: EncodeRequest,
    catalog: Annotated[Catalog, Depends(get_catalog)],
) -> CollectionResponse:
    """
    Build a share link for a collection.

    Pets not in the catalog are dropped; repeated (pet, mutation)
    pairs are merged.
    """
    session = CollectionSession(catalog)
    session.store.replace_all(
        CollectionInstance(
            item_id=entry.item_id,
            mutation_id=entry.mutation_id,
            count=entry.count,
            weight=entry.weight,
            age=entry.age,
        )
        for entry in request.instances
    )
    return _collection_response(session)


@router.post("/apply", response_model=CollectionResponse)
async def apply_operations(
    request: ApplyRequest,
    catalog: Annotated[Catalog, Depends(get_catalog)],
) -> CollectionResponse:
    """
    Replay store mutations on the collection in `fragment`.

    Operations run in order. Returns the resulting state and its link.
    """
    session = CollectionSession(catalog, request.fragment)
    for operation in request.operations:
        session.apply(
            operation.op,
            item_id=operation.item_id,
            mutation_id=operation.mutation_id,
            value=operation.value,
        )
    return _collection_response(session)


@router.post("/view", response_model=CollectionViewResponse)
async def view_collection(
    request: ViewRequest,
    catalog: Annotated[Catalog, Depends(get_catalog)],
) -> CollectionViewResponse:
    """Filter and sort the collection in `fragment`."""
    spec = SortSpec.parse(request.sort)
    session = CollectionSession(catalog, request.fragment)
    entries = session.collection_view(request.q, spec)
    return CollectionViewResponse(
        query=request.q,
        sort=str(spec),
        instances=[InstanceResponse.from_resolved(entry) for entry in entries],
        total=len(entries),
    )
