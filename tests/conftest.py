from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from petshelf.main import app
from petshelf.models.catalog import Catalog, ItemDefinition, MutationDefinition
from petshelf.parsers.share_link import LinkCodec
from petshelf.services.catalog_loader import get_catalog
from petshelf.services.collection_store import CollectionStore


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    """Clear the cached default catalog between tests.

    Tests that point settings.catalog_dir elsewhere must not leak a
    catalog loaded from a temporary directory into later tests.
    """
    get_catalog.cache_clear()
    yield
    get_catalog.cache_clear()


@pytest.fixture
def sample_items() -> list[ItemDefinition]:
    return [
        ItemDefinition(id=1, name="Dog", rarity_tier="Common", image_ref="dog.png"),
        ItemDefinition(id=2, name="Cat", rarity_tier="Uncommon", image_ref="cat.png"),
        ItemDefinition(id=5, name="Bunny", rarity_tier="Common", image_ref="bunny.png"),
        ItemDefinition(id=7, name="Legendary Wolf", rarity_tier="Rare", image_ref="wolf.png"),
        ItemDefinition(id=8, name="Sea Otter", rarity_tier="Legendary", image_ref="otter.png"),
        ItemDefinition(id=12, name="Raccoon", rarity_tier="Prismatic", image_ref="raccoon.png"),
        ItemDefinition(id=20, name="Mystery Egg", rarity_tier="Event", image_ref="egg.png"),
    ]


@pytest.fixture
def sample_mutations() -> list[MutationDefinition]:
    return [
        MutationDefinition(id=3, name="Shiny", code="s"),
        MutationDefinition(id=4, name="Frozen", code="1", overrides_rarity=True),
        MutationDefinition(
            id=9,
            name="Golden",
            code="g",
            overrides_rarity=True,
            visual_style={"borderColor": "#ffd700"},
        ),
    ]


@pytest.fixture
def catalog(
    sample_items: list[ItemDefinition],
    sample_mutations: list[MutationDefinition],
) -> Catalog:
    """Small in-memory catalog. Mutation 9 ("Golden") has code "g"."""
    return Catalog(sample_items, sample_mutations)


@pytest.fixture
def store(catalog: Catalog) -> CollectionStore:
    return CollectionStore(catalog)


@pytest.fixture
def codec(catalog: Catalog) -> LinkCodec:
    return LinkCodec(catalog)


@pytest.fixture
def annotated_codec(catalog: Catalog) -> LinkCodec:
    return LinkCodec(catalog, include_annotations=True)


@pytest.fixture
async def client(catalog: Catalog) -> AsyncIterator[AsyncClient]:
    """Async test client serving the in-memory catalog."""
    app.dependency_overrides[get_catalog] = lambda: catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
