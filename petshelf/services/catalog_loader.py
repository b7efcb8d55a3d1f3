"""
Catalog loader service.

Loads, validates and caches the pet catalog (pets.json + mutations.json),
and downloads fresh copies of both files.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx
from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, ValidationError, field_validator

from petshelf.config import settings
from petshelf.models.catalog import (
    Catalog,
    ItemDefinition,
    MutationDefinition,
    effective_mutation_code,
)
from petshelf.models.failure import CatalogError, FailureKind

logger = logging.getLogger(__name__)

PETS_FILE = "pets.json"
MUTATIONS_FILE = "mutations.json"
CATALOG_FILES = (PETS_FILE, MUTATIONS_FILE)


class ItemRecord(BaseModel):
    """Raw pet record as found in pets.json."""

    id: int
    name: str
    rarity_tier: str = Field(validation_alias=AliasChoices("rarityTier", "rarity", "rarity_tier"))
    image_ref: str = Field(
        default="",
        validation_alias=AliasChoices("imageRef", "image", "image_ref"),
    )


class MutationRecord(BaseModel):
    """Raw mutation record as found in mutations.json."""

    id: int
    name: str
    code: str | None = None
    overrides_rarity: bool = Field(
        default=False,
        validation_alias=AliasChoices("overridesRarity", "overrideRarity", "overrides_rarity"),
    )
    visual_style: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("visualStyle", "style", "visual_style"),
    )

    @field_validator("code", mode="before")
    @classmethod
    def _stringify_code(cls, value: Any) -> str | None:
        # Catalogs sometimes carry numeric codes (e.g., 3 instead of "3")
        if value is None:
            return None
        return str(value)


_ITEM_LIST = TypeAdapter(list[ItemRecord])
_MUTATION_LIST = TypeAdapter(list[MutationRecord])


def build_catalog(
    item_records: list[ItemRecord],
    mutation_records: list[MutationRecord],
) -> Catalog:
    """
    Build a Catalog from validated records.

    Mutations without a code get their catalog position in base 36
    ("0", "1", ..., "a", ...), in mutations.json order.

    Raises:
        CatalogError: On duplicate ids or link codes
    """
    items = [
        ItemDefinition(
            id=record.id,
            name=record.name,
            rarity_tier=record.rarity_tier,
            image_ref=record.image_ref,
        )
        for record in item_records
    ]
    mutations = [
        MutationDefinition(
            id=record.id,
            name=record.name,
            code=effective_mutation_code(index, record.code),
            overrides_rarity=record.overrides_rarity,
            visual_style=record.visual_style,
        )
        for index, record in enumerate(mutation_records)
    ]

    try:
        return Catalog(items, mutations)
    except ValueError as e:
        raise CatalogError(
            "The pet catalog contains conflicting entries.",
            detail=str(e),
            kind=FailureKind.VALIDATION_FAILED,
        ) from e


def parse_catalog(raw_items: Any, raw_mutations: Any) -> Catalog:
    """
    Validate raw JSON data and build a Catalog.

    Raises:
        CatalogError: If either list fails validation
    """
    try:
        item_records = _ITEM_LIST.validate_python(raw_items)
        mutation_records = _MUTATION_LIST.validate_python(raw_mutations)
    except ValidationError as e:
        raise CatalogError(
            "The pet catalog contains invalid records.",
            detail=f"{e.error_count()} validation errors: {e.errors()[:3]}",
            kind=FailureKind.VALIDATION_FAILED,
        ) from e
    return build_catalog(item_records, mutation_records)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise CatalogError(f"Catalog file not found at {path}.")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog file {path.name} is not valid JSON.", detail=str(e)) from e


def load_catalog(directory: Path | None = None) -> Catalog:
    """
    Load the catalog from a directory holding pets.json and mutations.json.

    Args:
        directory: Catalog directory. Defaults to settings.catalog_dir

    Returns:
        The validated Catalog.

    Raises:
        CatalogError: If a file is missing, malformed or inconsistent
    """
    if directory is None:
        directory = settings.catalog_dir

    catalog = parse_catalog(
        _read_json(directory / PETS_FILE),
        _read_json(directory / MUTATIONS_FILE),
    )
    logger.info(
        "catalog_loaded",
        extra={
            "catalog_dir": str(directory),
            "item_count": len(catalog.items),
            "mutation_count": len(catalog.mutations),
        },
    )
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """
    Get the cached default catalog.

    Cached after first successful load.

    Raises:
        CatalogError: If the catalog cannot be loaded
    """
    return load_catalog()


def catalog_available() -> bool:
    """Check if the default catalog is loadable."""
    try:
        get_catalog()
        return True
    except CatalogError:
        return False


async def download_catalog(
    base_url: str | None = None,
    output_dir: Path | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Path]:
    """
    Download pets.json and mutations.json from `base_url`.

    Both files are validated before anything is written, so a bad
    download never replaces a working catalog.

    Args:
        base_url: URL prefix the two file names are appended to.
                  Defaults to settings.catalog_url
        output_dir: Where to save the files. Defaults to settings.catalog_dir
        client: Optional shared HTTP client

    Returns:
        Paths of the written files.

    Raises:
        ValueError: If no base URL is configured
        httpx.HTTPError: If a download fails
        CatalogError: If the downloaded data is not a valid catalog
    """
    base_url = base_url or settings.catalog_url
    if not base_url:
        raise ValueError("No catalog URL configured (set CATALOG_URL)")
    if output_dir is None:
        output_dir = settings.catalog_dir

    payloads: dict[str, Any] = {}
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=30.0)
    try:
        for name in CATALOG_FILES:
            url = f"{base_url.rstrip('/')}/{name}"
            response = await client.get(url)
            response.raise_for_status()
            payloads[name] = response.json()
    finally:
        if owns_client:
            await client.aclose()

    parse_catalog(payloads[PETS_FILE], payloads[MUTATIONS_FILE])

    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, payload in payloads.items():
        path = output_dir / name
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        written.append(path)

    return written
