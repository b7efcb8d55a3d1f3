"""
Download the pet catalog.

Run this job to refresh pets.json and mutations.json from CATALOG_URL.
"""

import asyncio
import logging

from petshelf.config import settings
from petshelf.services.catalog_loader import download_catalog

logger = logging.getLogger(__name__)


async def run_download(base_url: str | None = None) -> None:
    """Download and validate the pet catalog."""
    logger.info("Downloading pet catalog from %s...", base_url or settings.catalog_url)

    try:
        paths = await download_catalog(base_url)
        logger.info("Downloaded catalog files: %s", ", ".join(str(p) for p in paths))
    except Exception as e:
        logger.error("Failed to download pet catalog: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_download())


if __name__ == "__main__":
    main()
