from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Bundled sample catalog (repository root)
DEFAULT_CATALOG_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PetShelf"
    debug: bool = False
    log_level: str = "INFO"

    # Directory holding pets.json and mutations.json
    catalog_dir: Path = DEFAULT_CATALOG_DIR

    # Remote location the download job pulls catalog files from
    catalog_url: str = ""

    # Share links are this URL with the collection fragment appended
    share_base_url: str = "http://localhost:8000/"

    # Feature flag for weight/age fields in share links
    # Default: False (weight and age are session-only annotations)
    share_link_annotations: bool = False


settings = Settings()


# =============================================================================
# SHARE LINK FORMAT
# =============================================================================

# Only recognized key in the URL fragment ("#inv=<tokens>")
FRAGMENT_KEY = "inv"

# Separates instance tokens within the fragment value
TOKEN_SEPARATOR = ","

# Separates fields within a single token ("itemId:code:count")
FIELD_SEPARATOR = ":"

# Decoder cap - tokens beyond this are ignored
# (guards against pathological links, far above any real collection)
MAX_LINK_TOKENS = 2000
