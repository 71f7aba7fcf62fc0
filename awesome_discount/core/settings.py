# awesome_discount/core/settings.py
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PLANS_DIR = Path(__file__).resolve().parents[1] / "plans"


class Settings(BaseSettings):
    # === Algemene app settings ===
    app_env: str = "local"  # local | development | production

    # === Discount engine ===
    discount_plan_path: str = Field(
        str(PLANS_DIR / "default.yaml"), description="YAML discount plan (sources + merge groups + cap)"
    )
    max_combined_discount: Optional[float] = Field(
        None, ge=0, le=100, description="Overrides the plan's maxCombinedDiscount when set"
    )
    metafield_namespace: str = "awesome-discount"
    metafield_key: str = "tag-discount-config"

    # === Shopify (customer tag lookup) ===
    shopify_subdomain: Optional[str] = None
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = "2024-01"
    shopify_timeout_seconds: float = 10.0

    # === Logging ===
    log_level: str = "INFO"
    log_json: bool = True

    # === Pydantic Settings config ===
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance; only the HTTP wiring layer reads it."""
    return Settings()
