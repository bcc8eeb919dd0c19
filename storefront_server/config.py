"""Configuration for the storefront server."""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

PLACEHOLDER_DOMAIN = "your-store.myshopify.com"
PLACEHOLDER_TOKEN = "your-access-token"
DEFAULT_API_VERSION = "2023-10"
DEFAULT_TOKEN_HEADER = "X-Shopify-Storefront-Access-Token"

# shpat_, shpca_, shppa_ ... followed by 32 hex characters
ACCESS_TOKEN_PATTERN = re.compile(r"^shp[a-z]{2}_[a-fA-F0-9]{32}$")


class StorefrontConfig(BaseModel):
    """Process-wide settings, read once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    domain: Optional[str] = Field(None, description="Shop domain, e.g. mystore.myshopify.com")
    access_token: Optional[str] = Field(None, description="Storefront or Admin API access token")
    api_version: str = Field(DEFAULT_API_VERSION, description="Shopify API version")
    token_header: str = Field(DEFAULT_TOKEN_HEADER, description="Header carrying the access token")
    max_retries: int = Field(0, ge=0, description="Retries for transient upstream failures")
    timeout: float = Field(30.0, gt=0, description="Upstream request timeout in seconds")
    locale: str = Field("en_US", description="Locale used for price formatting")
    storage_file: str = Field(
        default_factory=lambda: str(Path.home() / ".storefront_storage.json"),
        description="Path of the JSON local storage file",
    )

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "StorefrontConfig":
        """
        Build the configuration from environment variables.

        Placeholder values shipped in sample .env files count as unset.
        """
        env = os.environ if environ is None else environ

        domain = env.get("SHOPIFY_DOMAIN") or None
        if domain == PLACEHOLDER_DOMAIN:
            domain = None

        token = env.get("SHOPIFY_ACCESS_TOKEN") or None
        if token == PLACEHOLDER_TOKEN:
            token = None

        values: dict = {"domain": domain, "access_token": token}
        if env.get("SHOPIFY_API_VERSION"):
            values["api_version"] = env["SHOPIFY_API_VERSION"]
        if env.get("SHOPIFY_TOKEN_HEADER"):
            values["token_header"] = env["SHOPIFY_TOKEN_HEADER"]
        if env.get("SHOPIFY_MAX_RETRIES"):
            values["max_retries"] = int(env["SHOPIFY_MAX_RETRIES"])
        if env.get("SHOPIFY_TIMEOUT"):
            values["timeout"] = float(env["SHOPIFY_TIMEOUT"])
        if env.get("STOREFRONT_LOCALE"):
            values["locale"] = env["STOREFRONT_LOCALE"]
        if env.get("STOREFRONT_STORAGE_FILE"):
            values["storage_file"] = env["STOREFRONT_STORAGE_FILE"]

        return cls(**values)

    @property
    def is_configured(self) -> bool:
        """True when both the shop domain and access token are present."""
        return bool(self.domain and self.access_token)

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}/api/{self.api_version}/graphql.json"

    def log_status(self) -> None:
        """Log configuration status, warning about demo mode or odd tokens."""
        if not self.is_configured:
            logger.warning("Shopify credentials not configured. Using demo mode with mock data.")
            logger.warning("Set SHOPIFY_DOMAIN and SHOPIFY_ACCESS_TOKEN to use real Shopify data")
            return

        if not ACCESS_TOKEN_PATTERN.match(self.access_token or ""):
            logger.warning("Shopify access token doesn't match the expected format")
            logger.warning(
                "Tokens usually start with 'shpat_', 'shpca_' or 'shppa_' "
                "followed by 32 hexadecimal characters"
            )
            logger.warning(f"Current token: {(self.access_token or '')[:8]}...")

        logger.info(f"Using Shopify API endpoint: {self.endpoint}")
