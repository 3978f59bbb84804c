"""
Runtime configuration helpers for the FastAPI application.

Loads DATABASE_URL, the Azure AD application registration and the
authorization knobs from the environment, falling back to the .env file
located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required; comes from the environment or .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="Azure Feature Toggle", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    # "entra" validates Azure AD access tokens, "local" validates HS256 tokens signed with JWT_SECRET_KEY
    auth_mode: Literal["entra", "local"] = Field(default="entra", alias="AUTH_MODE")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    azure_ad_instance: str = Field(default="https://login.microsoftonline.com/", alias="AZURE_AD_INSTANCE")
    azure_ad_tenant_id: str | None = Field(default=None, alias="AZURE_AD_TENANT_ID")
    azure_ad_client_id: str | None = Field(default=None, alias="AZURE_AD_CLIENT_ID")
    azure_ad_client_secret: str | None = Field(default=None, alias="AZURE_AD_CLIENT_SECRET")
    azure_ad_audience: str | None = Field(default=None, alias="AZURE_AD_AUDIENCE")

    jwks_cache_ttl: int = Field(default=3600, alias="JWKS_CACHE_TTL")
    azure_http_timeout: float = Field(default=30.0, alias="AZURE_HTTP_TIMEOUT")

    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")
    resources_require_admin: bool = Field(default=True, alias="RESOURCES_REQUIRE_ADMIN")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def authority(self) -> str:
        return f"{self.azure_ad_instance.rstrip('/')}/{self.azure_ad_tenant_id or 'common'}"

    @property
    def expected_audiences(self) -> list[str]:
        if self.azure_ad_audience:
            return [self.azure_ad_audience]
        if not self.azure_ad_client_id:
            return []
        return [f"api://{self.azure_ad_client_id}", self.azure_ad_client_id]

    @property
    def admin_email_set(self) -> set[str]:
        return {item.strip().lower() for item in self.admin_emails.split(",") if item.strip()}


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
