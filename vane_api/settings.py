from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_FRONTEND_ORIGIN = "http://localhost:3011"
OAUTH_CALLBACK_PATH = "/login/github/callback"


class Settings(BaseSettings):
    sanity_token: str = Field(..., alias="SANITY_TOKEN")
    sanity_project_id: str = Field("k4ho43fa", alias="SANITY_PROJECT_ID")
    sanity_api_version: str = Field("v2021-03-25", alias="SANITY_API_VERSION")
    environment: str = Field("development", alias="ENVIRONMENT")

    github_client_id: str = Field(..., alias="GITHUB_OAUTH_CLIENT_ID")
    github_client_secret: str = Field(..., alias="GITHUB_OAUTH_CLIENT_SECRET")

    base_url: str = Field(..., alias="BASE_URL")
    port: int = Field(3012, alias="PORT")

    session_secret: str = Field(..., alias="SESSION_SECRET")
    token_encryption_key: str | None = Field(None, alias="TOKEN_ENCRYPTION_KEY")

    cors_origins_raw: str = Field("", alias="CORS_ORIGINS")
    store_timeout_seconds: float = Field(20.0, alias="STORE_TIMEOUT_SECONDS")
    log_level: str = Field("INFO", alias="VANE_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def oauth_callback_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{OAUTH_CALLBACK_PATH}"

    @property
    def encryption_key(self) -> str:
        return self.token_encryption_key or self.session_secret

    @property
    def cors_origins(self) -> List[str]:
        items = [LOCAL_FRONTEND_ORIGIN, self.base_url.rstrip("/")]
        items += [item.strip().rstrip("/") for item in self.cors_origins_raw.split(",") if item.strip()]
        dedup = []
        seen = set()
        for item in items:
            if item in seen:
                continue
            seen.add(item)
            dedup.append(item)
        return dedup


def get_settings() -> Settings:
    return Settings()
