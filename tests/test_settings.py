import pytest
from pydantic import ValidationError

from vane_api.settings import Settings

REQUIRED = {
    "SANITY_TOKEN": "sanity-token",
    "GITHUB_OAUTH_CLIENT_ID": "client-id",
    "GITHUB_OAUTH_CLIENT_SECRET": "client-secret",
    "BASE_URL": "https://vanes.example.com/",
    "SESSION_SECRET": "session-secret",
}


@pytest.fixture
def env(monkeypatch):
    for key in [*REQUIRED, "PORT", "ENVIRONMENT", "CORS_ORIGINS", "TOKEN_ENCRYPTION_KEY"]:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_from_environment(env):
    for key, value in REQUIRED.items():
        env.setenv(key, value)

    settings = Settings(_env_file=None)

    assert settings.port == 3012
    assert settings.environment == "development"
    assert settings.sanity_api_version == "v2021-03-25"
    assert settings.oauth_callback_url == "https://vanes.example.com/login/github/callback"
    assert settings.encryption_key == "session-secret"


def test_cors_origins_are_deduplicated(env):
    for key, value in REQUIRED.items():
        env.setenv(key, value)
    env.setenv("CORS_ORIGINS", "https://app.example.com, http://localhost:3011,")

    settings = Settings(_env_file=None)

    assert settings.cors_origins == [
        "http://localhost:3011",
        "https://vanes.example.com",
        "https://app.example.com",
    ]


def test_missing_required_values(env):
    env.setenv("SANITY_TOKEN", "only-this")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
