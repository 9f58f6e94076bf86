"""Settings — environment loading and validation.

Invariants:
    - Both upstream URLs are required and non-blank
    - Trailing slashes stripped from base URLs
    - Defaults: port 8080, shutdown timeout 5s, no request deadline
"""

import pytest
from pydantic import ValidationError

from pokedex.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "POKEMON_API_URL", "TRANSLATION_API_URL", "PORT",
        "SHUTDOWN_TIMEOUT_SECONDS", "REQUEST_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    clean_env.setenv("POKEMON_API_URL", "https://pokeapi.co/")
    clean_env.setenv("TRANSLATION_API_URL", "https://api.funtranslations.com")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.shutdown_timeout_seconds == 5.0
    assert settings.request_timeout_seconds is None
    assert settings.pokemon_api_url == "https://pokeapi.co"
    assert settings.yoda_translation_slug == "yodish"
    assert settings.shakespeare_translation_slug == "shakespeare-english"


@pytest.mark.parametrize("missing", ["POKEMON_API_URL", "TRANSLATION_API_URL"])
def test_missing_upstream_url_fails(clean_env, missing):
    clean_env.setenv("POKEMON_API_URL", "http://pokeapi.test")
    clean_env.setenv("TRANSLATION_API_URL", "http://translate.test")
    clean_env.delenv(missing)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_blank_upstream_url_fails(clean_env):
    clean_env.setenv("POKEMON_API_URL", "   ")
    clean_env.setenv("TRANSLATION_API_URL", "http://translate.test")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_env_overrides(clean_env):
    clean_env.setenv("POKEMON_API_URL", "http://pokeapi.test")
    clean_env.setenv("TRANSLATION_API_URL", "http://translate.test")
    clean_env.setenv("PORT", "9090")
    clean_env.setenv("SHUTDOWN_TIMEOUT_SECONDS", "1.5")
    clean_env.setenv("REQUEST_TIMEOUT_SECONDS", "3")

    settings = Settings(_env_file=None)

    assert settings.port == 9090
    assert settings.shutdown_timeout_seconds == 1.5
    assert settings.request_timeout_seconds == 3.0


def test_non_positive_shutdown_timeout_fails(clean_env):
    clean_env.setenv("POKEMON_API_URL", "http://pokeapi.test")
    clean_env.setenv("TRANSLATION_API_URL", "http://translate.test")
    clean_env.setenv("SHUTDOWN_TIMEOUT_SECONDS", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
