"""Root conftest — shared settings, fake upstreams, and app client fixtures.

Design Decisions:
    - Env defaults set before any pokedex import: get_settings() never reaches
      a real upstream from the test suite
    - App client enters the FastAPI lifespan explicitly: ASGITransport does not
      run it, and the services live on app.state
"""

import os

os.environ.setdefault("POKEMON_API_URL", "http://pokeapi.test")
os.environ.setdefault("TRANSLATION_API_URL", "http://translate.test")

import httpx  # noqa: E402
import pytest  # noqa: E402

from pokedex.config import Settings  # noqa: E402
from pokedex.main import create_app  # noqa: E402
from tests.fake_upstream import (  # noqa: E402
    FakeUpstream, POKEAPI_URL, TRANSLATION_URL,
)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        pokemon_api_url=POKEAPI_URL,
        translation_api_url=TRANSLATION_URL,
        port=0,
        shutdown_timeout_seconds=2.0,
        log_format="text",
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def client(settings, upstream):
    """HTTP client against the full app, upstreams served by FakeUpstream."""
    app = create_app(settings, transport=upstream.transport)
    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test",
        ) as c:
            yield c
