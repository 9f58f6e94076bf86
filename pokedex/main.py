"""Pokedex API — FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PokedexError → structured JSON envelopes
    - Outbound HTTP client, gateways and services built on startup via lifespan
      and stored on app.state; the client is closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app(settings) factory over a module-level app: importing the module
      never reads the environment, and tests build apps with their own settings
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from pokedex.api.error_handlers import register_error_handlers
from pokedex.api.middleware import RequestContextMiddleware
from pokedex.api.routes import health, pokemon
from pokedex.config import Settings, get_settings
from pokedex.core.domain_types import TranslationStyle
from pokedex.infrastructure.http_client import build_async_client
from pokedex.infrastructure.pokeapi_client import PokeAPIClient
from pokedex.infrastructure.translation_client import FunTranslationsClient
from pokedex.services.species_service import SpeciesService, TranslatedSpeciesService

logger = logging.getLogger(__name__)


def build_services(
    settings: Settings, client: httpx.AsyncClient,
) -> tuple[SpeciesService, TranslatedSpeciesService]:
    """Wire gateways into the fetch and enrichment pipelines."""
    species = SpeciesService(PokeAPIClient(settings.pokemon_api_url, client))
    translator = FunTranslationsClient(
        settings.translation_api_url,
        client,
        style_slugs={
            TranslationStyle.YODA: settings.yoda_translation_slug,
            TranslationStyle.SHAKESPEARE: settings.shakespeare_translation_slug,
        },
    )
    return species, TranslatedSpeciesService(species, translator)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI app. `transport` lets tests stub the upstreams."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        async with build_async_client(settings, transport=transport) as client:
            species, translated = build_services(settings, client)
            app.state.species_service = species
            app.state.translated_species_service = translated
            logger.info("Pokedex API started")
            yield
            logger.info("Pokedex API shutting down")

    app = FastAPI(title="Pokedex API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        RequestContextMiddleware, request_timeout=settings.request_timeout_seconds,
    )
    register_error_handlers(app)

    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(pokemon.router)
    return app
