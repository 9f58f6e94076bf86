"""Route Dependencies — hand services and the request context to route handlers.

Invariants:
    - Services live on app.state (built once by the lifespan), never as module globals
    - Tests replace these via app.dependency_overrides
"""

from fastapi import Request

from pokedex.core.request_context import RequestContext
from pokedex.services.species_service import SpeciesService, TranslatedSpeciesService


async def get_request_context(request: Request) -> RequestContext:
    ctx = getattr(request.state, "request_context", None)
    return ctx if ctx is not None else RequestContext.create()


async def get_species_service(request: Request) -> SpeciesService:
    return request.app.state.species_service


async def get_translated_species_service(request: Request) -> TranslatedSpeciesService:
    return request.app.state.translated_species_service
