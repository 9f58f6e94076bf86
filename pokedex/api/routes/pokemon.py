"""Pokemon Routes — fetch-only and translated species lookups.

Invariants:
    - GET /api/pokemon/{name} → SpeciesService.get
    - GET /api/pokemon/translated/{name} → TranslatedSpeciesService.get_enriched
    - Blank names (including an empty path segment) → InvalidRequestError (400)
    - Pipeline errors are re-raised untouched for error_handlers.py to render

Design Decisions:
    - Translated routes declared first so /translated/ never reads as a name
"""

from fastapi import APIRouter, Depends, Request

from pokedex.api.dependencies import (
    get_request_context, get_species_service, get_translated_species_service,
)
from pokedex.api.envelope import json_response
from pokedex.core.errors import ErrorContext, InvalidRequestError
from pokedex.core.request_context import RequestContext
from pokedex.schemas.species import SpeciesResponse
from pokedex.services.species_service import SpeciesService, TranslatedSpeciesService

router = APIRouter(prefix="/api/pokemon", tags=["pokemon"])


def _require_name(name: str, ctx: RequestContext) -> str:
    name = name.strip()
    if not name:
        raise InvalidRequestError(
            "missing name parameter", "name",
            context=ErrorContext(request_id=ctx.request_id),
        )
    return name


@router.get("/translated/")
async def get_pokemon_translated_without_name(
    ctx: RequestContext = Depends(get_request_context),
):
    _require_name("", ctx)


@router.get("/translated/{name}")
async def get_pokemon_translated(
    name: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: TranslatedSpeciesService = Depends(get_translated_species_service),
):
    """Species with its description rewritten in the selected style."""
    entity = await service.get_enriched(ctx, _require_name(name, ctx))
    return json_response(
        request, SpeciesResponse.from_entity(entity).model_dump(by_alias=True),
    )


@router.get("/")
async def get_pokemon_without_name(
    ctx: RequestContext = Depends(get_request_context),
):
    _require_name("", ctx)


@router.get("/{name}")
async def get_pokemon(
    name: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: SpeciesService = Depends(get_species_service),
):
    """Species exactly as validated from the upstream data API."""
    entity = await service.get(ctx, _require_name(name, ctx))
    return json_response(
        request, SpeciesResponse.from_entity(entity).model_dump(by_alias=True),
    )
