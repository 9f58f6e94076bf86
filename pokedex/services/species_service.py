"""Species Pipelines — fetch + completeness gate, and best-effort translation on top.

Invariants:
    - SpeciesService.get returns only entities that passed validate_completeness
    - NOT_FOUND / SERVICE_UNAVAILABLE from the gateway propagate unchanged
    - TranslatedSpeciesService never raises an error SpeciesService did not raise
    - Translation style is chosen once per request from the validated entity
    - Any translation failure keeps the original description; the request succeeds

Design Decisions:
    - Enrichment wraps the fetch service (composition) rather than re-implementing it
    - One try/except boundary around the translate call only: translation is an
      enhancement, not a correctness requirement. CancelledError is a
      BaseException and still propagates
"""

import logging
from dataclasses import replace

from pokedex.core.errors import ErrorContext, PokedexError
from pokedex.core.gateway_protocols import SpeciesGateway, TranslationGateway
from pokedex.core.request_context import RequestContext
from pokedex.core.species import (
    SpeciesEntity, select_translation_style, validate_completeness,
)

logger = logging.getLogger(__name__)


class SpeciesService:
    """Fetch-only pipeline."""

    def __init__(self, gateway: SpeciesGateway):
        self.gateway = gateway

    async def get(self, ctx: RequestContext, name: str) -> SpeciesEntity:
        entity = await self.gateway.fetch_species(ctx, name)
        return validate_completeness(
            entity, ErrorContext(request_id=ctx.request_id, pokemon=name),
        )


class TranslatedSpeciesService:
    """Enrichment pipeline: fetch, then rewrite the description if the provider allows."""

    def __init__(self, species: SpeciesService, translator: TranslationGateway):
        self.species = species
        self.translator = translator

    async def get_enriched(self, ctx: RequestContext, name: str) -> SpeciesEntity:
        entity = await self.species.get(ctx, name)
        style = select_translation_style(entity)

        try:
            translated = await self.translator.translate(
                ctx, style, entity.description,
            )
        except Exception as e:
            extra = e.to_log_extra() if isinstance(e, PokedexError) else {}
            logger.warning(
                f"Translation failed, keeping original description: {e}",
                extra={
                    **extra,
                    "request_id": ctx.request_id,
                    "pokemon": name,
                    "style": style.value,
                },
            )
            return entity

        return replace(entity, description=translated)
