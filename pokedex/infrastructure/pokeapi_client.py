"""PokeAPI Client — one outbound lookup per species, mapped to the error taxonomy.

Invariants:
    - Exactly one GET per fetch_species call (no retry, no cache)
    - 404 -> PokemonNotFoundError; transport failure, other non-200 status,
      malformed body -> ServiceUnavailableError
    - Missing English description yields "" here; completeness is judged by the
      species service, not by this client
    - is_legendary absent/null -> LegendaryStatus.UNKNOWN (never FALSE)

Design Decisions:
    - Wrapper over raw httpx: isolates status/decode mapping from the pipeline
    - Deadline enforced with asyncio.wait_for on ctx.remaining(); cancellation of
      the inbound request propagates into the awaited httpx call
"""

import asyncio
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pokedex.core.domain_types import LegendaryStatus
from pokedex.core.errors import (
    ErrorContext, PokemonNotFoundError, ServiceUnavailableError,
)
from pokedex.core.request_context import RequestContext
from pokedex.core.species import SpeciesEntity
from pokedex.schemas.upstream import PokemonSpeciesPayload

logger = logging.getLogger(__name__)

SERVICE_NAME = "pokeapi"


class PokeAPIClient:
    """Fetches species data from `{base_url}/api/v2/pokemon-species/{name}`."""

    def __init__(self, base_url: str, client: httpx.AsyncClient):
        if not base_url:
            raise ValueError("PokeAPI base URL must not be empty")
        self.base_url = base_url.rstrip("/")
        self.client = client

    def species_url(self, name: str) -> str:
        return f"{self.base_url}/api/v2/pokemon-species/{quote(name, safe='')}"

    async def fetch_species(self, ctx: RequestContext, name: str) -> SpeciesEntity:
        """Fetch and decode one species. Raises PokedexError subclasses only."""
        err_ctx = ErrorContext(request_id=ctx.request_id, pokemon=name)
        response = await self._get(ctx, name, err_ctx)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise PokemonNotFoundError(name, context=err_ctx)
        if response.status_code != httpx.codes.OK:
            raise ServiceUnavailableError(
                SERVICE_NAME, f"unexpected status {response.status_code}",
                context=err_ctx,
            )

        try:
            payload = PokemonSpeciesPayload.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                f"Malformed species payload: {e}",
                extra={"request_id": ctx.request_id, "pokemon": name},
            )
            raise ServiceUnavailableError(
                SERVICE_NAME, "malformed response body", context=err_ctx,
            ) from e

        return SpeciesEntity(
            name=payload.name,
            description=payload.english_description(),
            habitat=payload.habitat,
            is_legendary=LegendaryStatus.from_optional(payload.is_legendary),
        )

    async def _get(
        self, ctx: RequestContext, name: str, err_ctx: ErrorContext,
    ) -> httpx.Response:
        """Issue the GET within the context deadline; map transport failures."""
        if ctx.expired:
            raise ServiceUnavailableError(
                SERVICE_NAME, "request deadline exceeded", context=err_ctx,
            )
        try:
            return await asyncio.wait_for(
                self.client.get(self.species_url(name)), timeout=ctx.remaining(),
            )
        except asyncio.TimeoutError as e:
            raise ServiceUnavailableError(
                SERVICE_NAME, "request deadline exceeded", context=err_ctx,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(
                f"PokeAPI transport error: {e!r}",
                extra={"request_id": ctx.request_id, "pokemon": name},
            )
            raise ServiceUnavailableError(
                SERVICE_NAME, "transport error", context=err_ctx,
            ) from e
