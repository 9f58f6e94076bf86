"""Boundary Protocols — contracts between the species pipeline and outbound clients.

Invariants:
    - Services NEVER import httpx clients; they receive gateways via injection
    - Gateways raise PokedexError subclasses only (NOT_FOUND / SERVICE_UNAVAILABLE)

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from typing import Protocol

from pokedex.core.domain_types import TranslationStyle
from pokedex.core.request_context import RequestContext
from pokedex.core.species import SpeciesEntity


class SpeciesGateway(Protocol):
    """Contract for the upstream species data API."""
    async def fetch_species(
        self, ctx: RequestContext, name: str,
    ) -> SpeciesEntity: ...


class TranslationGateway(Protocol):
    """Contract for the text-style translation provider."""
    async def translate(
        self, ctx: RequestContext, style: TranslationStyle, text: str,
    ) -> str: ...
