"""Species Rules — the species entity, its completeness gate, and style selection.

Invariants:
    - validate_completeness is the single validation checkpoint for species data
    - A validated entity has name, description, habitat non-empty and a known
      legendary status
    - select_translation_style depends only on (habitat, is_legendary)

Design Decisions:
    - Frozen dataclass: enrichment substitutes the description via replace(),
      never by mutating the fetched entity
    - Pure functions: no IO, trivially testable without fakes
"""

from dataclasses import dataclass

from pokedex.core.domain_types import LegendaryStatus, TranslationStyle
from pokedex.core.errors import ErrorContext, MissingDataError

CAVE_HABITAT = "cave"


@dataclass(frozen=True)
class SpeciesEntity:
    """Normalized species data built fresh for every request."""
    name: str
    description: str
    habitat: str
    is_legendary: LegendaryStatus = LegendaryStatus.UNKNOWN


def find_missing_fields(entity: SpeciesEntity) -> list[str]:
    """Names of the fields that fail the completeness contract."""
    missing = [
        field_name
        for field_name in ("name", "description", "habitat")
        if not getattr(entity, field_name)
    ]
    if entity.is_legendary is LegendaryStatus.UNKNOWN:
        missing.append("is_legendary")
    return missing


def validate_completeness(
    entity: SpeciesEntity, context: ErrorContext | None = None,
) -> SpeciesEntity:
    """Return the entity unchanged, or raise MissingDataError."""
    missing = find_missing_fields(entity)
    if missing:
        raise MissingDataError(missing, context=context)
    return entity


def select_translation_style(entity: SpeciesEntity) -> TranslationStyle:
    """Cave dwellers and legendaries speak like Yoda; everyone else like Shakespeare."""
    if (
        entity.habitat == CAVE_HABITAT
        or entity.is_legendary is LegendaryStatus.TRUE
    ):
        return TranslationStyle.YODA
    return TranslationStyle.SHAKESPEARE
