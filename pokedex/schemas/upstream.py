"""Upstream Schemas — Pydantic models for the species API and translation API payloads.

Invariants:
    - PokemonSpeciesPayload.is_legendary stays None when the field is absent or null
      (never defaulted to False)
    - Unknown upstream fields are ignored, missing optional ones default to empty
    - Wrong types (e.g. is_legendary: "yes") fail validation -> caller maps to
      SERVICE_UNAVAILABLE

Design Decisions:
    - habitat accepts both a bare string and the {"name": ..., "url": ...} object
      the public PokeAPI returns: field_validator normalizes to str
    - strict bool for is_legendary: "false" strings are malformed, not False
"""

from typing import Any

from pydantic import BaseModel, Field, StrictBool, field_validator


class LanguageRef(BaseModel):
    name: str = ""
    url: str | None = None


class FlavorTextEntry(BaseModel):
    flavor_text: str = ""
    language: LanguageRef = Field(default_factory=LanguageRef)


class PokemonSpeciesPayload(BaseModel):
    """GET /api/v2/pokemon-species/{name} response body."""
    id: int | None = None
    name: str = ""
    habitat: str = ""
    is_legendary: StrictBool | None = None
    flavor_text_entries: list[FlavorTextEntry] = Field(default_factory=list)

    @field_validator("habitat", mode="before")
    @classmethod
    def flatten_habitat(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, dict):
            return v.get("name") or ""
        return v

    @field_validator("name", mode="before")
    @classmethod
    def null_name_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("flavor_text_entries", mode="before")
    @classmethod
    def null_entries_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def english_description(self) -> str:
        """First flavor text tagged "en" (case-insensitive), else empty string."""
        for entry in self.flavor_text_entries:
            if entry.language.name.lower() == "en":
                return entry.flavor_text
        return ""


class TranslationSuccess(BaseModel):
    total: int = 0


class TranslationContents(BaseModel):
    translated: str
    text: str = ""
    translation: str = ""


class TranslationPayload(BaseModel):
    """POST /translate/{slug} response body."""
    success: TranslationSuccess = Field(default_factory=TranslationSuccess)
    contents: TranslationContents
