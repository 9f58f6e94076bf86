"""Response Schemas — the JSON envelope and species payload returned to callers.

Invariants:
    - Exactly one of `data` / `error` is populated in an Envelope
    - meta.request_id always present on API responses
    - Species payload uses the public camelCase key `isLegendary`

Design Decisions:
    - model_dump(exclude_none=True): absent keys instead of nulls, matching the
      optional-field envelope contract
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pokedex.core.species import SpeciesEntity


class SpeciesResponse(BaseModel):
    """Public species representation."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    habitat: str
    is_legendary: bool | None = Field(serialization_alias="isLegendary")

    @classmethod
    def from_entity(cls, entity: SpeciesEntity) -> "SpeciesResponse":
        return cls(
            name=entity.name,
            description=entity.description,
            habitat=entity.habitat,
            is_legendary=entity.is_legendary.as_bool(),
        )


class Meta(BaseModel):
    request_id: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Any | None = None


class Envelope(BaseModel):
    """Generic wrapper for every API response."""
    data: Any | None = None
    meta: Meta | None = None
    error: ErrorBody | None = None

    @model_validator(mode="after")
    def exactly_one_of_data_or_error(self) -> "Envelope":
        if (self.data is None) == (self.error is None):
            raise ValueError("envelope needs exactly one of data or error")
        return self

    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)
