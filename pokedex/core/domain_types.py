"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - Legendary status is tri-state: UNKNOWN is never coerced to FALSE
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - LegendaryStatus enum over Optional[bool]: absent-vs-false cannot be
      confused by a truthiness check
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


class LegendaryStatus(str, Enum):
    """Upstream `is_legendary` flag, with absence modelled explicitly."""
    UNKNOWN = "unknown"
    TRUE = "true"
    FALSE = "false"

    @classmethod
    def from_optional(cls, value: bool | None) -> "LegendaryStatus":
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE

    def as_bool(self) -> bool | None:
        if self is LegendaryStatus.UNKNOWN:
            return None
        return self is LegendaryStatus.TRUE


class TranslationStyle(str, Enum):
    """Text styles offered by the translation provider."""
    YODA = "yoda"
    SHAKESPEARE = "shakespeare"
