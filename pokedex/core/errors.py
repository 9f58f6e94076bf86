"""Error Hierarchy — typed, categorized exceptions for all Pokedex failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Pipeline errors carry an ErrorKind; the kind never changes between layers
    - HTTP status codes are NOT decided here (api/error_handlers.py owns that mapping)
    - No upstream error text leaks into user-facing messages

Design Decisions:
    - Single hierarchy with PokedexError base: FastAPI global handler catches all
    - ErrorKind as taxonomy, exceptions as carriers: NOT_FOUND / MISSING_DATA /
      SERVICE_UNAVAILABLE survive any number of re-raises
    - Process-level errors (config, bind, serve, drain) share the base so the
      entry point logs them uniformly, but they never reach a route
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorKind(str, Enum):
    """Pipeline error taxonomy, carried unchanged from gateway to router."""
    NOT_FOUND = "not_found"
    MISSING_DATA = "missing_data"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATA_INTEGRITY = "data_integrity"
    EXTERNAL_API = "external_api"
    CONFIGURATION = "configuration"
    LIFECYCLE = "lifecycle"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    pokemon: str | None = None
    debug_info: dict[str, Any] | None = None


class PokedexError(Exception):
    """Base exception for all Pokedex errors."""

    kind: ErrorKind | None = None

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_log_extra(self) -> dict:
        """Fields merged into the logging `extra` for this error."""
        return {
            "error_code": self.code,
            "error_category": self.category.value,
            "error_severity": self.severity.value,
            "request_id": self.context.request_id,
            "pokemon": self.context.pokemon,
        }


# ─── Pipeline Errors ────────────────────────────────────────────

class PokemonNotFoundError(PokedexError):
    """Upstream reports the species does not exist."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Pokemon '{name}' not found upstream",
            "POKEMON_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context,
        )
        self.name = name


class MissingDataError(PokedexError):
    """Species exists upstream but fails the completeness gate."""
    kind = ErrorKind.MISSING_DATA

    def __init__(self, missing_fields: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Pokemon data is missing: {', '.join(missing_fields)}",
            "POKEMON_DATA_MISSING", ErrorCategory.DATA_INTEGRITY,
            ErrorSeverity.ERROR, context,
        )
        self.missing_fields = missing_fields


class ServiceUnavailableError(PokedexError):
    """Transport, status, or decode failure talking to an upstream."""
    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, service: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"{service} unavailable: {reason}",
            "SERVICE_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context,
        )
        self.service = service
        self.reason = reason

    def to_log_extra(self) -> dict:
        return {**super().to_log_extra(), "service": self.service}


# ─── Request Errors ─────────────────────────────────────────────

class InvalidRequestError(PokedexError):
    """Inbound request is malformed (e.g. blank name path segment)."""

    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BAD_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )
        self.field = field


# ─── Process Errors (never reach HTTP) ──────────────────────────

class ConfigurationError(PokedexError):
    """Settings failed validation at startup."""

    def __init__(self, message: str):
        super().__init__(
            f"Invalid configuration: {message}",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL,
        )


class ServerBindError(PokedexError):
    """Listen socket could not be acquired. Fatal, never retried."""

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(
            f"Failed to listen on {host}:{port}: {reason}",
            "SERVER_BIND_ERROR", ErrorCategory.LIFECYCLE,
            ErrorSeverity.CRITICAL,
        )
        self.host = host
        self.port = port


class ServeError(PokedexError):
    """Serve loop exited with something other than a graceful close."""

    def __init__(self, reason: str):
        super().__init__(
            f"Server stopped unexpectedly: {reason}",
            "SERVE_ERROR", ErrorCategory.LIFECYCLE,
            ErrorSeverity.CRITICAL,
        )


class ShutdownTimeoutError(PokedexError):
    """Drain did not finish inside the shutdown window (deadline exceeded)."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Graceful shutdown exceeded {timeout_seconds}s deadline",
            "SHUTDOWN_DEADLINE_EXCEEDED", ErrorCategory.TIMEOUT,
            ErrorSeverity.CRITICAL,
        )
        self.timeout_seconds = timeout_seconds
