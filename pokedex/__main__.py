"""Process Entry Point — load settings, serve, and map outcomes to exit codes.

Invariants:
    - Exit 0 only on a clean shutdown
    - Exit 1 on configuration error, bind error, serve error, or drain timeout
    - Configuration is validated before any socket is opened
"""

import asyncio
import logging
import sys

from pydantic import ValidationError

from pokedex.config import Settings, get_settings
from pokedex.core.errors import ConfigurationError, PokedexError
from pokedex.infrastructure.observability import setup_logging
from pokedex.infrastructure.server import LifecycleManager
from pokedex.main import create_app

logger = logging.getLogger("pokedex")

EXIT_OK = 0
EXIT_FAILURE = 1


def load_settings() -> Settings:
    """Load settings, turning pydantic's ValidationError into ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(loc) for loc in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(f"invalid or missing settings: {fields}") from e


def _on_shutdown() -> None:
    logger.info("Shutting down application")


async def serve(settings: Settings) -> None:
    manager = LifecycleManager.from_settings(
        create_app(settings), settings, on_shutdown=_on_shutdown,
    )
    await manager.run()


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.critical(
            f"Failed to load configuration for the app: {e.message}",
            extra=e.to_log_extra(),
        )
        return EXIT_FAILURE

    setup_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(serve(settings))
    except PokedexError as e:
        logger.critical(e.message, extra=e.to_log_extra())
        return EXIT_FAILURE
    logger.info("Server stopped cleanly")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
