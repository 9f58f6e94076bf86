"""FunTranslations Client — rewrites a text in a requested style via one POST.

Invariants:
    - Style -> path slug mapping is fixed at construction; an unmapped style
      raises ValueError before any network IO
    - Transport failure, non-200 status, malformed body -> ServiceUnavailableError
    - Decode errors are chained (__cause__) and logged, never surfaced to callers

Design Decisions:
    - Slugs injected from settings: provider endpoint names change independently
      of the style enum
"""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from pokedex.core.domain_types import TranslationStyle
from pokedex.core.errors import ErrorContext, ServiceUnavailableError
from pokedex.core.request_context import RequestContext
from pokedex.schemas.upstream import TranslationPayload

logger = logging.getLogger(__name__)

SERVICE_NAME = "funtranslations"

DEFAULT_STYLE_SLUGS: dict[TranslationStyle, str] = {
    TranslationStyle.YODA: "yodish",
    TranslationStyle.SHAKESPEARE: "shakespeare-english",
}


class FunTranslationsClient:
    """Posts `{"text": ...}` to `{base_url}/translate/{slug}`."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        style_slugs: dict[TranslationStyle, str] | None = None,
    ):
        if not base_url:
            raise ValueError("translation base URL must not be empty")
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.style_slugs = dict(style_slugs or DEFAULT_STYLE_SLUGS)

    def translate_url(self, style: TranslationStyle) -> str:
        slug = self.style_slugs.get(style)
        if slug is None:
            raise ValueError(f"unsupported translation style: {style!r}")
        return f"{self.base_url}/translate/{slug}"

    async def translate(
        self, ctx: RequestContext, style: TranslationStyle, text: str,
    ) -> str:
        """Return the translated text or raise ServiceUnavailableError."""
        url = self.translate_url(style)
        err_ctx = ErrorContext(
            request_id=ctx.request_id, debug_info={"style": style.value},
        )
        response = await self._post(ctx, url, text, err_ctx)

        if response.status_code != httpx.codes.OK:
            raise ServiceUnavailableError(
                SERVICE_NAME, f"unexpected status {response.status_code}",
                context=err_ctx,
            )

        try:
            payload = TranslationPayload.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                f"Malformed translation payload: {e}",
                extra={"request_id": ctx.request_id, "style": style.value},
            )
            raise ServiceUnavailableError(
                SERVICE_NAME, "malformed response body", context=err_ctx,
            ) from e
        return payload.contents.translated

    async def _post(
        self, ctx: RequestContext, url: str, text: str, err_ctx: ErrorContext,
    ) -> httpx.Response:
        if ctx.expired:
            raise ServiceUnavailableError(
                SERVICE_NAME, "request deadline exceeded", context=err_ctx,
            )
        try:
            return await asyncio.wait_for(
                self.client.post(url, json={"text": text}), timeout=ctx.remaining(),
            )
        except asyncio.TimeoutError as e:
            raise ServiceUnavailableError(
                SERVICE_NAME, "request deadline exceeded", context=err_ctx,
            ) from e
        except httpx.HTTPError as e:
            raise ServiceUnavailableError(
                SERVICE_NAME, f"transport error: {e!r}", context=err_ctx,
            ) from e
