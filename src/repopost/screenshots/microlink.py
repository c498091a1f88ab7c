"""Screenshot capture through the Microlink rendering API."""

from __future__ import annotations

import logging
import os
import re

import httpx
from pydantic import ValidationError as PydanticValidationError

from repopost.config.models import ScreenshotConfig
from repopost.errors import PartialFetchFailure, UpstreamError
from repopost.screenshots.models import MicrolinkResponse

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """Prepend ``https://`` when *url* has no scheme."""
    url = url.strip()
    return url if _SCHEME_RE.match(url) else f"https://{url}"


class ScreenshotClient:
    """Captures one page per call with a fixed viewport and timeout.

    Pass *client* to reuse a connection pool (or a mock transport in tests);
    otherwise a short-lived client is opened per capture.
    """

    def __init__(
        self,
        config: ScreenshotConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ScreenshotConfig()
        self._client = client
        self._api_key = os.environ.get(self.config.api_key_env)

    async def capture(self, url: str) -> str:
        """Return the hosted screenshot URL for *url*.

        Raises PartialFetchFailure on timeouts, transport errors and
        non-success responses.
        """
        if not url or not url.strip():
            raise PartialFetchFailure("<empty url>")
        target = normalize_url(url)
        params = {
            "url": target,
            "screenshot": "true",
            "meta": "false",
            "viewport.width": str(self.config.viewport_width),
            "viewport.height": str(self.config.viewport_height),
        }
        headers = {"x-api-key": self._api_key} if self._api_key else {}

        try:
            if self._client is not None:
                resp = await self._client.get(
                    self.config.api_url,
                    params=params,
                    headers=headers,
                    timeout=self.config.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    resp = await client.get(self.config.api_url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise PartialFetchFailure(target, e) from e

        try:
            body = MicrolinkResponse.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise PartialFetchFailure(
                target, UpstreamError("microlink", "capture", f"HTTP {resp.status_code}: unreadable body")
            ) from e

        if body.status != "success":
            raise PartialFetchFailure(
                target,
                UpstreamError("microlink", "capture", f"status {body.status!r}: {body.message or ''}"),
            )
        if body.data is None or body.data.screenshot is None:
            raise PartialFetchFailure(
                target, UpstreamError("microlink", "capture", "no screenshot URL in response")
            )
        logger.debug("Captured %s -> %s", target, body.data.screenshot.url)
        return body.data.screenshot.url
