"""HTTP transport for dharmaseed.org.

Three kinds of upstream resources are consumed:

* HTML listing pages (``/talks/?search=...``, ``/teacher/<id>/``);
* retreat RSS feeds (``/feeds/retreat/<id>/``), served from the bare
  ``dharmaseed.org`` host;
* a small JSON API (``/api/1/<resource>/``) that takes form-encoded POSTs
  with ``detail`` and ``items`` fields.

Every request carries the fixed ``User-Agent`` client tag.  A non-success
status or a transport failure raises :class:`UpstreamError`; this layer
never retries.  The ``httpx.AsyncClient`` is injected via the constructor
for testability and owned by the application lifespan.
"""

from __future__ import annotations

from typing import Any

import httpx

from dharmaseed_player.utils.errors import UpstreamError
from dharmaseed_player.utils.logging import get_logger

DEFAULT_BASE_URL = "https://www.dharmaseed.org"
DEFAULT_FEED_BASE_URL = "https://dharmaseed.org"
DEFAULT_USER_AGENT = "DharmaSeedPlayer/1.0"


class DharmaSeedClient:
    """Thin async wrapper over the upstream site's HTML, RSS and JSON endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
        feed_base_url: str = DEFAULT_FEED_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._feed_base_url = feed_base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent}
        self._logger = get_logger(__name__)

    @property
    def base_url(self) -> str:
        return self._base_url

    # -- Private helpers -------------------------------------------------------

    async def _send(
        self,
        method: str,
        url: str,
        provider_name: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            self._logger.warning(
                "upstream_request_failed",
                provider=provider_name,
                url=url,
                error=str(exc),
            )
            raise UpstreamError(
                f"Request to {url} failed: {exc}",
                provider_name=provider_name,
            ) from exc

        if not response.is_success:
            self._logger.warning(
                "upstream_http_error",
                provider=provider_name,
                url=url,
                status=response.status_code,
            )
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code}",
                provider_name=provider_name,
                status_code=response.status_code,
            )
        return response

    # -- Public API ------------------------------------------------------------

    async def fetch_page(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        provider_name: str = "listing",
    ) -> str:
        """GET an HTML page relative to the site root and return its body."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        response = await self._send("GET", url, provider_name, params=params)
        return response.text

    async def fetch_feed(self, path: str, provider_name: str = "feed") -> str:
        """GET an RSS document relative to the feed host and return its body."""
        url = f"{self._feed_base_url}/{path.lstrip('/')}"
        response = await self._send("GET", url, provider_name)
        return response.text

    async def post_api(self, resource: str, form: dict[str, str]) -> dict[str, Any]:
        """POST *form* to ``/api/1/<resource>/`` and return the decoded JSON body.

        A body that is not a JSON object is treated as an upstream failure.
        """
        provider_name = f"{resource}_api"
        url = f"{self._base_url}/api/1/{resource}/"
        response = await self._send("POST", url, provider_name, data=form)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Upstream returned invalid JSON", provider_name=provider_name) from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Upstream returned an unexpected JSON shape", provider_name=provider_name)
        return payload
