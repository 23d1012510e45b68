from __future__ import annotations

import logging
from typing import Any

import httpx

from canva_bff.core.errors import ProviderError

logger = logging.getLogger(__name__)


def _body(response: httpx.Response) -> Any:
    # Canva errors are JSON ({"code": ..., "message": ...}); fall back to text
    # so proxies' HTML error pages still reach the caller intact.
    try:
        return response.json()
    except ValueError:
        return response.text


class CanvaClient:
    """Thin async wrapper over the Canva Connect REST endpoints we use.

    Every call opens a short-lived AsyncClient with an explicit timeout.
    Non-2xx responses, timeouts and transport failures all surface as
    ProviderError; nothing is retried.
    """

    def __init__(
        self,
        api_base: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def token_url(self) -> str:
        return f"{self._api_base}/rest/v1/oauth/token"

    async def post_token_form(self, form: dict[str, str]) -> dict[str, Any]:
        return await self._request(
            "POST",
            self.token_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def get_me(self, access_token: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self._api_base}/rest/v1/users/me",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def create_design(
        self, access_token: str, body: dict[str, Any], *, timeout: float | None = None
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"{self._api_base}/rest/v1/designs",
            json=body,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )

    async def _request(
        self, method: str, url: str, *, timeout: float | None = None, **kwargs: Any
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self._timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.warning("Canva request timed out  %s %s", method, url)
            raise ProviderError(None, "Request to Canva timed out") from None
        except httpx.HTTPError as exc:
            logger.warning("Canva request failed  %s %s: %s", method, url, exc)
            raise ProviderError(None, str(exc)) from None

        if not response.is_success:
            body = _body(response)
            logger.warning(
                "Canva returned an error  %s %s → %d", method, url, response.status_code
            )
            raise ProviderError(response.status_code, body)

        data = _body(response)
        return data if isinstance(data, dict) else {"raw": data}
