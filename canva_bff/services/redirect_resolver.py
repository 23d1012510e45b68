from __future__ import annotations

from canva_bff.core.config import DeployTier


class RedirectResolver:
    """Pick the callback URL Canva should send the user back to.

    The deployment tier is fixed at startup. Only ``tier="auto"`` inspects
    the inbound host, and it does so with the legacy substring markers;
    that mode exists for deployments that serve both tiers from one build.

    Whatever this returns at authorize time is recorded with the pending
    state and replayed on the exchange. Canva rejects a mismatch.
    """

    def __init__(
        self,
        *,
        local_uri: str,
        production_uri: str,
        tier: DeployTier = "local",
        production_markers: tuple[str, ...] = (),
    ) -> None:
        self._local_uri = local_uri
        self._production_uri = production_uri
        self._tier = tier
        self._markers = tuple(m.lower() for m in production_markers)

    @property
    def tier(self) -> DeployTier:
        return self._tier

    def resolve(self, request_host: str | None = None) -> str:
        if self._tier == "production":
            return self._production_uri
        if self._tier == "local":
            return self._local_uri

        host = (request_host or "").lower()
        if any(marker in host for marker in self._markers):
            return self._production_uri
        return self._local_uri


def host_from_headers(headers) -> str:
    # Proxies (Vercel, nginx) put the public host in X-Forwarded-Host.
    return (headers.get("x-forwarded-host") or headers.get("host") or "").lower()
