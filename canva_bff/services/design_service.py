from __future__ import annotations

import logging
from typing import Any

from canva_bff.core.errors import ConfigMissing, DesignCreationFailed, ProviderError
from canva_bff.core.metrics import DESIGN_CREATIONS
from canva_bff.models.design import DesignResult, DesignSpec
from canva_bff.services.canva_client import CanvaClient
from canva_bff.services.oauth_flow import OAuthFlowController

logger = logging.getLogger(__name__)


class DesignService:
    """Forward a simplified design request to Canva and normalize the reply."""

    def __init__(
        self,
        *,
        canva: CanvaClient,
        flow: OAuthFlowController,
        fallback_access_token: str | None = None,
        web_base: str = "https://www.canva.com",
        timeout: float = 15.0,
    ) -> None:
        self._canva = canva
        self._flow = flow
        self._fallback_token = fallback_access_token
        self._web_base = web_base.rstrip("/")
        self._timeout = timeout

    def _access_token(self) -> str:
        token = self._flow.get_valid_access_token() or self._fallback_token
        if not token:
            raise ConfigMissing()
        return token

    async def create_design(self, spec: DesignSpec) -> DesignResult:
        access_token = self._access_token()
        width_px, height_px = spec.pixel_size()
        body = {
            "design": {
                "design_type": {"type": "custom", "width": width_px, "height": height_px},
                "title": spec.name,
            }
        }
        logger.info(
            "Creating Canva design  title=%r size=%dx%dpx", spec.name, width_px, height_px
        )

        try:
            data = await self._canva.create_design(
                access_token, body, timeout=self._timeout
            )
        except ProviderError as exc:
            DESIGN_CREATIONS.labels(result="error").inc()
            raise DesignCreationFailed(details=exc.body) from None

        result = self._normalize(data, description=spec.description())
        DESIGN_CREATIONS.labels(result="ok").inc()
        logger.info("Canva design created  design_id=%s", result.design_id)
        return result

    def _normalize(self, data: dict[str, Any], *, description: str) -> DesignResult:
        # Canva replies { design: { id, urls: { edit_url, view_url }, ... } }
        design = data.get("design") or {}
        design_id = design.get("id") if isinstance(design, dict) else None
        if not design_id:
            DESIGN_CREATIONS.labels(result="error").inc()
            raise DesignCreationFailed(
                "Design ID missing from Canva response", details=data
            )

        urls = design.get("urls")
        if not isinstance(urls, dict):
            urls = {}
        view_url = urls.get("view_url")
        edit_url = urls.get("edit_url")
        url = view_url or edit_url or f"{self._web_base}/design/{design_id}/view"
        return DesignResult(
            design_id=str(design_id),
            url=url,
            view_url=view_url,
            edit_url=edit_url,
            description=description,
        )
