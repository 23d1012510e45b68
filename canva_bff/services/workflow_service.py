"""Hand a design request to the remote durable-workflow runner.

The runner executes the "canva-template-generator" workflow, which waits a
moment and then calls back into POST /api/create_design.  This module only
starts the run; progress is visible in the runner's own dashboard.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from canva_bff.core.errors import ConfigMissing, WorkflowTriggerFailed
from canva_bff.core.metrics import WORKFLOW_TRIGGERS

logger = logging.getLogger(__name__)


class WorkflowTrigger:
    def __init__(
        self,
        *,
        api_url: str,
        auth_token: str | None,
        workflow_name: str,
        environment: str = "production",
        project_id: str | None = None,
        team_id: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._auth_token = auth_token
        self._workflow_name = workflow_name
        self._environment = environment
        self._project_id = project_id
        self._team_id = team_id
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._auth_token}",
            "x-vercel-environment": self._environment,
        }
        if self._project_id:
            headers["x-vercel-project-id"] = self._project_id
        if self._team_id:
            headers["x-vercel-team-id"] = self._team_id
        return headers

    async def start(self, *, name: str, width: float, height: float) -> dict[str, Any]:
        if not self._auth_token:
            raise ConfigMissing("WORKFLOW_AUTH_TOKEN is not configured")

        body = {
            "workflowName": self._workflow_name,
            "input": {"name": name, "width": width, "height": height},
        }
        logger.info(
            "Starting workflow  name=%s project=%s env=%s",
            self._workflow_name,
            self._project_id,
            self._environment,
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._api_url, json=body, headers=self._headers()
                )
        except httpx.HTTPError as exc:
            WORKFLOW_TRIGGERS.labels(result="error").inc()
            logger.warning("Workflow runner unreachable: %s", exc)
            raise WorkflowTriggerFailed(details=str(exc)) from None

        data = _parse(response)
        if not response.is_success:
            WORKFLOW_TRIGGERS.labels(result="error").inc()
            logger.warning("Workflow creation failed  status=%d", response.status_code)
            raise WorkflowTriggerFailed(details=data, status_code=response.status_code)

        WORKFLOW_TRIGGERS.labels(result="ok").inc()
        return data


def _parse(response: httpx.Response) -> dict[str, Any]:
    text = response.text
    if not text:
        return {}
    try:
        data = response.json()
    except ValueError:
        logger.warning("Workflow runner returned a non-JSON body")
        return {"raw": text}
    return data if isinstance(data, dict) else {"raw": data}
