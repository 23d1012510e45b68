from __future__ import annotations

import json
import logging
from typing import Any, Literal

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from canva_bff.api.dependencies import DesignDep
from canva_bff.core.errors import InvalidRequest
from canva_bff.models.design import DesignResult, DesignSpec

logger = logging.getLogger(__name__)

router = APIRouter(tags=["designs"])


class DesignIn(BaseModel):
    # Agents send whatever they have; unknown keys are ignored.
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, validation_alias=AliasChoices("name", "title"))
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    units: Literal["px", "in"] = Field(
        "px", validation_alias=AliasChoices("units", "unit")
    )
    sides: int | None = Field(None, ge=1)
    colors: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("colors", "color_palette")
    )
    style: str | None = None
    notes: str | None = None

    def to_spec(self) -> DesignSpec:
        return DesignSpec(
            name=self.name,
            width=self.width,
            height=self.height,
            units=self.units,
            sides=self.sides,
            colors=tuple(self.colors),
            style=self.style,
            notes=self.notes,
        )


class AgentCommandIn(BaseModel):
    # Validated in the handler: a malformed command answers 400.
    action: Any = None
    payload: Any = None


class DesignOut(BaseModel):
    status: str = "ok"
    design_id: str
    url: str
    view_url: str | None = None
    edit_url: str | None = None
    description: str = ""
    message: str = "Design created in Canva"

    @staticmethod
    def from_result(result: DesignResult) -> DesignOut:
        return DesignOut(
            design_id=result.design_id,
            url=result.url,
            view_url=result.view_url,
            edit_url=result.edit_url,
            description=result.description,
        )


@router.post("/api/create_design", response_model=DesignOut)
async def create_design(body: DesignIn, designs: DesignDep) -> DesignOut:
    result = await designs.create_design(body.to_spec())
    return DesignOut.from_result(result)


@router.post("/agent/command", response_model=DesignOut)
async def agent_command(body: AgentCommandIn, designs: DesignDep) -> DesignOut:
    """Entry point for the upstream agent backend.

    Only ``generate_template`` is understood; its payload has the same
    shape as POST /api/create_design.
    """
    if body.action != "generate_template":
        logger.warning("Unsupported agent action  action=%s", body.action)
        raise InvalidRequest("Unsupported action")

    payload = body.payload if isinstance(body.payload, dict) else {}
    try:
        spec = DesignIn.model_validate(payload).to_spec()
    except ValidationError as exc:
        raise InvalidRequest(
            "Missing name, width or height",
            details=json.loads(exc.json(include_url=False)),
        ) from None
    result = await designs.create_design(spec)
    return DesignOut.from_result(result)
