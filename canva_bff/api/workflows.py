from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from canva_bff.api.dependencies import WorkflowDep

router = APIRouter(prefix="/api", tags=["workflows"])


class StartWorkflowIn(BaseModel):
    name: str = Field(min_length=1)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class StartWorkflowOut(BaseModel):
    message: str
    run: dict[str, Any]


@router.post("/start-workflow", response_model=StartWorkflowOut)
async def start_workflow(body: StartWorkflowIn, trigger: WorkflowDep) -> StartWorkflowOut:
    run = await trigger.start(name=body.name, width=body.width, height=body.height)
    return StartWorkflowOut(message="✅ Workflow started successfully", run=run)
