from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from ..dsl import Workflow
from ..matrix import expand_all
from ..model import SourceSnapshot
from ..policy import default_workflow
from ..runner import Run, execute_run, load_workflow, snapshot_of, start_run
from ..triggers import parse_event
from ..ui.console import get_console
from .settings import ISOLATE, REPO_ROOT, WORKERS, WORKFLOW_FILE
from .store import RunStore, store

app = FastAPI(title="matrixci webhook")

# -------------------- Schemas --------------------

class EventResponse(BaseModel):
    accepted: bool
    run_id: Optional[str] = None
    instances: list[str] = Field(default_factory=list)

class InstanceResponse(BaseModel):
    name: str
    family: str
    outcome: str
    reason: Optional[str] = None

class RunResponse(BaseModel):
    run_id: str
    event: str
    revision: Optional[str]
    status: str  # running|success|failure
    instances: list[InstanceResponse]

class PlanResponse(BaseModel):
    workflow: str
    instances: list[str]

# -------------------- Dependencies --------------------

@lru_cache(maxsize=1)
def get_workflow() -> Workflow:
    if WORKFLOW_FILE:
        return load_workflow(WORKFLOW_FILE)
    return default_workflow()

def get_snapshot() -> SourceSnapshot:
    return snapshot_of(REPO_ROOT)

def get_store() -> RunStore:
    return store

def _execute(run: Run, workflow: Workflow) -> None:
    verdict = execute_run(run, workflow, max_workers=WORKERS, isolate=ISOLATE)
    get_console().print_results(verdict)

# -------------------- Endpoints --------------------

@app.post("/events", response_model=EventResponse)
def receive_event(
    background: BackgroundTasks,
    payload: Optional[dict[str, Any]] = Body(default=None),
    x_github_event: str = Header(...),
    workflow: Workflow = Depends(get_workflow),
    snapshot: SourceSnapshot = Depends(get_snapshot),
    runs: RunStore = Depends(get_store),
):
    event = parse_event(x_github_event, payload)
    run = start_run(event, workflow, snapshot)
    if run is None:
        # not an error: the event just doesn't qualify
        return EventResponse(accepted=False)

    runs.add(run)
    background.add_task(_execute, run, workflow)
    return EventResponse(
        accepted=True,
        run_id=run.id,
        instances=[i.name for i in run.instances],
    )

@app.get("/runs/{run_id}", response_model=RunResponse)
def get_run(run_id: str, runs: RunStore = Depends(get_store)):
    run = runs.get(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")

    return RunResponse(
        run_id=run.id,
        event=run.event.kind,
        revision=run.snapshot.revision,
        status=run.verdict.status if run.verdict else "running",
        instances=[
            InstanceResponse(
                name=i.name,
                family=i.family,
                outcome=i.outcome.value,
                reason=i.reason,
            )
            for i in run.instances
        ],
    )

@app.get("/plan", response_model=PlanResponse)
def get_plan(workflow: Workflow = Depends(get_workflow)):
    return PlanResponse(
        workflow=workflow.name,
        instances=[i.name for i in expand_all(workflow.families)],
    )
