"""Plan, profile and checklist endpoints for the local planner UI."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from .config import Settings, get_settings
from .profile import ProfileUpdateError
from .state import PathwayState
from .storage import build_store
from .telemetry import recent_events

router = APIRouter(prefix="/api", tags=["plan"])
logger = logging.getLogger(__name__)

_state: Optional[PathwayState] = None


def get_state() -> PathwayState:
    global _state
    if _state is None:
        _state = PathwayState(build_store())
    return _state


class TaskCompletionRequest(BaseModel):
    done: bool


def _plan_payload(state: PathwayState, today: Optional[date] = None) -> Dict[str, Any]:
    return state.plan(today=today).model_dump(mode="json", by_alias=True)


def _require_task(state: PathwayState, task_id: str) -> None:
    if not state.knows_task(task_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown task id: {task_id}",
        )


@router.get("/profile")
def read_profile(state: PathwayState = Depends(get_state)) -> Dict[str, Any]:
    return state.profile.to_storage()


@router.patch("/profile")
def update_profile(
    changes: Dict[str, Any] = Body(...),
    state: PathwayState = Depends(get_state),
) -> Dict[str, Any]:
    try:
        updated = state.update_profile(changes)
    except ProfileUpdateError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return updated.to_storage()


@router.get("/plan")
def read_plan(
    today: Optional[date] = Query(default=None),
    state: PathwayState = Depends(get_state),
) -> Dict[str, Any]:
    return _plan_payload(state, today)


@router.post("/tasks/{task_id}/toggle")
def toggle_task(task_id: str, state: PathwayState = Depends(get_state)) -> Dict[str, Any]:
    _require_task(state, task_id)
    state.toggle_task(task_id)
    return _plan_payload(state)


@router.put("/tasks/{task_id}")
def set_task(
    task_id: str,
    payload: TaskCompletionRequest,
    state: PathwayState = Depends(get_state),
) -> Dict[str, Any]:
    _require_task(state, task_id)
    state.set_task(task_id, payload.done)
    return _plan_payload(state)


@router.get("/resources")
def read_resources(state: PathwayState = Depends(get_state)) -> List[Dict[str, Any]]:
    return [resource.model_dump(mode="json") for resource in state.plan().resources]


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_state(state: PathwayState = Depends(get_state)) -> Response:
    state.reset()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/debug/state")
def debug_state(
    state: PathwayState = Depends(get_state),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not settings.debug_endpoints:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return {
        "stored": state.raw_payloads(),
        "events": [{"name": event.name, "payload": event.payload} for event in recent_events()],
    }
