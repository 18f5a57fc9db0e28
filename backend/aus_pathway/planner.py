"""Plan derivation: stage windows, task due dates, progress and resources.

Everything here is a pure function of (profile, catalogue, completion map);
callers re-derive the whole plan after every change instead of patching a
previous result.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .catalogue import STAGE_BLUEPRINTS, Resource, StageBlueprint, TaskLink
from .profile import Profile, is_completed

logger = logging.getLogger(__name__)

PACE_MULTIPLIERS: Dict[str, float] = {
    "accelerated": 0.75,
    "standard": 1.0,
    "relaxed": 1.25,
}
MIN_STAGE_WEEKS = 1
NEXT_STEPS_LIMIT = 4
VISA_LODGEMENT_STAGE_ID = "visa-lodgement"


class UnsupportedPaceError(ValueError):
    """Raised when a profile carries a pace with no multiplier."""


class ChecklistItem(BaseModel):
    """Task that survived profile filtering, without its predicate."""

    id: str
    title: str
    detail: Optional[str] = None
    link: Optional[TaskLink] = None


class PlannedStage(BaseModel):
    id: str
    title: str
    summary: str
    milestone: str
    index: int = Field(ge=0)
    nominal_weeks: int = Field(ge=0)
    duration_weeks: int = Field(ge=MIN_STAGE_WEEKS)
    start: date
    end: date
    tasks: List[ChecklistItem] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)


class PlannedTask(BaseModel):
    id: str
    title: str
    detail: Optional[str] = None
    link: Optional[TaskLink] = None
    stage_id: str
    stage_title: str
    stage_index: int = Field(ge=0)
    window_start: date
    window_end: date
    suggested_due: date


class ProgressSummary(BaseModel):
    total: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    percent: int = Field(default=0, ge=0, le=100)
    next_steps: List[PlannedTask] = Field(default_factory=list)


class StageProgress(BaseModel):
    stage_id: str
    stage_title: str
    total: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    percent: int = Field(default=0, ge=0, le=100)


class PlanView(BaseModel):
    """Everything a shell needs to render the plan for one profile snapshot."""

    profile: Profile
    stages: List[PlannedStage] = Field(default_factory=list)
    tasks: List[PlannedTask] = Field(default_factory=list)
    progress: ProgressSummary = Field(default_factory=ProgressSummary)
    stage_progress: List[StageProgress] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    total_weeks: int = Field(default=0, ge=0)
    estimated_visa_date: Optional[date] = None

    @property
    def next_steps(self) -> List[PlannedTask]:
        return self.progress.next_steps


def round_half_up(value: float) -> int:
    """Round .5 upwards (1.5 -> 2, 4.5 -> 5) instead of to the nearest even number."""
    return int(math.floor(value + 0.5))


def pace_multiplier(pace: str) -> float:
    try:
        return PACE_MULTIPLIERS[pace]
    except KeyError:
        raise UnsupportedPaceError(
            f"Unsupported pace {pace!r}; expected one of {sorted(PACE_MULTIPLIERS)}."
        ) from None


def resolve_start_date(raw: Optional[str], *, today: Optional[date] = None) -> date:
    """Parse the profile start date, falling back to ``today`` when empty or invalid."""
    if raw:
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            logger.debug("Unparseable start date %r; planning from today", raw)
    return today or date.today()


def plan_stages(
    profile: Profile,
    catalogue: Sequence[StageBlueprint] = STAGE_BLUEPRINTS,
    *,
    today: Optional[date] = None,
) -> List[PlannedStage]:
    """Lay applicable stages back to back from the profile start date."""
    multiplier = pace_multiplier(profile.pace)
    cursor = resolve_start_date(profile.start_date, today=today)
    planned: List[PlannedStage] = []

    for blueprint in catalogue:
        if not blueprint.is_applicable(profile):
            continue
        duration = max(MIN_STAGE_WEEKS, round_half_up(blueprint.duration_weeks * multiplier))
        end = cursor + timedelta(days=duration * 7)
        planned.append(
            PlannedStage(
                id=blueprint.id,
                title=blueprint.title,
                summary=blueprint.summary,
                milestone=blueprint.milestone,
                index=len(planned),
                nominal_weeks=blueprint.duration_weeks,
                duration_weeks=duration,
                start=cursor,
                end=end,
                tasks=[
                    ChecklistItem(id=task.id, title=task.title, detail=task.detail, link=task.link)
                    for task in blueprint.tasks
                    if task.is_applicable(profile)
                ],
                resources=list(blueprint.resources),
            )
        )
        cursor = end

    return planned


def _due_offset_days(position: int, task_count: int, window_days: int) -> int:
    if task_count == 1:
        offset = window_days
    else:
        offset = round_half_up(position / task_count * window_days)
    return max(offset - 1, 0)


def schedule_tasks(planned_stages: Iterable[PlannedStage]) -> List[PlannedTask]:
    """Spread each stage's tasks evenly across its window, in stage then task order."""
    scheduled: List[PlannedTask] = []
    for stage in planned_stages:
        window_days = stage.duration_weeks * 7
        task_count = len(stage.tasks)
        for position, item in enumerate(stage.tasks, start=1):
            scheduled.append(
                PlannedTask(
                    id=item.id,
                    title=item.title,
                    detail=item.detail,
                    link=item.link,
                    stage_id=stage.id,
                    stage_title=stage.title,
                    stage_index=stage.index,
                    window_start=stage.start,
                    window_end=stage.end,
                    suggested_due=stage.start
                    + timedelta(days=_due_offset_days(position, task_count, window_days)),
                )
            )
    return scheduled


def _percent(completed: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(completed / total * 100)


def aggregate(
    planned_tasks: Sequence[PlannedTask],
    completion: Mapping[str, bool],
    *,
    next_steps_limit: int = NEXT_STEPS_LIMIT,
) -> ProgressSummary:
    total = len(planned_tasks)
    completed = sum(1 for task in planned_tasks if is_completed(completion, task.id))
    pending = [task for task in planned_tasks if not is_completed(completion, task.id)]
    return ProgressSummary(
        total=total,
        completed=completed,
        percent=_percent(completed, total),
        next_steps=pending[:next_steps_limit],
    )


def stage_progress(
    planned_stages: Sequence[PlannedStage],
    planned_tasks: Sequence[PlannedTask],
    completion: Mapping[str, bool],
) -> List[StageProgress]:
    """Per-stage completion, one entry per planned stage (empty stages report 0%)."""
    entries: List[StageProgress] = []
    for stage in planned_stages:
        stage_tasks = [task for task in planned_tasks if task.stage_id == stage.id]
        completed = sum(1 for task in stage_tasks if is_completed(completion, task.id))
        entries.append(
            StageProgress(
                stage_id=stage.id,
                stage_title=stage.title,
                total=len(stage_tasks),
                completed=completed,
                percent=_percent(completed, len(stage_tasks)),
            )
        )
    return entries


def collect_resources(planned_stages: Iterable[PlannedStage]) -> List[Resource]:
    """Resources of every planned stage, de-duplicated by href; the first copy wins."""
    seen: Dict[str, Resource] = {}
    for stage in planned_stages:
        for resource in stage.resources:
            seen.setdefault(resource.href, resource)
    return list(seen.values())


def derive_plan(
    profile: Profile,
    completion: Mapping[str, bool],
    catalogue: Sequence[StageBlueprint] = STAGE_BLUEPRINTS,
    *,
    today: Optional[date] = None,
) -> PlanView:
    stages = plan_stages(profile, catalogue, today=today)
    tasks = schedule_tasks(stages)
    visa_stage = next((stage for stage in stages if stage.id == VISA_LODGEMENT_STAGE_ID), None)
    plan = PlanView(
        profile=profile,
        stages=stages,
        tasks=tasks,
        progress=aggregate(tasks, completion),
        stage_progress=stage_progress(stages, tasks, completion),
        resources=collect_resources(stages),
        total_weeks=sum(stage.duration_weeks for stage in stages),
        estimated_visa_date=visa_stage.end if visa_stage else None,
    )
    logger.debug(
        "Derived plan: %d stages, %d tasks, %d weeks", len(stages), len(tasks), plan.total_weeks
    )
    return plan


__all__ = [
    "ChecklistItem",
    "NEXT_STEPS_LIMIT",
    "PACE_MULTIPLIERS",
    "PlanView",
    "PlannedStage",
    "PlannedTask",
    "ProgressSummary",
    "StageProgress",
    "UnsupportedPaceError",
    "aggregate",
    "collect_resources",
    "derive_plan",
    "pace_multiplier",
    "plan_stages",
    "resolve_start_date",
    "round_half_up",
    "schedule_tasks",
    "stage_progress",
]
