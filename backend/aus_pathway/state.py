"""Persisted planner state: the profile and the task completion map.

``PathwayState`` owns the only mutable state in the planner. Each mutation
commits in memory first and then writes the full structure through to the
injected store; a failed write is logged and reported via telemetry but never
undoes the in-memory change.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence

from .catalogue import STAGE_BLUEPRINTS, StageBlueprint, catalogue_task_ids
from .planner import PlanView, derive_plan
from .profile import (
    CompletionMap,
    Profile,
    apply_profile_changes,
    is_completed,
    load_completion_payload,
    load_profile_payload,
    set_completion,
    toggle_completion,
)
from .storage import KeyValueStore
from .telemetry import (
    PLAN_DERIVED,
    PROFILE_UPDATED,
    STATE_RESET,
    STATE_WRITE_FAILED,
    TASK_TOGGLED,
    emit_event,
)

logger = logging.getLogger(__name__)

PROFILE_STORAGE_KEY = "aus-pathway-profile-v1"
TASK_STORAGE_KEY = "aus-pathway-tasks-v1"


class PathwayState:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        catalogue: Sequence[StageBlueprint] = STAGE_BLUEPRINTS,
    ) -> None:
        self._store = store
        self._catalogue = catalogue
        self._lock = threading.RLock()
        self._profile = Profile()
        self._completion: CompletionMap = {}
        self.load()

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def completion(self) -> CompletionMap:
        return dict(self._completion)

    @property
    def catalogue(self) -> Sequence[StageBlueprint]:
        return self._catalogue

    def knows_task(self, task_id: str) -> bool:
        return task_id in catalogue_task_ids(self._catalogue)

    def load(self) -> None:
        """Re-read both records from the store, falling back to defaults."""
        with self._lock:
            self._profile = load_profile_payload(self._read(PROFILE_STORAGE_KEY))
            self._completion = load_completion_payload(self._read(TASK_STORAGE_KEY))

    def update_profile(self, changes: Mapping[str, Any]) -> Profile:
        """Apply a mapping of field changes (snake_case or stored camelCase names).

        Raises ProfileUpdateError and leaves the profile untouched when a
        field is unknown or a value is invalid.
        """
        with self._lock:
            updated = apply_profile_changes(self._profile, changes)
            self._profile = updated
            self._write(PROFILE_STORAGE_KEY, updated.to_storage())
        emit_event(PROFILE_UPDATED, fields=sorted(changes))
        return updated

    def toggle_task(self, task_id: str) -> bool:
        with self._lock:
            self._completion = toggle_completion(self._completion, task_id)
            done = is_completed(self._completion, task_id)
            self._write(TASK_STORAGE_KEY, self._completion)
        emit_event(TASK_TOGGLED, task_id=task_id, done=done)
        return done

    def set_task(self, task_id: str, done: bool) -> bool:
        with self._lock:
            self._completion = set_completion(self._completion, task_id, done)
            self._write(TASK_STORAGE_KEY, self._completion)
        emit_event(TASK_TOGGLED, task_id=task_id, done=done)
        return done

    def reset(self) -> None:
        with self._lock:
            self._profile = Profile()
            self._completion = {}
            try:
                self._store.clear()
            except Exception as exc:  # noqa: BLE001
                self._report_write_failure("*", exc)
        emit_event(STATE_RESET)

    def plan(self, *, today: Optional[date] = None) -> PlanView:
        with self._lock:
            profile = self._profile
            completion = dict(self._completion)
        plan = derive_plan(profile, completion, self._catalogue, today=today)
        emit_event(
            PLAN_DERIVED,
            stages=len(plan.stages),
            tasks=plan.progress.total,
            completed=plan.progress.completed,
            total_weeks=plan.total_weeks,
        )
        return plan

    def raw_payloads(self) -> Dict[str, Optional[str]]:
        return {key: self._read(key) for key in (PROFILE_STORAGE_KEY, TASK_STORAGE_KEY)}

    def _read(self, key: str) -> Optional[str]:
        try:
            return self._store.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to read %s from the state store: %s", key, exc)
            return None

    def _write(self, key: str, payload: Mapping[str, Any]) -> None:
        try:
            self._store.set(key, json.dumps(payload))
        except Exception as exc:  # noqa: BLE001
            self._report_write_failure(key, exc)

    def _report_write_failure(self, key: str, exc: Exception) -> None:
        logger.warning("Failed to persist %s; keeping in-memory state: %s", key, exc)
        emit_event(STATE_WRITE_FAILED, key=key, error=str(exc))


__all__ = ["PROFILE_STORAGE_KEY", "PathwayState", "TASK_STORAGE_KEY"]
