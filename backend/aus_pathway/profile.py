"""Planner profile model, defaults and completion-map helpers."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

VisaStream = Literal["189", "190", "491", "partner", "graduate"]
Pace = Literal["standard", "accelerated", "relaxed"]
RegionCode = Literal["national", "nsw", "vic", "qld", "sa", "wa", "tas", "act", "nt"]
EnglishTest = Literal["IELTS", "PTE", "TOEFL", "Cambridge", "None"]

SKILLED_STREAMS = frozenset({"189", "190", "491"})

CompletionMap = Dict[str, bool]


class ProfileUpdateError(ValueError):
    """Raised when a profile change names an unknown field or carries an invalid value."""


def _today_iso() -> str:
    return date.today().isoformat()


class Profile(BaseModel):
    """Single-user planning profile.

    Stored with camelCase keys; attributes are snake_case. Instances are
    frozen so derivations can share them without copying.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    visa_stream: VisaStream = Field("189", alias="visaStream")
    has_partner: bool = Field(False, alias="hasPartner")
    needs_english_exam: bool = Field(True, alias="needsEnglishExam")
    pace: Pace = Field("standard", alias="pace")
    start_date: str = Field(default_factory=_today_iso, alias="startDate")
    relocating_state: RegionCode = Field("national", alias="relocatingState")
    has_children: bool = Field(False, alias="hasChildren")
    english_test: EnglishTest = Field("IELTS", alias="englishTest")

    @field_validator("start_date", mode="before")
    @classmethod
    def _normalise_start_date(cls, value: Any) -> Any:
        if isinstance(value, date):
            return value.isoformat()
        if not isinstance(value, str):
            return value
        trimmed = value.strip()
        if not trimmed:
            return ""
        try:
            return date.fromisoformat(trimmed).isoformat()
        except ValueError as exc:
            raise ValueError(f"startDate must be an ISO calendar date, got {value!r}") from exc

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def is_skilled_stream(profile: Profile) -> bool:
    return profile.visa_stream in SKILLED_STREAMS


def _field_aliases() -> Dict[str, str]:
    """Map every accepted spelling (attribute name or stored key) to the stored key."""
    aliases: Dict[str, str] = {}
    for name, info in Profile.model_fields.items():
        key = info.alias or name
        aliases[name] = key
        aliases[key] = key
    return aliases


PROFILE_FIELD_KEYS = _field_aliases()


def load_profile_payload(raw: Optional[str]) -> Profile:
    """Parse a stored profile, merging valid fields over the defaults.

    A payload that is not a JSON object yields the default profile; inside an
    object every missing or invalid field falls back to its default on its own.
    """
    defaults = Profile()
    if raw is None:
        return defaults
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        logger.info("Stored profile is not valid JSON; using the default profile")
        return defaults
    if not isinstance(payload, dict):
        logger.info("Stored profile is not an object; using the default profile")
        return defaults

    merged = defaults.to_storage()
    for key in Profile.model_fields:
        stored_key = PROFILE_FIELD_KEYS[key]
        if stored_key not in payload:
            continue
        candidate = {**merged, stored_key: payload[stored_key]}
        try:
            Profile.model_validate(candidate)
        except ValidationError:
            logger.debug("Ignoring invalid stored profile field %s=%r", stored_key, payload[stored_key])
            continue
        merged[stored_key] = payload[stored_key]
    return Profile.model_validate(merged)


def apply_profile_changes(profile: Profile, changes: Mapping[str, Any]) -> Profile:
    """Return a new profile with ``changes`` applied, or raise ProfileUpdateError."""
    normalized: Dict[str, Any] = {}
    for name, value in changes.items():
        key = PROFILE_FIELD_KEYS.get(name)
        if key is None:
            raise ProfileUpdateError(f"Unknown profile field: {name}")
        normalized[key] = value
    try:
        return Profile.model_validate({**profile.to_storage(), **normalized})
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ProfileUpdateError(f"Invalid profile update ({details})") from exc


def load_completion_payload(raw: Optional[str]) -> CompletionMap:
    """Parse a stored completion map.

    Only ``true`` entries are kept: an absent id already means incomplete, so
    dropping ``false`` and non-boolean entries loses nothing.
    """
    if raw is None:
        return {}
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        logger.info("Stored completion map is not valid JSON; starting empty")
        return {}
    if not isinstance(payload, dict):
        logger.info("Stored completion map is not an object; starting empty")
        return {}
    return {str(task_id): True for task_id, done in payload.items() if done is True}


def is_completed(completion: Mapping[str, bool], task_id: str) -> bool:
    return completion.get(task_id) is True


def set_completion(completion: Mapping[str, bool], task_id: str, done: bool) -> CompletionMap:
    updated = dict(completion)
    if done:
        updated[task_id] = True
    else:
        updated.pop(task_id, None)
    return updated


def toggle_completion(completion: Mapping[str, bool], task_id: str) -> CompletionMap:
    return set_completion(completion, task_id, not is_completed(completion, task_id))


__all__ = [
    "CompletionMap",
    "EnglishTest",
    "Pace",
    "Profile",
    "ProfileUpdateError",
    "RegionCode",
    "VisaStream",
    "apply_profile_changes",
    "is_completed",
    "is_skilled_stream",
    "load_completion_payload",
    "load_profile_payload",
    "set_completion",
    "toggle_completion",
]
