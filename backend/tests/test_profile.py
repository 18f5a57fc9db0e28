"""Tests for profile defaults, stored payload parsing and completion helpers."""

from __future__ import annotations

import json
from datetime import date

import pytest
from pydantic import ValidationError

from aus_pathway.profile import (
    Profile,
    ProfileUpdateError,
    apply_profile_changes,
    is_completed,
    load_completion_payload,
    load_profile_payload,
    set_completion,
    toggle_completion,
)


def test_default_profile_values() -> None:
    profile = Profile()
    assert profile.visa_stream == "189"
    assert profile.has_partner is False
    assert profile.needs_english_exam is True
    assert profile.pace == "standard"
    assert profile.start_date == date.today().isoformat()
    assert profile.relocating_state == "national"
    assert profile.has_children is False
    assert profile.english_test == "IELTS"


def test_profile_serialises_with_camel_case_keys() -> None:
    stored = Profile(start_date="2024-01-01").to_storage()
    assert stored == {
        "visaStream": "189",
        "hasPartner": False,
        "needsEnglishExam": True,
        "pace": "standard",
        "startDate": "2024-01-01",
        "relocatingState": "national",
        "hasChildren": False,
        "englishTest": "IELTS",
    }


def test_start_date_accepts_dates_and_blank_values() -> None:
    assert Profile(start_date=date(2024, 2, 29)).start_date == "2024-02-29"
    assert Profile(startDate="  ").start_date == ""
    with pytest.raises(ValidationError):
        Profile(start_date="next tuesday")


def test_profile_is_frozen() -> None:
    profile = Profile()
    with pytest.raises(ValidationError):
        profile.pace = "relaxed"  # type: ignore[misc]


def test_missing_or_unparseable_payload_yields_defaults() -> None:
    assert load_profile_payload(None).visa_stream == "189"
    assert load_profile_payload("{not json").pace == "standard"
    assert load_profile_payload(json.dumps(["189"])).to_storage() == Profile().to_storage()


def test_partial_payload_merges_over_defaults() -> None:
    profile = load_profile_payload(json.dumps({"visaStream": "491", "hasChildren": True}))
    assert profile.visa_stream == "491"
    assert profile.has_children is True
    assert profile.pace == "standard"
    assert profile.english_test == "IELTS"


def test_invalid_stored_field_falls_back_on_its_own() -> None:
    payload = {"visaStream": "999", "pace": "relaxed", "startDate": "soon", "relocatingState": "wa"}
    profile = load_profile_payload(json.dumps(payload))
    assert profile.visa_stream == "189"
    assert profile.pace == "relaxed"
    assert profile.start_date == date.today().isoformat()
    assert profile.relocating_state == "wa"


def test_unknown_stored_keys_are_ignored() -> None:
    profile = load_profile_payload(json.dumps({"pace": "accelerated", "legacyField": 3}))
    assert profile.pace == "accelerated"
    assert "legacyField" not in profile.to_storage()


def test_apply_changes_accepts_both_spellings() -> None:
    updated = apply_profile_changes(Profile(), {"visaStream": "partner", "has_partner": True})
    assert updated.visa_stream == "partner"
    assert updated.has_partner is True


def test_apply_changes_rejects_unknown_field() -> None:
    with pytest.raises(ProfileUpdateError, match="Unknown profile field: favouriteCity"):
        apply_profile_changes(Profile(), {"favouriteCity": "Hobart"})


def test_apply_changes_rejects_invalid_values() -> None:
    with pytest.raises(ProfileUpdateError, match="pace"):
        apply_profile_changes(Profile(), {"pace": "turbo"})
    with pytest.raises(ProfileUpdateError):
        apply_profile_changes(Profile(), {"startDate": "31/12/2024"})


def test_apply_changes_allows_clearing_start_date() -> None:
    assert apply_profile_changes(Profile(), {"startDate": ""}).start_date == ""


def test_completion_payload_keeps_only_true_entries() -> None:
    raw = json.dumps({"a": True, "b": False, "c": "yes", "d": 1})
    assert load_completion_payload(raw) == {"a": True}
    assert load_completion_payload(None) == {}
    assert load_completion_payload("[]") == {}
    assert load_completion_payload("oops") == {}


def test_completion_helpers_do_not_mutate_input() -> None:
    original = {"a": True}
    toggled = toggle_completion(original, "b")
    assert original == {"a": True}
    assert toggled == {"a": True, "b": True}
    assert toggle_completion(toggled, "b") == original
    assert set_completion(original, "a", False) == {}
    assert is_completed({"a": True}, "a") is True
    assert is_completed({"a": False}, "a") is False
    assert is_completed({}, "a") is False
