"""Tests for stage layout, task scheduling, progress and resource collection."""

from __future__ import annotations

import itertools
from datetime import date, timedelta
from typing import Sequence

import pytest

from aus_pathway.catalogue import Resource, StageBlueprint, TaskBlueprint
from aus_pathway.planner import (
    UnsupportedPaceError,
    aggregate,
    collect_resources,
    derive_plan,
    plan_stages,
    round_half_up,
    schedule_tasks,
    stage_progress,
)
from aus_pathway.profile import Profile, toggle_completion


def _profile(**overrides: object) -> Profile:
    base = dict(
        visa_stream="189",
        pace="standard",
        start_date="2024-01-01",
        has_partner=False,
        needs_english_exam=True,
        has_children=False,
    )
    base.update(overrides)
    return Profile(**base)


def _stage(stage_id: str, weeks: int, task_ids: Sequence[str], resources: Sequence[Resource] = ()) -> StageBlueprint:
    return StageBlueprint(
        id=stage_id,
        title=stage_id.replace("-", " ").title(),
        summary=f"{stage_id} summary",
        duration_weeks=weeks,
        milestone=f"{stage_id} milestone",
        applies=lambda profile: True,
        tasks=tuple(TaskBlueprint(id=task_id, title=f"Do {task_id}") for task_id in task_ids),
        resources=tuple(resources),
    )


def _ten_task_catalogue() -> tuple[StageBlueprint, ...]:
    return (
        _stage("alpha", 2, [f"alpha-{n}" for n in range(1, 6)]),
        _stage("beta", 3, [f"beta-{n}" for n in range(1, 6)]),
    )


def test_round_half_up_matches_whole_number_rounding() -> None:
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(4.5) == 5
    assert round_half_up(2.25) == 2
    assert round_half_up(0.75) == 1


def test_standard_skilled_profile_stage_layout() -> None:
    stages = plan_stages(_profile())

    assert [stage.id for stage in stages] == [
        "foundations",
        "english-prep",
        "skills-assessment",
        "expression-of-interest",
        "visa-lodgement",
        "settlement",
    ]
    assert [stage.duration_weeks for stage in stages] == [2, 4, 8, 3, 4, 6]
    assert stages[0].start == date(2024, 1, 1)
    assert stages[0].end == date(2024, 1, 15)
    assert stages[1].start == date(2024, 1, 15)
    assert stages[1].end == date(2024, 2, 12)
    assert stages[2].end == date(2024, 4, 8)
    assert stages[-1].end == date(2024, 7, 8)
    assert sum(stage.duration_weeks for stage in stages) == 27
    assert [stage.index for stage in stages] == list(range(6))


def test_accelerated_pace_compresses_stage_durations() -> None:
    stages = {stage.id: stage for stage in plan_stages(_profile(pace="accelerated"))}

    assert stages["foundations"].duration_weeks == 2
    assert stages["english-prep"].duration_weeks == 3
    assert stages["skills-assessment"].duration_weeks == 6
    assert stages["expression-of-interest"].duration_weeks == 2
    assert stages["settlement"].duration_weeks == 5
    assert sum(stage.duration_weeks for stage in stages.values()) == 21


def test_relaxed_pace_rounds_halves_up() -> None:
    stages = {stage.id: stage for stage in plan_stages(_profile(pace="relaxed"))}

    assert stages["foundations"].duration_weeks == 3
    assert stages["expression-of-interest"].duration_weeks == 4
    assert stages["settlement"].duration_weeks == 8
    assert sum(stage.duration_weeks for stage in stages.values()) == 35


@pytest.mark.parametrize("visa_stream", ["189", "190", "491", "partner", "graduate"])
def test_total_weeks_grow_with_slower_pace(visa_stream: str) -> None:
    totals = [
        sum(stage.duration_weeks for stage in plan_stages(_profile(visa_stream=visa_stream, pace=pace)))
        for pace in ("accelerated", "standard", "relaxed")
    ]
    assert totals[0] <= totals[1] <= totals[2]


def test_stage_duration_never_drops_below_one_week() -> None:
    catalogue = (_stage("instant", 0, ["instant-task"]),)
    stages = plan_stages(_profile(pace="accelerated"), catalogue)
    assert stages[0].duration_weeks == 1
    assert stages[0].end == stages[0].start + timedelta(days=7)


def test_stage_and_task_predicates_follow_profile() -> None:
    nominated = plan_stages(_profile(visa_stream="190", has_children=True))
    stage_ids = [stage.id for stage in nominated]
    assert "state-nomination" in stage_ids
    assert "partner-evidence" not in stage_ids
    foundations = next(stage for stage in nominated if stage.id == "foundations")
    assert "foundation-state-intent" in [task.id for task in foundations.tasks]
    visa = next(stage for stage in nominated if stage.id == "visa-lodgement")
    assert "visa-proof-funds" in [task.id for task in visa.tasks]
    settlement = next(stage for stage in nominated if stage.id == "settlement")
    assert "settlement-schooling" in [task.id for task in settlement.tasks]

    partner = plan_stages(_profile(visa_stream="partner", needs_english_exam=False))
    assert [stage.id for stage in partner] == ["foundations", "partner-evidence", "visa-lodgement", "settlement"]
    assert [task.id for task in partner[0].tasks] == [
        "foundation-relationship-map",
        "foundation-document-hub",
        "foundation-immiaccount",
        "foundation-calendar",
    ]

    graduate = plan_stages(_profile(visa_stream="graduate"))
    assert "graduate-visa" in [stage.id for stage in graduate]
    assert "skills-assessment" not in [stage.id for stage in graduate]


def test_partner_flag_adds_partner_work_to_skilled_plan() -> None:
    stages = plan_stages(_profile(has_partner=True))
    stage_ids = [stage.id for stage in stages]
    assert "partner-evidence" in stage_ids
    assert stage_ids.index("partner-evidence") > stage_ids.index("expression-of-interest")
    english = next(stage for stage in stages if stage.id == "english-prep")
    assert english.tasks[-1].id == "english-proof-partner"


def test_windows_are_contiguous() -> None:
    for profile in (_profile(), _profile(visa_stream="491", has_partner=True, pace="relaxed")):
        stages = plan_stages(profile)
        assert stages[0].start == date.fromisoformat(profile.start_date)
        for previous, current in zip(stages, stages[1:]):
            assert current.start == previous.end


def test_empty_start_date_plans_from_today() -> None:
    stages = plan_stages(_profile(start_date=""), today=date(2025, 3, 3))
    assert stages[0].start == date(2025, 3, 3)

    undated = plan_stages(_profile(start_date=""))
    assert undated[0].start == date.today()


def test_unknown_pace_is_rejected() -> None:
    profile = _profile().model_copy(update={"pace": "turbo"})
    with pytest.raises(UnsupportedPaceError):
        plan_stages(profile)


def test_task_due_dates_spread_across_stage_window() -> None:
    tasks = schedule_tasks(plan_stages(_profile()))

    foundations = [task for task in tasks if task.stage_id == "foundations"]
    assert [task.suggested_due for task in foundations] == [
        date(2024, 1, 3),
        date(2024, 1, 6),
        date(2024, 1, 8),
        date(2024, 1, 11),
        date(2024, 1, 14),
    ]
    english = [task for task in tasks if task.stage_id == "english-prep"]
    assert [task.suggested_due for task in english] == [
        date(2024, 1, 23),
        date(2024, 2, 2),
        date(2024, 2, 11),
    ]
    assert english[0].window_start == date(2024, 1, 15)
    assert english[0].window_end == date(2024, 2, 12)
    assert english[0].stage_index == 1


def test_single_task_lands_on_last_day_of_window() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), (_stage("solo", 1, ["solo-task"]),)))
    assert len(tasks) == 1
    assert tasks[0].suggested_due == date(2024, 1, 7)


def test_stage_without_tasks_is_planned_but_contributes_no_tasks() -> None:
    catalogue = (_stage("empty", 2, []), _stage("full", 1, ["full-task"]))
    stages = plan_stages(_profile(), catalogue)
    tasks = schedule_tasks(stages)

    assert [stage.id for stage in stages] == ["empty", "full"]
    assert [task.id for task in tasks] == ["full-task"]
    assert stages[1].start == date(2024, 1, 15)
    progress = stage_progress(stages, tasks, {})
    assert progress[0].total == 0
    assert progress[0].percent == 0


def test_due_dates_stay_inside_windows_for_every_profile() -> None:
    streams = ["189", "190", "491", "partner", "graduate"]
    paces = ["accelerated", "standard", "relaxed"]
    for stream, pace, partner, english, children in itertools.product(
        streams, paces, (False, True), (False, True), (False, True)
    ):
        profile = _profile(
            visa_stream=stream,
            pace=pace,
            has_partner=partner,
            needs_english_exam=english,
            has_children=children,
        )
        for task in schedule_tasks(plan_stages(profile)):
            assert task.window_start <= task.suggested_due <= task.window_end


def test_scheduled_tasks_keep_stage_then_catalogue_order() -> None:
    stages = plan_stages(_profile())
    tasks = schedule_tasks(stages)
    expected = [task.id for stage in stages for task in stage.tasks]
    assert [task.id for task in tasks] == expected
    assert len(tasks) == 25


def test_empty_completion_reports_zero_percent_and_first_four_tasks() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    summary = aggregate(tasks, {})

    assert summary.total == 10
    assert summary.completed == 0
    assert summary.percent == 0
    assert [task.id for task in summary.next_steps] == ["alpha-1", "alpha-2", "alpha-3", "alpha-4"]


def test_fully_completed_plan_has_no_next_steps() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    summary = aggregate(tasks, {task.id: True for task in tasks})

    assert summary.completed == 10
    assert summary.percent == 100
    assert summary.next_steps == []


def test_completing_a_task_promotes_the_next_incomplete_one() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    summary = aggregate(tasks, {"alpha-1": True, "alpha-3": True})

    assert [task.id for task in summary.next_steps] == ["alpha-2", "alpha-4", "alpha-5", "beta-1"]
    assert summary.percent == 20


def test_fewer_than_four_remaining_returns_all_of_them() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    done = {task.id: True for task in tasks if task.id != "beta-5" and task.id != "alpha-2"}
    summary = aggregate(tasks, done)
    assert [task.id for task in summary.next_steps] == ["alpha-2", "beta-5"]


def test_false_flags_and_stale_ids_do_not_count_as_complete() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    summary = aggregate(tasks, {"alpha-1": False, "retired-task": True})
    assert summary.completed == 0
    assert summary.next_steps[0].id == "alpha-1"


def test_percent_rounds_to_nearest_whole_number() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), (_stage("trio", 1, ["t1", "t2", "t3"]),)))
    assert aggregate(tasks, {"t1": True}).percent == 33
    assert aggregate(tasks, {"t1": True, "t2": True}).percent == 67


def test_empty_task_list_reports_zero_percent() -> None:
    summary = aggregate([], {})
    assert summary.total == 0
    assert summary.percent == 0
    assert summary.next_steps == []


def test_toggling_twice_leaves_progress_unchanged() -> None:
    tasks = schedule_tasks(plan_stages(_profile(), _ten_task_catalogue()))
    completion = {"alpha-2": True}
    round_trip = toggle_completion(toggle_completion(completion, "beta-3"), "beta-3")

    assert round_trip == completion
    assert aggregate(tasks, round_trip).percent == aggregate(tasks, completion).percent


def test_stage_progress_is_scoped_to_each_stage() -> None:
    stages = plan_stages(_profile(), _ten_task_catalogue())
    tasks = schedule_tasks(stages)
    progress = stage_progress(stages, tasks, {"alpha-1": True, "alpha-2": True, "beta-5": True})

    assert [(entry.stage_id, entry.completed, entry.total, entry.percent) for entry in progress] == [
        ("alpha", 2, 5, 40),
        ("beta", 1, 5, 20),
    ]


def test_shared_resources_are_listed_once_with_first_copy() -> None:
    first = Resource(title="Shared (first)", description="From alpha", href="https://example.org/shared", category="visa")
    second = Resource(title="Shared (second)", description="From beta", href="https://example.org/shared", category="points")
    unique = Resource(title="Beta only", description="From beta", href="https://example.org/beta", category="skills")
    catalogue = (
        _stage("alpha", 1, ["a"], [first]),
        _stage("beta", 1, ["b"], [second, unique]),
    )

    resources = collect_resources(plan_stages(_profile(), catalogue))

    assert [resource.href for resource in resources] == ["https://example.org/shared", "https://example.org/beta"]
    assert resources[0].title == "Shared (first)"
    assert resources[0].description == "From alpha"


def test_resources_follow_included_stages_only() -> None:
    resources = collect_resources(plan_stages(_profile()))
    hrefs = [resource.href for resource in resources]
    assert len(hrefs) == len(set(hrefs)) == 12
    assert "https://www.migration.sa.gov.au/" not in hrefs
    assert hrefs[0] == "https://immi.homeaffairs.gov.au/what-we-do/skilled-migration-program"


def test_derive_plan_is_deterministic() -> None:
    profile = _profile(visa_stream="491", has_partner=True)
    first = derive_plan(profile, {"foundation-anzsco": True})
    second = derive_plan(profile, {"foundation-anzsco": True})
    assert first.model_dump_json() == second.model_dump_json()


def test_derive_plan_summarises_timeline() -> None:
    plan = derive_plan(_profile(), {})

    assert plan.total_weeks == 27
    assert plan.estimated_visa_date == date(2024, 5, 27)
    assert plan.progress.total == 25
    assert len(plan.stage_progress) == len(plan.stages) == 6
    assert [task.id for task in plan.next_steps] == [
        "foundation-points-audit",
        "foundation-anzsco",
        "foundation-document-hub",
        "foundation-immiaccount",
    ]
