"""Command-line shell for the pathway planner.

Reads and writes the same state store as the HTTP shell and renders the
derived plan as plain text.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO

from .catalogue import ENGLISH_TEST_LABELS, PACE_LABELS, REGION_LABELS, VISA_STREAM_LABELS, find_task
from .logging_config import configure_logging
from .planner import PlannedTask, PlanView
from .profile import Profile, ProfileUpdateError, is_completed
from .state import PathwayState
from .storage import JsonFileKeyValueStore, KeyValueStore, build_store

LOGGER = logging.getLogger("aus_pathway.cli")
EXIT_USAGE = 2


def format_date(value: date) -> str:
    return f"{value.day} {value.strftime('%b')} {value.year}"


def format_weeks(total: int) -> str:
    return "1 week" if total == 1 else f"{total} weeks"


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {raw!r}") from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="aus-pathway",
        description="Personalised Australian migration checklist and timeline.",
    )
    parser.add_argument(
        "--state-path",
        type=Path,
        default=None,
        help="JSON state file to use instead of the configured persistence backend.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    commands = parser.add_subparsers(dest="command", required=True)

    plan = commands.add_parser("plan", help="Show progress, next actions and the stage checklist.")
    plan.add_argument("--today", type=_parse_date, default=None, help="Date to plan from when no start date is set.")

    commands.add_parser("profile", help="Show the current profile.")

    update = commands.add_parser("set", help="Update profile fields, e.g. pace=relaxed hasPartner=true.")
    update.add_argument("assignments", nargs="+", metavar="FIELD=VALUE")

    toggle = commands.add_parser("toggle", help="Flip a checklist task between done and not done.")
    toggle.add_argument("task_id")

    commands.add_parser("resources", help="List reference links for the planned stages.")
    commands.add_parser("reset", help="Restore the default profile and clear completed tasks.")
    return parser.parse_args(argv)


def _parse_assignments(assignments: Sequence[str]) -> Dict[str, str]:
    changes: Dict[str, str] = {}
    for assignment in assignments:
        field, separator, value = assignment.partition("=")
        if not separator or not field.strip():
            raise ProfileUpdateError(f"Expected FIELD=VALUE, got {assignment!r}")
        changes[field.strip()] = value.strip()
    return changes


def render_profile(profile: Profile) -> List[str]:
    return [
        f"Visa stream:      {VISA_STREAM_LABELS[profile.visa_stream]}",
        f"Pace:             {PACE_LABELS[profile.pace]}",
        f"Start date:       {profile.start_date or '(today)'}",
        f"State focus:      {REGION_LABELS[profile.relocating_state]}",
        f"English test:     {ENGLISH_TEST_LABELS[profile.english_test]}",
        f"Needs English:    {'yes' if profile.needs_english_exam else 'no'}",
        f"With partner:     {'yes' if profile.has_partner else 'no'}",
        f"With children:    {'yes' if profile.has_children else 'no'}",
    ]


def render_plan(plan: PlanView, completion: Dict[str, bool]) -> List[str]:
    progress = plan.progress
    lines = [
        f"Overall progress: {progress.percent}% ({progress.completed}/{progress.total} tasks)",
        f"Planned journey:  {format_weeks(plan.total_weeks)} at {plan.profile.pace} pace",
    ]
    if plan.estimated_visa_date:
        lines.append(f"Target visa lodgement: {format_date(plan.estimated_visa_date)}")
    lines.append(f"Visa stream:      {VISA_STREAM_LABELS[plan.profile.visa_stream]}")
    lines.append("")
    lines.append("Next recommended actions:")
    if not progress.next_steps:
        lines.append("  You have cleared every item!")
    for task in progress.next_steps:
        lines.append(f"  - {task.title} ({task.stage_title}, by {format_date(task.suggested_due)})")

    tasks_by_stage: Dict[str, List[PlannedTask]] = {}
    for task in plan.tasks:
        tasks_by_stage.setdefault(task.stage_id, []).append(task)

    for stage, stage_summary in zip(plan.stages, plan.stage_progress):
        lines.append("")
        lines.append(
            f"Stage {stage.index + 1} • {format_date(stage.start)} -> {format_date(stage.end)} • "
            f"{stage.title} ({format_weeks(stage.duration_weeks)}, "
            f"{stage_summary.completed}/{stage_summary.total} complete)"
        )
        stage_tasks = tasks_by_stage.get(stage.id, [])
        if not stage_tasks:
            lines.append("    No checklist items for this stage based on your current profile.")
        for task in stage_tasks:
            mark = "x" if is_completed(completion, task.id) else " "
            lines.append(f"  [{mark}] {task.id}: {task.title} (target {format_date(task.suggested_due)})")
    return lines


def _build_store(state_path: Optional[Path]) -> KeyValueStore:
    if state_path is not None:
        return JsonFileKeyValueStore(state_path)
    return build_store()


def run(args: argparse.Namespace, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    state = PathwayState(_build_store(args.state_path))

    if args.command == "plan":
        lines = render_plan(state.plan(today=args.today), state.completion)
    elif args.command == "profile":
        lines = render_profile(state.profile)
    elif args.command == "set":
        try:
            profile = state.update_profile(_parse_assignments(args.assignments))
        except ProfileUpdateError as exc:
            err.write(f"error: {exc}\n")
            return EXIT_USAGE
        lines = render_profile(profile)
    elif args.command == "toggle":
        task = find_task(args.task_id, state.catalogue)
        if task is None:
            err.write(f"error: unknown task id {args.task_id!r}\n")
            return EXIT_USAGE
        done = state.toggle_task(task.id)
        lines = [f"Marked {task.id} as {'complete' if done else 'not complete'}."]
    elif args.command == "resources":
        lines = [
            f"[{resource.category}] {resource.title}: {resource.href}\n    {resource.description}"
            for resource in state.plan().resources
        ]
    else:
        state.reset()
        lines = ["Profile and checklist reset to defaults."]

    out.write("\n".join(lines) + "\n")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        return run(args)
    except RuntimeError as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
