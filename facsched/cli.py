"""CLI entry point for facsched."""

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path

import requests
from pydantic import ValidationError

from facsched.config import get_setting, load_config
from facsched.data.resources import RESOURCES_BY_NAME
from facsched.services.registry import AppContext, build_app_context
from facsched.services.sources import DataUnavailableError
from facsched.utils.logging_setup import setup_logging

logger = logging.getLogger("facsched")

# Failures a read can end with once every fallback is exhausted
DATA_ERRORS = (requests.RequestException, DataUnavailableError, ValidationError, OSError, ValueError)

DEPARTMENT_RESOURCES = ("faculty", "courses")

COLUMNS = {
    "faculty": ("faculty_id", "name", "department", "email", "contact_number"),
    "courses": ("course_code", "course_name", "course_type", "department"),
    "rooms": ("room_number", "building", "capacity", "equipment"),
    "timeslots": ("slot_id", "start_time", "end_time"),
    "schedules": (
        "schedule_id", "course_code", "faculty_id", "room_number",
        "day_of_week", "time_slot_id", "semester", "academic_year",
    ),
    "schedule_view": (
        "schedule_id", "day_of_week", "start_time", "end_time",
        "course_name", "faculty_name", "department", "room_number", "building",
    ),
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="facsched",
        description="Browse and refresh faculty schedule data with cache and offline fallback",
    )
    parser.add_argument("--config", type=Path, help="Path to config YAML file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Load application data unless the cache is fresh")
    subparsers.add_parser("refresh", help="Reload all application data now")
    subparsers.add_parser("status", help="Show cache status")
    subparsers.add_parser("clear-cache", help="Remove all cached data")

    list_parser = subparsers.add_parser("list", help="List records of one resource")
    list_parser.add_argument("resource", choices=sorted(RESOURCES_BY_NAME))
    list_parser.add_argument("--department", type=str, help="Only faculty/courses of this department")
    list_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")

    schedule_parser = subparsers.add_parser("schedule", help="Show the joined schedule view")
    schedule_parser.add_argument("--department", type=str, help="Only this department")
    schedule_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")

    subparsers.add_parser("menu", help="Launch interactive menu")

    args = parser.parse_args(argv)

    if args.command is None or args.command == "menu":
        from facsched.interactive import interactive_menu
        return interactive_menu(config_path=args.config)

    handlers = {
        "init": cmd_init,
        "refresh": cmd_refresh,
        "status": cmd_status,
        "clear-cache": cmd_clear_cache,
        "list": cmd_list,
        "schedule": cmd_schedule,
    }

    config = load_config(config_path=args.config)
    setup_logging(
        level=get_setting(config, "logging.level", "INFO"),
        log_file=get_setting(config, "logging.file"),
    )
    ctx = build_app_context(config)
    try:
        return handlers[args.command](args, ctx)
    finally:
        ctx.close()


def cmd_init(args, ctx: AppContext) -> int:
    """Initialize application data (no-op while the cache is fresh)."""
    try:
        outcome = ctx.initializer.initialize_app_data()
    except DATA_ERRORS as e:
        print(f"Initialization failed: {e}")
        return 1
    print(_describe_outcome(outcome.value))
    return 0


def cmd_refresh(args, ctx: AppContext) -> int:
    """Force a reload of every collection."""
    try:
        outcome = ctx.initializer.refresh_all_data()
    except DATA_ERRORS as e:
        print(f"Refresh failed: {e}")
        return 1
    print(_describe_outcome(outcome.value))
    return 0


def cmd_status(args, ctx: AppContext) -> int:
    """Show last update time, expiry and cached row counts."""
    print(f"API:        {ctx.api.base_url}")
    print(f"Cache dir:  {ctx.cache.cache_dir}")

    last = ctx.cache.last_updated()
    if last is None:
        print("Last updated: never")
    else:
        stamp = datetime.fromtimestamp(last / 1000, tz=timezone.utc)
        print(f"Last updated: {stamp.isoformat(timespec='seconds')}")
    print(f"Expired:      {'yes' if ctx.freshness.is_expired() else 'no'}")

    print("\nCached collections:")
    for key, count in ctx.cache.snapshot().items():
        print(f"  {key}: {'-' if count is None else count}")
    return 0


def cmd_clear_cache(args, ctx: AppContext) -> int:
    ctx.cache.clear()
    print(f"Cleared cache at {ctx.cache.cache_dir}")
    return 0


def cmd_list(args, ctx: AppContext) -> int:
    """List the records of one resource."""
    if args.department and args.resource not in DEPARTMENT_RESOURCES:
        print(f"--department is only supported for: {', '.join(DEPARTMENT_RESOURCES)}")
        return 1

    service = ctx.services.by_name(args.resource)
    try:
        if args.department:
            if args.refresh:
                service.get_all(force_refresh=True)
            rows = service.get_by_department(args.department)
        else:
            rows = service.get_all(force_refresh=args.refresh)
    except DATA_ERRORS as e:
        print(f"Could not load {args.resource}: {e}")
        return 1

    _print_rows(rows, COLUMNS[args.resource])
    return 0


def cmd_schedule(args, ctx: AppContext) -> int:
    """Show joined schedule rows, optionally for one department."""
    schedules = ctx.services.schedules
    try:
        if args.department:
            rows = schedules.get_schedule_view_by_department(args.department)
        else:
            rows = schedules.get_schedule_view(force_refresh=args.refresh)
    except DATA_ERRORS as e:
        print(f"Could not load schedules: {e}")
        return 1

    _print_rows(rows, COLUMNS["schedule_view"])
    return 0


def _describe_outcome(outcome: str) -> str:
    return {
        "cached": "Cache is still valid; nothing to load.",
        "remote": "Loaded all data from the API.",
        "static": "API unreachable; loaded the bundled static dataset.",
    }[outcome]


def _print_rows(rows: list, columns: tuple[str, ...]) -> None:
    """Print *rows* as a plain aligned table."""
    if not rows:
        print("No records found.")
        return

    table = [
        ["" if getattr(row, col) is None else str(getattr(row, col)) for col in columns]
        for row in rows
    ]
    widths = [
        max(len(col), *(len(line[i]) for line in table))
        for i, col in enumerate(columns)
    ]
    print("  ".join(col.ljust(w) for col, w in zip(columns, widths)).rstrip())
    print("  ".join("-" * w for w in widths))
    for line in table:
        print("  ".join(cell.ljust(w) for cell, w in zip(line, widths)).rstrip())
    print(f"\n{len(rows)} record(s)")
