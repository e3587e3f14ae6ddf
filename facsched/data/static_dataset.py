"""Bundled read-only snapshot of the scheduling tables."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from facsched.data.models import ScheduleView, normalize_rows
from facsched.data.resources import (
    ALL_RESOURCES,
    COURSES,
    FACULTY,
    ROOMS,
    SCHEDULES,
    TIMESLOTS,
    CacheKey,
    Resource,
)
from facsched.utils.file_utils import read_json

logger = logging.getLogger(__name__)

BUNDLED_DATASET = Path(__file__).resolve().parent / "fallback.json"


def _index(rows: list[dict[str, Any]], field: str) -> dict[str, dict[str, Any]]:
    """Map ``str(row[field])`` to row, keeping the first row per key."""
    index: dict[str, dict[str, Any]] = {}
    for row in rows:
        value = row.get(field)
        if value is not None:
            index.setdefault(str(value), row)
    return index


def _lookup(index: dict[str, dict[str, Any]], value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    return index.get(str(value))


def build_schedule_views(
    faculty: list[dict[str, Any]],
    courses: list[dict[str, Any]],
    rooms: list[dict[str, Any]],
    time_slots: list[dict[str, Any]],
    schedules: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Join raw schedule rows into ScheduleView rows.

    Faculty is an inner join: a schedule whose ``faculty_id`` matches no
    faculty row produces nothing. Course, room and time slot are left
    joins, so their fields are None when unmatched. Keys are compared as
    strings, which makes ``time_slot_id="3"`` match ``slot_id=3``.
    Output keeps the order of *schedules*.
    """
    faculty_by_id = _index(faculty, "faculty_id")
    course_by_code = _index(courses, "course_code")
    room_by_number = _index(rooms, "room_number")
    slot_by_id = _index(time_slots, "slot_id")

    views: list[dict[str, Any]] = []
    for schedule in schedules:
        member = _lookup(faculty_by_id, schedule.get("faculty_id"))
        if member is None:
            continue
        course = _lookup(course_by_code, schedule.get("course_code")) or {}
        room = _lookup(room_by_number, schedule.get("room_number")) or {}
        slot = _lookup(slot_by_id, schedule.get("time_slot_id")) or {}

        view = ScheduleView(
            schedule_id=str(schedule["schedule_id"]),
            faculty_name=member["name"],
            faculty_id=member["faculty_id"],
            department=member["department"],
            course_code=course.get("course_code"),
            course_name=course.get("course_name"),
            room_number=room.get("room_number"),
            building=room.get("building"),
            day_of_week=schedule["day_of_week"],
            start_time=slot.get("start_time"),
            end_time=slot.get("end_time"),
            semester=schedule.get("semester"),
            academic_year=schedule.get("academic_year"),
        )
        views.append(view.model_dump(mode="json"))

    dropped = len(schedules) - len(views)
    if dropped:
        logger.debug("Skipped %d schedule rows without matching faculty", dropped)
    return views


class StaticDataset:
    """Read-only snapshot of all five tables.

    The JSON document has one top-level array per table (``Faculty``,
    ``Courses``, ``Rooms``, ``TimeSlots``, ``CourseSchedule``), shaped like
    the API's list responses. It is read on first use and kept in memory;
    nothing is ever written back to it.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else BUNDLED_DATASET
        self._lock = threading.Lock()
        self._tables: dict[str, list[dict[str, Any]]] | None = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        """Read and validate the document once.

        Raises:
            OSError: The file cannot be read.
            ValueError: The document is not valid JSON or a table is
                missing or malformed.
        """
        with self._lock:
            if self._tables is None:
                document = read_json(self.path)
                if not isinstance(document, dict):
                    raise ValueError(f"Static dataset {self.path} is not a JSON object")
                tables: dict[str, list[dict[str, Any]]] = {}
                for resource in ALL_RESOURCES:
                    if resource.table not in document:
                        raise ValueError(
                            f"Static dataset {self.path} has no '{resource.table}' table"
                        )
                    # pydantic.ValidationError is a ValueError
                    tables[resource.table] = normalize_rows(
                        resource.model, document[resource.table]
                    )
                self._tables = tables
                logger.info(
                    "Loaded static dataset",
                    extra={
                        "path": str(self.path),
                        "tables": {name: len(rows) for name, rows in tables.items()},
                    },
                )
            return self._tables

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rows(self, resource: Resource) -> list[dict[str, Any]]:
        """Return a copy of the rows of *resource*'s table."""
        return [dict(row) for row in self._load()[resource.table]]

    def faculty(self) -> list[dict[str, Any]]:
        return self.rows(FACULTY)

    def courses(self) -> list[dict[str, Any]]:
        return self.rows(COURSES)

    def rooms(self) -> list[dict[str, Any]]:
        return self.rows(ROOMS)

    def time_slots(self) -> list[dict[str, Any]]:
        return self.rows(TIMESLOTS)

    def course_schedules(self) -> list[dict[str, Any]]:
        return self.rows(SCHEDULES)

    def schedule_views(self) -> list[dict[str, Any]]:
        """Return every joined ScheduleView row of the snapshot."""
        return build_schedule_views(
            self.faculty(),
            self.courses(),
            self.rooms(),
            self.time_slots(),
            self.course_schedules(),
        )

    def schedule_views_by_department(self, department: str) -> list[dict[str, Any]]:
        return [v for v in self.schedule_views() if v["department"] == department]

    def load_into(self, cache, freshness) -> None:
        """Write every table and the joined views into *cache* in one pass,
        then touch *freshness*."""
        logger.info("Loading static dataset into cache", extra={"path": str(self.path)})
        for resource in ALL_RESOURCES:
            cache.set(resource.cache_key, self.rows(resource))
        cache.set(CacheKey.SCHEDULE_VIEWS, self.schedule_views())
        freshness.touch(CacheKey.SCHEDULE_VIEWS)
