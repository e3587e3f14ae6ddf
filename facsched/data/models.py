"""Pydantic models for scheduling records."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter

logger = logging.getLogger(__name__)

# Top-level shape of every collection payload
_JSON_ARRAY = TypeAdapter(list[Any])


class Record(BaseModel):
    """Base for all row models.

    Numeric keys coming from the database (``slot_id: 3``) are coerced to
    strings so that key comparisons are always string-equal.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class Faculty(Record):
    """A faculty member."""

    faculty_id: str
    name: str
    department: str
    email: str | None = None
    contact_number: str | None = None


class Course(Record):
    """A course offered by a department."""

    course_code: str
    course_name: str
    course_type: str | None = None
    department: str


class Room(Record):
    """A teaching room."""

    room_number: str
    building: str | None = None
    capacity: int | None = None
    equipment: str | None = None


class TimeSlot(Record):
    """A bookable time slot, times as ``"HH:MM"`` strings."""

    slot_id: str
    start_time: str
    end_time: str


class CourseSchedule(Record):
    """A raw schedule row; every foreign key is optional."""

    schedule_id: str
    course_code: str | None = None
    faculty_id: str | None = None
    room_number: str | None = None
    day_of_week: str
    time_slot_id: str | None = None
    semester: str | None = None
    academic_year: str | None = None


class ScheduleView(Record):
    """Denormalized schedule row joined with faculty, course, room and slot."""

    schedule_id: str
    faculty_name: str
    faculty_id: str
    department: str
    course_code: str | None = None
    course_name: str | None = None
    room_number: str | None = None
    building: str | None = None
    day_of_week: str
    start_time: str | None = None
    end_time: str | None = None
    semester: str | None = None
    academic_year: str | None = None


def normalize_rows(model: type[Record], payload: Any) -> list[dict[str, Any]]:
    """Validate a JSON array against *model* and return plain dicts.

    Raises:
        pydantic.ValidationError: *payload* is not a list, or a row does
            not match *model*.
    """
    rows = _JSON_ARRAY.validate_python(payload)
    return [model.model_validate(row).model_dump(mode="json") for row in rows]


def normalize_schedule_views(payload: Any) -> list[dict[str, Any]]:
    """Like :func:`normalize_rows` for ScheduleView, minus unjoined rows.

    The remote view endpoint left-joins faculty, so rows for schedules
    without a faculty come back with a null name and department. They are
    dropped here.
    """
    payload = _JSON_ARRAY.validate_python(payload)
    joined = [
        row for row in payload
        if not isinstance(row, dict)
        or (row.get("faculty_name") is not None and row.get("department") is not None)
    ]
    dropped = len(payload) - len(joined)
    if dropped:
        logger.debug("Dropped %d schedule view rows without faculty", dropped)
    return normalize_rows(ScheduleView, joined)
