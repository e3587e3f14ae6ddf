"""Tests for facsched.data.models and facsched.data.resources."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from facsched.data.models import (
    Course,
    CourseSchedule,
    Faculty,
    Room,
    ScheduleView,
    TimeSlot,
    normalize_rows,
    normalize_schedule_views,
)
from facsched.data.resources import (
    ALL_RESOURCES,
    COLLECTION_KEYS,
    FACULTY,
    RESOURCES_BY_NAME,
    TIMESLOTS,
    CacheKey,
)


class TestModels:
    """Test field validation and coercion."""

    def test_faculty_optional_fields_default_to_none(self) -> None:
        f = Faculty(faculty_id="F1", name="Ada", department="Math")
        assert f.email is None
        assert f.contact_number is None

    def test_faculty_requires_department(self) -> None:
        with pytest.raises(ValidationError):
            Faculty(faculty_id="F1", name="Ada")

    def test_numeric_keys_become_strings(self) -> None:
        slot = TimeSlot.model_validate({"slot_id": 3, "start_time": "09:00", "end_time": "10:00"})
        assert slot.slot_id == "3"

        schedule = CourseSchedule.model_validate(
            {"schedule_id": 12, "day_of_week": "Monday", "time_slot_id": 3}
        )
        assert schedule.schedule_id == "12"
        assert schedule.time_slot_id == "3"

    def test_room_capacity_is_int(self) -> None:
        room = Room.model_validate({"room_number": "A1", "capacity": "40"})
        assert room.capacity == 40

    def test_unknown_fields_ignored(self) -> None:
        course = Course.model_validate(
            {"course_code": "CS1", "course_name": "Intro", "department": "CS", "credits": 4}
        )
        assert not hasattr(course, "credits")

    def test_schedule_view_requires_faculty_name(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleView.model_validate(
                {"schedule_id": "1", "faculty_id": "F1", "department": "CS", "day_of_week": "Mon"}
            )


class TestNormalizeRows:
    """Test payload normalization."""

    def test_returns_plain_dicts(self) -> None:
        rows = normalize_rows(TimeSlot, [{"slot_id": 1, "start_time": "09:00", "end_time": "10:00"}])
        assert rows == [{"slot_id": "1", "start_time": "09:00", "end_time": "10:00"}]

    def test_rejects_non_list(self) -> None:
        with pytest.raises(ValidationError, match="valid list"):
            normalize_rows(Faculty, {"error": "Server error"})

    def test_rejects_invalid_row(self) -> None:
        with pytest.raises(ValidationError):
            normalize_rows(Faculty, [{"faculty_id": "F1"}])

    def test_schedule_views_drop_rows_without_faculty(self) -> None:
        payload = [
            {"schedule_id": 1, "faculty_name": "Ada", "faculty_id": "F1",
             "department": "Math", "day_of_week": "Monday"},
            {"schedule_id": 2, "faculty_name": None, "faculty_id": None,
             "department": None, "day_of_week": "Tuesday"},
        ]
        rows = normalize_schedule_views(payload)
        assert [r["schedule_id"] for r in rows] == ["1"]

    def test_schedule_views_reject_non_list(self) -> None:
        with pytest.raises(ValidationError):
            normalize_schedule_views("oops")

    def test_schedule_views_reject_non_object_rows(self) -> None:
        with pytest.raises(ValidationError):
            normalize_schedule_views([42])


class TestResources:
    """Test the resource registry."""

    def test_five_resources(self) -> None:
        assert [r.name for r in ALL_RESOURCES] == [
            "faculty", "courses", "rooms", "timeslots", "schedules",
        ]
        assert set(RESOURCES_BY_NAME) == {r.name for r in ALL_RESOURCES}

    def test_six_collection_keys_plus_timestamp(self) -> None:
        assert len(COLLECTION_KEYS) == 6
        assert CacheKey.LAST_UPDATED not in COLLECTION_KEYS
        assert len(list(CacheKey)) == 7

    def test_key_of_model_and_dict(self) -> None:
        assert FACULTY.key_of(Faculty(faculty_id="F1", name="A", department="D")) == "F1"
        assert TIMESLOTS.key_of({"slot_id": 4}) == "4"
