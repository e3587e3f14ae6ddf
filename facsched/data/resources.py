"""Resource families exposed by the scheduling API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from facsched.data.models import (
    Course,
    CourseSchedule,
    Faculty,
    Record,
    Room,
    TimeSlot,
)


class CacheKey(str, Enum):
    """Fixed keys of the local cache."""

    FACULTY = "faculty_data"
    COURSES = "courses_data"
    ROOMS = "rooms_data"
    TIMESLOTS = "timeslots_data"
    SCHEDULES = "schedules_data"
    SCHEDULE_VIEWS = "schedule_views_data"
    LAST_UPDATED = "cache_last_updated"


# Every key holding a row collection (all but the timestamp)
COLLECTION_KEYS: tuple[CacheKey, ...] = tuple(
    key for key in CacheKey if key is not CacheKey.LAST_UPDATED
)


@dataclass(frozen=True)
class Resource:
    """Binds a resource family to its model, REST path, cache key and
    static-dataset table.

    Attributes:
        name: Short name used on the command line ("faculty", "rooms").
        model: Row model.
        key_field: Primary-key field of *model*.
        path: Collection path relative to the API root.
        cache_key: Local cache entry holding the collection.
        table: Top-level array in the static dataset.
    """

    name: str
    model: type[Record]
    key_field: str
    path: str
    cache_key: CacheKey
    table: str

    def key_of(self, row: Record | dict) -> str:
        """Return the primary key of *row* as a string."""
        if isinstance(row, dict):
            value = row.get(self.key_field)
        else:
            value = getattr(row, self.key_field)
        return str(value)


FACULTY = Resource("faculty", Faculty, "faculty_id", "/faculty", CacheKey.FACULTY, "Faculty")
COURSES = Resource("courses", Course, "course_code", "/courses", CacheKey.COURSES, "Courses")
ROOMS = Resource("rooms", Room, "room_number", "/rooms", CacheKey.ROOMS, "Rooms")
TIMESLOTS = Resource("timeslots", TimeSlot, "slot_id", "/timeslots", CacheKey.TIMESLOTS, "TimeSlots")
SCHEDULES = Resource(
    "schedules", CourseSchedule, "schedule_id", "/schedules", CacheKey.SCHEDULES, "CourseSchedule"
)

ALL_RESOURCES: tuple[Resource, ...] = (FACULTY, COURSES, ROOMS, TIMESLOTS, SCHEDULES)
RESOURCES_BY_NAME: dict[str, Resource] = {r.name: r for r in ALL_RESOURCES}

SCHEDULE_VIEW_PATH = "/schedules/view"
SCHEDULE_VIEW_BY_DEPARTMENT_PATH = "/schedules/view/department/{department}"
