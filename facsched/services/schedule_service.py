"""Course schedules: raw rows plus the denormalized schedule view."""

from __future__ import annotations

import logging

from facsched.data.local_cache import FreshnessPolicy, LocalCache
from facsched.data.models import ScheduleView, normalize_schedule_views
from facsched.data.resources import (
    SCHEDULE_VIEW_BY_DEPARTMENT_PATH,
    SCHEDULE_VIEW_PATH,
    SCHEDULES,
    CacheKey,
)
from facsched.data.static_dataset import StaticDataset
from facsched.net.api_client import ApiClient, path_segment
from facsched.services.resource_service import ResourceService
from facsched.services.sources import (
    CacheSource,
    DataSource,
    FallbackChain,
    RemoteSource,
    Rows,
    StaticSource,
)

logger = logging.getLogger(__name__)


class ScheduleService(ResourceService):
    """CourseSchedule access with two read shapes.

    ``get_all_schedules`` returns raw rows; ``get_schedule_view`` returns
    rows joined with faculty, course, room and time slot, cached under
    their own key.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: LocalCache,
        freshness: FreshnessPolicy | None = None,
        dataset: StaticDataset | None = None,
        static_fallback: bool = False,
    ) -> None:
        super().__init__(
            SCHEDULES,
            api,
            cache,
            freshness=freshness,
            dataset=dataset,
            static_fallback=static_fallback,
        )

    def get_all_schedules(self, force_refresh: bool = False) -> list:
        return self.get_all(force_refresh)

    def get_schedule_view(self, force_refresh: bool = False) -> list[ScheduleView]:
        """Return all ScheduleView rows, same cache/fallback rules as
        :meth:`get_all`."""
        static_load = None
        if self.static_fallback and self.dataset is not None:
            static_load = self.dataset.schedule_views
        result = self._read(
            key=CacheKey.SCHEDULE_VIEWS,
            model=ScheduleView,
            path=SCHEDULE_VIEW_PATH,
            normalize=normalize_schedule_views,
            force_refresh=force_refresh,
            static_load=static_load,
        )
        return self._to_models(ScheduleView, result.rows)

    def get_schedule_view_by_department(self, department: str) -> list[ScheduleView]:
        """Return the ScheduleView rows of one department.

        Order of sources:

        1. The API's department endpoint. The fetched rows replace every
           cached row of *department* in the full view collection; other
           departments' rows stay as they are.
        2. The cached view collection filtered by *department*, when that
           leaves at least one row.
        3. The static dataset. The complete joined snapshot (not only this
           department) is written to the cache.

        Raises:
            requests.RequestException: The API failed, the cache had no rows
                for *department* and no static dataset is configured.
        """
        def in_department(rows: Rows) -> Rows:
            return [row for row in rows if row.get("department") == department]

        def merge(rows: Rows) -> Rows:
            fetched = in_department(rows)
            self.cache.patch(
                CacheKey.SCHEDULE_VIEWS,
                lambda cached: [
                    *(v for v in self._cached_views(cached) if v["department"] != department),
                    *fetched,
                ],
            )
            self.freshness.touch(CacheKey.SCHEDULE_VIEWS)
            return fetched

        cached = self._valid_rows(
            CacheKey.SCHEDULE_VIEWS, ScheduleView, self.cache.get(CacheKey.SCHEDULE_VIEWS)
        )
        cached_rows = in_department(cached) if cached is not None else None

        path = SCHEDULE_VIEW_BY_DEPARTMENT_PATH.format(department=path_segment(department))
        sources: list[DataSource] = [
            RemoteSource(self.api, path, normalize_schedule_views, merge),
            CacheSource(cached_rows, usable=bool),
        ]
        if self.dataset is not None:
            sources.append(
                StaticSource(
                    self.dataset.schedule_views,
                    store=self._store_views,
                    select=in_department,
                )
            )

        result = FallbackChain(
            sources, label=f"{CacheKey.SCHEDULE_VIEWS.value}:{department}"
        ).resolve()
        logger.info(
            "Loaded department schedule",
            extra={"department": department, "source": result.source, "rows": len(result.rows)},
        )
        return self._to_models(ScheduleView, result.rows)

    def _store_views(self, rows: Rows) -> Rows:
        return self._store(CacheKey.SCHEDULE_VIEWS, rows)

    def _cached_views(self, value) -> Rows:
        return self._valid_rows(CacheKey.SCHEDULE_VIEWS, ScheduleView, value) or []
