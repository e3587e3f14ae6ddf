"""Construction of the data layer from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from facsched.config import DEFAULT_API_URL, DEFAULT_CACHE_DIR, DEFAULT_TTL_MINUTES, get_setting
from facsched.data.local_cache import FreshnessPolicy, GlobalFreshnessClock, LocalCache
from facsched.data.resources import COURSES, FACULTY, ROOMS, TIMESLOTS
from facsched.data.static_dataset import StaticDataset
from facsched.net.api_client import DEFAULT_USER_AGENT, ApiClient
from facsched.services.resource_service import DepartmentResourceService, ResourceService
from facsched.services.schedule_service import ScheduleService

if TYPE_CHECKING:
    from facsched.pipeline.data_init import DataInitializer

logger = logging.getLogger(__name__)


@dataclass
class DataServices:
    """One data-access service per resource family."""

    faculty: DepartmentResourceService
    courses: DepartmentResourceService
    rooms: ResourceService
    timeslots: ResourceService
    schedules: ScheduleService

    def by_name(self, name: str) -> ResourceService:
        """Return the service for a resource name ("faculty", "rooms", ...)."""
        services = {f.name: getattr(self, f.name) for f in fields(self)}
        try:
            return services[name]
        except KeyError:
            raise KeyError(f"Unknown resource: {name}") from None


def build_data_services(
    api: ApiClient,
    cache: LocalCache,
    dataset: StaticDataset | None = None,
    freshness: FreshnessPolicy | None = None,
    schedule_static_fallback: bool = False,
) -> DataServices:
    """Create all services over one shared API client, cache and clock."""
    freshness = freshness or GlobalFreshnessClock(cache)
    shared = {"freshness": freshness, "dataset": dataset}
    return DataServices(
        faculty=DepartmentResourceService(FACULTY, api, cache, **shared),
        courses=DepartmentResourceService(COURSES, api, cache, **shared),
        rooms=ResourceService(ROOMS, api, cache, **shared),
        timeslots=ResourceService(TIMESLOTS, api, cache, **shared),
        schedules=ScheduleService(
            api, cache, static_fallback=schedule_static_fallback, **shared
        ),
    )


@dataclass
class AppContext:
    """Everything a front end needs, built once per process."""

    config: dict[str, Any]
    api: ApiClient
    cache: LocalCache
    freshness: GlobalFreshnessClock
    dataset: StaticDataset
    services: DataServices
    initializer: DataInitializer

    def close(self) -> None:
        self.api.close()


def build_app_context(config: dict[str, Any]) -> AppContext:
    """Assemble API client, cache, dataset, services and initializer."""
    # Imported here: the initializer module depends on DataServices above.
    from facsched.pipeline.data_init import DataInitializer

    api = ApiClient(
        base_url=get_setting(config, "api.base_url", DEFAULT_API_URL),
        user_agent=get_setting(config, "api.user_agent", DEFAULT_USER_AGENT),
        timeout=(
            int(get_setting(config, "api.timeouts.connect", 5)),
            int(get_setting(config, "api.timeouts.read", 15)),
        ),
        max_retries=int(get_setting(config, "api.retries", 0)),
    )
    cache = LocalCache(Path(get_setting(config, "cache.dir", DEFAULT_CACHE_DIR)))
    ttl_minutes = float(get_setting(config, "cache.ttl_minutes", DEFAULT_TTL_MINUTES))
    freshness = GlobalFreshnessClock(cache, ttl_seconds=ttl_minutes * 60)

    dataset_path = get_setting(config, "fallback.dataset")
    dataset = StaticDataset(Path(dataset_path) if dataset_path else None)

    services = build_data_services(
        api,
        cache,
        dataset=dataset,
        freshness=freshness,
        schedule_static_fallback=bool(get_setting(config, "fallback.schedule_reads", False)),
    )
    initializer = DataInitializer(services, api, cache, dataset, freshness=freshness)
    logger.debug(
        "Built data layer",
        extra={"api": api.base_url, "cache_dir": str(cache.cache_dir), "dataset": str(dataset.path)},
    )
    return AppContext(
        config=config,
        api=api,
        cache=cache,
        freshness=freshness,
        dataset=dataset,
        services=services,
        initializer=initializer,
    )
