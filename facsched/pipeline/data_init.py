"""Application data initialization -- reloads every collection at once."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Any, Callable

import requests

from facsched.data.local_cache import FreshnessPolicy, GlobalFreshnessClock, LocalCache
from facsched.data.resources import CacheKey
from facsched.data.static_dataset import StaticDataset
from facsched.net.api_client import ApiClient
from facsched.services.registry import DataServices

logger = logging.getLogger("facsched")


class InitOutcome(str, Enum):
    """Where the application data came from."""

    CACHED = "cached"
    REMOTE = "remote"
    STATIC = "static"


class DataInitializer:
    """Load all collections on startup, after login and on demand.

    When the API answers the liveness probe, every collection is
    re-fetched concurrently (one thread per collection). When it does not,
    the static dataset is copied into the cache in a single pass.
    """

    def __init__(
        self,
        services: DataServices,
        api: ApiClient,
        cache: LocalCache,
        dataset: StaticDataset,
        freshness: FreshnessPolicy | None = None,
    ) -> None:
        self.services = services
        self.api = api
        self.cache = cache
        self.dataset = dataset
        self.freshness = freshness or GlobalFreshnessClock(cache)

    def initialize_app_data(self) -> InitOutcome:
        """Reload everything unless the cache is still fresh.

        Safe to call on every start; a second call within the TTL performs
        no network requests.
        """
        if not self.freshness.is_expired(CacheKey.LAST_UPDATED):
            logger.info("Using cached data, cache is still valid")
            return InitOutcome.CACHED

        logger.info("Cache expired or not found, reloading application data")
        return self._reload()

    def refresh_all_data(self) -> InitOutcome:
        """Reload everything regardless of cache freshness."""
        logger.info("Force refreshing all application data")
        return self._reload()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reload(self) -> InitOutcome:
        try:
            self.api.ping()
        except requests.RequestException as exc:
            logger.warning(
                "API unreachable, loading static dataset",
                extra={"error": str(exc)},
            )
            self.dataset.load_into(self.cache, self.freshness)
            logger.info("Application data initialized from static dataset")
            return InitOutcome.STATIC

        self._fetch_all()
        logger.info("Application data initialized from API")
        return InitOutcome.REMOTE

    def _loaders(self) -> dict[str, Callable[[], Any]]:
        s = self.services
        return {
            "faculty": lambda: s.faculty.get_all(force_refresh=True),
            "courses": lambda: s.courses.get_all(force_refresh=True),
            "rooms": lambda: s.rooms.get_all(force_refresh=True),
            "timeslots": lambda: s.timeslots.get_all(force_refresh=True),
            "schedule_views": lambda: s.schedules.get_schedule_view(force_refresh=True),
        }

    def _fetch_all(self) -> None:
        """Run every loader concurrently, wait for all, then re-raise the
        first failure."""
        loaders = self._loaders()
        errors: list[tuple[str, BaseException]] = []

        with ThreadPoolExecutor(max_workers=len(loaders)) as executor:
            futures = {executor.submit(fn): name for name, fn in loaders.items()}
            for future in as_completed(futures):
                name = futures[future]
                exc = future.exception()
                if exc is not None:
                    logger.error(
                        "Collection reload failed",
                        extra={"collection": name, "error": str(exc)},
                    )
                    errors.append((name, exc))
                else:
                    logger.debug(
                        "Collection reloaded",
                        extra={"collection": name, "rows": len(future.result())},
                    )

        if errors:
            raise errors[0][1]
