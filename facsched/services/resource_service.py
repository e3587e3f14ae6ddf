"""Data-access services: cached reads and remote-first mutations."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable

from pydantic import ValidationError

from facsched.data.local_cache import FreshnessPolicy, GlobalFreshnessClock, LocalCache
from facsched.data.models import Record, normalize_rows
from facsched.data.resources import CacheKey, Resource
from facsched.data.static_dataset import StaticDataset
from facsched.net.api_client import ApiClient, path_segment
from facsched.services.sources import (
    CacheSource,
    DataSource,
    FallbackChain,
    RemoteSource,
    Rows,
    SourceResult,
    StaticSource,
)

logger = logging.getLogger(__name__)


class ResourceService:
    """Reads and writes one resource collection.

    Reads go cache -> remote API -> stale cache: a fresh cached collection
    is served without a network call, a successful fetch overwrites the
    cache and touches the freshness clock, and a failed fetch falls back
    to whatever was cached (even if expired) before giving up with the
    remote error.

    Mutations hit the API first. The cached collection is patched only
    after the API accepted the change, never speculatively.
    """

    def __init__(
        self,
        resource: Resource,
        api: ApiClient,
        cache: LocalCache,
        freshness: FreshnessPolicy | None = None,
        dataset: StaticDataset | None = None,
        static_fallback: bool = False,
    ) -> None:
        self.resource = resource
        self.api = api
        self.cache = cache
        self.freshness = freshness or GlobalFreshnessClock(cache)
        self.dataset = dataset
        self.static_fallback = static_fallback

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self, force_refresh: bool = False) -> list[Record]:
        """Return the whole collection.

        Args:
            force_refresh: Skip the fresh-cache shortcut and go to the API.

        Raises:
            requests.RequestException: The API failed and nothing was cached.
        """
        static_load = None
        if self.static_fallback and self.dataset is not None:
            static_load = partial(self.dataset.rows, self.resource)
        result = self._read(
            key=self.resource.cache_key,
            model=self.resource.model,
            path=self.resource.path,
            normalize=partial(normalize_rows, self.resource.model),
            force_refresh=force_refresh,
            static_load=static_load,
        )
        return self._to_models(self.resource.model, result.rows)

    def find(self, key: str) -> Record | None:
        """Return the row whose primary key equals *key*, if any."""
        key = str(key)
        for row in self.get_all():
            if self.resource.key_of(row) == key:
                return row
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, entity: Record | dict[str, Any]) -> Record:
        """POST *entity* and append the stored record to the cache."""
        payload = self._payload(entity)
        try:
            body = self.api.post_json(self.resource.path, payload)
            created = self.resource.model.model_validate(body)
        except Exception:
            logger.exception(
                "Failed to create record", extra={"resource": self.resource.name}
            )
            raise

        row = created.model_dump(mode="json")
        self.cache.patch(self.resource.cache_key, lambda rows: [*self._own_rows(rows), row])
        logger.info(
            "Created record",
            extra={"resource": self.resource.name, "key": self.resource.key_of(row)},
        )
        return created

    def update(self, entity: Record | dict[str, Any], key: str | None = None) -> Record:
        """PUT *entity* and replace the cached row.

        Args:
            entity: The new version of the record.
            key: The record's current key when it is being renamed; defaults
                to *entity*'s own key.
        """
        payload = self._payload(entity)
        old_key = str(key) if key is not None else self.resource.key_of(payload)
        try:
            body = self.api.put_json(self._item_path(old_key), payload)
            updated = self.resource.model.model_validate(body)
        except Exception:
            logger.exception(
                "Failed to update record",
                extra={"resource": self.resource.name, "key": old_key},
            )
            raise

        row = updated.model_dump(mode="json")
        self.cache.patch(
            self.resource.cache_key,
            lambda rows: [
                row if self.resource.key_of(item) == old_key else item
                for item in self._own_rows(rows)
            ],
        )
        logger.info(
            "Updated record", extra={"resource": self.resource.name, "key": old_key}
        )
        return updated

    def delete(self, key: str) -> None:
        """DELETE the record and drop it from the cache."""
        key = str(key)
        try:
            self.api.delete(self._item_path(key))
        except Exception:
            logger.exception(
                "Failed to delete record",
                extra={"resource": self.resource.name, "key": key},
            )
            raise

        self.cache.patch(
            self.resource.cache_key,
            lambda rows: [
                item for item in self._own_rows(rows) if self.resource.key_of(item) != key
            ],
        )
        logger.info("Deleted record", extra={"resource": self.resource.name, "key": key})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(
        self,
        key: CacheKey,
        model: type[Record],
        path: str,
        normalize: Callable[[Any], Rows],
        force_refresh: bool,
        static_load: Callable[[], Rows] | None = None,
    ) -> SourceResult:
        """Run the cache -> remote [-> static] -> stale-cache chain for *key*."""
        cached = self._valid_rows(key, model, self.cache.get(key))

        sources: list[DataSource] = []
        if not force_refresh:
            sources.append(
                CacheSource(
                    cached,
                    usable=lambda _rows: not self.freshness.is_expired(key),
                )
            )
        sources.append(RemoteSource(self.api, path, normalize, partial(self._store, key)))
        if static_load is not None:
            sources.append(StaticSource(static_load, partial(self._store, key)))
        sources.append(CacheSource(cached, name="stale-cache"))

        result = FallbackChain(sources, label=key.value).resolve()
        logger.info(
            "Loaded collection",
            extra={"cache_key": key.value, "source": result.source, "rows": len(result.rows)},
        )
        return result

    def _valid_rows(self, key: CacheKey, model: type[Record], value: Any) -> Rows | None:
        """Return a cached *value* validated against *model*.

        None when the entry is absent or does not validate; a corrupt entry
        is logged and then behaves like a miss.
        """
        if value is None:
            return None
        try:
            return normalize_rows(model, value)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed cache entry",
                extra={"cache_key": key.value, "errors": exc.error_count()},
            )
            return None

    def _own_rows(self, value: Any) -> Rows:
        """This resource's cached rows for a mutation patch; corrupt means empty."""
        return self._valid_rows(self.resource.cache_key, self.resource.model, value) or []

    def _store(self, key: CacheKey, rows: Rows) -> Rows:
        self.cache.set(key, rows)
        self.freshness.touch(key)
        return rows

    def _item_path(self, key: str) -> str:
        return f"{self.resource.path}/{path_segment(key)}"

    def _payload(self, entity: Record | dict[str, Any]) -> dict[str, Any]:
        if isinstance(entity, dict):
            return dict(entity)
        return entity.model_dump(mode="json")

    @staticmethod
    def _to_models(model: type[Record], rows: Rows) -> list[Record]:
        return [model.model_validate(row) for row in rows]


class DepartmentResourceService(ResourceService):
    """Service for resources that belong to a department (faculty, courses)."""

    def get_by_department(self, department: str) -> list[Record]:
        """Filter :meth:`get_all` by department; no extra network call."""
        return [row for row in self.get_all() if row.department == department]
