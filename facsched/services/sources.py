"""Ordered data-source strategies for read paths.

A read consults its sources in order (for example fresh cache, then the
remote API, then a stale cache snapshot) and returns the first one that
yields rows. ``fetch()`` returning None means the source has nothing
usable; raising means the source failed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from facsched.net.api_client import ApiClient

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]


class DataUnavailableError(LookupError):
    """No source yielded data and none of them raised."""


@dataclass
class SourceResult:
    """Rows produced by a read, tagged with the source that produced them."""

    source: str
    rows: Rows


class DataSource(ABC):
    """One step of a fallback chain."""

    name: str = "source"

    @abstractmethod
    def fetch(self) -> Rows | None:
        """Return rows, None when nothing usable, or raise on failure."""


class CacheSource(DataSource):
    """Yield a cache snapshot taken when the read started.

    *usable* gates the snapshot (freshness, non-emptiness); without it any
    present snapshot is served, including an empty list.
    """

    def __init__(
        self,
        rows: Rows | None,
        name: str = "cache",
        usable: Callable[[Rows], bool] | None = None,
    ) -> None:
        self.rows = rows
        self.name = name
        self.usable = usable

    def fetch(self) -> Rows | None:
        if self.rows is None:
            return None
        if self.usable is not None and not self.usable(self.rows):
            return None
        return self.rows


class RemoteSource(DataSource):
    """GET *path*, normalize the payload, hand it to *store* and yield it.

    *store* receives the normalized rows and returns what the read should
    yield (usually the same rows).
    """

    name = "remote"

    def __init__(
        self,
        api: ApiClient,
        path: str,
        normalize: Callable[[Any], Rows],
        store: Callable[[Rows], Rows],
    ) -> None:
        self.api = api
        self.path = path
        self.normalize = normalize
        self.store = store

    def fetch(self) -> Rows:
        payload = self.api.get_json(self.path)
        return self.store(self.normalize(payload))


class StaticSource(DataSource):
    """Read the bundled snapshot, store all of it, yield a selection."""

    name = "static"

    def __init__(
        self,
        load: Callable[[], Rows],
        store: Callable[[Rows], Any],
        select: Callable[[Rows], Rows] | None = None,
    ) -> None:
        self.load = load
        self.store = store
        self.select = select

    def fetch(self) -> Rows:
        rows = self.load()
        self.store(rows)
        return self.select(rows) if self.select is not None else rows


class FallbackChain:
    """Consult *sources* in order until one yields rows."""

    def __init__(self, sources: list[DataSource], label: str = "") -> None:
        self.sources = sources
        self.label = label

    def resolve(self) -> SourceResult:
        """Return the first source's rows.

        Raises:
            Exception: The most recent source failure, unchanged, when no
                source yielded rows.
            DataUnavailableError: No source yielded rows and none failed.
        """
        last_error: Exception | None = None
        for source in self.sources:
            try:
                rows = source.fetch()
            except Exception as exc:
                logger.warning(
                    "Data source failed: %s",
                    exc,
                    extra={"collection": self.label, "source": source.name},
                )
                last_error = exc
                continue
            if rows is not None:
                if last_error is not None:
                    logger.info(
                        "Serving fallback data",
                        extra={"collection": self.label, "source": source.name},
                    )
                else:
                    logger.debug(
                        "Serving data",
                        extra={"collection": self.label, "source": source.name},
                    )
                return SourceResult(source.name, rows)

        if last_error is not None:
            raise last_error
        raise DataUnavailableError(f"No data available for {self.label or 'collection'}")
