"""HTTP client for the scheduling REST API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger("facsched")

DEFAULT_USER_AGENT = "facsched/0.1.0"


def path_segment(value: str) -> str:
    """Quote *value* for use as a single URL path segment."""
    return quote(str(value), safe="")


class ApiClient:
    """Thin wrapper around :class:`requests.Session` bound to one API root.

    All methods take paths relative to *base_url* (``"/faculty"``) and
    raise :class:`requests.HTTPError` on 4xx/5xx responses. Connection
    problems surface as other :class:`requests.RequestException`
    subclasses; callers decide whether to fall back.

    Usage::

        with ApiClient("http://localhost:3000/api") as api:
            rows = api.get_json("/faculty")
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: tuple[int, int] = (5, 15),
        max_retries: int = 0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._session = requests.Session()
        self._session.headers["User-Agent"] = user_agent
        self._session.headers["Content-Type"] = "application/json"
        self._session.headers["Accept"] = "application/json"
        if headers:
            self._session.headers.update(headers)

        # Zero by default: failures fall through to cache/static data.
        retry = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def url_for(self, path: str) -> str:
        """Return the absolute URL for an API-relative *path*."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, **kwargs) -> Any:
        """GET *path* and return the decoded JSON body."""
        return self._request("GET", path, **kwargs).json()

    def post_json(self, path: str, payload: Any, **kwargs) -> Any:
        """POST *payload* as JSON and return the decoded response body."""
        return self._request("POST", path, json=payload, **kwargs).json()

    def put_json(self, path: str, payload: Any, **kwargs) -> Any:
        """PUT *payload* as JSON and return the decoded response body."""
        return self._request("PUT", path, json=payload, **kwargs).json()

    def delete(self, path: str, **kwargs) -> None:
        """DELETE *path*; the response body is ignored."""
        self._request("DELETE", path, **kwargs)

    def ping(self) -> Any:
        """Liveness probe against ``/test``.

        Raises the underlying request error when the API is unreachable.
        """
        return self.get_json("/test")

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self.url_for(path)
        kwargs.setdefault("timeout", self.timeout)
        logger.debug("API request", extra={"method": method, "url": url})
        response = self._session.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    # ------------------------------------------------------------------
    # Context-manager protocol
    # ------------------------------------------------------------------

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
