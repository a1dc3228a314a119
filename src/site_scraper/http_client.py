from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import requests
from requests import exceptions as req_exc

from .errors import TransportError

logger = logging.getLogger("site_scraper.http")

TRANSIENT_HTTP_STATUSES = {429, 500, 502, 503, 504}
DEFAULT_HEADERS = {"User-Agent": "site-scraper"}


def _retry_after_seconds(headers: Mapping[str, str]) -> float | None:
    value = headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form; fall back to backoff.
        return None


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]
    body: bytes
    attempts: int = 1

    @classmethod
    def from_response(
        cls, url: str, resp: requests.Response, *, attempts: int
    ) -> FetchResult:
        return cls(
            url=url,
            final_url=str(resp.url or url),
            status_code=int(resp.status_code),
            headers={str(k): str(v) for k, v in resp.headers.items()},
            body=resp.content or b"",
            attempts=attempts,
        )

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


class HttpClient:
    """Blocking GET transport used by the scraper (from a worker thread).

    Raises TransportError only when no response could be obtained; any HTTP
    status, including 4xx/5xx, comes back as a FetchResult.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_s: float = 45,
        max_retries: int = 2,
        backoff_base_s: float = 1.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._backoff_base_s = backoff_base_s
        self._headers = dict(DEFAULT_HEADERS if headers is None else headers)

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _delay_s(
        self, attempt: int, headers: Mapping[str, str] | None = None
    ) -> float:
        if headers is not None:
            retry_after = _retry_after_seconds(headers)
            if retry_after is not None:
                return retry_after
        return self._backoff_base_s * (2**attempt)

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        **options: Any,
    ) -> FetchResult:
        """GET ``url``; extra ``options`` go straight to ``Session.get``."""

        merged = {**self._headers, **(headers or {})}
        options.setdefault("timeout", self._timeout_s)
        attempts = self._max_retries + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                resp = self._session.get(url, headers=merged, **options)
            except req_exc.RequestException as e:
                last_error = e
                if attempt + 1 < attempts:
                    wait_s = self._delay_s(attempt)
                    logger.debug("%s: %s, retrying in %.1fs", url, e, wait_s)
                    time.sleep(wait_s)
                continue

            if resp.status_code in TRANSIENT_HTTP_STATUSES and attempt + 1 < attempts:
                wait_s = self._delay_s(attempt, resp.headers)
                logger.debug(
                    "%s: HTTP %s, retrying in %.1fs", url, resp.status_code, wait_s
                )
                time.sleep(wait_s)
                continue

            return FetchResult.from_response(url, resp, attempts=attempt + 1)

        raise TransportError(url, last_error)

    def close(self) -> None:
        self._session.close()


def load_json(path: Path) -> dict | None:
    """Read a JSON object from ``path``; None when missing or unparsable."""

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None
