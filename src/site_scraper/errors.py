from __future__ import annotations


class ScraperError(Exception):
    """Base class for errors raised by site_scraper."""


class ConfigError(ScraperError):
    """Bad or missing configuration, or an unusable output directory."""


class TransportError(ScraperError):
    """The transport could not produce a response (DNS, connect, timeout)."""

    def __init__(self, url: str, cause: Exception | None = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")
