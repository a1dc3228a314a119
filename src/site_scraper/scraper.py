"""Crawl orchestration: seeds in, local files plus a result tree out."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import NoReturn, Sequence
from urllib.parse import urldefrag

from .config import (
    ScraperConfig,
    normalize_seeds,
    normalize_sources,
    with_recursive_sources,
)
from .content import ResourceType, classify
from .errors import ConfigError, ScraperError
from .handlers import HANDLERS, BoundHandler, bind_handlers, noop
from .http_client import FetchResult, HttpClient
from .output import ResultNode, create_output_object
from .resource import Resource
from .storage import OutputDirectory
from .urls import get_filename_from_url, get_unix_path, normalize_url

logger = logging.getLogger("site_scraper.scraper")

_HTML_SUFFIXES = (".html", ".htm", ".xhtml")


class ScraperState(str, Enum):
    UNINITIALIZED = "uninitialized"
    VALIDATED = "validated"
    PREPARED = "prepared"
    LOADING = "loading"
    DONE = "done"
    ERRORED = "errored"


class Scraper:
    """Downloads seed URLs and everything they reference into one directory.

    One instance runs one crawl. ``loaded_resources`` maps each normalized
    URL to the single Resource fetched for it; it only grows, and it is what
    error_cleanup() consults to decide whether output was produced.
    """

    def __init__(
        self,
        config: ScraperConfig,
        *,
        http: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.http = http or HttpClient()
        self.state = ScraperState.UNINITIALIZED
        self.output: OutputDirectory | None = None
        self.original_resources: list[Resource] = []
        self.loaded_resources: dict[str, Resource] = {}

        self._pending: dict[str, asyncio.Task[Resource]] = {}
        self._failed: dict[str, Exception] = {}
        self._reserved_filenames: set[str] = set()

    async def validate(self) -> None:
        directory = self.config.directory
        if not directory:
            raise ConfigError("Output directory is required")
        if await asyncio.to_thread(OutputDirectory(Path(directory)).exists):
            raise ConfigError(f"Directory {directory} already exists")
        self.state = ScraperState.VALIDATED

    async def prepare(self) -> None:
        directory = self.config.directory
        if not directory:
            raise ConfigError("Output directory is required")

        seeds = normalize_seeds(self.config.urls)
        sources = normalize_sources(self.config.sources)
        if self.config.recursive:
            sources = with_recursive_sources(sources)

        output = OutputDirectory(Path(directory))
        try:
            await asyncio.to_thread(output.create)
        except OSError as e:
            raise ConfigError(f"Cannot create directory {directory}: {e}") from e

        self.output = output
        self.config = replace(
            self.config,
            directory=output.root,
            urls=seeds,
            sources=sources,
        )
        self.original_resources = []
        for seed in seeds:
            resource = Resource(seed.url, seed.filename or self.config.default_filename)
            resource.filename = self._reserve_filename(resource)
            self.original_resources.append(resource)
        self.state = ScraperState.PREPARED

    async def make_request(self, url: str) -> FetchResult:
        options = dict(self.config.request)
        return await asyncio.to_thread(self.http.get, url, **options)

    def get_loaded_resource(self, resource: Resource) -> Resource | None:
        return self.loaded_resources.get(normalize_url(resource.url))

    def add_loaded_resource(self, resource: Resource) -> None:
        self.loaded_resources[normalize_url(resource.url)] = resource

    def get_resource_handler(self, resource: Resource) -> BoundHandler:
        max_depth = self.config.max_depth
        if max_depth is not None and resource.depth > max_depth:
            return noop
        handlers = HANDLERS.get(resource.type) if resource.type else None
        if not handlers:
            return noop
        return bind_handlers(self, handlers)

    async def load_resource(self, resource: Resource) -> Resource | None:
        """Fetch, save and expand ``resource``; at most one fetch per URL.

        Returns None when the URL filter rejects the resource, and the
        already-cached instance when the URL was loaded before.
        """

        if not self.config.url_filter(resource.url):
            logger.debug("Filtered out %s", resource.url)
            return None

        loaded = self.get_loaded_resource(resource)
        if loaded is not None:
            return loaded

        key = normalize_url(resource.url)
        failed = self._failed.get(key)
        if failed is not None:
            logger.debug("Not refetching %s, it failed earlier", resource.url)
            raise failed

        pending = self._pending.get(key)
        if pending is not None:
            return await pending

        task = asyncio.ensure_future(self._fetch(resource))
        self._pending[key] = task
        try:
            await task
        except Exception as e:
            self._failed[key] = e
            raise
        finally:
            self._pending.pop(key, None)

        handler = self.get_resource_handler(resource)
        await handler(resource)

        assert self.output is not None
        await asyncio.to_thread(
            self.output.write_file, resource.filename, resource.content or b""
        )
        logger.info("Saved %s to %s", resource.url, resource.filename)
        return resource

    async def _fetch(self, resource: Resource) -> Resource:
        referrer = resource.parent.url if resource.parent else "seed"
        logger.debug(
            "Fetching %s (depth %d, from %s)", resource.url, resource.depth, referrer
        )
        result = await self.make_request(resource.url)
        if not result.ok:
            logger.warning("HTTP %s for %s", result.status_code, resource.url)

        resource.content = result.body
        resource.status_code = result.status_code
        resource.content_type = result.content_type
        resource.type = classify(
            resource.url, content_type=result.content_type, body=result.body
        )
        if not resource.filename:
            resource.filename = self._reserve_filename(resource)
        self.add_loaded_resource(resource)
        return resource

    def _reserve_filename(self, resource: Resource) -> str:
        filename = resource.filename
        if not filename:
            filename = get_filename_from_url(resource.url)
            if not filename:
                filename = self.config.default_filename
            elif resource.type is ResourceType.HTML:
                if not filename.lower().endswith(_HTML_SUFFIXES):
                    filename += ".html"
            filename = self._with_subdirectory(filename)
        filename = get_unix_path(filename)

        stem, ext = posixpath.splitext(filename)
        candidate = filename
        n = 1
        while candidate.lower() in self._reserved_filenames:
            candidate = f"{stem}_{n}{ext}"
            n += 1
        self._reserved_filenames.add(candidate.lower())
        return candidate

    def _with_subdirectory(self, filename: str) -> str:
        ext = posixpath.splitext(filename)[1].lower()
        for sub in self.config.subdirectories or ():
            if ext in sub.extensions:
                return posixpath.join(sub.directory, filename)
        return filename

    async def load_children(
        self, parent: Resource, urls: Sequence[str]
    ) -> list[Resource | None]:
        """Load ``urls`` as children of ``parent`` concurrently.

        Results line up with ``urls``; filtered or failed entries are None.
        Every child is attached to ``parent.children`` once, in ``urls`` order.
        """

        children = [parent.create_child(urldefrag(url)[0]) for url in urls]
        results = await asyncio.gather(
            *(self.load_resource(child) for child in children),
            return_exceptions=True,
        )

        loaded: list[Resource | None] = []
        errors: list[Exception] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Failed to load %s from %s: %s", url, parent.url, result)
                errors.append(result)
                loaded.append(None)
                continue
            if result is not None and not any(c is result for c in parent.children):
                parent.children.append(result)
            loaded.append(result)

        if errors and not self.config.ignore_errors:
            raise errors[0]
        return loaded

    async def load(self) -> list[ResultNode | None]:
        """Load every seed concurrently; results keep the seed order.

        A seed that fails does not stop its siblings. Unless ignore_errors is
        set, the first failure is raised once all seeds have settled;
        otherwise a failed or filtered seed yields None.
        """

        if self.state is not ScraperState.PREPARED:
            raise ScraperError(
                f"load() needs a prepared scraper, state is {self.state.value}"
            )
        self.state = ScraperState.LOADING

        results = await asyncio.gather(
            *(self.load_resource(r) for r in self.original_resources),
            return_exceptions=True,
        )

        output: list[ResultNode | None] = []
        first_error: Exception | None = None
        for resource, result in zip(self.original_resources, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Failed to load %s: %s", resource.url, result)
                if first_error is None:
                    first_error = result
                output.append(None)
                continue
            output.append(None if result is None else create_output_object(result))

        if first_error is not None and not self.config.ignore_errors:
            self.state = ScraperState.ERRORED
            raise first_error

        self.state = ScraperState.DONE
        return output

    async def error_cleanup(self, error: BaseException | None = None) -> NoReturn:
        """Remove partial output if anything was loaded, then re-raise."""

        self.state = ScraperState.ERRORED
        if self.loaded_resources and self.output is not None:
            try:
                await asyncio.to_thread(self.output.remove)
                logger.info("Removed %s after failure", self.output.root)
            except OSError as e:
                logger.warning("Could not remove %s: %s", self.output.root, e)

        if error is None:
            error = ScraperError("scrape failed")
        raise error

    async def scrape(self) -> list[ResultNode | None]:
        try:
            await self.validate()
            await self.prepare()
            return await self.load()
        except Exception as e:
            await self.error_cleanup(e)


async def scrape(
    config: ScraperConfig,
    *,
    http: HttpClient | None = None,
) -> list[ResultNode | None]:
    owns_http = http is None
    scraper = Scraper(config, http=http)
    try:
        return await scraper.scrape()
    finally:
        if owns_http:
            scraper.http.close()


def run(
    config: ScraperConfig,
    *,
    http: HttpClient | None = None,
) -> list[ResultNode | None]:
    return asyncio.run(scrape(config, http=http))
