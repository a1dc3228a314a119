"""Configuration objects and defaults for a scrape."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence

from .errors import ConfigError

DEFAULT_FILENAME = "index.html"


@dataclass(frozen=True)
class SourceRule:
    """Where a handler finds child references: CSS selector + attribute."""

    selector: str
    attr: str


@dataclass(frozen=True)
class SeedSpec:
    url: str
    filename: str | None = None


@dataclass(frozen=True)
class Subdirectory:
    """Place derived filenames with one of ``extensions`` under ``directory``."""

    directory: str
    extensions: tuple[str, ...]


DEFAULT_SOURCES: tuple[SourceRule, ...] = (
    SourceRule("img", "src"),
    SourceRule("input", "src"),
    SourceRule("object", "data"),
    SourceRule("embed", "src"),
    SourceRule("param[name=\"movie\"]", "value"),
    SourceRule("script", "src"),
    SourceRule("link[rel=\"stylesheet\"]", "href"),
    SourceRule("link[rel*=\"icon\"]", "href"),
)

RECURSIVE_SOURCE = SourceRule("a", "href")

DEFAULT_SUBDIRECTORIES: tuple[Subdirectory, ...] = (
    Subdirectory(
        "images",
        (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif", ".ico"),
    ),
    Subdirectory("js", (".js", ".mjs")),
    Subdirectory("css", (".css",)),
    Subdirectory("fonts", (".woff", ".woff2", ".ttf", ".otf", ".eot")),
)


def accept_all(url: str) -> bool:
    return True


@dataclass(frozen=True)
class ScraperConfig:
    """Everything a scrape needs; replaced by a normalized copy in prepare()."""

    urls: Any = ()
    directory: Path | None = None
    default_filename: str = DEFAULT_FILENAME
    sources: Sequence[SourceRule] = DEFAULT_SOURCES
    subdirectories: Sequence[Subdirectory] | None = DEFAULT_SUBDIRECTORIES
    recursive: bool = False
    max_depth: int | None = None
    url_filter: Callable[[str], bool] = accept_all
    request: Mapping[str, Any] = field(default_factory=dict)
    ignore_errors: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ScraperConfig:
        """Build a config from JSON-style data (camelCase or snake_case keys)."""

        aliases = {
            "defaultFilename": "default_filename",
            "maxDepth": "max_depth",
            "ignoreErrors": "ignore_errors",
        }
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in _MAPPING_FIELDS:
                raise ConfigError(f"Unknown configuration key: {key}")
            kwargs[name] = value

        if kwargs.get("directory") is not None:
            kwargs["directory"] = Path(kwargs["directory"])
        if "sources" in kwargs:
            kwargs["sources"] = normalize_sources(kwargs["sources"])
        if "subdirectories" in kwargs:
            subdirectories = normalize_subdirectories(kwargs["subdirectories"])
            kwargs["subdirectories"] = subdirectories
        return cls(**kwargs)


_MAPPING_FIELDS = {
    "urls",
    "directory",
    "default_filename",
    "sources",
    "subdirectories",
    "recursive",
    "max_depth",
    "request",
    "ignore_errors",
}


def normalize_seeds(urls: Any) -> list[SeedSpec]:
    """Turn a URL, a ``{url, filename}`` object, or a list of either into seeds."""

    if isinstance(urls, (str, Mapping, SeedSpec)):
        urls = [urls]
    if not isinstance(urls, (list, tuple)):
        raise ConfigError(f"Invalid urls value: {urls!r}")

    seeds: list[SeedSpec] = []
    for item in urls:
        if isinstance(item, SeedSpec):
            seed = item
        elif isinstance(item, str):
            seed = SeedSpec(item)
        elif isinstance(item, Mapping):
            seed = SeedSpec(str(item.get("url") or ""), item.get("filename") or None)
        else:
            raise ConfigError(f"Invalid seed: {item!r}")
        if not seed.url.strip():
            raise ConfigError(f"Seed has no url: {item!r}")
        seeds.append(seed)

    if not seeds:
        raise ConfigError("No urls to scrape")
    return seeds


def normalize_sources(sources: Iterable[Any]) -> tuple[SourceRule, ...]:
    rules: list[SourceRule] = []
    for item in sources:
        if isinstance(item, SourceRule):
            rules.append(item)
        elif isinstance(item, Mapping):
            attr = item.get("attr") or item.get("attribute")
            if not item.get("selector") or not attr:
                raise ConfigError(f"Invalid source rule: {item!r}")
            rules.append(SourceRule(str(item["selector"]), str(attr)))
        else:
            raise ConfigError(f"Invalid source rule: {item!r}")
    return tuple(rules)


def normalize_subdirectories(value: Any) -> tuple[Subdirectory, ...] | None:
    if value is None:
        return None
    if isinstance(value, (str, Mapping)) or not isinstance(value, Iterable):
        raise ConfigError(f"subdirectories must be a list, got {value!r}")

    subs: list[Subdirectory] = []
    for item in value:
        if isinstance(item, Subdirectory):
            subs.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ConfigError(f"Invalid subdirectory entry: {item!r}")
        directory = item.get("directory")
        extensions = item.get("extensions")
        if (
            not directory
            or not isinstance(directory, str)
            or isinstance(extensions, str)
            or not isinstance(extensions, Iterable)
        ):
            raise ConfigError(f"Invalid subdirectory entry: {item!r}")
        subs.append(
            Subdirectory(directory, tuple(str(ext).lower() for ext in extensions))
        )
    return tuple(subs)


def with_recursive_sources(
    sources: Iterable[SourceRule],
) -> tuple[SourceRule, ...]:
    """Sources plus the anchor rule used for recursive scraping, added once."""

    rules = tuple(sources)
    if RECURSIVE_SOURCE in rules:
        return rules
    return rules + (RECURSIVE_SOURCE,)
