from pathlib import Path

import pytest

from site_scraper.config import (
    DEFAULT_SOURCES,
    RECURSIVE_SOURCE,
    ScraperConfig,
    SeedSpec,
    SourceRule,
    Subdirectory,
    normalize_seeds,
    normalize_sources,
    normalize_subdirectories,
    with_recursive_sources,
)
from site_scraper.errors import ConfigError


def test_normalize_seeds_wraps_scalars():
    assert normalize_seeds("http://a.com") == [SeedSpec("http://a.com")]
    assert normalize_seeds({"url": "http://a.com", "filename": "a.html"}) == [
        SeedSpec("http://a.com", "a.html")
    ]


def test_normalize_seeds_mixed_list_keeps_order():
    seeds = normalize_seeds(
        ["http://first.com", {"url": "http://second.com"}, SeedSpec("http://third.com")]
    )
    assert [s.url for s in seeds] == [
        "http://first.com",
        "http://second.com",
        "http://third.com",
    ]
    assert all(s.filename is None for s in seeds)


@pytest.mark.parametrize("bad", [[], 42, [{"filename": "x.html"}], [None], [""]])
def test_normalize_seeds_rejects_invalid_input(bad):
    with pytest.raises(ConfigError):
        normalize_seeds(bad)


def test_with_recursive_sources_adds_anchor_rule_once():
    rules = with_recursive_sources([SourceRule("img", "src")])
    assert rules == (SourceRule("img", "src"), RECURSIVE_SOURCE)
    assert with_recursive_sources(rules) == rules
    assert with_recursive_sources([SourceRule("a", "href")]) == (SourceRule("a", "href"),)


def test_normalize_sources_accepts_mappings():
    rules = normalize_sources(
        [{"selector": "img", "attr": "src"}, {"selector": "a", "attribute": "href"}]
    )
    assert rules == (SourceRule("img", "src"), SourceRule("a", "href"))
    with pytest.raises(ConfigError):
        normalize_sources([{"selector": "img"}])


def test_from_mapping_accepts_camel_case():
    config = ScraperConfig.from_mapping(
        {
            "urls": ["http://a.com"],
            "directory": "out",
            "defaultFilename": "main.html",
            "maxDepth": 2,
            "recursive": True,
            "sources": [{"selector": "img", "attr": "src"}],
            "subdirectories": [{"directory": "img", "extensions": [".PNG"]}],
        }
    )
    assert config.directory == Path("out")
    assert config.default_filename == "main.html"
    assert config.max_depth == 2
    assert config.recursive is True
    assert config.sources == (SourceRule("img", "src"),)
    assert config.subdirectories == (Subdirectory("img", (".png",)),)


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ConfigError):
        ScraperConfig.from_mapping({"urlFilter": "example.com"})


def test_defaults():
    config = ScraperConfig()
    assert config.default_filename == "index.html"
    assert tuple(config.sources) == DEFAULT_SOURCES
    assert config.max_depth is None
    assert config.url_filter("http://anything.example") is True


@pytest.mark.parametrize(
    "value",
    [
        "images",
        {"directory": "img", "extensions": [".png"]},
        [{"extensions": [".png"]}],
        [{"directory": "img"}],
        [{"directory": "img", "extensions": ".png"}],
        ["img"],
    ],
)
def test_from_mapping_rejects_malformed_subdirectories(value):
    with pytest.raises(ConfigError):
        ScraperConfig.from_mapping({"subdirectories": value})


def test_normalize_subdirectories_keeps_none_for_flat_layout():
    assert normalize_subdirectories(None) is None
    sub = Subdirectory("js", (".js",))
    assert normalize_subdirectories([sub]) == (sub,)
