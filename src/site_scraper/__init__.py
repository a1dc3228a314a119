"""site-scraper core library.

Downloads seed pages and, recursively, the stylesheets, scripts, images and
links they reference into a fresh directory, rewriting references so the copy
works offline.
"""

from __future__ import annotations

from .config import ScraperConfig, SeedSpec, SourceRule, Subdirectory
from .content import ResourceType
from .errors import ConfigError, ScraperError, TransportError
from .output import ResultNode, create_output_object
from .resource import Resource
from .scraper import Scraper, ScraperState, run, scrape

__all__ = [
    "ConfigError",
    "Resource",
    "ResourceType",
    "ResultNode",
    "Scraper",
    "ScraperConfig",
    "ScraperError",
    "ScraperState",
    "SeedSpec",
    "SourceRule",
    "Subdirectory",
    "TransportError",
    "__version__",
    "create_output_object",
    "run",
    "scrape",
]

__version__ = "0.1.0"
