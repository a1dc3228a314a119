from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from .config import ScraperConfig, SourceRule
from .errors import ConfigError, ScraperError
from .http_client import HttpClient, load_json
from .scraper import run
from .urls import UrlScope

logger = logging.getLogger("site_scraper.cli")


def _source_rule(value: str) -> SourceRule:
    selector, sep, attr = value.rpartition(":")
    if not sep or not selector or not attr:
        raise argparse.ArgumentTypeError(
            f"expected SELECTOR:ATTRIBUTE, got {value!r}"
        )
    return SourceRule(selector, attr)


def _header(value: str) -> tuple[str, str]:
    name, sep, val = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {value!r}")
    return name.strip(), val.strip()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="site-scraper",
        description="Download pages and the assets they reference for offline use",
    )
    p.add_argument("urls", nargs="*", help="Seed URLs")
    p.add_argument("-d", "--directory", type=Path, help="Output directory (new)")
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with scraper options; command-line flags win",
    )
    p.add_argument("--default-filename", default=None)
    p.add_argument(
        "--source",
        action="append",
        type=_source_rule,
        default=None,
        help="Repeatable; e.g. --source img:src (replaces the default rules)",
    )
    p.add_argument("--recursive", action="store_true", help="Follow <a href> links")
    p.add_argument("--max-depth", type=int, default=None)
    p.add_argument(
        "--allow-host-suffix",
        action="append",
        default=None,
        help="Repeatable; only fetch URLs on these hosts",
    )
    p.add_argument(
        "--header",
        action="append",
        type=_header,
        default=None,
        help="Repeatable; e.g. --header 'User-Agent: site-scraper'",
    )
    p.add_argument("--timeout", type=float, default=45)
    p.add_argument("--max-retries", type=int, default=2)
    p.add_argument("--flat", action="store_true", help="No asset subdirectories")
    p.add_argument(
        "--ignore-errors",
        action="store_true",
        help="Keep going when a resource cannot be fetched",
    )
    p.add_argument("-v", "--verbose", action="store_true")
    p.add_argument("-q", "--quiet", action="store_true")
    return p


def build_config(args: argparse.Namespace) -> ScraperConfig:
    data: dict[str, Any] = {}
    if args.config is not None:
        loaded = load_json(args.config)
        if loaded is None:
            raise ConfigError(f"Cannot read config file {args.config}")
        data.update(loaded)

    if args.urls:
        data["urls"] = list(args.urls)
    if args.directory is not None:
        data["directory"] = args.directory
    if args.default_filename:
        data["default_filename"] = args.default_filename
    if args.recursive:
        data["recursive"] = True
    if args.max_depth is not None:
        data["max_depth"] = args.max_depth
    if args.ignore_errors:
        data["ignore_errors"] = True
    if args.flat:
        data["subdirectories"] = None
    if args.header:
        request = dict(data.get("request") or {})
        headers = dict(request.get("headers") or {})
        headers.update(dict(args.header))
        request["headers"] = headers
        data["request"] = request

    config = ScraperConfig.from_mapping(data)
    if args.source:
        config = replace(config, sources=tuple(args.source))
    if args.allow_host_suffix:
        scope = UrlScope(tuple(args.allow_host_suffix))
        config = replace(config, url_filter=scope.is_allowed)
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    if args.quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        with HttpClient(
            timeout_s=args.timeout, max_retries=args.max_retries
        ) as http:
            results = run(config, http=http)
    except ScraperError as e:
        print(str(e), file=sys.stderr)
        return 2

    payload = [node.to_dict() if node is not None else None for node in results]
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    logger.info("Scraped %d seed(s) into %s", len(payload), config.directory)
    return 0


if __name__ == "__main__":
    sys.exit(main())
