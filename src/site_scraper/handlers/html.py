from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..config import SourceRule
from ..content import charset_from_content_type
from ..resource import Resource
from ..urls import get_local_reference, get_url

if TYPE_CHECKING:
    from ..scraper import Scraper

logger = logging.getLogger("site_scraper.handlers.html")

_SKIP_PREFIXES = ("#", "mailto:", "javascript:", "tel:", "data:", "about:")
_ASCII_NAMES = {"ascii", "us-ascii"}


def _attr_text(val: object) -> str:
    if isinstance(val, list):
        if not val:
            return ""
        return str(val[0])
    return str(val or "")


def parse_html(resource: Resource) -> BeautifulSoup:
    """Parse the raw bytes so bs4 can honour the declared or sniffed charset."""
    return BeautifulSoup(
        resource.content or b"",
        "html.parser",
        from_encoding=charset_from_content_type(resource.content_type),
    )


def encode_html(soup: BeautifulSoup) -> bytes:
    encoding = soup.original_encoding or "utf-8"
    if encoding.lower() in _ASCII_NAMES:
        encoding = "utf-8"
    return soup.encode(encoding)


def effective_base_url(soup: BeautifulSoup, page_url: str) -> str:
    base = soup.find("base")
    if isinstance(base, Tag):
        base_href = _attr_text(base.get("href")).strip()
        if base_href:
            return get_url(page_url, base_href)
    return page_url


def find_references(
    soup: BeautifulSoup, sources: Sequence[SourceRule]
) -> list[tuple[Tag, str, str]]:
    """(tag, attribute, reference) for every source match, in document order."""

    positions = {id(tag): i for i, tag in enumerate(soup.find_all(True))}
    found: list[tuple[int, int, Tag, str, str]] = []
    for rule_index, rule in enumerate(sources):
        for tag in soup.select(rule.selector):
            ref = _attr_text(tag.get(rule.attr)).strip()
            if not ref or ref.lower().startswith(_SKIP_PREFIXES):
                continue
            found.append((positions.get(id(tag), 0), rule_index, tag, rule.attr, ref))

    found.sort(key=lambda item: (item[0], item[1]))
    return [(tag, attr, ref) for _, _, tag, attr, ref in found]


async def load_html(scraper: Scraper, resource: Resource) -> None:
    soup = parse_html(resource)
    base_url = effective_base_url(soup, resource.url)

    rewritten = 0
    refs = find_references(soup, scraper.config.sources)
    if refs:
        urls = [get_url(base_url, ref) for _, _, ref in refs]
        children = await scraper.load_children(resource, urls)
        for (tag, attr, _), url, child in zip(refs, urls, children):
            if child is None:
                continue
            tag[attr] = get_local_reference(resource.filename, child.filename, url)
            rewritten += 1

    # Local relative paths must not resolve against the remote base. Children
    # localized by the stylesheet pass count too.
    bases = soup.find_all("base") if resource.children else []
    if not rewritten and not bases:
        return
    for base in bases:
        base.decompose()

    logger.debug("Localized %d references in %s", rewritten, resource.url)
    resource.content = encode_html(soup)
