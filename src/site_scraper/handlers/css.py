"""Stylesheet reference discovery and localization.

Also run on HTML resources, where only ``<style>`` blocks and ``style``
attributes are scanned; scripts and text are left alone.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..content import ResourceType, css_encoding
from ..resource import Resource
from ..urls import get_local_reference, get_url
from .html import effective_base_url, encode_html, parse_html

if TYPE_CHECKING:
    from ..scraper import Scraper

logger = logging.getLogger("site_scraper.handlers.css")

CSS_REFERENCE_RE = re.compile(
    r"""url\(\s*(?P<q1>['"]?)(?P<url>[^'"()\s]+)(?P=q1)\s*\)"""
    r"""|@import\s+(?P<q2>['"])(?P<imp>[^'"]+)(?P=q2)""",
    re.IGNORECASE,
)

_SKIP_PREFIXES = ("data:", "#", "about:", "javascript:")


def _reference(match: re.Match[str]) -> tuple[str, str]:
    group = "url" if match.group("url") is not None else "imp"
    return group, match.group(group)


def find_css_references(text: str) -> list[str]:
    """Unique references in encounter order."""
    refs: dict[str, None] = {}
    for match in CSS_REFERENCE_RE.finditer(text):
        _, ref = _reference(match)
        ref = ref.strip()
        if not ref or ref.lower().startswith(_SKIP_PREFIXES):
            continue
        refs.setdefault(ref, None)
    return list(refs)


def rewrite_css_references(text: str, replacements: dict[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        group, ref = _reference(match)
        new = replacements.get(ref.strip())
        if new is None:
            return match.group(0)
        whole = match.group(0)
        start = match.start(group) - match.start(0)
        end = match.end(group) - match.start(0)
        return whole[:start] + new + whole[end:]

    return CSS_REFERENCE_RE.sub(_replace, text)


def find_style_blocks(soup: BeautifulSoup) -> list[tuple[Tag, str | None, str]]:
    """(tag, attribute, css) in document order; attribute None is a <style> body."""

    blocks: list[tuple[Tag, str | None, str]] = []
    for tag in soup.find_all(True):
        if tag.name == "style" and tag.string:
            blocks.append((tag, None, str(tag.string)))
        style = tag.get("style")
        if isinstance(style, str) and style.strip():
            blocks.append((tag, "style", style))
    return blocks


async def _localize(
    scraper: Scraper,
    resource: Resource,
    base_url: str,
    refs: Sequence[str],
) -> dict[str, str]:
    urls = [get_url(base_url, ref) for ref in refs]
    children = await scraper.load_children(resource, urls)

    replacements: dict[str, str] = {}
    for ref, url, child in zip(refs, urls, children):
        if child is None:
            continue
        replacements[ref] = get_local_reference(
            resource.filename, child.filename, url
        )
    return replacements


async def _load_embedded_css(scraper: Scraper, resource: Resource) -> None:
    soup = parse_html(resource)
    blocks = find_style_blocks(soup)
    refs = list(
        dict.fromkeys(ref for _, _, css in blocks for ref in find_css_references(css))
    )
    if not refs:
        return

    base_url = effective_base_url(soup, resource.url)
    replacements = await _localize(scraper, resource, base_url, refs)
    if not replacements:
        return

    for tag, attr, css in blocks:
        new = rewrite_css_references(css, replacements)
        if new == css:
            continue
        if attr is None:
            tag.string = new
        else:
            tag[attr] = new

    logger.debug(
        "Localized %d embedded style references in %s",
        len(replacements),
        resource.url,
    )
    resource.content = encode_html(soup)


async def load_css(scraper: Scraper, resource: Resource) -> None:
    if resource.type is ResourceType.HTML:
        await _load_embedded_css(scraper, resource)
        return

    body = resource.content or b""
    encoding = css_encoding(resource.content_type, body)
    # surrogateescape keeps bytes the declared charset cannot decode.
    text = body.decode(encoding, errors="surrogateescape")
    refs = find_css_references(text)
    if not refs:
        return

    replacements = await _localize(scraper, resource, resource.url, refs)
    if replacements:
        logger.debug(
            "Localized %d stylesheet references in %s",
            len(replacements),
            resource.url,
        )
        resource.content = rewrite_css_references(text, replacements).encode(
            encoding, errors="surrogateescape"
        )
