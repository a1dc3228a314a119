from __future__ import annotations

import codecs
import re
from enum import Enum
from urllib.parse import urlparse


class ResourceType(str, Enum):
    HTML = "html"
    CSS = "css"
    OTHER = "other"


_HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}
_HTML_EXTS = (".html", ".htm", ".xhtml")
_CHARSET_RE = re.compile(r"""charset\s*=\s*["']?([\w.:-]+)""", re.IGNORECASE)
_CSS_CHARSET_RE = re.compile(
    rb'^(?:\xef\xbb\xbf)?@charset\s+"([\w.:-]+)"\s*;', re.IGNORECASE
)

_ASSET_EXTS = {
    ".js",
    ".mjs",
    ".map",
    ".json",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".avif",
    ".svg",
    ".ico",
    ".woff",
    ".woff2",
    ".ttf",
    ".otf",
    ".eot",
    ".pdf",
    ".zip",
    ".mp3",
    ".mp4",
    ".webm",
}


def looks_like_html(data: bytes) -> bool:
    head = data[:2048].lstrip()
    return head.startswith(b"<") and (
        b"<html" in head.lower()
        or b"<!doctype" in head.lower()
        or b"<head" in head.lower()
    )


def is_asset_intent_url(url: str) -> bool:
    path = urlparse(url).path.lower()
    return any(path.endswith(ext) for ext in _ASSET_EXTS)


def classify(
    url: str,
    *,
    content_type: str | None,
    body: bytes,
) -> ResourceType:
    """Classify fetched content as markup, stylesheet or anything else.

    Rules:
    - The Content-Type header wins when it names HTML or CSS.
    - Asset-intent URLs (images, scripts, fonts) are never treated as HTML.
    - Otherwise fall back to the URL extension, then to sniffing the body.
    """

    ct = (content_type or "").split(";", 1)[0].strip().lower()
    if ct == "text/css":
        return ResourceType.CSS
    if ct in _HTML_CONTENT_TYPES:
        return ResourceType.HTML

    path = urlparse(url).path.lower()
    if path.endswith(".css"):
        return ResourceType.CSS
    if is_asset_intent_url(url):
        return ResourceType.OTHER
    if path.endswith(_HTML_EXTS):
        return ResourceType.HTML

    if looks_like_html(body):
        return ResourceType.HTML
    return ResourceType.OTHER


def _known_codec(name: str | None) -> str | None:
    if not name:
        return None
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def charset_from_content_type(content_type: str | None) -> str | None:
    """Codec named by a Content-Type ``charset`` parameter, if Python knows it."""
    match = _CHARSET_RE.search(content_type or "")
    return _known_codec(match.group(1)) if match else None


def css_encoding(content_type: str | None, body: bytes) -> str:
    """Encoding of a stylesheet: header charset, then ``@charset``, then UTF-8."""

    encoding = charset_from_content_type(content_type)
    if encoding:
        return encoding
    match = _CSS_CHARSET_RE.match(body or b"")
    if match:
        encoding = _known_codec(match.group(1).decode("ascii"))
    return encoding or "utf-8"
