from __future__ import annotations

import os
import posixpath
import re
from dataclasses import dataclass
from urllib.parse import (
    ParseResult,
    quote,
    unquote,
    urljoin,
    urlparse,
    urlunparse,
)

_URL_PREFIX = re.compile(r"^((https?:)?//)", re.IGNORECASE)
_INVALID_FILENAME_CHARS = re.compile(r"[<>:\"/\\|?*\x00-\x1F]")


def is_url(path: str) -> bool:
    """True for absolute (``http://``) and protocol-relative (``//``) URLs."""
    return bool(_URL_PREFIX.match(path or ""))


def get_url(current_url: str, path: str) -> str:
    """Resolve ``path`` against ``current_url``.

    Protocol-relative references take the scheme of ``current_url``.
    """

    path = (path or "").strip()
    if is_url(path) and not urlparse(path).scheme:
        scheme = urlparse(current_url).scheme or "http"
        path = f"{scheme}:{path}"
    return urljoin(current_url, path)


def get_unix_path(filepath: str) -> str:
    return filepath.replace("\\", "/")


def get_relative_path(path1: str, path2: str) -> str:
    """Path to ``path2`` as seen from the file at ``path1``."""
    dirname = os.path.dirname(path1) or os.curdir
    return get_unix_path(os.path.relpath(path2, dirname))


def safe_filename_piece(text: str, *, max_len: int = 150) -> str:
    cleaned = _INVALID_FILENAME_CHARS.sub("-", (text or "").strip())
    cleaned = cleaned.strip(". ")
    cleaned = re.sub(r"\s+", "-", cleaned)
    return cleaned[:max_len]


def get_filename_from_url(url: str) -> str:
    """Final path segment of ``url``; empty when the path ends with ``/``."""
    path = urlparse(url).path or ""
    return safe_filename_piece(unquote(posixpath.basename(path)))


def get_hash_from_url(url: str) -> str:
    fragment = urlparse(url).fragment
    return f"#{fragment}" if fragment else ""


def get_local_reference(from_file: str, to_file: str, url: str) -> str:
    """Percent-encoded link from one saved file to another, keeping ``url``'s hash."""
    path = quote(get_relative_path(from_file, to_file), safe="/")
    return path + get_hash_from_url(url)


def normalize_url(raw_url: str) -> str:
    """Normalize a URL for de-duplication.

    - Lowercases scheme + hostname.
    - Strips fragments and empty queries.
    - Ignores a trailing slash on the path.
    """

    parsed: ParseResult = urlparse(raw_url.strip())
    path = parsed.path.rstrip("/")

    parsed = parsed._replace(
        scheme=(parsed.scheme or "").lower(),
        netloc=(parsed.netloc or "").lower(),
        path=path,
        fragment="",
    )
    return urlunparse(parsed)


@dataclass(frozen=True)
class UrlScope:
    allow_host_suffixes: tuple[str, ...]
    follow_offsite: bool = False

    def is_allowed(self, url: str) -> bool:
        if self.follow_offsite:
            return True
        host = (urlparse(url).hostname or "").lower()
        if not host:
            return False
        for suffix in self.allow_host_suffixes:
            suffix = suffix.lower().lstrip(".")
            if host == suffix or host.endswith("." + suffix):
                return True
        return False

    __call__ = is_allowed
