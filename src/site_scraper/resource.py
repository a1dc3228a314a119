"""A single crawled item and its place in the reference graph."""

from __future__ import annotations

from .content import ResourceType


class Resource:
    """One fetched (or pending) URL.

    ``children`` holds non-owning references: the scraper's cache owns the
    one instance per normalized URL, and the same instance may appear under
    several parents.
    """

    def __init__(
        self,
        url: str,
        filename: str | None = None,
        *,
        depth: int = 0,
        parent: Resource | None = None,
    ) -> None:
        if depth < 0:
            raise ValueError("depth must be non-negative")
        self._url = url
        self.filename = filename or ""
        self.depth = depth
        self.parent = parent
        self.type: ResourceType | None = None
        self.content: bytes | None = None
        self.status_code: int | None = None
        self.content_type: str | None = None
        self.children: list[Resource] = []

    @property
    def url(self) -> str:
        return self._url

    def create_child(self, url: str, filename: str | None = None) -> Resource:
        return Resource(url, filename, depth=self.depth + 1, parent=self)

    def __repr__(self) -> str:
        return (
            f"Resource(url={self._url!r}, filename={self.filename!r}, "
            f"depth={self.depth}, type={self.type})"
        )
