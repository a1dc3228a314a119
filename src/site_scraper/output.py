from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .resource import Resource
from .urls import normalize_url


@dataclass(frozen=True)
class ResultNode:
    url: str
    filename: str
    assets: tuple[ResultNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "filename": self.filename,
            "assets": [asset.to_dict() for asset in self.assets],
        }


def create_output_object(
    resource: Resource,
    _expanded: set[int] | None = None,
) -> ResultNode:
    """Mirror the resource graph as a tree of ResultNode.

    Children are de-duplicated by normalized URL, first occurrence wins. Each
    Resource is expanded at most once per tree, depth first; any later
    occurrence (a shared page or a link back to an ancestor) is emitted as a
    leaf. The tree therefore has one node per edge followed, never one per
    path, and cyclic link graphs stay finite.
    """

    expanded = set() if _expanded is None else _expanded
    expanded.add(id(resource))
    assets: list[ResultNode] = []
    seen: set[str] = set()
    for child in resource.children:
        key = normalize_url(child.url)
        if key in seen:
            continue
        seen.add(key)
        if id(child) in expanded:
            assets.append(ResultNode(url=child.url, filename=child.filename))
        else:
            assets.append(create_output_object(child, expanded))

    return ResultNode(
        url=resource.url,
        filename=resource.filename,
        assets=tuple(assets),
    )
