"""Type-specific discovery of child resources.

A handler is ``async handler(scraper, resource) -> None``. It may append to
``resource.children`` and replace ``resource.content`` with a copy whose
references point at local files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from ..content import ResourceType
from ..resource import Resource
from .css import load_css
from .html import load_html

if TYPE_CHECKING:
    from ..scraper import Scraper

Handler = Callable[["Scraper", Resource], Awaitable[None]]
BoundHandler = Callable[[Resource], Awaitable[None]]

HANDLERS: dict[ResourceType, tuple[Handler, ...]] = {
    ResourceType.CSS: (load_css,),
    # Embedded styles first, then markup attributes.
    ResourceType.HTML: (load_css, load_html),
}


async def noop(resource: Resource) -> None:
    return None


def bind_handlers(scraper: Scraper, handlers: Sequence[Handler]) -> BoundHandler:
    """Run ``handlers`` one after another against the same scraper."""

    async def run(resource: Resource) -> None:
        for handler in handlers:
            await handler(scraper, resource)

    return run


__all__ = [
    "HANDLERS",
    "BoundHandler",
    "Handler",
    "bind_handlers",
    "load_css",
    "load_html",
    "noop",
]
