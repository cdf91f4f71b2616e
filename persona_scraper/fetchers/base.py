"""Base fetcher interface and the shared pagination loop."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, Generic, Sequence, TypeVar

from persona_scraper.config import Config
from persona_scraper.models import Platform, ScrapeOptions, coerce_options
from persona_scraper.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paged sub-resource."""

    items: list[T] = field(default_factory=list)
    next_cursor: Any = None


PageFetcher = Callable[[Any, int], Awaitable[Page[T]]]


async def paginate(
    fetch_page: PageFetcher[T],
    limit: int,
    max_page_size: int,
    *,
    stop_on_empty: bool = True,
) -> list[T]:
    """Accumulate pages until *limit* items are held or the cursor runs out.

    ``fetch_page(cursor, page_size)`` is called strictly sequentially with
    ``page_size <= max_page_size``; the first call gets ``cursor=None``. No
    call is made when *limit* is zero. An empty page also ends the loop
    unless *stop_on_empty* is false, for sources whose cursor is bounded
    anyway. An error from any page propagates and the items accumulated so
    far are dropped.
    """
    if max_page_size < 1:
        raise ValueError("max_page_size must be at least 1")
    accumulated: list[T] = []
    cursor: Any = None
    while len(accumulated) < limit:
        page_size = min(max_page_size, limit - len(accumulated))
        page = await fetch_page(cursor, page_size)
        accumulated.extend(page.items)
        cursor = page.next_cursor
        if cursor is None or (stop_on_empty and not page.items):
            break
    return accumulated[:limit]


def normalize_handle(value: str, prefixes: Sequence[str] = ()) -> str:
    """Strip URL prefixes, ``@`` markers and slashes from a typed-in handle."""
    handle = value.strip()
    lowered = handle.lower()
    for prefix in sorted(prefixes, key=len, reverse=True):
        if lowered.startswith(prefix.lower()):
            handle = handle[len(prefix):]
            break
    handle = handle.strip("/").lstrip("@")
    # Anything after the first path segment (tabs, query strings) is noise.
    return handle.split("/", 1)[0].split("?", 1)[0]


OptionsT = TypeVar("OptionsT", bound=ScrapeOptions)


class BaseFetcher(ABC, Generic[OptionsT]):
    """All platform fetchers implement this capability set.

    :meth:`scrape` drives the fixed sequence resolve identity, fetch the
    primary entity, paginate items, then attach nested details.
    """

    platform: ClassVar[Platform]

    def __init__(self, config: Config, limiter: RateLimiter | None = None) -> None:
        self.config = config
        self.limiter = limiter or RateLimiter.from_config(config)

    def validate_config(self) -> None:
        """Raise :class:`ConfigurationError` if a required credential is missing."""

    @abstractmethod
    async def resolve_identity(self, handle: str) -> str:
        """Return the platform id for a handle, URL or id."""
        ...

    @abstractmethod
    async def fetch_primary(self, identity: str) -> Any:
        ...

    @abstractmethod
    async def fetch_items(self, primary: Any, options: OptionsT) -> list[Any]:
        ...

    async def fetch_nested_details(
        self, primary: Any, items: list[Any], options: OptionsT
    ) -> list[Any]:
        """Attach per-item details; the default attaches nothing."""
        return items

    @abstractmethod
    def build_result(
        self, primary: Any, items: list[Any], options: OptionsT, extras: dict[str, Any]
    ) -> Any:
        ...

    async def fetch_extras(self, primary: Any, options: OptionsT) -> dict[str, Any]:
        """Fetch secondary categories (likes, followers) that may degrade to empty."""
        return {}

    def coerce(self, options: Any) -> OptionsT:
        return coerce_options(self.platform, options)  # type: ignore[return-value]

    async def scrape(self, handle: str, options: Any = None) -> Any:
        opts = self.coerce(options)
        self.validate_config()
        logger.info("Starting %s scrape for: %s", self.platform.value, handle)

        identity = await self.resolve_identity(handle)
        primary = await self.fetch_primary(identity)
        items = await self.fetch_items(primary, opts)
        items = await self.fetch_nested_details(primary, items, opts)
        extras = await self.fetch_extras(primary, opts)

        result = self.build_result(primary, items, opts, extras)
        logger.info("%s scrape completed: %d items collected", self.platform.value, len(items))
        return result
