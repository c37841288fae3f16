"""Walk Home Assistant browse media trees according to declarative steps."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from functools import partial
import logging
from typing import Any, Generic, TypeVar

from homeassistant.components.media_source import async_browse_media
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .cache import RequestCache
from .const import BROWSE_MEDIA_CACHE_SECONDS

_LOGGER = logging.getLogger(__name__)

MetadataT = TypeVar("MetadataT")

BrowseFunc = Callable[[str], Awaitable[Any]]


@dataclass(slots=True)
class RichBrowseMedia(Generic[MetadataT]):
    """A browse media node plus the metadata computed for it at fetch time."""

    title: str
    media_content_id: str
    media_class: str | None = None
    media_content_type: str | None = None
    can_play: bool = False
    can_expand: bool = False
    thumbnail: str | None = None
    children: list[RichBrowseMedia[MetadataT]] = field(default_factory=list)
    metadata: MetadataT | None = None

    @classmethod
    def from_browse_media(cls, media: Any) -> RichBrowseMedia[MetadataT]:
        return cls(
            title=getattr(media, "title", "") or "",
            media_content_id=getattr(media, "media_content_id", "") or "",
            media_class=getattr(media, "media_class", None),
            media_content_type=getattr(media, "media_content_type", None),
            can_play=bool(getattr(media, "can_play", False)),
            can_expand=bool(getattr(media, "can_expand", False)),
            thumbnail=getattr(media, "thumbnail", None),
            children=[
                cls.from_browse_media(child) for child in getattr(media, "children", None) or []
            ],
        )


BrowseMediaTarget = str | RichBrowseMedia[Any]


@dataclass(slots=True)
class BrowseMediaStep(Generic[MetadataT]):
    """One level of a walk.

    Every child of every target gets `metadata_generator(child, parent)`
    applied, then only children passing `matcher` are kept. `advance` turns
    the kept children into follow-up steps; kept children that are not a
    target of any follow-up step are part of the output as-is.
    """

    targets: Sequence[BrowseMediaTarget]
    matcher: Callable[[RichBrowseMedia[MetadataT]], bool]
    metadata_generator: (
        Callable[[RichBrowseMedia[MetadataT], RichBrowseMedia[MetadataT] | None], MetadataT | None]
        | None
    ) = None
    advance: (
        Callable[[list[RichBrowseMedia[MetadataT]]], list[BrowseMediaStep[MetadataT]]] | None
    ) = None
    # How many targets to fetch at once (all of them when None).
    concurrency: int | None = None
    sorter: (
        Callable[[list[RichBrowseMedia[MetadataT]]], list[RichBrowseMedia[MetadataT]]] | None
    ) = None
    early_exit: Callable[[list[RichBrowseMedia[MetadataT]]], bool] | None = None


class BrowseMediaWalker(Generic[MetadataT]):
    """Depth-first expansion of a browse media tree driven by steps."""

    def __init__(
        self,
        browse: BrowseFunc,
        cache: RequestCache[str, RichBrowseMedia[MetadataT]] | None = None,
        cache_seconds: int = BROWSE_MEDIA_CACHE_SECONDS,
    ) -> None:
        self._browse = browse
        self._cache: RequestCache[str, RichBrowseMedia[MetadataT]] = (
            cache if cache is not None else RequestCache()
        )
        self._cache_seconds = cache_seconds

    @classmethod
    def for_hass(cls, hass: HomeAssistant) -> BrowseMediaWalker[MetadataT]:
        return cls(partial(async_browse_media, hass))

    @property
    def cache(self) -> RequestCache[str, RichBrowseMedia[MetadataT]]:
        return self._cache

    async def async_walk(
        self,
        steps: Sequence[BrowseMediaStep[MetadataT]] | None,
        *,
        use_cache: bool = True,
    ) -> list[RichBrowseMedia[MetadataT]]:
        """Run all steps concurrently and flatten their output."""
        if not steps:
            return []
        results = await asyncio.gather(
            *(self._async_walk_step(step, use_cache) for step in steps)
        )
        return [media for result in results for media in result]

    async def _async_walk_step(
        self, step: BrowseMediaStep[MetadataT], use_cache: bool
    ) -> list[RichBrowseMedia[MetadataT]]:
        matched: list[RichBrowseMedia[MetadataT]] = []

        for targets in _chunk(step.targets, step.concurrency):
            parents = await asyncio.gather(
                *(self._async_browse(target, step, use_cache) for target in targets)
            )
            for parent in parents:
                matched.extend(child for child in parent.children if step.matcher(child))

            if step.sorter:
                matched = step.sorter(matched)
            if step.early_exit and step.early_exit(matched):
                break

        next_steps = step.advance(matched) if step.advance else None
        if not next_steps:
            return matched

        advancing = {
            _target_content_id(target) for next_step in next_steps for target in next_step.targets
        }
        terminal = [media for media in matched if media.media_content_id not in advancing]
        return terminal + await self.async_walk(next_steps, use_cache=use_cache)

    async def _async_browse(
        self,
        target: BrowseMediaTarget,
        step: BrowseMediaStep[MetadataT],
        use_cache: bool,
    ) -> RichBrowseMedia[MetadataT]:
        media_content_id = _target_content_id(target)
        if use_cache and (cached := self._cache.get(media_content_id)) is not None:
            return cached

        _LOGGER.debug("Browsing media node %s", media_content_id)
        node: RichBrowseMedia[MetadataT] = RichBrowseMedia.from_browse_media(
            await self._browse(media_content_id)
        )

        if step.metadata_generator:
            parent = target if isinstance(target, RichBrowseMedia) else node
            for child in node.children:
                child.metadata = step.metadata_generator(child, parent)

        if use_cache:
            self._cache.set(
                media_content_id,
                node,
                dt_util.utcnow() + timedelta(seconds=self._cache_seconds),
            )
        return node


def sort_media_by_start_date(
    media: list[RichBrowseMedia[Any]],
) -> list[RichBrowseMedia[Any]]:
    """Most recent first; media without a start date sorts last."""
    dated = [item for item in media if _start_date(item) is not None]
    undated = [item for item in media if _start_date(item) is None]
    return sorted(dated, key=_start_date, reverse=True) + undated


def _start_date(media: RichBrowseMedia[Any]) -> Any:
    return getattr(media.metadata, "start_date", None)


def _target_content_id(target: BrowseMediaTarget) -> str:
    return target.media_content_id if isinstance(target, RichBrowseMedia) else target


def _chunk(
    targets: Sequence[BrowseMediaTarget], size: int | None
) -> Iterator[Sequence[BrowseMediaTarget]]:
    if not size or size <= 0:
        yield targets
        return
    for index in range(0, len(targets), size):
        yield targets[index : index + size]
