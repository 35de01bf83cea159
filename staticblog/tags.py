from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from .content import ContentItem

TAG_DELIMITER = ","


def split_tags(value: Optional[str]) -> list[str]:
    if value is None:
        return []
    tags: list[str] = []
    for piece in value.split(TAG_DELIMITER):
        tag = piece.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class TagIndex:
    """Read-only tag lookups built from a filtered item list.

    Buckets keep the order in which items were discovered; recency ordering
    is left to whoever consumes a bucket.
    """

    def __init__(
        self,
        by_tag: Mapping[str, tuple[str, ...]],
        by_item: Mapping[str, tuple[str, ...]],
        paths: Mapping[str, str],
    ) -> None:
        self._by_tag = MappingProxyType(dict(by_tag))
        self._by_item = MappingProxyType(dict(by_item))
        self._paths = MappingProxyType(dict(paths))

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._by_tag)

    def items_for(self, tag: str) -> tuple[str, ...]:
        return self._by_tag.get(tag, ())

    def tags_for(self, identifier: str) -> tuple[str, ...]:
        return self._by_item.get(identifier, ())

    def path_for(self, tag: str) -> Optional[str]:
        return self._paths.get(tag)

    def buckets(self) -> Iterable[tuple[str, tuple[str, ...]]]:
        return self._by_tag.items()


def build_tag_index(
    items: list[ContentItem],
    path_for: Callable[[str], str],
    field: str = "tags",
) -> TagIndex:
    by_tag: dict[str, list[str]] = {}
    by_item: dict[str, tuple[str, ...]] = {}
    for item in items:
        tags = split_tags(item.get(field))
        if not tags:
            continue
        by_item[item.identifier] = tuple(tags)
        for tag in tags:
            by_tag.setdefault(tag, []).append(item.identifier)
    paths = {tag: path_for(tag) for tag in by_tag}
    return TagIndex({tag: tuple(ids) for tag, ids in by_tag.items()}, by_item, paths)
