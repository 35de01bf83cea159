from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .content import ContentItem

DRAFTS_ENV = "LOAD_DRAFTS"


@dataclass(frozen=True)
class BuildMode:
    include_drafts: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "BuildMode":
        # Only the literal "true" turns drafts on.
        return cls(include_drafts=environ.get(DRAFTS_ENV) == "true")


def is_draft(item: ContentItem) -> bool:
    return item.get("draft") == "true"


def filter_drafts(items: list[ContentItem], mode: BuildMode) -> list[ContentItem]:
    if mode.include_drafts:
        return list(items)
    return [item for item in items if not is_draft(item)]
