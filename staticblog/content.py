from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Union

from .errors import DuplicateIdentifierError, LoadError

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%B %d, %Y",
    "%d %B %Y",
)

MetadataExtractor = Callable[[str, str], "tuple[dict[str, str], str]"]


@dataclass(frozen=True)
class ContentItem:
    """A unit of content: metadata plus body.

    Actual items are read from a source file and never change afterwards.
    Virtual items are synthesized by the view and feed builders and carry a
    placeholder identifier instead of a source path.
    """

    identifier: str
    metadata: Mapping[str, str] = field(default_factory=dict)
    body: str = ""
    snapshot: Optional[str] = None
    virtual: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def get(self, key: str) -> Optional[str]:
        return self.metadata.get(key)

    def with_snapshot(self, snapshot: str) -> "ContentItem":
        return ContentItem(self.identifier, self.metadata, self.body, snapshot, self.virtual)


def make_virtual(identifier: str, metadata: Optional[Mapping[str, str]] = None) -> ContentItem:
    return ContentItem(identifier, metadata or {}, "", None, True)


def parse_front_matter(text: str, source: str = "<string>") -> tuple[dict[str, str], str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        raise LoadError(f"Unterminated metadata block in {source}")

    meta: dict[str, str] = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            raise LoadError(f"Malformed metadata line in {source}: {line!r}")
        key, value = line.split(":", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        meta[key.strip().lower()] = value
    body = "\n".join(lines[end + 1 :])
    return meta, body


def parse_date_value(value: str) -> Optional[dt.datetime]:
    value = value.strip()
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def match_sources(content_dir: Path, patterns: Union[str, Iterable[str]]) -> list[tuple[str, Path]]:
    if isinstance(patterns, str):
        patterns = [patterns]
    matches = []
    for pattern in patterns:
        found = [path for path in content_dir.glob(pattern) if path.is_file()]
        for path in sorted(found, key=lambda p: p.as_posix()):
            matches.append((path.relative_to(content_dir).as_posix(), path))
    return matches


def load_items(
    content_dir: Path,
    patterns: Union[str, Iterable[str]],
    extract: MetadataExtractor = parse_front_matter,
) -> list[ContentItem]:
    items = []
    seen = set()
    for identifier, path in match_sources(content_dir, patterns):
        if identifier in seen:
            raise DuplicateIdentifierError(identifier)
        seen.add(identifier)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Cannot read {identifier}: {exc}") from exc
        meta, body = extract(text, identifier)
        items.append(ContentItem(identifier, meta, body))
    return items
