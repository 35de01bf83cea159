from __future__ import annotations

import datetime as dt
import hashlib
import re
import threading
from typing import Mapping, Optional

from .errors import DuplicateRouteError, RouteParseError
from .utils import slugify

HOME_PATH = "index.html"
PROJECTS_PATH = "projects/index.html"
TAG_DIGEST_WIDTH = 6

DATE_PREFIX_RE = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<rest>.+)$")


def split_identifier(identifier: str) -> tuple[str, dt.date, str]:
    """Split ``<section>/<YYYY-MM-DD>-<slug>.<ext>`` into its parts.

    Raises RouteParseError instead of guessing when the name does not follow
    the convention exactly.
    """
    section, sep, filename = identifier.rpartition("/")
    if not sep or not section:
        raise RouteParseError(identifier, "missing section directory")
    match = DATE_PREFIX_RE.match(filename)
    if match is None:
        raise RouteParseError(identifier, "expected a YYYY-MM-DD- date prefix")
    try:
        date = dt.date.fromisoformat(match.group("date"))
    except ValueError as exc:
        raise RouteParseError(identifier, f"invalid date prefix ({exc})") from exc
    stem, dot, ext = match.group("rest").rpartition(".")
    if not dot or not ext:
        raise RouteParseError(identifier, "missing file extension")
    if not stem:
        raise RouteParseError(identifier, "empty slug")
    return section, date, stem


class RouteResolver:
    """Maps identifiers and synthetic pages to output paths.

    Tag slugs are handed out first come, first served: a tag whose slug is
    already held by a different tag gets a short digest of its own text
    appended, so ``C`` and ``C++`` land on different pages.
    """

    def __init__(self, renames: Optional[Mapping[str, str]] = None, blog_section: str = "blog") -> None:
        self.renames = dict(renames if renames is not None else {"posts": "blog"})
        self.blog_section = blog_section.strip("/")
        self._slugs: dict[str, str] = {}
        self._owners: dict[str, str] = {}
        self._lock = threading.Lock()

    def out_section(self, section: str) -> str:
        return self.renames.get(section, section)

    def resolve(self, identifier: str) -> str:
        section, _, slug = split_identifier(identifier)
        return f"{self.out_section(section)}/{slug}/index.html"

    def date_of(self, identifier: str) -> dt.date:
        return split_identifier(identifier)[1]

    def tag_slug(self, tag: str) -> str:
        with self._lock:
            slug = self._slugs.get(tag)
            if slug is not None:
                return slug
            slug = slugify(tag)
            digest = hashlib.sha256(tag.encode("utf-8")).hexdigest()
            width = TAG_DIGEST_WIDTH
            while slug in self._owners:
                slug = f"{slugify(tag)}-{digest[:width]}"
                width += 2
            self._slugs[tag] = slug
            self._owners[slug] = tag
            return slug

    def tag_path(self, tag: str) -> str:
        return f"{self.blog_section}/tags/{self.tag_slug(tag)}/index.html"

    def tag_feed_path(self, tag: str) -> str:
        return f"{self.blog_section}/tags/{self.tag_slug(tag)}.xml"

    def archive_path(self) -> str:
        return f"{self.blog_section}/index.html"

    def feed_path(self) -> str:
        return f"{self.blog_section}/atom.xml"


class RouteTable:
    """Output paths registered during one build; a path may be claimed once."""

    def __init__(self) -> None:
        self._paths: dict[str, str] = {}
        self._owners: dict[str, str] = {}

    def add(self, key: str, path: str) -> str:
        owner = self._owners.get(path)
        if owner is not None:
            raise DuplicateRouteError(path, owner, key)
        self._owners[path] = key
        self._paths[key] = path
        return path

    def __getitem__(self, key: str) -> str:
        return self._paths[key]

    def __contains__(self, key: object) -> bool:
        return key in self._paths


def url_for(path: str) -> str:
    return "/" + path.lstrip("/")
