from __future__ import annotations

import datetime as dt
import html
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .content import ContentItem
from .errors import BuildError
from .urls import clean_index_url
from .utils import iso_date, join_url
from .views import item_date, recent_first

FEED_LIMIT = 10


@dataclass(frozen=True)
class FeedConfig:
    title: str
    root: str
    description: str = ""
    author_name: str = ""
    author_email: str = ""


@dataclass(frozen=True)
class FeedEntry:
    identifier: str
    title: str
    date: dt.datetime
    url: str
    description: str


@dataclass(frozen=True)
class Feed:
    config: FeedConfig
    path: str
    updated: dt.datetime
    entries: tuple[FeedEntry, ...] = field(default_factory=tuple)


def canonical_url(root: str, output: str) -> str:
    return join_url(root, clean_index_url(output.lstrip("/")))


def build_feed(
    posts: Sequence[ContentItem],
    route_for: Callable[[str], str],
    config: FeedConfig,
    path: str,
    limit: int = FEED_LIMIT,
    build_time: Optional[dt.datetime] = None,
) -> Feed:
    """Select the newest ``limit`` posts and turn them into feed entries.

    Descriptions come from each post's content-only snapshot so that page
    chrome never ends up in the feed.
    """
    entries = []
    for post in recent_first(posts)[: max(0, limit)]:
        if post.snapshot is None:
            raise BuildError(f"{post.identifier}: no content snapshot for feed description")
        entries.append(
            FeedEntry(
                identifier=post.identifier,
                title=post.get("title") or post.identifier,
                date=item_date(post),
                url=canonical_url(config.root, route_for(post.identifier)),
                description=post.snapshot,
            )
        )
    if entries:
        updated = entries[0].date
    else:
        updated = build_time or dt.datetime.now(dt.timezone.utc)
    return Feed(config=config, path=path, updated=updated, entries=tuple(entries))


def render_atom(feed: Feed) -> str:
    config = feed.config
    root = config.root.rstrip("/")
    entries = []
    for entry in feed.entries:
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(entry.title)}</title>",
                    f'<link href="{html.escape(entry.url)}" />',
                    f"<id>{html.escape(entry.url)}</id>",
                    f"<updated>{iso_date(entry.date)}</updated>",
                    f'<summary type="html">{html.escape(entry.description)}</summary>',
                    "</entry>",
                ]
            )
        )
    author = [f"<name>{html.escape(config.author_name)}</name>"]
    if config.author_email:
        author.append(f"<email>{html.escape(config.author_email)}</email>")
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<feed xmlns="http://www.w3.org/2005/Atom">',
        f"<title>{html.escape(config.title)}</title>",
    ]
    if config.description:
        lines.append(f"<subtitle>{html.escape(config.description)}</subtitle>")
    lines.extend(
        [
            f"<id>{root}/</id>",
            f"<updated>{iso_date(feed.updated)}</updated>",
            f"<author>{''.join(author)}</author>",
            f'<link href="{join_url(root, feed.path)}" rel="self" />',
            f'<link href="{root}/" />',
        ]
    )
    lines.extend(entries)
    lines.append("</feed>")
    return "\n".join(lines)
