from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from .content import ContentItem, make_virtual, parse_date_value
from .context import Context, IndexContext, PostContext, Project, ProjectContext, TagListingContext
from .errors import OrderingError, RouteParseError
from .routes import HOME_PATH, PROJECTS_PATH, split_identifier, url_for
from .tags import TagIndex

DATE_FIELDS = ("published", "date")
PAGE_TEMPLATE = "default.html"

Ordering = Callable[[Sequence[ContentItem]], list[ContentItem]]


@dataclass(frozen=True)
class DerivedView:
    item: ContentItem
    sources: tuple[str, ...]
    templates: tuple[str, ...]
    context: Context
    output: str


def _naive_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def item_date(item: ContentItem) -> dt.datetime:
    for key in DATE_FIELDS:
        value = item.get(key)
        if value is None:
            continue
        parsed = parse_date_value(value)
        if parsed is None:
            raise OrderingError(f"{item.identifier}: cannot parse {key} {value!r}")
        return _naive_utc(parsed)
    try:
        date = split_identifier(item.identifier)[1]
    except RouteParseError:
        raise OrderingError(f"{item.identifier}: no date to order by") from None
    return dt.datetime.combine(date, dt.time())


def recent_first(items: Sequence[ContentItem]) -> list[ContentItem]:
    dates = {item.identifier: item_date(item) for item in items}
    return sorted(items, key=lambda item: dates[item.identifier], reverse=True)


def post_context(item: ContentItem, output: str, tag_links: Optional[str] = None) -> PostContext:
    body = item.snapshot if item.snapshot is not None else item.body
    return PostContext(item, url_for(output), item_date(item), body, tag_links)


def _ordered(
    identifiers: Sequence[str],
    items: Mapping[str, ContentItem],
    order: Ordering,
) -> list[ContentItem]:
    return order([items[identifier] for identifier in identifiers])


def tag_views(
    index: TagIndex,
    items: Mapping[str, ContentItem],
    contexts: Mapping[str, PostContext],
    order: Ordering = recent_first,
) -> list[DerivedView]:
    views = []
    for tag, identifiers in index.buckets():
        posts = _ordered(identifiers, items, order)
        output = index.path_for(tag)
        ctx = TagListingContext(tag, [contexts[post.identifier] for post in posts])
        views.append(
            DerivedView(
                item=make_virtual(output, {"title": ctx.resolve("title"), "tag": tag}),
                sources=tuple(post.identifier for post in posts),
                templates=("tag.html", PAGE_TEMPLATE),
                context=ctx,
                output=output,
            )
        )
    return views


def archive_view(
    posts: Sequence[ContentItem],
    contexts: Mapping[str, PostContext],
    output: str,
    title: str,
    order: Ordering = recent_first,
) -> DerivedView:
    ordered = order(posts)
    ctx = IndexContext(title, {"posts": [contexts[post.identifier] for post in ordered]})
    return DerivedView(
        item=make_virtual(output, {"title": title}),
        sources=tuple(post.identifier for post in ordered),
        templates=("archive.html", PAGE_TEMPLATE),
        context=ctx,
        output=output,
    )


def home_view(
    posts: Sequence[ContentItem],
    recommended: Sequence[ContentItem],
    contexts: Mapping[str, PostContext],
    title: str,
    order: Ordering = recent_first,
) -> DerivedView:
    ordered = order(posts)
    ordered_recommended = order(recommended)
    ctx = IndexContext(
        title,
        {
            "posts": [contexts[post.identifier] for post in ordered],
            "recommendedPosts": [contexts[post.identifier] for post in ordered_recommended],
        },
    )
    return DerivedView(
        item=make_virtual(HOME_PATH, {"title": title}),
        sources=tuple(post.identifier for post in ordered),
        templates=("index.html", PAGE_TEMPLATE),
        context=ctx,
        output=HOME_PATH,
    )


def projects_view(projects: Sequence[Project], title: str) -> DerivedView:
    # Hand-written records keep their authored order.
    ctx = IndexContext(title, {"projects": [ProjectContext(project) for project in projects]})
    return DerivedView(
        item=make_virtual(PROJECTS_PATH, {"title": title}),
        sources=tuple(project.name for project in projects),
        templates=("projects.html", PAGE_TEMPLATE),
        context=ctx,
        output=PROJECTS_PATH,
    )
