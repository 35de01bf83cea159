"""Template contexts.

A context answers ``resolve(name)`` with a string, a list of contexts or
``None`` when the field is absent. Absent and empty are different things:
templates test ``{% if name is not none %}``, which is true for ``""``.

``fields()`` flattens a context into the plain dict handed to Jinja2. Fields
holding HTML are ``Markup`` so that autoescaping leaves them alone while
every other value is escaped.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Union

import markdown
from markupsafe import Markup

from .content import ContentItem
from .utils import display_date

Value = Union[str, Sequence["Context"], None]

POST_FIELDS = ("url", "date", "body", "tags", "title")


class Context:
    def keys(self) -> Iterable[str]:
        raise NotImplementedError

    def resolve(self, name: str) -> Value:
        raise NotImplementedError

    def extend(self, **fields: Value) -> "Context":
        return ChainContext(FieldContext(fields), self)

    def fields(self) -> dict[str, object]:
        out: dict[str, object] = {}
        for name in self.keys():
            value = self.resolve(name)
            if isinstance(value, (list, tuple)):
                value = [item.fields() for item in value]
            out[name] = value
        return out


class FieldContext(Context):
    def __init__(self, fields: Mapping[str, Value]) -> None:
        self._fields = dict(fields)

    def keys(self) -> Iterable[str]:
        return self._fields.keys()

    def resolve(self, name: str) -> Value:
        return self._fields.get(name)


class ChainContext(Context):
    def __init__(self, *contexts: Context) -> None:
        self.contexts = contexts

    def keys(self) -> Iterable[str]:
        return dict.fromkeys(name for ctx in self.contexts for name in ctx.keys()).keys()

    def resolve(self, name: str) -> Value:
        for ctx in self.contexts:
            value = ctx.resolve(name)
            if value is not None:
                return value
        return None


class PostContext(Context):
    """Fields of a single post: computed ones first, then raw metadata."""

    def __init__(
        self,
        item: ContentItem,
        url: str,
        date: dt.datetime,
        body: str,
        tag_links: Optional[str] = None,
    ) -> None:
        self.item = item
        self.url = url
        self.date = date
        self.body = body
        self.tag_links = tag_links

    def keys(self) -> Iterable[str]:
        return dict.fromkeys([*POST_FIELDS, *self.item.metadata]).keys()

    def resolve(self, name: str) -> Value:
        if name == "url":
            return self.url
        if name == "date":
            return display_date(self.date)
        if name == "body":
            return Markup(self.body)
        if name == "tags":
            return Markup(self.tag_links) if self.tag_links is not None else None
        if name == "title":
            title = self.item.get("title")
            return title if title is not None else self.item.identifier
        return self.item.get(name)


class TagListingContext(Context):
    def __init__(self, tag: str, posts: Sequence[Context]) -> None:
        self.tag = tag
        self.posts = list(posts)

    def keys(self) -> Iterable[str]:
        return ("title", "tag", "posts")

    def resolve(self, name: str) -> Value:
        if name == "title":
            return f'Posts tagged with "{self.tag}"'
        if name == "tag":
            return self.tag
        if name == "posts":
            return self.posts
        return None


class IndexContext(Context):
    """Title plus named lists; used by the archive, home and project pages."""

    def __init__(self, title: str, lists: Mapping[str, Sequence[Context]]) -> None:
        self.title = title
        self.lists = {key: list(value) for key, value in lists.items()}

    def keys(self) -> Iterable[str]:
        return ("title", *self.lists)

    def resolve(self, name: str) -> Value:
        if name == "title":
            return self.title
        return self.lists.get(name)


@dataclass(frozen=True)
class Project:
    name: str
    source_url: str
    page_url: Optional[str] = None
    description: str = ""


class ProjectContext(Context):
    def __init__(self, project: Project) -> None:
        self.project = project

    def keys(self) -> Iterable[str]:
        return ("name", "url", "source_url", "description")

    def resolve(self, name: str) -> Value:
        project = self.project
        if name == "name":
            return project.name
        if name == "url":
            # The project page wins over the source link when both exist.
            return project.page_url or project.source_url
        if name == "source_url":
            if project.page_url:
                return project.source_url
            return None
        if name == "description":
            if not project.description:
                return Markup("")
            return Markup(markdown.markdown(project.description))
        return None
