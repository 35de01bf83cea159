"""Tests for the Atom feed builder."""

import datetime as dt
import xml.etree.ElementTree as etree

import pytest

from staticblog.content import ContentItem
from staticblog.errors import BuildError
from staticblog.feed import FeedConfig, build_feed, canonical_url, render_atom
from staticblog.routes import RouteResolver

ATOM = "{http://www.w3.org/2005/Atom}"
CONFIG = FeedConfig(title="Site", root="https://example.com", author_name="Author", author_email="a@example.com")


def snapshotted(identifier, title, snapshot="<p>content</p>", **meta):
    return ContentItem(identifier, dict(title=title, **meta), "raw").with_snapshot(snapshot)


def dated_posts(count):
    start = dt.date(2020, 1, 1)
    posts = []
    for i in range(count):
        day = start + dt.timedelta(days=count - i)
        posts.append(snapshotted(f"posts/{day.isoformat()}-post-{i}.md", f"Post {i}"))
    return posts


class TestBuildFeed:
    def test_bounded_to_ten_newest(self):
        posts = dated_posts(15)
        feed = build_feed(posts, RouteResolver().resolve, CONFIG, "blog/atom.xml")
        assert len(feed.entries) == 10
        assert [e.identifier for e in feed.entries] == [p.identifier for p in posts[:10]]
        dates = [e.date for e in feed.entries]
        assert all(a > b for a, b in zip(dates, dates[1:]))

    def test_orders_unsorted_input(self):
        posts = list(reversed(dated_posts(3)))
        feed = build_feed(posts, RouteResolver().resolve, CONFIG, "blog/atom.xml")
        assert [e.title for e in feed.entries] == ["Post 0", "Post 1", "Post 2"]

    def test_updated_is_newest_entry(self):
        posts = dated_posts(3)
        feed = build_feed(posts, RouteResolver().resolve, CONFIG, "blog/atom.xml")
        assert feed.updated == feed.entries[0].date

    def test_empty_feed_uses_build_time(self):
        now = dt.datetime(2024, 6, 1, 12, 0)
        feed = build_feed([], RouteResolver().resolve, CONFIG, "blog/atom.xml", build_time=now)
        assert feed.entries == ()
        assert feed.updated == now

    def test_entry_fields(self):
        post = snapshotted("posts/2020-05-10-hello.md", "Hello", snapshot="<p>Just the body</p>")
        entry = build_feed([post], RouteResolver().resolve, CONFIG, "blog/atom.xml").entries[0]
        assert entry.url == "https://example.com/blog/hello/"
        assert entry.description == "<p>Just the body</p>"
        assert entry.date == dt.datetime(2020, 5, 10)

    def test_custom_limit(self):
        feed = build_feed(dated_posts(5), RouteResolver().resolve, CONFIG, "blog/atom.xml", limit=2)
        assert len(feed.entries) == 2

    def test_requires_snapshot(self):
        post = ContentItem("posts/2020-05-10-hello.md", {"title": "Hello"}, "raw")
        with pytest.raises(BuildError):
            build_feed([post], RouteResolver().resolve, CONFIG, "blog/atom.xml")


class TestRenderAtom:
    def test_document(self):
        posts = dated_posts(2)
        feed = build_feed(posts, RouteResolver().resolve, CONFIG, "blog/atom.xml")
        root = etree.fromstring(render_atom(feed))
        assert root.tag == f"{ATOM}feed"
        assert root.find(f"{ATOM}title").text == "Site"
        assert root.find(f"{ATOM}id").text == "https://example.com/"
        assert root.find(f"{ATOM}updated").text == "2020-01-03T00:00:00Z"
        entries = root.findall(f"{ATOM}entry")
        assert len(entries) == 2
        first = entries[0]
        assert first.find(f"{ATOM}title").text == "Post 0"
        assert first.find(f"{ATOM}link").get("href") == "https://example.com/blog/post-0/"
        assert first.find(f"{ATOM}summary").text == "<p>content</p>"
        assert root.find(f"{ATOM}author/{ATOM}email").text == "a@example.com"


def test_canonical_url():
    assert canonical_url("https://example.com/", "blog/a/index.html") == "https://example.com/blog/a/"
    assert canonical_url("https://example.com", "blog/atom.xml") == "https://example.com/blog/atom.xml"
