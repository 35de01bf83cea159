"""Tests for content loading and metadata extraction."""

import datetime as dt

import pytest

from staticblog.content import ContentItem, load_items, make_virtual, parse_date_value, parse_front_matter
from staticblog.errors import DuplicateIdentifierError, LoadError


class TestParseFrontMatter:
    def test_fields_are_strings(self):
        meta, body = parse_front_matter("---\ntitle: Hello\ntags: a, b\ndraft: true\n---\nBody text\n")
        assert meta == {"title": "Hello", "tags": "a, b", "draft": "true"}
        assert body == "Body text"

    def test_keeps_key_order(self):
        meta, _ = parse_front_matter("---\nzeta: 1\nalpha: 2\n---\n")
        assert list(meta) == ["zeta", "alpha"]

    def test_no_header(self):
        meta, body = parse_front_matter("# Just markdown\n")
        assert meta == {}
        assert body == "# Just markdown\n"

    def test_quoted_value(self):
        meta, _ = parse_front_matter('---\ntitle: "Colons: fine"\n---\n')
        assert meta["title"] == "Colons: fine"

    def test_empty_value_is_present(self):
        meta, _ = parse_front_matter("---\ntags:\n---\n")
        assert meta["tags"] == ""

    def test_unterminated_header(self):
        with pytest.raises(LoadError):
            parse_front_matter("---\ntitle: Oops\n\nno closing marker\n")

    def test_malformed_line(self):
        with pytest.raises(LoadError):
            parse_front_matter("---\njust words\n---\n")


class TestContentItem:
    def test_metadata_is_read_only(self):
        item = ContentItem("posts/a.md", {"title": "A"})
        with pytest.raises(TypeError):
            item.metadata["title"] = "B"

    def test_absent_field_is_none(self):
        item = ContentItem("posts/a.md", {"title": ""})
        assert item.get("title") == ""
        assert item.get("date") is None

    def test_with_snapshot_returns_new_item(self):
        item = ContentItem("posts/a.md", {"title": "A"}, "body")
        snap = item.with_snapshot("<p>body</p>")
        assert item.snapshot is None
        assert snap.snapshot == "<p>body</p>"
        assert snap.identifier == item.identifier

    def test_virtual(self):
        item = make_virtual("blog/index.html", {"title": "Archive"})
        assert item.virtual
        assert item.body == ""


class TestParseDateValue:
    def test_plain_date(self):
        assert parse_date_value("2020-05-10") == dt.datetime(2020, 5, 10)

    def test_datetime(self):
        assert parse_date_value("2020-05-10 08:30") == dt.datetime(2020, 5, 10, 8, 30)

    def test_long_form(self):
        assert parse_date_value("May 10, 2020") == dt.datetime(2020, 5, 10)

    def test_garbage(self):
        assert parse_date_value("someday") is None
        assert parse_date_value("") is None


class TestLoadItems:
    def test_loads_in_sorted_order(self, temp_dir):
        (temp_dir / "posts").mkdir()
        (temp_dir / "posts" / "2020-02-01-b.md").write_text("---\ntitle: B\n---\nbee\n")
        (temp_dir / "posts" / "2020-01-01-a.md").write_text("---\ntitle: A\n---\nay\n")
        items = load_items(temp_dir, "posts/*")
        assert [item.identifier for item in items] == ["posts/2020-01-01-a.md", "posts/2020-02-01-b.md"]
        assert items[0].get("title") == "A"
        assert items[0].body == "ay"
        assert not items[0].virtual

    def test_ignores_directories(self, temp_dir):
        (temp_dir / "posts" / "nested").mkdir(parents=True)
        (temp_dir / "posts" / "2020-01-01-a.md").write_text("text\n")
        items = load_items(temp_dir, "posts/*")
        assert len(items) == 1

    def test_overlapping_patterns_are_duplicates(self, temp_dir):
        (temp_dir / "posts").mkdir()
        (temp_dir / "posts" / "2020-01-01-a.md").write_text("text\n")
        with pytest.raises(DuplicateIdentifierError) as excinfo:
            load_items(temp_dir, ["posts/*", "posts/*.md"])
        assert excinfo.value.identifier == "posts/2020-01-01-a.md"

    def test_undecodable_file(self, temp_dir):
        (temp_dir / "posts").mkdir()
        (temp_dir / "posts" / "2020-01-01-a.md").write_bytes(b"\xff\xfe\xfa broken")
        with pytest.raises(LoadError):
            load_items(temp_dir, "posts/*")

    def test_custom_extractor(self, temp_dir):
        (temp_dir / "posts").mkdir()
        (temp_dir / "posts" / "2020-01-01-a.md").write_text("raw\n")

        def extract(text, source):
            return {"source": source}, text.upper()

        items = load_items(temp_dir, "posts/*", extract=extract)
        assert items[0].get("source") == "posts/2020-01-01-a.md"
        assert items[0].body == "RAW\n"
