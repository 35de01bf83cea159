"""Shared fixtures: a small site on disk."""

import shutil
import tempfile
from pathlib import Path

import pytest

from staticblog.config import SiteConfig
from staticblog.context import Project

TEMPLATES = {
    "default.html": (
        "<html><head><title>{{ title }}</title></head><body>"
        '<nav><a href="/index.html">Home</a> <a href="/blog/index.html">Blog</a></nav>'
        "{{ body }}</body></html>"
    ),
    "post-body.html": "<div class=\"post-body\">{{ body }}</div>",
    "post.html": (
        "<article><h1>{{ title }}</h1><p class=\"date\">{{ date }}</p>"
        "{% if tags is not none %}<p class=\"tags\">{{ tags }}</p>{% endif %}{{ body }}</article>"
    ),
    "tag.html": (
        "<h1>{{ title }}</h1><ul>{% for p in posts %}<li><a href=\"{{ p.url }}\">{{ p.title }}</a></li>{% endfor %}</ul>"
    ),
    "archive.html": (
        "<ul>{% for p in posts %}<li><a href=\"{{ p.url }}\">{{ p.title }}</a> {{ p.date }}</li>{% endfor %}</ul>"
    ),
    "index.html": (
        "<ul class=\"recent\">{% for p in posts %}<li><a href=\"{{ p.url }}\">{{ p.title }}</a></li>{% endfor %}</ul>"
        "{% if recommendedPosts %}<ul class=\"recommended\">"
        "{% for p in recommendedPosts %}<li>{{ p.title }}</li>{% endfor %}</ul>{% endif %}"
    ),
    "projects.html": (
        "<ul>{% for p in projects %}<li><a href=\"{{ p.url }}\">{{ p.name }}</a>"
        "{% if p.source_url is not none %} <a class=\"src\" href=\"{{ p.source_url }}\">source</a>{% endif %}"
        "{{ p.description }}</li>{% endfor %}</ul>"
    ),
}


def post_text(title, tags=None, draft=None, date=None, body="Hello there."):
    lines = ["---", f"title: {title}"]
    if date is not None:
        lines.append(f"date: {date}")
    if tags is not None:
        lines.append(f"tags: {tags}")
    if draft is not None:
        lines.append(f"draft: {draft}")
    lines.append("---")
    lines.append("")
    lines.append(body)
    return "\n".join(lines) + "\n"


def write_site(root, posts, templates=None):
    (root / "posts").mkdir(parents=True, exist_ok=True)
    (root / "templates").mkdir(parents=True, exist_ok=True)
    for name, text in (templates or TEMPLATES).items():
        (root / "templates" / name).write_text(text, encoding="utf-8")
    for name, text in posts.items():
        (root / "posts" / name).write_text(text, encoding="utf-8")


@pytest.fixture
def temp_dir():
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def site_root(temp_dir):
    root = temp_dir / "site"
    write_site(
        root,
        {
            "2020-01-01-first.markdown": post_text("First", tags="x, recommended"),
            "2020-02-01-second.markdown": post_text("Second", tags="x"),
            "2020-03-01-secret.markdown": post_text("Secret", tags="x", draft="true"),
            "2020-04-01-untagged.markdown": post_text("Untagged"),
        },
    )
    (root / "images").mkdir()
    (root / "images" / "logo.png").write_bytes(b"\x89PNG\r\n")
    (root / "css").mkdir()
    (root / "css" / "default.css").write_text("body {\n  color : red;\n}\n/* note */\n", encoding="utf-8")
    return root


@pytest.fixture
def site_config(site_root):
    return SiteConfig(
        site_title="Test Site",
        author_name="Tester",
        site_root="https://example.com",
        content_dir=site_root,
        output_dir=site_root.parent / "out",
        templates_dir=site_root / "templates",
        workers=1,
        projects=[
            Project("Neblen", "https://github.com/example/neblen", None, "A *small* language."),
            Project("Curvey", "https://github.com/example/curvey", "/p/curvey", "Spline editor."),
        ],
    )
