from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .context import Project
from .utils import parse_int, parse_str_list

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

DEFAULT_STATIC_PATTERNS = ("images/**/*", "css/fonts/**/*", "p/**/*")


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def parse_projects(value: object) -> list[Project]:
    if value is None:
        return []
    if not isinstance(value, list):
        print("Config key 'projects' must be a list.", file=sys.stderr)
        sys.exit(1)
    projects = []
    for entry in value:
        if not isinstance(entry, dict) or not entry.get("name") or not entry.get("source_url"):
            print(f"Project entries need 'name' and 'source_url': {entry!r}", file=sys.stderr)
            sys.exit(1)
        page_url = entry.get("page_url")
        projects.append(
            Project(
                name=str(entry["name"]),
                source_url=str(entry["source_url"]),
                page_url=str(page_url) if page_url else None,
                description=str(entry.get("description") or ""),
            )
        )
    return projects


@dataclass
class SiteConfig:
    site_title: str = "My Blog"
    site_description: str = ""
    author_name: str = ""
    author_email: str = ""
    site_root: str = "http://localhost"
    content_dir: Path = Path(".")
    output_dir: Path = Path("_site")
    templates_dir: Path = Path("templates")
    posts_pattern: str = "posts/*"
    section_renames: dict = field(default_factory=lambda: {"posts": "blog"})
    tag_field: str = "tags"
    feed_limit: int = 10
    feed_tags: list = field(default_factory=list)
    recommended_tag: str = "recommended"
    static_patterns: list = field(default_factory=lambda: list(DEFAULT_STATIC_PATTERNS))
    css_pattern: str = "css/*.css"
    pygments_style: str = "default"
    workers: int = 0
    projects: list = field(default_factory=list)

    @property
    def blog_section(self) -> str:
        section = self.posts_pattern.split("/", 1)[0]
        return self.section_renames.get(section, section)

    def resolve_paths(self, base: Path) -> "SiteConfig":
        if not self.content_dir.is_absolute():
            self.content_dir = base / self.content_dir
        if not self.output_dir.is_absolute():
            self.output_dir = base / self.output_dir
        if not self.templates_dir.is_absolute():
            self.templates_dir = self.content_dir / self.templates_dir
        return self

    @classmethod
    def from_mapping(cls, data: dict, base: Optional[Path] = None) -> "SiteConfig":
        defaults = cls()

        def get_str(key: str) -> str:
            value = data.get(key)
            return getattr(defaults, key) if value is None else str(value)

        renames = data.get("section_renames")
        if renames is not None and not isinstance(renames, dict):
            print("Config key 'section_renames' must be a mapping.", file=sys.stderr)
            sys.exit(1)
        config = cls(
            site_title=get_str("site_title"),
            site_description=get_str("site_description"),
            author_name=get_str("author_name"),
            author_email=get_str("author_email"),
            site_root=get_str("site_root").rstrip("/"),
            content_dir=Path(get_str("content_dir")) if data.get("content_dir") else defaults.content_dir,
            output_dir=Path(get_str("output_dir")) if data.get("output_dir") else defaults.output_dir,
            templates_dir=Path(get_str("templates_dir")) if data.get("templates_dir") else defaults.templates_dir,
            posts_pattern=get_str("posts_pattern"),
            section_renames={str(k): str(v) for k, v in renames.items()} if renames else defaults.section_renames,
            tag_field=get_str("tag_field"),
            feed_limit=max(0, parse_int(data.get("feed_limit"), defaults.feed_limit)),
            feed_tags=parse_str_list(data.get("feed_tags")),
            recommended_tag=get_str("recommended_tag"),
            static_patterns=(
                parse_str_list(data["static_patterns"]) if "static_patterns" in data else defaults.static_patterns
            ),
            css_pattern=get_str("css_pattern"),
            pygments_style=get_str("pygments_style"),
            workers=parse_int(data.get("workers"), defaults.workers),
            projects=parse_projects(data.get("projects")),
        )
        if base is not None:
            config.resolve_paths(base)
        return config
