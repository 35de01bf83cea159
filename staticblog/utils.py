from __future__ import annotations

import datetime as dt
import re
import sys
from pathlib import Path

SLUG_RE = re.compile(r"[^\w]+", re.UNICODE)


def slugify(text: str) -> str:
    text = text.lower()
    text = SLUG_RE.sub("-", text)
    text = text.strip("-_").replace("_", "-")
    return text or "tag"


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_str_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def iso_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    value = value.astimezone(dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def display_date(value: dt.datetime) -> str:
    return f"{value.day} {value:%B %Y}"


def check_output_dir(output_dir: Path, project_root: Path) -> None:
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        print("Refusing to replace project root.", file=sys.stderr)
        sys.exit(1)
    if root_resolved.is_relative_to(output_resolved):
        print("Refusing to replace a directory containing the project.", file=sys.stderr)
        sys.exit(1)
