from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import Callable

URL_ATTRS = frozenset({"href", "src"})
TAG_NAME_RE = re.compile(r"<[^\s/>]+")
ATTR_RE = re.compile(
    r"""(?P<name>[^\s/>"'=]+)(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s"'>]+))?"""
)
NEWLINE_RE = re.compile(r"\n")
SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
INDEX = "index.html"


class StartTagScanner(HTMLParser):
    """Collects the offset and raw text of every start tag in a document.

    Text, comments and the contents of ``script``/``style`` never produce
    start tags, so markup shown as escaped text is left alone.
    """

    def __init__(self, text: str) -> None:
        super().__init__(convert_charrefs=True)
        # getpos() counts lines by "\n" only.
        self.line_starts = [0] + [match.end() for match in NEWLINE_RE.finditer(text)]
        self.tags: list[tuple[int, str]] = []

    def handle_starttag(self, tag: str, attrs: list) -> None:
        raw = self.get_starttag_text()
        if raw is None:
            return
        line, column = self.getpos()
        self.tags.append((self.line_starts[line - 1] + column, raw))


def rewrite_tag(raw: str, func: Callable[[str], str]) -> str:
    head = TAG_NAME_RE.match(raw)
    if head is None:
        return raw
    pieces = [raw[: head.end()]]
    pos = head.end()
    for match in ATTR_RE.finditer(raw, pos):
        value = match.group("value")
        if value is None or match.group("name").lower() not in URL_ATTRS:
            continue
        start, end = match.span("value")
        if value[0] in "\"'":
            start, end = start + 1, end - 1
        pieces.append(raw[pos:start])
        pieces.append(func(raw[start:end]))
        pos = end
    pieces.append(raw[pos:])
    return "".join(pieces)


def is_external(url: str) -> bool:
    return url.startswith("//") or bool(SCHEME_RE.match(url))


def with_urls(text: str, func: Callable[[str], str]) -> str:
    """Apply ``func`` to the href and src attribute values of every start tag."""
    scanner = StartTagScanner(text)
    scanner.feed(text)
    scanner.close()
    pieces = []
    pos = 0
    for offset, raw in scanner.tags:
        if text.startswith(raw, offset):
            pieces.append(text[pos:offset])
            pieces.append(rewrite_tag(raw, func))
            pos = offset + len(raw)
    pieces.append(text[pos:])
    return "".join(pieces)


def site_root(output_path: str) -> str:
    depth = output_path.strip("/").count("/")
    if depth == 0:
        return "."
    return "/".join([".."] * depth)


def relativize_urls(text: str, output_path: str) -> str:
    root = site_root(output_path)

    def relativize(url: str) -> str:
        if url.startswith("/") and not url.startswith("//"):
            return root + url
        return url

    return with_urls(text, relativize)


def clean_index_url(url: str, external: Callable[[str], bool] = is_external) -> str:
    if external(url):
        return url
    cut = len(url)
    for marker in "?#":
        pos = url.find(marker)
        if pos != -1:
            cut = min(cut, pos)
    path, rest = url[:cut], url[cut:]
    if path == INDEX:
        return "./" + rest
    if path.endswith("/" + INDEX):
        return path[: -len(INDEX)] + rest
    return url


def clean_index_urls(text: str, external: Callable[[str], bool] = is_external) -> str:
    return with_urls(text, lambda url: clean_index_url(url, external))


def process_urls(text: str, output_path: str) -> str:
    # Root-absolute links are made relative before index.html is stripped.
    return clean_index_urls(relativize_urls(text, output_path))
