from __future__ import annotations

import re
from pathlib import Path

import markdown
from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, UndefinedError, select_autoescape
from jinja2.exceptions import TemplateError as JinjaTemplateError
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .context import Context
from .errors import TemplateError

CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
CSS_SPACE_RE = re.compile(r"\s+")
CSS_PUNCT_RE = re.compile(r"\s*([{};:,>])\s*")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "codehilite"]


def refuse_absent(value: object) -> object:
    # Fields resolve to None when absent; printing one is an error.
    if value is None:
        raise UndefinedError("an absent field was printed")
    return value


def make_environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        undefined=StrictUndefined,
        autoescape=select_autoescape(["html", "xml"]),
        finalize=refuse_absent,
    )


class TemplateStore:
    """Every template under a directory, compiled once up front.

    Unknown names, syntax errors, undefined names and absent fields all
    surface as ``TemplateError``.
    """

    def __init__(self, templates_dir: Path) -> None:
        if not templates_dir.is_dir():
            raise TemplateError(f"Templates directory not found: {templates_dir}")
        self.templates_dir = templates_dir
        self.env = make_environment(templates_dir)
        self.templates: dict[str, Template] = {}
        for name in self.env.list_templates():
            try:
                self.templates[name] = self.env.get_template(name)
            except JinjaTemplateError as exc:
                raise TemplateError(f"{name}: {exc}") from exc

    def get(self, name: str) -> Template:
        try:
            return self.templates[name]
        except KeyError:
            raise TemplateError(f"Template not found: {name}") from None

    def apply(self, name: str, ctx: Context, body: str) -> str:
        template = self.get(name)
        try:
            return template.render(ctx.extend(body=Markup(body)).fields())
        except JinjaTemplateError as exc:
            raise TemplateError(f"{name}: {exc}") from exc


def render_markdown(text: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs={"codehilite": {"guess_lang": False}},
    )
    return md.convert(text)


def syntax_css(style: str) -> str:
    return HtmlFormatter(style=style).get_style_defs(".codehilite")


def compress_css(text: str) -> str:
    text = CSS_COMMENT_RE.sub("", text)
    text = CSS_SPACE_RE.sub(" ", text)
    text = CSS_PUNCT_RE.sub(r"\1", text)
    return text.replace(";}", "}").strip()


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
