from __future__ import annotations

import datetime as dt
import html
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .config import SiteConfig
from .content import ContentItem, load_items, match_sources
from .context import ChainContext, Context, FieldContext, PostContext
from .drafts import BuildMode, filter_drafts
from .errors import LoadError
from .feed import FeedConfig, build_feed, render_atom
from .pipeline import OutputFile, Pipeline, collect_outputs, parallel_map, publish, resolve_workers
from .render import TemplateStore, compress_css, render_markdown, syntax_css
from .routes import HOME_PATH, PROJECTS_PATH, RouteResolver, RouteTable, url_for
from .tags import TagIndex, build_tag_index
from .urls import process_urls
from .views import DerivedView, archive_view, home_view, post_context, projects_view, tag_views

POST_TEMPLATES = ("post.html", "default.html")
SNAPSHOT_TEMPLATE = "post-body.html"
SYNTAX_CSS_PATH = "css/syntax.css"


@dataclass(frozen=True)
class RenderedPosts:
    items: dict[str, ContentItem]
    contexts: dict[str, PostContext]
    pages: tuple[OutputFile, ...]

    def ordered(self, identifiers: Sequence[str]) -> list[ContentItem]:
        return [self.items[identifier] for identifier in identifiers]


def tag_links(index: TagIndex, identifier: str) -> Optional[str]:
    tags = index.tags_for(identifier)
    if not tags:
        return None
    return ", ".join(f'<a href="{url_for(index.path_for(tag))}">{html.escape(tag)}</a>' for tag in tags)


def render_chain(store: TemplateStore, templates: Sequence[str], ctx: Context, body: str = "") -> str:
    for name in templates:
        body = store.apply(name, ctx, body)
    return body


def render_view(view: DerivedView, store: TemplateStore, site_ctx: Context) -> OutputFile:
    text = render_chain(store, view.templates, ChainContext(view.context, site_ctx))
    return OutputFile(view.output, process_urls(text, view.output))


class SiteBuilder:
    """Declares the blog's task graph for one build."""

    def __init__(self, config: SiteConfig, mode: BuildMode, build_time: Optional[dt.datetime] = None) -> None:
        self.config = config
        self.mode = mode
        self.build_time = build_time
        self.workers = resolve_workers(config.workers)
        self.resolver = RouteResolver(config.section_renames, config.blog_section)
        self.site_ctx = FieldContext(
            {
                "site_title": config.site_title,
                "site_description": config.site_description,
                "author_name": config.author_name,
            }
        )
        self.feed_config = FeedConfig(
            title=config.site_title,
            root=config.site_root,
            description=config.site_description,
            author_name=config.author_name,
            author_email=config.author_email,
        )

    def pipeline(self) -> Pipeline:
        p = Pipeline(workers=self.workers)
        p.add("templates", lambda r: TemplateStore(self.config.templates_dir))
        p.add("load", lambda r: load_items(self.config.content_dir, self.config.posts_pattern))
        p.add("posts", lambda r: filter_drafts(r["load"], self.mode), ["load"])
        p.add("tags", self.build_tags, ["posts"])
        p.add("routes", self.build_routes, ["posts", "tags"])
        p.add("rendered", self.render_posts, ["posts", "tags", "routes", "templates"])
        p.add("tag-pages", self.render_tag_pages, ["tags", "rendered", "templates"])
        p.add("archive", self.render_archive, ["posts", "rendered", "routes", "templates"])
        p.add("home", self.render_home, ["posts", "tags", "rendered", "templates"])
        p.add("projects", self.render_projects, ["templates"])
        p.add("feed", self.render_feed, ["posts", "rendered", "routes"])
        p.add("tag-feeds", self.render_tag_feeds, ["tags", "rendered", "routes"])
        p.add("static", lambda r: self.static_files())
        p.add("css", lambda r: self.css_files())
        output_tasks = ["rendered", "tag-pages", "archive", "home", "projects", "feed", "tag-feeds", "static", "css"]
        p.add("outputs", self.collect, output_tasks)
        return p

    def build_tags(self, r: Mapping[str, object]) -> TagIndex:
        return build_tag_index(r["posts"], self.resolver.tag_path, self.config.tag_field)

    def build_routes(self, r: Mapping[str, object]) -> RouteTable:
        table = RouteTable()
        for item in r["posts"]:
            table.add(item.identifier, self.resolver.resolve(item.identifier))
        index: TagIndex = r["tags"]
        for tag in index.tags:
            table.add(f"tag:{tag}", index.path_for(tag))
        for tag in self.config.feed_tags:
            table.add(f"tag-feed:{tag}", self.resolver.tag_feed_path(tag))
        table.add("archive", self.resolver.archive_path())
        table.add("feed", self.resolver.feed_path())
        table.add("home", HOME_PATH)
        table.add("projects", PROJECTS_PATH)
        return table

    def render_posts(self, r: Mapping[str, object]) -> RenderedPosts:
        index: TagIndex = r["tags"]
        routes: RouteTable = r["routes"]
        store: TemplateStore = r["templates"]

        def render_post(item: ContentItem) -> tuple[ContentItem, PostContext, OutputFile]:
            output = routes[item.identifier]
            links = tag_links(index, item.identifier)
            ctx = post_context(item, output, links)
            content = render_markdown(item.body)
            page_ctx = ChainContext(ctx, self.site_ctx)
            snapshot = render_chain(store, [SNAPSHOT_TEMPLATE], page_ctx, content)
            page = render_chain(store, POST_TEMPLATES, page_ctx, snapshot)
            snapshotted = item.with_snapshot(snapshot)
            return snapshotted, post_context(snapshotted, output, links), OutputFile(output, process_urls(page, output))

        results = parallel_map(render_post, r["posts"], self.workers)
        return RenderedPosts(
            items={item.identifier: item for item, _, _ in results},
            contexts={item.identifier: ctx for item, ctx, _ in results},
            pages=tuple(page for _, _, page in results),
        )

    def render_tag_pages(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        views = tag_views(r["tags"], rendered.items, rendered.contexts)
        return parallel_map(lambda view: render_view(view, r["templates"], self.site_ctx), views, self.workers)

    def render_archive(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        posts = rendered.ordered([item.identifier for item in r["posts"]])
        title = f"{self.config.site_title} - Blog Archives"
        view = archive_view(posts, rendered.contexts, r["routes"]["archive"], title)
        return [render_view(view, r["templates"], self.site_ctx)]

    def render_home(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        index: TagIndex = r["tags"]
        posts = rendered.ordered([item.identifier for item in r["posts"]])
        recommended = rendered.ordered(index.items_for(self.config.recommended_tag))
        view = home_view(posts, recommended, rendered.contexts, self.config.site_title)
        return [render_view(view, r["templates"], self.site_ctx)]

    def render_projects(self, r: Mapping[str, object]) -> list[OutputFile]:
        view = projects_view(self.config.projects, f"{self.config.site_title} - Projects")
        return [render_view(view, r["templates"], self.site_ctx)]

    def render_feed(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        routes: RouteTable = r["routes"]
        posts = rendered.ordered([item.identifier for item in r["posts"]])
        path = routes["feed"]
        feed = build_feed(posts, routes.__getitem__, self.feed_config, path, self.config.feed_limit, self.build_time)
        return [OutputFile(path, render_atom(feed))]

    def render_tag_feeds(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        routes: RouteTable = r["routes"]
        index: TagIndex = r["tags"]
        outputs = []
        for tag in self.config.feed_tags:
            path = routes[f"tag-feed:{tag}"]
            posts = rendered.ordered(index.items_for(tag))
            feed = build_feed(
                posts, routes.__getitem__, self.feed_config, path, self.config.feed_limit, self.build_time
            )
            outputs.append(OutputFile(path, render_atom(feed)))
        return outputs

    def static_files(self) -> list[OutputFile]:
        outputs = []
        for pattern in self.config.static_patterns:
            for identifier, path in match_sources(self.config.content_dir, pattern):
                outputs.append(OutputFile(identifier, source=path))
        return outputs

    def css_files(self) -> list[OutputFile]:
        outputs = [OutputFile(SYNTAX_CSS_PATH, syntax_css(self.config.pygments_style))]
        for identifier, path in match_sources(self.config.content_dir, self.config.css_pattern):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise LoadError(f"Cannot read {identifier}: {exc}") from exc
            outputs.append(OutputFile(identifier, compress_css(text)))
        return outputs

    def collect(self, r: Mapping[str, object]) -> list[OutputFile]:
        rendered: RenderedPosts = r["rendered"]
        groups = [rendered.pages]
        for name in ("tag-pages", "archive", "home", "projects", "feed", "tag-feeds", "static", "css"):
            groups.append(r[name])
        return collect_outputs(groups)


def generate_site(
    config: SiteConfig, mode: BuildMode, build_time: Optional[dt.datetime] = None
) -> list[OutputFile]:
    results = SiteBuilder(config, mode, build_time).pipeline().run()
    return results["outputs"]


def build_site(config: SiteConfig, mode: BuildMode) -> list[OutputFile]:
    outputs = generate_site(config, mode)
    publish(outputs, config.output_dir)
    return outputs
