from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

from .config import SiteConfig, load_config
from .drafts import DRAFTS_ENV, BuildMode
from .errors import BuildError
from .site import build_site
from .utils import check_output_dir


def parse_args(argv=None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)

    parser = argparse.ArgumentParser(description="Build the static blog.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--content", default=None, help="Directory containing posts, templates and assets.")
    parser.add_argument("--output", default=None, help="Output directory for the site.")
    parser.add_argument("--templates", default=None, help="Templates directory (relative to the content directory).")
    parser.add_argument(
        "--workers",
        default=None,
        type=int,
        help="Number of worker threads for rendering (0 = auto).",
    )
    parser.add_argument(
        "--drafts",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=f"Include draft posts (default: {DRAFTS_ENV}=true in the environment).",
    )
    return parser.parse_args(argv)


def make_config(args: argparse.Namespace) -> SiteConfig:
    config_path = Path(args.config)
    data = load_config(config_path)
    for key, value in (
        ("content_dir", args.content),
        ("output_dir", args.output),
        ("templates_dir", args.templates),
        ("workers", args.workers),
    ):
        if value is not None:
            data[key] = value
    return SiteConfig.from_mapping(data, base=config_path.resolve().parent)


def main(argv=None) -> None:
    args = parse_args(argv)
    config = make_config(args)
    if args.drafts is None:
        mode = BuildMode.from_env(os.environ)
    else:
        mode = BuildMode(include_drafts=args.drafts)
    check_output_dir(config.output_dir, config.content_dir)

    start = time.perf_counter()
    try:
        outputs = build_site(config, mode)
    except BuildError as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    drafts_note = " (including drafts)" if mode.include_drafts else ""
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Wrote {len(outputs)} files{drafts_note} to: {config.output_dir}")
