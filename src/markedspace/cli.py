"""Command line entry point.

``markedspace render`` converts Markdown files of a document tree to
Confluence storage format without talking to Confluence. Every file is
parsed and registered before the first one is rendered, so links between
the given files resolve regardless of their order on the command line.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import ensure_config, load_unified_config
from .config_schema import RawHtmlMode
from .errors import MarkedspaceError
from .file_handler import write_file
from .link_registry import LinkRegistry
from .logger import setup_logging
from .markdown_page import MarkdownPage

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".xml"


def render_files(
    files: list[str], config: Config, output_dir: str | None = None
) -> list[Path]:
    """Register and render ``files``.

    Args:
        files: Markdown files inside ``config.space_dir``.
        config: Resolved configuration.
        output_dir: Directory receiving ``{source}.xml`` files; when None the
            markup is printed to stdout.

    Returns:
        Paths written (empty when printing to stdout).

    Raises:
        MarkedspaceError: On duplicate titles, pages without a title or
            missing parent pages.
        ValueError: If a file is missing or outside the space directory.
        OSError: If an output file cannot be written.
    """
    registry = LinkRegistry.from_config(config.space)

    pages = [MarkdownPage.from_file(f, config.space_dir) for f in files]
    for page in pages:
        registry.register_page(page)
    logger.info("Registered %d pages", len(pages))

    written: list[Path] = []
    for page in pages:
        rendered = page.render(registry, config.render_options)
        if output_dir is None:
            print(rendered.content, end="")
            continue
        target = Path(output_dir) / f"{rendered.source}{OUTPUT_SUFFIX}"
        size = write_file(target, rendered.content)
        logger.info("Wrote %s (%d bytes)", target, size)
        written.append(target)
    return written


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markedspace",
        description="markedspace - render Markdown document trees to "
        "Confluence storage format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Render one page to stdout
  markedspace render docs/index.md --space-dir docs

  # Render a tree into an output directory
  markedspace render docs/*.md docs/**/*.md --space-dir docs --output build

  # Write a starter config file
  markedspace init
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"markedspace version {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser(
        "render", help="Render Markdown files to storage format"
    )
    render.add_argument("files", nargs="+", metavar="FILE")
    render.add_argument(
        "--space-dir",
        help="Root directory of the document tree "
        "(default: space.directory from config, else .)",
    )
    render.add_argument(
        "--output",
        help="Write {source}.xml files under this directory instead of stdout",
    )
    render.add_argument(
        "--raw-html",
        choices=[m.value for m in RawHtmlMode],
        help="Raw HTML handling (takes precedence over MARKEDSPACE_RAW_HTML)",
    )
    render.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    render.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    render.add_argument("--log-file", help="Also append log records here")

    subparsers.add_parser("init", help="Write a starter config file")
    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = _build_parser().parse_args(argv)
    load_dotenv()

    try:
        if args.command == "init":
            path = ensure_config()
            print(f"Config file: {path}", file=sys.stderr)
            return

        unified = load_unified_config()
        config = load_config(
            space_dir=args.space_dir,
            raw_html=args.raw_html,
            debug=args.debug,
            yaml_config=unified,
        )
        setup_logging(
            debug=config.debug,
            log_file=args.log_file or unified.logging.file,
            debug_format=args.debug_format,
            level=unified.logging.level,
        )
        render_files(args.files, config, args.output)
    except (MarkedspaceError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
