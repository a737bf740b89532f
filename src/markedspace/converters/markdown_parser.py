"""Markdown parsing into a ``DocumentTree`` using mistune's AST mode."""

from __future__ import annotations

import logging
from functools import lru_cache

import mistune

from .document_tree import DocumentTree, build_tree
from .plugins import alerts, footnote_labels, shortcodes

logger = logging.getLogger(__name__)

# GFM extensions plus description lists and superscript.
PLUGINS = [
    "table",
    "strikethrough",
    "footnotes",
    footnote_labels,
    "task_lists",
    "def_list",
    "superscript",
    alerts,
    shortcodes,
]


@lru_cache(maxsize=1)
def create_parser() -> mistune.Markdown:
    """Markdown instance producing AST tokens instead of HTML."""
    return mistune.create_markdown(renderer=None, plugins=PLUGINS)


def parse_markdown(text: str) -> DocumentTree:
    """Parse Markdown text into a document tree.

    Args:
        text: Markdown source.

    Returns:
        ``DocumentTree`` rooted at ``DocumentTree.ROOT``.

    Examples:
        >>> tree = parse_markdown("# Title")
        >>> tree.kind(tree.children(tree.ROOT)[0]).value
        'heading'
    """
    tokens = create_parser()(text)
    tree = build_tree(tokens)
    logger.debug("Parsed %d tokens into %d nodes", len(tokens), len(tree))
    return tree
