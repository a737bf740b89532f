"""Markdown to Confluence storage format conversion."""

from .alerts import AlertType, alert_markup
from .document_tree import DocumentTree, Node, NodeKind, Phase, build_tree
from .markdown_parser import create_parser, parse_markdown
from .storage_renderer import StorageRenderer, render_storage

__all__ = [
    "AlertType",
    "DocumentTree",
    "Node",
    "NodeKind",
    "Phase",
    "StorageRenderer",
    "alert_markup",
    "build_tree",
    "create_parser",
    "parse_markdown",
    "render_storage",
]
