"""Arena-backed document tree built from mistune's AST.

mistune (with ``renderer=None``) returns nested token dicts. The storage
renderer needs parent links (for tight-list and table lookups), sibling
queries and the ability to detach the title heading, so tokens are copied
into a flat arena: every node lives in ``DocumentTree.nodes`` and refers to
its parent and children by integer index.

Both ``build_tree()`` and the tree walks below are iterative, so document
depth is never limited by the interpreter's recursion limit.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Traversal phase of a node: opening markup is written in PRE, before
    the children; closing markup in POST, after them."""

    PRE = "pre"
    POST = "post"


class NodeKind(str, Enum):
    """Node kinds understood by the storage renderer."""

    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    EMPH = "emph"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    SUPERSCRIPT = "superscript"
    CODE = "code"
    CODE_BLOCK = "code_block"
    HTML_BLOCK = "html_block"
    HTML_INLINE = "html_inline"
    BLOCK_QUOTE = "block_quote"
    LIST = "list"
    ITEM = "item"
    TASK_ITEM = "task_item"
    DESCRIPTION_LIST = "description_list"
    DESCRIPTION_ITEM = "description_item"
    DESCRIPTION_TERM = "description_term"
    DESCRIPTION_DETAILS = "description_details"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    LINK = "link"
    IMAGE = "image"
    FOOTNOTE_DEFINITION = "footnote_definition"
    FOOTNOTE_REFERENCE = "footnote_reference"
    ALERT = "alert"
    THEMATIC_BREAK = "thematic_break"
    LINE_BREAK = "line_break"
    SOFT_BREAK = "soft_break"
    SHORT_CODE = "short_code"
    UNKNOWN = "unknown"


@dataclass
class Node:
    """One node of the arena.

    Attributes:
        kind: Node kind.
        parent: Index of the parent node (None for the document root and
            for detached nodes).
        children: Indices of the child nodes, in document order.
        literal: Text content of literal nodes (text, code, raw HTML, code
            blocks, short codes).
        attrs: Kind-specific attributes, e.g. ``level`` for headings,
            ``url``/``title`` for links and images, ``tight``/``ordered``/
            ``start`` for lists, ``alignments`` for tables.
    """

    kind: NodeKind
    parent: int | None = None
    children: list[int] = field(default_factory=list)
    literal: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)


class DocumentTree:
    """Arena of ``Node`` objects addressed by index; index 0 is the root."""

    ROOT = 0

    def __init__(self) -> None:
        self.nodes: list[Node] = [Node(NodeKind.DOCUMENT)]

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, ix: int) -> Node:
        return self.nodes[ix]

    def add(
        self,
        kind: NodeKind,
        parent: int | None,
        literal: str = "",
        **attrs: Any,
    ) -> int:
        """Append a node as the last child of ``parent`` and return its index."""
        ix = len(self.nodes)
        self.nodes.append(
            Node(kind=kind, parent=parent, literal=literal, attrs=attrs)
        )
        if parent is not None:
            self.nodes[parent].children.append(ix)
        return ix

    def kind(self, ix: int) -> NodeKind:
        return self.nodes[ix].kind

    def parent(self, ix: int) -> int | None:
        return self.nodes[ix].parent

    def children(self, ix: int) -> list[int]:
        return self.nodes[ix].children

    def detach(self, ix: int) -> None:
        """Unlink a node from its parent's child list.

        The node stays in the arena (indices are stable) but is no longer
        reachable from the root.
        """
        parent = self.nodes[ix].parent
        if parent is None:
            return
        self.nodes[parent].children.remove(ix)
        self.nodes[ix].parent = None

    def previous_sibling(self, ix: int) -> int | None:
        parent = self.nodes[ix].parent
        if parent is None:
            return None
        siblings = self.nodes[parent].children
        pos = siblings.index(ix)
        return siblings[pos - 1] if pos > 0 else None

    def next_sibling(self, ix: int) -> int | None:
        parent = self.nodes[ix].parent
        if parent is None:
            return None
        siblings = self.nodes[parent].children
        pos = siblings.index(ix)
        return siblings[pos + 1] if pos + 1 < len(siblings) else None

    def iter_preorder(self, ix: int = ROOT) -> Iterator[int]:
        """Yield ``ix`` and all its descendants in document order."""
        stack = [ix]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def text_content(self, ix: int) -> str:
        """Concatenated text below ``ix``; line and soft breaks become spaces."""
        parts: list[str] = []
        for current in self.iter_preorder(ix):
            node = self.nodes[current]
            if node.kind in (
                NodeKind.TEXT,
                NodeKind.CODE,
                NodeKind.SHORT_CODE,
            ):
                parts.append(node.literal)
            elif node.kind in (NodeKind.LINE_BREAK, NodeKind.SOFT_BREAK):
                parts.append(" ")
        return "".join(parts)

    def find_all(self, kind: NodeKind, ix: int = ROOT) -> list[int]:
        return [n for n in self.iter_preorder(ix) if self.nodes[n].kind == kind]


# =============================================================================
# mistune token -> arena conversion
# =============================================================================

# Token types that map one-to-one onto a container node.
_CONTAINERS: dict[str, NodeKind] = {
    "paragraph": NodeKind.PARAGRAPH,
    "block_text": NodeKind.PARAGRAPH,
    "emphasis": NodeKind.EMPH,
    "strong": NodeKind.STRONG,
    "strikethrough": NodeKind.STRIKETHROUGH,
    "superscript": NodeKind.SUPERSCRIPT,
    "block_quote": NodeKind.BLOCK_QUOTE,
    "list_item": NodeKind.ITEM,
}

# Token types that carry their content in ``raw`` and have no children.
_LITERALS: dict[str, NodeKind] = {
    "codespan": NodeKind.CODE,
    "inline_html": NodeKind.HTML_INLINE,
    "block_html": NodeKind.HTML_BLOCK,
}

_ATOMS: dict[str, NodeKind] = {
    "linebreak": NodeKind.LINE_BREAK,
    "softbreak": NodeKind.SOFT_BREAK,
    "thematic_break": NodeKind.THEMATIC_BREAK,
}

_Work = list[tuple[dict[str, Any], int]]


class _TreeBuilder:
    """Copies a mistune token list into a ``DocumentTree``."""

    def __init__(self) -> None:
        self.tree = DocumentTree()
        self._footnote_refs: dict[str, int] = {}
        self._footnote_labels: dict[str, str] = {}

    def build(self, tokens: list[dict[str, Any]]) -> DocumentTree:
        stack: _Work = [(tok, DocumentTree.ROOT) for tok in reversed(tokens)]
        while stack:
            token, parent = stack.pop()
            work = self._convert(token, parent)
            stack.extend(reversed(work))

        for ix in self.tree.find_all(NodeKind.FOOTNOTE_DEFINITION):
            node = self.tree[ix]
            node.attrs["total_references"] = self._footnote_refs.get(
                node.attrs["name"], 0
            )
        return self.tree

    @staticmethod
    def _children(token: dict[str, Any], parent: int) -> _Work:
        return [(child, parent) for child in token.get("children", ())]

    def _convert(self, token: dict[str, Any], parent: int) -> _Work:
        """Add the node(s) for ``token`` and return the child tokens still to
        convert, paired with the index they attach to."""
        tree = self.tree
        kind = token["type"]
        attrs = token.get("attrs", {})

        if kind == "blank_line":
            return []

        if kind == "text":
            tree.add(NodeKind.TEXT, parent, html.unescape(token["raw"]))
            return []

        if kind in _LITERALS:
            tree.add(_LITERALS[kind], parent, token["raw"])
            return []

        if kind in _ATOMS:
            tree.add(_ATOMS[kind], parent)
            return []

        if kind in _CONTAINERS:
            ix = tree.add(_CONTAINERS[kind], parent)
            return self._children(token, ix)

        if kind == "heading":
            ix = tree.add(NodeKind.HEADING, parent, level=attrs["level"])
            return self._children(token, ix)

        if kind == "block_code":
            tree.add(
                NodeKind.CODE_BLOCK,
                parent,
                token["raw"],
                info=attrs.get("info", ""),
            )
            return []

        if kind == "list":
            ix = tree.add(
                NodeKind.LIST,
                parent,
                ordered=attrs.get("ordered", False),
                start=attrs.get("start", 1),
                tight=token.get("tight", True),
            )
            return self._children(token, ix)

        if kind == "task_list_item":
            ix = tree.add(
                NodeKind.TASK_ITEM, parent, checked=attrs.get("checked", False)
            )
            return self._children(token, ix)

        if kind in ("link", "image"):
            node_kind = NodeKind.LINK if kind == "link" else NodeKind.IMAGE
            ix = tree.add(
                node_kind,
                parent,
                url=attrs.get("url", ""),
                title=attrs.get("title") or "",
            )
            return self._children(token, ix)

        if kind == "alert":
            ix = tree.add(
                NodeKind.ALERT,
                parent,
                alert_type=attrs["alert_type"],
                title=attrs.get("title"),
            )
            return self._children(token, ix)

        if kind == "short_code":
            tree.add(
                NodeKind.SHORT_CODE,
                parent,
                attrs["emoji"],
                code=token["raw"],
            )
            return []

        if kind == "table":
            return self._convert_table(token, parent)

        if kind == "def_list":
            return self._convert_def_list(token, parent)

        if kind == "footnotes":
            # Definitions hang directly off the document, after the body.
            return self._children(token, parent)

        if kind == "footnote_item":
            ix = tree.add(
                NodeKind.FOOTNOTE_DEFINITION,
                parent,
                name=self._footnote_labels.get(attrs["key"], attrs["key"]),
                ix=attrs["index"],
            )
            return self._children(token, ix)

        if kind == "footnote_ref":
            # Label as first written; the parser's key is case-normalised.
            name = self._footnote_labels.setdefault(
                token["raw"], attrs.get("label", token["raw"])
            )
            ref_num = self._footnote_refs.get(name, 0) + 1
            self._footnote_refs[name] = ref_num
            tree.add(
                NodeKind.FOOTNOTE_REFERENCE,
                parent,
                name=name,
                ix=attrs["index"],
                ref_num=ref_num,
            )
            return []

        logger.debug("Unhandled token type %r", kind)
        ix = tree.add(
            NodeKind.UNKNOWN, parent, token.get("raw", ""), token_type=kind
        )
        return self._children(token, ix)

    def _convert_table(self, token: dict[str, Any], parent: int) -> _Work:
        tree = self.tree
        head, body = token["children"][0], token["children"][1]
        alignments = [cell["attrs"].get("align") for cell in head["children"]]
        table = tree.add(NodeKind.TABLE, parent, alignments=alignments)

        rows = [(head, True)] + [(row, False) for row in body["children"]]
        work: _Work = []
        for row, header in rows:
            row_ix = tree.add(NodeKind.TABLE_ROW, table, header=header)
            for cell in row["children"]:
                cell_ix = tree.add(NodeKind.TABLE_CELL, row_ix)
                work.extend(self._children(cell, cell_ix))
        return work

    def _convert_def_list(self, token: dict[str, Any], parent: int) -> _Work:
        """Group mistune's flat head/item sequence into description items.

        Consecutive terms share one item; each definition after them becomes
        a details node of that item.
        """
        tree = self.tree
        dl = tree.add(NodeKind.DESCRIPTION_LIST, parent)
        item: int | None = None
        has_details = False
        work: _Work = []
        for child in token["children"]:
            if child["type"] == "def_list_head":
                if item is None or has_details:
                    item = tree.add(NodeKind.DESCRIPTION_ITEM, dl)
                    has_details = False
                term = tree.add(NodeKind.DESCRIPTION_TERM, item)
                para = tree.add(NodeKind.PARAGRAPH, term)
                work.extend(self._children(child, para))
            else:
                if item is None:
                    item = tree.add(NodeKind.DESCRIPTION_ITEM, dl)
                details = tree.add(NodeKind.DESCRIPTION_DETAILS, item)
                has_details = True
                work.extend(self._children(child, details))
        return work


def build_tree(tokens: list[dict[str, Any]]) -> DocumentTree:
    """Convert a mistune AST (``renderer=None`` output) into a ``DocumentTree``.

    Args:
        tokens: Token list returned by a mistune ``Markdown`` instance
            created without a renderer.

    Returns:
        The populated tree; the root is ``DocumentTree.ROOT``.
    """
    return _TreeBuilder().build(tokens)
