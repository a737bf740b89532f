"""Serialize a ``DocumentTree`` into Confluence storage format.

The renderer walks the tree with an explicit stack of
``(node, plain, phase)`` entries. In ``Phase.PRE`` a node writes its opening
markup and pushes its children in reverse order, so they pop in document
order; in ``Phase.POST`` it writes its closing markup. Inside "plain"
contexts only text content is written and styling nodes are dropped.

Markup follows the HTML flavour of storage format, with Confluence macros
for code blocks, task lists, alerts, images and cross-page links.

Missing link targets never raise: they are written as visible comments
(``<!-- unknown local link: ... -->``) and logged, so one bad link does not
abort a multi-page publish. Only errors from the output sink propagate.
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, TextIO
from urllib.parse import unquote

from ..attachments import is_remote, to_flat_name
from ..config_schema import RawHtmlMode, RenderOptions
from ..errors import LocalLinkError
from ..escaping import escape, escape_href, tagfilter, tagfilter_block
from ..local_link import LocalLink
from .alerts import alert_markup
from .document_tree import DocumentTree, Node, NodeKind, Phase

if TYPE_CHECKING:
    from ..link_registry import LinkRegistry

logger = logging.getLogger(__name__)

CODE_MACRO_ID = "d248891e-ba87-4ba9-becf-edfb21175463"

RAW_HTML_OMITTED = "<!-- raw HTML omitted -->"


class ChildMode(Enum):
    """How the children of a node are visited after its opening markup."""

    NORMAL = "normal"
    PLAIN = "plain"
    SKIP = "skip"


def cdata(text: str) -> str:
    """Wrap text in a CDATA section, splitting any ``]]>`` it contains."""
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


class StorageWriter:
    """Text sink that remembers whether the last character was a newline."""

    def __init__(self, output: TextIO):
        self._output = output
        self.last_was_lf = True

    def write(self, text: str) -> None:
        if not text:
            return
        self.last_was_lf = text[-1] == "\n"
        self._output.write(text)

    def cr(self) -> None:
        """Start a new line unless already at the start of one."""
        if not self.last_was_lf:
            self.write("\n")


class StorageRenderer:
    """Renders one document tree to storage format.

    A renderer holds per-render counters (footnotes written, next task id),
    so each call to ``render()`` or ``write_to()`` starts from scratch.

    Args:
        tree: Parsed document, with its title heading already detached.
        registry: Fully populated link registry (read-only here).
        source: Path of the document relative to the space directory; local
            links are resolved against its directory.
        options: Raw HTML handling.
    """

    def __init__(
        self,
        tree: DocumentTree,
        registry: LinkRegistry,
        *,
        source: str = "",
        options: RenderOptions | None = None,
    ):
        self.tree = tree
        self.registry = registry
        self.source = source.replace("\\", "/")
        self.options = options or RenderOptions()

        parent = str(PurePosixPath(self.source).parent)
        self._relative_dir = "" if parent == "." else parent

        self._out: StorageWriter = StorageWriter(io.StringIO())
        self._footnote_ix = 0
        self._written_footnote_ix = 0
        self._next_task_id = 1
        self._link_closers: dict[int, str] = {}

    def render(self) -> str:
        """Render the whole document and return the markup."""
        buffer = io.StringIO()
        self.write_to(buffer)
        return buffer.getvalue()

    def write_to(self, output: TextIO) -> None:
        """Render the whole document into ``output``.

        Raises:
            OSError: Propagated from ``output``.
        """
        self._out = StorageWriter(output)
        self._footnote_ix = 0
        self._written_footnote_ix = 0
        self._next_task_id = 1
        self._link_closers = {}

        self._format(DocumentTree.ROOT)
        if self._footnote_ix > 0:
            self._out.write("</ol>\n</section>\n")

    # -------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------

    def _format(self, root: int) -> None:
        tree = self.tree
        stack: list[tuple[int, bool, Phase]] = [(root, False, Phase.PRE)]

        while stack:
            ix, plain, phase = stack.pop()

            if phase is Phase.POST:
                self._format_node(ix, Phase.POST)
                continue

            if plain:
                self._format_plain(tree[ix])
                mode = ChildMode.PLAIN
            else:
                stack.append((ix, False, Phase.POST))
                mode = self._format_node(ix, Phase.PRE)

            if mode is ChildMode.SKIP:
                continue
            child_plain = mode is ChildMode.PLAIN
            for child in reversed(tree.children(ix)):
                stack.append((child, child_plain, Phase.PRE))

    def _format_plain(self, node: Node) -> None:
        if node.kind in (NodeKind.TEXT, NodeKind.CODE, NodeKind.HTML_INLINE):
            self._out.write(escape(node.literal))
        elif node.kind in (NodeKind.LINE_BREAK, NodeKind.SOFT_BREAK):
            self._out.write(" ")

    def _format_node(self, ix: int, phase: Phase) -> ChildMode:
        node = self.tree[ix]
        handler = getattr(self, f"_render_{node.kind.value}", None)
        if handler is None:
            return ChildMode.NORMAL
        return handler(ix, node, phase) or ChildMode.NORMAL

    # -------------------------------------------------------------------
    # Block containers
    # -------------------------------------------------------------------

    def _render_block_quote(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.cr()
        if phase is Phase.PRE:
            self._out.write("<blockquote>\n")
        else:
            self._out.write("</blockquote>\n")

    def _has_task_children(self, ix: int) -> bool:
        return any(
            self.tree.kind(child) == NodeKind.TASK_ITEM
            for child in self.tree.children(ix)
        )

    def _render_list(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        ordered = node.attrs.get("ordered", False)
        start = node.attrs.get("start", 1)
        out = self._out

        if phase is Phase.PRE:
            out.cr()
            if not ordered:
                if self._has_task_children(ix):
                    out.write("<ac:task-list>")
                else:
                    out.write("<ul>\n")
            elif start == 1:
                out.write("<ol>\n")
            else:
                out.write(f'<ol start="{start}">\n')
        elif not ordered:
            if self._has_task_children(ix):
                out.write("</ac:task-list>\n")
            else:
                out.write("</ul>\n")
        else:
            out.write("</ol>\n")

    def _render_item(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.cr()
            self._out.write("<li>")
        else:
            self._out.write("</li>\n")

    def _render_task_item(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        out = self._out
        if phase is Phase.PRE:
            status = "complete" if node.attrs.get("checked") else "incomplete"
            out.cr()
            out.write(
                f"<ac:task><ac:task-id>{self._next_task_id}</ac:task-id>"
                f"<ac:task-status>{status}</ac:task-status><ac:task-body>"
            )
            self._next_task_id += 1
        else:
            out.write("</ac:task-body></ac:task>\n")

    def _render_description_list(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.cr()
            self._out.write("<dl>")
        else:
            self._out.write("</dl>\n")

    def _render_description_term(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.write("<dt>" if phase is Phase.PRE else "</dt>\n")

    def _render_description_details(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.write("<dd>" if phase is Phase.PRE else "</dd>\n")

    def _render_heading(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        level = node.attrs["level"]
        if phase is Phase.PRE:
            self._out.cr()
            self._out.write(f"<h{level}>")
        else:
            self._out.write(f"</h{level}>\n")

    def _render_paragraph(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        tree = self.tree
        parent = node.parent
        grandparent = tree.parent(parent) if parent is not None else None

        tight = (
            grandparent is not None
            and tree.kind(grandparent) == NodeKind.LIST
            and tree[grandparent].attrs.get("tight", False)
        )
        tight = tight or (
            parent is not None and tree.kind(parent) == NodeKind.DESCRIPTION_TERM
        )
        if tight:
            return

        if phase is Phase.PRE:
            self._out.cr()
            self._out.write("<p>")
            return

        if (
            parent is not None
            and tree.kind(parent) == NodeKind.FOOTNOTE_DEFINITION
            and tree.next_sibling(ix) is None
        ):
            self._out.write(" ")
            self._put_footnote_backref(tree[parent])
        self._out.write("</p>\n")

    def _render_alert(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.cr()
        self._out.write(
            alert_markup(node.attrs["alert_type"], node.attrs.get("title"), phase)
        )

    # -------------------------------------------------------------------
    # Leaf blocks
    # -------------------------------------------------------------------

    def _render_code_block(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            return
        out = self._out
        out.cr()
        out.write(
            '<ac:structured-macro ac:name="code" ac:schema-version="1" '
            f'ac:macro-id="{CODE_MACRO_ID}">'
            '<ac:parameter ac:name="language">'
            f"{escape(node.attrs.get('info') or '')}</ac:parameter>"
            f"<ac:plain-text-body>{cdata(node.literal.rstrip())}"
            "</ac:plain-text-body></ac:structured-macro>"
        )

    def _render_html_block(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            return
        self._out.cr()
        literal = node.literal
        mode = self.options.raw_html
        if mode is RawHtmlMode.ESCAPE:
            self._out.write(escape(literal))
        elif mode is RawHtmlMode.OMIT:
            self._out.write(RAW_HTML_OMITTED)
        elif self.options.tagfilter:
            self._out.write(tagfilter_block(literal))
        else:
            self._out.write(literal)
        self._out.cr()

    def _render_thematic_break(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.cr()
            self._out.write("<hr />\n")

    # -------------------------------------------------------------------
    # Inlines
    # -------------------------------------------------------------------

    def _render_text(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.write(escape(node.literal))

    def _render_line_break(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.write("<br />\n")

    def _render_soft_break(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        # Confluence keeps newlines as hard breaks.
        if phase is Phase.PRE:
            self._out.write(" ")

    def _render_code(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.write(f"<code>{escape(node.literal)}</code>")

    def _render_html_inline(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            return
        literal = node.literal
        mode = self.options.raw_html
        if mode is RawHtmlMode.ESCAPE:
            self._out.write(escape(literal))
        elif mode is RawHtmlMode.OMIT:
            self._out.write(RAW_HTML_OMITTED)
        elif self.options.tagfilter and tagfilter(literal):
            self._out.write("&lt;" + literal[1:])
        else:
            self._out.write(literal)

    def _render_strong(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        parent = node.parent
        if parent is not None and self.tree.kind(parent) == NodeKind.STRONG:
            return
        self._out.write("<strong>" if phase is Phase.PRE else "</strong>")

    def _render_emph(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.write("<em>" if phase is Phase.PRE else "</em>")

    def _render_strikethrough(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.write("<del>" if phase is Phase.PRE else "</del>")

    def _render_superscript(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        self._out.write("<sup>" if phase is Phase.PRE else "</sup>")

    def _render_short_code(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.PRE:
            self._out.write(node.literal)

    # -------------------------------------------------------------------
    # Links and images
    # -------------------------------------------------------------------

    def _render_link(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            self._out.write(self._link_closers.pop(ix, ""))
            return None

        url = node.attrs.get("url", "")
        if is_remote(url):
            self._out.write(f'<a href="{escape(url)}">')
            self._link_closers[ix] = "</a>"
            return None

        try:
            link = LocalLink.parse(unquote(url), self._relative_dir)
        except LocalLinkError as e:
            logger.warning("%s in %s", e, self.source)
            self._out.write(f"<!-- invalid local link: {escape(url)} -->")
            return None

        if link.is_same_document:
            href = f"#{link.anchor}" if link.anchor else ""
            self._out.write(f'<a href="{escape(href)}">')
            self._link_closers[ix] = "</a>"
            return None

        if not link.is_document:
            self._out.write(
                '<ac:structured-macro ac:name="view-file">'
                '<ac:parameter ac:name="name"><ri:attachment ri:filename="'
                f'{escape(link.attachment_name)}"/></ac:parameter>'
                "</ac:structured-macro>"
            )
            return None

        title = self.registry.title_for(link.target)
        if title is None:
            logger.warning(
                "File link %s in %s couldn't be resolved", link, self.source
            )
            self._out.write(f"<!-- unknown local link: {escape(str(link))} -->")
            return None

        if link.anchor:
            self._out.write(f'<ac:link ac:anchor="{escape(link.anchor)}">')
        else:
            self._out.write("<ac:link>")
        body = self.tree.text_content(ix) or title
        self._out.write(
            f'<ri:page ri:content-title="{escape(title)}"/>'
            f"<ac:plain-text-link-body>{cdata(body)}</ac:plain-text-link-body>"
            "</ac:link>"
        )
        return ChildMode.SKIP

    def _render_image(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            self._out.write("</ac:image>")
            return None

        url = node.attrs.get("url", "")
        title = node.attrs.get("title", "")
        out = self._out
        out.write('<ac:image ac:align="center"')
        if title:
            out.write(f' ac:title="{escape(title)}"')
        out.write(">")
        if is_remote(url):
            out.write(f'<ri:url ri:value="{escape_href(url)}"/>')
        else:
            name = to_flat_name(unquote(url))
            out.write(f'<ri:attachment ri:filename="{escape(name)}"/>')
        return ChildMode.SKIP

    # -------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------

    def _render_table(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        out = self._out
        out.cr()
        if phase is Phase.PRE:
            out.write("<table>\n")
            return
        if len(node.children) > 1:
            out.write("</tbody>\n")
            out.cr()
        out.write("</table>\n")

    def _render_table_row(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        out = self._out
        header = node.attrs.get("header", False)
        out.cr()
        if phase is Phase.PRE:
            if header:
                out.write("<thead>\n")
            else:
                previous = self.tree.previous_sibling(ix)
                if previous is not None and self.tree[previous].attrs.get(
                    "header", False
                ):
                    out.write("<tbody>\n")
            out.write("<tr>")
            return
        out.write("</tr>")
        if header:
            out.cr()
            out.write("</thead>")

    def _render_table_cell(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        tree = self.tree
        row = node.parent
        in_header = tree[row].attrs.get("header", False)
        tag = "th" if in_header else "td"

        if phase is Phase.POST:
            self._out.write(f"</{tag}>")
            return

        alignments = tree[tree.parent(row)].attrs.get("alignments", [])
        position = tree.children(row).index(ix)
        align = alignments[position] if position < len(alignments) else None

        self._out.cr()
        if align:
            self._out.write(f'<{tag} align="{align}">')
        else:
            self._out.write(f"<{tag}>")

    # -------------------------------------------------------------------
    # Footnotes
    # -------------------------------------------------------------------

    def _render_footnote_definition(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        out = self._out
        if phase is Phase.PRE:
            if self._footnote_ix == 0:
                out.write('<section class="footnotes" data-footnotes>\n<ol>\n')
            self._footnote_ix += 1
            out.write(f'<li id="fn-{escape_href(node.attrs["name"])}">')
            return
        if self._put_footnote_backref(node):
            out.write("\n")
        out.write("</li>\n")

    def _render_footnote_reference(
        self, ix: int, node: Node, phase: Phase
    ) -> ChildMode | None:
        if phase is Phase.POST:
            return
        name = node.attrs["name"]
        ref_id = f"fnref-{name}"
        if node.attrs["ref_num"] > 1:
            ref_id = f"{ref_id}-{node.attrs['ref_num']}"
        self._out.write(
            f'<sup class="footnote-ref"><a href="#fn-{escape_href(name)}" '
            f'id="{escape_href(ref_id)}" data-footnote-ref>'
            f'{node.attrs["ix"]}</a></sup>'
        )

    def _put_footnote_backref(self, definition: Node) -> bool:
        """Write back-references for the current footnote, at most once.

        Returns:
            True when anything was written.
        """
        if self._written_footnote_ix >= self._footnote_ix:
            return False
        self._written_footnote_ix = self._footnote_ix

        ix = self._footnote_ix
        name = escape_href(definition.attrs["name"])
        for ref_num in range(1, definition.attrs.get("total_references", 0) + 1):
            suffix = ""
            superscript = ""
            if ref_num > 1:
                suffix = f"-{ref_num}"
                superscript = f'<sup class="footnote-ref">{ref_num}</sup>'
                self._out.write(" ")
            self._out.write(
                f'<a href="#fnref-{name}{suffix}" class="footnote-backref" '
                f'data-footnote-backref data-footnote-backref-idx="{ix}{suffix}" '
                f'aria-label="Back to reference {ix}{suffix}">'
                f"↩{superscript}</a>"
            )
        return True


def render_storage(
    tree: DocumentTree,
    registry: LinkRegistry,
    *,
    source: str = "",
    options: RenderOptions | None = None,
) -> str:
    """Render ``tree`` to storage format with a fresh ``StorageRenderer``."""
    return StorageRenderer(
        tree, registry, source=source, options=options
    ).render()
