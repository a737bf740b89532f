"""A Markdown source document ready to be registered and rendered.

Parsing a page extracts everything the publish run needs before any page
is rendered:

- the title, taken from the first heading (which is removed from the body);
- the remaining headings, as ``(level, text)`` pairs;
- local images, which have to be uploaded as attachments;
- local links, for reporting links to documents outside the run.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote

from .attachments import ImageAttachment, is_remote
from .converters.document_tree import DocumentTree, NodeKind
from .converters.markdown_parser import parse_markdown
from .converters.storage_renderer import StorageRenderer
from .errors import LocalLinkError, ParsingError
from .file_handler import read_file_with_encoding, validate_source_path
from .local_link import LocalLink
from .models import RenderedPage

if TYPE_CHECKING:
    from .config_schema import RenderOptions
    from .link_registry import LinkRegistry

logger = logging.getLogger(__name__)

MISSING_TITLE = "missing first heading for title"


@dataclass
class MarkdownPage:
    """A parsed Markdown document.

    Attributes:
        source: Path relative to the space directory, forward slashes.
        title: Text of the first heading.
        tree: Document body (title heading detached).
        headings: ``(level, text)`` for every heading after the title.
        attachments: Local images referenced by the page.
        local_links: Targets of links to other files in the space tree.
        folder: Publish the page as a folder rather than a leaf page.
        labels: Labels to apply to the published page.
    """

    source: str
    title: str
    tree: DocumentTree
    headings: list[tuple[int, str]] = field(default_factory=list)
    attachments: list[ImageAttachment] = field(default_factory=list)
    local_links: list[LocalLink] = field(default_factory=list)
    folder: bool = False
    labels: tuple[str, ...] = ()

    @classmethod
    def from_str(
        cls,
        source: str,
        text: str,
        *,
        folder: bool = False,
        labels: Iterable[str] = (),
    ) -> MarkdownPage:
        """Parse Markdown text.

        Args:
            source: Path of the document relative to the space directory.
            text: Markdown content.
            folder: Publish as a folder.
            labels: Page labels.

        Returns:
            Parsed page.

        Raises:
            ParsingError: If the page has no heading to take the title from.
        """
        source = source.replace("\\", "/")
        page_dir = str(PurePosixPath(source).parent)
        if page_dir == ".":
            page_dir = ""

        tree = parse_markdown(text)
        errors: list[str] = []
        title_ix: int | None = None
        headings: list[tuple[int, str]] = []
        attachments: list[ImageAttachment] = []
        local_links: list[LocalLink] = []

        for ix in tree.iter_preorder():
            node = tree[ix]
            if node.kind == NodeKind.HEADING:
                if title_ix is None:
                    title_ix = ix
                else:
                    headings.append(
                        (node.attrs["level"], tree.text_content(ix))
                    )
            elif node.kind == NodeKind.IMAGE:
                url = node.attrs.get("url", "")
                if not is_remote(url):
                    attachments.append(
                        ImageAttachment.from_url(unquote(url), page_dir)
                    )
            elif node.kind == NodeKind.LINK:
                url = node.attrs.get("url", "")
                if is_remote(url):
                    continue
                try:
                    link = LocalLink.parse(unquote(url), page_dir)
                except LocalLinkError as e:
                    logger.debug("Skipping local link in %s: %s", source, e)
                    continue
                if not link.is_same_document:
                    local_links.append(link)

        title = ""
        if title_ix is None:
            errors.append(MISSING_TITLE)
        else:
            title = tree.text_content(title_ix)
            tree.detach(title_ix)

        if errors:
            raise ParsingError(source, errors)

        logger.debug(
            "Parsed %s: %r, %d headings, %d attachments, %d local links",
            source,
            title,
            len(headings),
            len(attachments),
            len(local_links),
        )
        return cls(
            source=source,
            title=title,
            tree=tree,
            headings=headings,
            attachments=attachments,
            local_links=local_links,
            folder=folder,
            labels=tuple(labels),
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        space_dir: str | Path = ".",
        *,
        folder: bool = False,
        labels: Iterable[str] = (),
    ) -> MarkdownPage:
        """Read and parse a Markdown file of the space tree.

        Raises:
            ValueError: If the file is missing or outside ``space_dir``.
            ParsingError: If the page has no heading to take the title from.
        """
        resolved, source = validate_source_path(str(path), str(space_dir))
        content, encoding = read_file_with_encoding(resolved)
        logger.debug("Read %s (%s)", source, encoding)
        return cls.from_str(source, content, folder=folder, labels=labels)

    @property
    def is_home_page(self) -> bool:
        return self.source == "index.md"

    def render(
        self,
        registry: LinkRegistry,
        options: RenderOptions | None = None,
    ) -> RenderedPage:
        """Render the page body to storage format.

        The registry must already hold every page of the run.

        Raises:
            MarkedspaceError: If the parent ``index.md`` is not registered.
        """
        content = StorageRenderer(
            self.tree, registry, source=self.source, options=options
        ).render()
        checksum = hashlib.sha256(content.encode("utf-8")).hexdigest()
        return RenderedPage(
            title=self.title,
            content=content,
            source=self.source,
            parent=registry.parent_title(self.source),
            checksum=checksum,
        )
