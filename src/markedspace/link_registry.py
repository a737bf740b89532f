"""Registry of known documents used to resolve cross-document links.

A ``LinkRegistry`` is built once per publish run. Every local document is
registered first (path -> title), then every remote document already in the
space (title/path -> remote id). Only after that is any page rendered, so a
page may link to a page that is processed later.

During rendering the registry is read-only. Attachment ids are the one
piece of state orchestration may still write while uploads are in flight;
those two methods hold a lock.
"""

from __future__ import annotations

import logging
import threading
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from .errors import DuplicateTitleError, MarkedspaceError
from .local_link import simplify_path

if TYPE_CHECKING:
    from .config_schema import SpaceConfig
    from .markdown_page import MarkdownPage
    from .models import RemoteDocument

logger = logging.getLogger(__name__)

HOME_PAGE_SOURCE = "index.md"


def normalize_path(path: str) -> str:
    """Platform-independent form of a document path (forward slashes)."""
    return path.replace("\\", "/")


class LinkRegistry:
    """Maps document paths to titles and remote ids.

    Args:
        host: Confluence host used to build page URLs.
        space_key: Key of the target space.
        homepage_id: Content id of the space homepage; ``index.md`` at the
            root of the tree always maps to it.
    """

    def __init__(
        self,
        host: str = "",
        space_key: str = "",
        homepage_id: str | None = None,
    ):
        self.host = host
        self.space_key = space_key
        self.homepage_id = homepage_id

        self._filename_to_title: dict[str, str] = {}
        self._title_to_file: dict[str, str] = {}
        self._filename_to_id: dict[str, str] = {}
        self._title_to_id: dict[str, str] = {}
        self._folders: set[str] = set()

        self._attachment_ids: dict[tuple[str, str], str] = {}
        self._attachment_lock = threading.Lock()

    @classmethod
    def from_config(cls, space: SpaceConfig) -> LinkRegistry:
        return cls(
            host=space.host or "",
            space_key=space.space_key or "",
            homepage_id=space.homepage_id,
        )

    # -------------------------------------------------------------------
    # Local documents
    # -------------------------------------------------------------------

    def register(
        self, path: str, title: str, *, is_folder: bool = False
    ) -> None:
        """Register a local document.

        Raises:
            DuplicateTitleError: If another document already claims ``title``.
        """
        filename = normalize_path(path)
        if title in self._title_to_file:
            raise DuplicateTitleError(title, filename)

        self._title_to_file[title] = filename
        self._filename_to_title[filename] = title
        if is_folder:
            self._folders.add(title)
        logger.debug("Registered [%s] %s", filename, title)

    def register_page(self, page: MarkdownPage) -> None:
        self.register(page.source, page.title, is_folder=page.folder)

    def title_for(self, path: str) -> str | None:
        return self._filename_to_title.get(normalize_path(path))

    def has_title(self, title: str) -> bool:
        return title in self._title_to_file

    def is_folder(self, title: str) -> bool:
        return title in self._folders

    def parent_title(self, path: str) -> str | None:
        """Title of the page a document is published under.

        A document's parent is the ``index.md`` of its directory; an
        ``index.md`` is published under the ``index.md`` one level up.
        Documents at the root of the tree have no parent page.

        Raises:
            MarkedspaceError: If the parent ``index.md`` is not registered.
        """
        page_path = PurePosixPath(normalize_path(path))
        parent_dir = page_path.parent
        if page_path.name == HOME_PAGE_SOURCE:
            parent_dir = parent_dir.parent
        if str(parent_dir) in ("", "."):
            return None

        parent_page = str(parent_dir / HOME_PAGE_SOURCE)
        title = self._filename_to_title.get(parent_page)
        if title is None:
            raise MarkedspaceError(f"Missing parent: {parent_page}")
        return title

    # -------------------------------------------------------------------
    # Remote documents
    # -------------------------------------------------------------------

    def register_remote(self, document: RemoteDocument) -> None:
        """Record the remote id of a document already in the space.

        The id is attached to the local file claiming the same title. A
        managed document also records the source path it was generated
        from, so a page whose file moved keeps its id as long as the new
        path has no mapping of its own.
        """
        title = document.title
        filename = self._title_to_file.get(title)
        if filename is not None:
            self._filename_to_id[filename] = document.id
        self._title_to_id[title] = document.id

        if self.homepage_id is not None and document.id == self.homepage_id:
            self._filename_to_id[HOME_PAGE_SOURCE] = self.homepage_id
            return

        source = document.path
        if source is not None:
            try:
                key = simplify_path(source)
            except MarkedspaceError:
                logger.warning(
                    "Ignoring source path %r of remote page %r",
                    source,
                    title,
                )
                return
            self._filename_to_id.setdefault(key, document.id)

    def file_id(self, path: str) -> str | None:
        return self._filename_to_id.get(normalize_path(path))

    def page_url(self, path: str) -> str | None:
        """Absolute URL of the published page for a local document."""
        filename = normalize_path(path)
        if filename == HOME_PAGE_SOURCE and self.homepage_id is not None:
            return self._id_to_url(self.homepage_id)
        page_id = self._filename_to_id.get(filename)
        if page_id is None:
            return None
        return self._id_to_url(page_id)

    def _id_to_url(self, page_id: str) -> str:
        return f"https://{self.host}/wiki/spaces/{self.space_key}/pages/{page_id}"

    def nodes_to_create(self) -> list[str]:
        """Titles of local documents that have no remote counterpart yet."""
        return sorted(
            title
            for title, filename in self._title_to_file.items()
            if filename not in self._filename_to_id
        )

    def is_orphaned(self, document: RemoteDocument) -> bool:
        """True when no local document claims the remote document's title.

        The test is by title, not by path, so a renamed file keeps its
        remote page as long as its title is unchanged.
        """
        return not self.has_title(document.title)

    # -------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------

    def register_attachment_id(
        self, document_path: str, raw_url: str, external_id: str
    ) -> None:
        """Remember the remote id of an attachment.

        The key is the referring document plus the reference exactly as
        written, because one file can be referenced with different relative
        spellings from different documents.

        Raises:
            ValueError: If the pair was already registered.
        """
        key = (normalize_path(document_path), raw_url)
        with self._attachment_lock:
            if key in self._attachment_ids:
                raise ValueError(
                    f"Attachment {raw_url!r} of {key[0]} is already registered"
                )
            self._attachment_ids[key] = external_id

    def attachment_id(self, document_path: str, raw_url: str) -> str | None:
        key = (normalize_path(document_path), raw_url)
        with self._attachment_lock:
            return self._attachment_ids.get(key)
