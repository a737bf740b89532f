"""Pydantic models for remote documents and rendered pages.

Defines the data contracts shared by the registry, the renderer and the
archive policy:

- ``ContentStatus``: Lifecycle status of a remote document.
- ``NodeType``: Leaf page or folder.
- ``Version``: Version number and message of a remote document.
- ``RemoteDocument``: A document already published to the space.
  Built from a content-service response with ``from_response()``.
- ``RenderedPage``: Output of rendering one Markdown page.

All models are frozen (immutable).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import UnsupportedStorageFormatError

VERSION_MESSAGE_PREFIX = "updated by markedspace:"

_SOURCE_MARKER = re.compile(r"\bsource=([^;]*);")


def version_message(source: str, checksum: str) -> str:
    """Build the version message that marks a page as managed.

    The source path is written with forward slashes so that the marker is
    platform independent.
    """
    source = source.replace("\\", "/")
    return f"{VERSION_MESSAGE_PREFIX} source={source}; checksum={checksum}"


def parse_version_source(message: str) -> str | None:
    """Extract the ``source=`` path from a managed version message."""
    if not message.startswith(VERSION_MESSAGE_PREFIX):
        return None
    match = _SOURCE_MARKER.search(message)
    if match is None:
        return None
    return match.group(1).strip() or None


class ContentStatus(str, Enum):
    """Lifecycle status reported by the remote content service."""

    CURRENT = "current"
    ARCHIVED = "archived"
    DRAFT = "draft"
    TRASHED = "trashed"
    DELETED = "deleted"
    HISTORICAL = "historical"


class NodeType(str, Enum):
    PAGE = "page"
    FOLDER = "folder"


class Version(BaseModel):
    """Version of a remote document.

    Attributes:
        number: Monotonic version number.
        message: Free-form version message; managed pages carry
            ``VERSION_MESSAGE_PREFIX``.
    """

    number: int = 1
    message: str = ""

    model_config = {"frozen": True}


class RemoteDocument(BaseModel):
    """A document (page or folder) that already exists in the space.

    Attributes:
        id: Remote content id.
        title: Remote title.
        parent_id: Id of the parent node, if any.
        node_type: Page or folder.
        status: Lifecycle status.
        version: Latest version.
        content: Storage format body, empty when the response had none.
    """

    id: str
    title: str
    parent_id: str | None = None
    node_type: NodeType = NodeType.PAGE
    status: ContentStatus = ContentStatus.CURRENT
    version: Version = Version()
    content: str = ""

    model_config = {"frozen": True}

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> RemoteDocument:
        """Build a document from a content-service JSON object.

        Expects the v2 field names (``parentId``, ``type``, ``status``,
        ``version``, ``body``). A body is optional, but when present it must
        carry the storage representation.

        Raises:
            UnsupportedStorageFormatError: If the body holds only another
                representation (``atlas_doc_format``, ``view``).
            pydantic.ValidationError: If a field has an unexpected value.
        """
        body = data.get("body") or {}
        content = ""
        if body:
            storage = body.get("storage")
            if storage is None:
                representation = next(iter(body))
                raise UnsupportedStorageFormatError(
                    representation.replace("_", " ")
                )
            content = storage.get("value", "")

        version = data.get("version") or {}
        return cls(
            id=str(data["id"]),
            title=data["title"],
            parent_id=data.get("parentId"),
            node_type=data.get("type", NodeType.PAGE),
            status=data.get("status", ContentStatus.CURRENT),
            version=Version(
                number=version.get("number", 1),
                message=version.get("message", ""),
            ),
            content=content,
        )

    @property
    def path(self) -> str | None:
        """Local source path recorded in the version message, if managed."""
        return parse_version_source(self.version.message)

    @property
    def managed(self) -> bool:
        """True when this tool created or last updated the document."""
        return self.version.message.startswith(VERSION_MESSAGE_PREFIX)

    @property
    def is_folder(self) -> bool:
        return self.node_type == NodeType.FOLDER

    @property
    def is_archived(self) -> bool:
        return self.status == ContentStatus.ARCHIVED


class RenderedPage(BaseModel):
    """Result of rendering one Markdown page to storage format.

    Attributes:
        title: Page title (first heading of the source).
        content: Storage format markup.
        source: Source path relative to the space directory.
        parent: Title of the parent page, or None for top-level pages.
        checksum: SHA-256 hex digest of ``content``.
    """

    title: str
    content: str
    source: str
    parent: str | None = None
    checksum: str

    model_config = {"frozen": True}

    @property
    def is_home_page(self) -> bool:
        return self.source == "index.md"

    def version_message(self) -> str:
        return version_message(self.source, self.checksum)
