"""Exception hierarchy for markedspace.

Registration conflicts and path escapes are fatal for the operation that
raised them. Unresolvable links never raise: the renderer degrades them to
placeholder comments instead.
"""

from __future__ import annotations

from collections.abc import Iterable


class MarkedspaceError(Exception):
    """Base class for all markedspace errors."""


class DuplicateTitleError(MarkedspaceError):
    """Two documents claim the same title."""

    def __init__(self, title: str, file: str):
        self.title = title
        self.file = file
        super().__init__(f"Duplicate title '{title}' in [{file}]")


class LocalLinkError(MarkedspaceError):
    """A local link could not be resolved to a target path."""

    def __init__(self, text: str, message: str):
        self.text = text
        super().__init__(message)


class EmptyAnchorError(LocalLinkError):
    def __init__(self, text: str):
        super().__init__(text, "Cannot have empty anchors")


class PathEscapeError(LocalLinkError):
    def __init__(self, text: str):
        super().__init__(
            text, f"Invalid link (goes outside of space tree): {text}"
        )


class RootLinkError(LocalLinkError):
    def __init__(self, text: str):
        super().__init__(
            text, f"Invalid link (points at the space tree root): {text}"
        )


class ParsingError(MarkedspaceError):
    """One or more problems found while parsing a source document."""

    def __init__(self, filename: str, messages: Iterable[str]):
        self.filename = filename
        self.messages = list(messages)
        super().__init__(
            f"Failed to parse {filename}: {'; '.join(self.messages)}"
        )


class UnsupportedStorageFormatError(MarkedspaceError):
    """Remote content arrived in a representation other than storage format."""

    def __init__(self, representation: str):
        self.representation = representation
        super().__init__(
            f"Unsupported storage format: {representation}"
        )
