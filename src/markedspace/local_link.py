"""Parsing of links between documents of the same space tree.

A local link is written relative to the document that contains it. It is
resolved against that document's directory and simplified lexically (the
filesystem is never consulted), so that ``../guide.md#setup`` written in
``howto/install.md`` becomes target ``guide.md`` with anchor ``setup``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from .attachments import to_flat_name
from .errors import EmptyAnchorError, PathEscapeError, RootLinkError

_SEPARATORS = re.compile(r"[/\\]")

DOCUMENT_SUFFIX = ".md"


def simplify_path(path: str) -> str:
    """Lexically resolve ``.`` and ``..`` components.

    Both ``/`` and ``\\`` separate components. A leading separator anchors
    the path at the root of the space tree.

    Args:
        path: Relative path to simplify.

    Returns:
        Normalised path joined with ``/`` (empty for the tree root).

    Raises:
        PathEscapeError: If a ``..`` component would climb above the root.
    """
    parts: list[str] = []
    for component in _SEPARATORS.split(path):
        if component in ("", "."):
            continue
        if component == "..":
            if not parts:
                raise PathEscapeError(path)
            parts.pop()
        else:
            parts.append(component)
    return "/".join(parts)


@dataclass(frozen=True)
class LocalLink:
    """A resolved link to another document or file in the space tree.

    Attributes:
        text: The link exactly as written.
        target: Normalised target path; empty when the link points into the
            referring document itself (``#anchor``).
        anchor: Fragment after ``#``, or None.
    """

    text: str
    target: str
    anchor: str | None = None

    @classmethod
    def parse(cls, text: str, relative_dir: str = "") -> LocalLink:
        """Parse ``text`` relative to the referring document's directory.

        Raises:
            EmptyAnchorError: If the link ends with a bare ``#``.
            PathEscapeError: If the link climbs above the space tree root.
            RootLinkError: If a non-empty path resolves to the tree root
                itself (``./``, ``sub/..``).
        """
        path, sep, anchor = text.partition("#")
        if sep and not anchor:
            raise EmptyAnchorError(text)

        if not path:
            target = ""
        else:
            if path[0] not in "/\\":
                path = f"{relative_dir}/{path}"
            try:
                target = simplify_path(path)
            except PathEscapeError:
                raise PathEscapeError(text) from None
            if not target:
                raise RootLinkError(text)

        return cls(text=text, target=target, anchor=anchor or None)

    @property
    def is_same_document(self) -> bool:
        return self.target == ""

    @property
    def is_document(self) -> bool:
        """True when the target is a Markdown document (``.md``)."""
        return PurePosixPath(self.target).suffix == DOCUMENT_SUFFIX

    @property
    def attachment_name(self) -> str:
        return to_flat_name(self.target)

    def __str__(self) -> str:
        if self.anchor is not None:
            return f"{self.target}#{self.anchor}"
        return self.target
