"""Attachment naming for embedded local files.

Confluence attachments live in a flat namespace per page, so a nested
relative reference such as ``assets/image.png`` is stored under a flattened
name. Distinct files can flatten to the same name (``a/x.png`` and
``a_x.png``); no attempt is made to detect that.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath

_SEPARATORS = re.compile(r"[/\\]")


def to_flat_name(relative_url: str) -> str:
    """Replace every path separator with an underscore.

    Examples:
        >>> to_flat_name("assets/image.png")
        'assets_image.png'
        >>> to_flat_name("./assets/image.png")
        '._assets_image.png'
    """
    return _SEPARATORS.sub("_", relative_url)


def is_remote(url: str) -> bool:
    """True for absolute URLs (anything carrying a ``scheme://``)."""
    return "://" in url


@dataclass(frozen=True)
class ImageAttachment:
    """A local file embedded by a document.

    Attributes:
        url: The reference exactly as written in the Markdown source.
        path: ``url`` joined onto the referring document's directory,
            with forward slashes.
    """

    url: str
    path: str

    @classmethod
    def from_url(cls, url: str, page_dir: str = "") -> ImageAttachment:
        joined = PurePosixPath(page_dir.replace("\\", "/")) / url.replace(
            "\\", "/"
        )
        return cls(url=url, path=str(joined))

    @property
    def name(self) -> str:
        """Flat attachment name as uploaded to the remote page."""
        return to_flat_name(self.url)
