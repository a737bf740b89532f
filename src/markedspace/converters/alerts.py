"""Alert (admonition) markup for Confluence storage format.

GitHub-style alerts::

    > [!WARNING] Optional title
    > Body text

render as Confluence panel macros. Each severity maps to one macro; the
markup for a severity is looked up per phase (opening or closing) rather
than assembled from conditionals in the renderer.

A title starting with ``[expand]`` turns the alert into a collapsible
``expand`` macro instead, whatever its severity::

    > [!note][expand] Click to open
    > Hidden text
"""

from __future__ import annotations

from enum import Enum

from ..escaping import escape
from .document_tree import Phase

EXPAND_MARKER = "[expand]"

_CLOSE = "</ac:rich-text-body></ac:structured-macro>"


class AlertType(str, Enum):
    """The five GitHub alert severities."""

    NOTE = "note"
    TIP = "tip"
    IMPORTANT = "important"
    WARNING = "warning"
    CAUTION = "caution"

    @classmethod
    def from_marker(cls, marker: str) -> AlertType | None:
        """Look up a severity from the word inside ``[!...]``."""
        try:
            return cls(marker.strip().lower())
        except ValueError:
            return None

    @property
    def default_title(self) -> str:
        return self.value.capitalize()


# Opening macro tag per severity. The strong title paragraph and the
# rich-text body are shared by all of them.
_MACRO_OPEN: dict[AlertType, str] = {
    AlertType.NOTE: '<ac:structured-macro ac:name="info">',
    AlertType.TIP: '<ac:structured-macro ac:name="tip">',
    AlertType.IMPORTANT: (
        '<ac:structured-macro ac:name="panel">'
        '<ac:parameter ac:name="bgColor">#EAE6FF</ac:parameter>'
    ),
    AlertType.WARNING: '<ac:structured-macro ac:name="note">',
    AlertType.CAUTION: '<ac:structured-macro ac:name="warning">',
}


def is_expand(title: str | None) -> bool:
    return title is not None and title.startswith(EXPAND_MARKER)


def expand_markup(title: str, phase: Phase) -> str:
    """Markup for a collapsible ``expand`` block.

    The title parameter is only written when something remains after the
    ``[expand]`` marker.
    """
    if phase is Phase.POST:
        return _CLOSE

    actual_title = title.removeprefix(EXPAND_MARKER).strip()
    parts = ['<ac:structured-macro ac:name="expand">']
    if actual_title:
        parts.append(
            f'<ac:parameter ac:name="title">{escape(actual_title)}</ac:parameter>'
        )
    parts.append("<ac:rich-text-body>")
    return "".join(parts)


def alert_markup(
    alert_type: AlertType, title: str | None, phase: Phase
) -> str:
    """Markup for an alert block in the given phase.

    Args:
        alert_type: Severity of the alert.
        title: Title written after the ``[!TYPE]`` marker, or None.
        phase: ``Phase.PRE`` for the opening markup, ``Phase.POST`` for the
            closing markup.

    Returns:
        Storage format markup string.

    Examples:
        >>> alert_markup(AlertType.TIP, None, Phase.POST)
        '</ac:rich-text-body></ac:structured-macro>'
    """
    if is_expand(title):
        return expand_markup(title or "", phase)

    if phase is Phase.POST:
        return _CLOSE

    heading = title.strip() if title else ""
    heading = heading or alert_type.default_title
    return (
        f"{_MACRO_OPEN[alert_type]}<ac:rich-text-body>\n"
        f"<p><strong>{escape(heading)}</strong></p>\n"
    )
