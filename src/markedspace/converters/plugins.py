"""mistune plugins for syntax beyond CommonMark/GFM core.

- ``alerts``: GitHub alert block quotes (``> [!NOTE] Title``) become
  ``alert`` tokens carrying an ``AlertType`` and optional title.
- ``shortcodes``: ``:emoji_name:`` short codes become ``short_code``
  tokens carrying the emoji.
- ``footnote_labels``: keeps the footnote label as written on each
  ``footnote_ref`` token (mistune only records the normalised key).

Both follow the shape of mistune's bundled plugins: ``alerts`` rewrites
block tokens in a ``before_render_hooks`` hook (like ``task_lists``),
``shortcodes`` registers an inline rule (like ``footnotes``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from mistune.plugins.footnotes import INLINE_FOOTNOTE, parse_inline_footnote

from .alerts import AlertType

if TYPE_CHECKING:
    from mistune.core import BlockState, InlineState
    from mistune.inline_parser import InlineParser
    from mistune.markdown import Markdown

__all__ = ["alerts", "shortcodes", "footnote_labels", "EMOJI"]

# =============================================================================
# Alerts
# =============================================================================

ALERT_MARKER = re.compile(
    r"^\[!(note|tip|important|warning|caution)\][ \t]*([^\n]*)(?:\n|$)",
    re.IGNORECASE,
)


def alerts_hook(md: Markdown, state: BlockState) -> Iterable[dict[str, Any]]:
    return _rewrite_all_block_quotes(state.tokens)


def alerts(md: Markdown) -> None:
    """A mistune plugin turning GitHub alert block quotes into alerts.

    .. code-block:: text

        > [!WARNING] Mind the gap
        > Body text

    :param md: Markdown instance
    """
    md.before_render_hooks.append(alerts_hook)


def _rewrite_all_block_quotes(
    tokens: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    pending = [tokens]
    while pending:
        for tok in pending.pop():
            if tok["type"] == "block_quote":
                _rewrite_block_quote(tok)
            if "children" in tok:
                pending.append(tok["children"])
    return tokens


def _rewrite_block_quote(tok: dict[str, Any]) -> None:
    children = tok["children"]
    if not children or children[0]["type"] != "paragraph":
        return

    first = children[0]
    text = first.get("text", "")
    m = ALERT_MARKER.match(text)
    if not m:
        return

    rest = text[m.end() :]
    if rest.strip():
        first["text"] = rest
    else:
        children.pop(0)

    tok["type"] = "alert"
    tok["attrs"] = {
        "alert_type": AlertType.from_marker(m.group(1)),
        "title": m.group(2).strip() or None,
    }


# =============================================================================
# Short codes
# =============================================================================

SHORT_CODE = r":(?P<short_code_name>[a-z0-9_+\-]+):"

# The GitHub short codes most used in technical docs.
EMOJI: dict[str, str] = {
    "+1": "\U0001f44d",
    "-1": "\U0001f44e",
    "thumbsup": "\U0001f44d",
    "thumbsdown": "\U0001f44e",
    "smile": "\U0001f604",
    "smiley": "\U0001f603",
    "grin": "\U0001f601",
    "laughing": "\U0001f606",
    "wink": "\U0001f609",
    "blush": "\U0001f60a",
    "thinking": "\U0001f914",
    "confused": "\U0001f615",
    "cry": "\U0001f622",
    "heart": "❤️",
    "star": "⭐",
    "sparkles": "✨",
    "fire": "\U0001f525",
    "tada": "\U0001f389",
    "rocket": "\U0001f680",
    "bulb": "\U0001f4a1",
    "memo": "\U0001f4dd",
    "pencil": "\U0001f4dd",
    "book": "\U0001f4d6",
    "books": "\U0001f4da",
    "link": "\U0001f517",
    "lock": "\U0001f512",
    "unlock": "\U0001f513",
    "key": "\U0001f511",
    "bug": "\U0001f41b",
    "wrench": "\U0001f527",
    "hammer": "\U0001f528",
    "gear": "⚙️",
    "package": "\U0001f4e6",
    "construction": "\U0001f6a7",
    "warning": "⚠️",
    "no_entry": "⛔",
    "x": "❌",
    "heavy_check_mark": "✔️",
    "white_check_mark": "✅",
    "question": "❓",
    "exclamation": "❗",
    "information_source": "ℹ️",
    "eyes": "\U0001f440",
    "clock": "\U0001f550",
    "hourglass": "⌛",
    "calendar": "\U0001f4c6",
    "chart_with_upwards_trend": "\U0001f4c8",
    "mag": "\U0001f50d",
    "zap": "⚡",
    "recycle": "♻️",
    "arrow_right": "➡️",
    "arrow_left": "⬅️",
    "arrow_up": "⬆️",
    "arrow_down": "⬇️",
    "100": "\U0001f4af",
}


def parse_short_code(
    inline: InlineParser, m: re.Match[str], state: InlineState
) -> int | None:
    code = m.group("short_code_name")
    emoji = EMOJI.get(code)
    if emoji is None:
        # Not a short code; let the parser consume the colon as text.
        return None
    state.append_token(
        {"type": "short_code", "raw": code, "attrs": {"emoji": emoji}}
    )
    return m.end()


def shortcodes(md: Markdown) -> None:
    """A mistune plugin replacing GitHub emoji short codes.

    .. code-block:: text

        Ship it :rocket:

    :param md: Markdown instance
    """
    md.inline.register(
        "short_code",
        SHORT_CODE,
        parse_short_code,
        before="link",
    )


# =============================================================================
# Footnote labels
# =============================================================================


def parse_labelled_footnote(
    inline: InlineParser, m: re.Match[str], state: InlineState
) -> int:
    end = parse_inline_footnote(inline, m, state)
    token = state.tokens[-1]
    if token["type"] == "footnote_ref":
        token["attrs"]["label"] = m.group("footnote_key")
    return end


def footnote_labels(md: Markdown) -> None:
    """Record the label of each footnote reference as written.

    Must come after mistune's ``footnotes`` plugin, whose inline rule it
    replaces.

    :param md: Markdown instance
    """
    md.inline.register("footnote", INLINE_FOOTNOTE, parse_labelled_footnote)
