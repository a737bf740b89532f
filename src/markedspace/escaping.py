"""Escaping helpers for Confluence storage format output.

Three families of escaping are needed when writing storage format:

- ``escape()`` for free text and attribute values,
- ``escape_href()`` for URLs placed in attributes,
- ``tagfilter()`` / ``tagfilter_block()`` for raw HTML that is passed
  through but must not open a raw-text element (``<script>`` and friends).

All functions are total: any string is accepted and nothing raises.
"""

import re
import string

# =============================================================================
# Text Escaping
# =============================================================================

_ESCAPE_MAP: dict[str, str] = {
    '"': "&quot;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
}

_NEEDS_ESCAPE = re.compile(r'["&<>]')


def escape(text: str) -> str:
    """Escape ``"``, ``&``, ``<`` and ``>`` as named entities.

    Everything else is copied through unchanged. Appropriate for free text
    and attribute values, but not for URLs (see ``escape_href``).

    Examples:
        >>> escape('a < b & "c"')
        'a &lt; b &amp; &quot;c&quot;'
    """
    return _NEEDS_ESCAPE.sub(lambda m: _ESCAPE_MAP[m.group(0)], text)


# =============================================================================
# URL Escaping
# =============================================================================

_HREF_SAFE: frozenset[int] = frozenset(
    (string.ascii_letters + string.digits + "-_.+!*(),%#@?=;:/,+$~").encode(
        "ascii"
    )
)


def escape_href(url: str) -> str:
    """Escape a URL for use inside an HTML/XML attribute.

    Alphanumerics and ``-_.+!*(),%#@?=;:/,+$~`` pass through, ``&`` becomes
    ``&amp;``, ``'`` becomes ``&#x27;`` and every other byte of the UTF-8
    encoding is percent-encoded with uppercase hex digits.

    ``%`` is in the safe set, so already-encoded URLs such as ``?q=a%20b``
    pass through unchanged and the function is not idempotent.

    Examples:
        >>> escape_href("a b&c'd")
        'a%20b&amp;c&#x27;d'
    """
    out: list[str] = []
    run_start = None
    data = url.encode("utf-8")
    for i, byte in enumerate(data):
        if byte in _HREF_SAFE:
            if run_start is None:
                run_start = i
            continue
        if run_start is not None:
            out.append(data[run_start:i].decode("ascii"))
            run_start = None
        if byte == 0x26:
            out.append("&amp;")
        elif byte == 0x27:
            out.append("&#x27;")
        else:
            out.append(f"%{byte:02X}")
    if run_start is not None:
        out.append(data[run_start:].decode("ascii"))
    return "".join(out)


# =============================================================================
# Raw HTML Tag Filter
# =============================================================================

TAGFILTER_BLACKLIST: tuple[str, ...] = (
    "title",
    "textarea",
    "style",
    "xmp",
    "iframe",
    "noembed",
    "noframes",
    "script",
    "plaintext",
)

# Tab, line feed, carriage return and space.
_TAG_SPACE = frozenset("\t\n\r ")


def tagfilter(literal: str) -> bool:
    """Return True if ``literal`` opens or closes a blacklisted raw-text tag.

    The tag name is matched case-insensitively after ``<`` or ``</`` and must
    be followed by whitespace, ``>`` or ``/>``.

    Examples:
        >>> tagfilter("<script>")
        True
        >>> tagfilter("</TITLE >")
        True
        >>> tagfilter("<scripts>")
        False
    """
    if len(literal) < 3 or literal[0] != "<":
        return False

    i = 1
    if literal[i] == "/":
        i += 1

    lowered = literal[i:].lower()
    for name in TAGFILTER_BLACKLIST:
        if lowered.startswith(name):
            j = i + len(name)
            if j >= len(literal):
                return False
            return (
                literal[j] in _TAG_SPACE
                or literal[j] == ">"
                or literal.startswith("/>", j)
            )
    return False


def tagfilter_block(text: str) -> str:
    """Copy ``text``, replacing ``<`` with ``&lt;`` wherever it starts a
    blacklisted tag.

    Examples:
        >>> tagfilter_block("<div><script>x</script></div>")
        '<div>&lt;script>x&lt;/script></div>'
    """
    out: list[str] = []
    pos = 0
    while True:
        lt = text.find("<", pos)
        if lt < 0:
            out.append(text[pos:])
            break
        out.append(text[pos:lt])
        out.append("&lt;" if tagfilter(text[lt:]) else "<")
        pos = lt + 1
    return "".join(out)
