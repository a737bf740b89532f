"""File handler module: source path validation and encoding-aware I/O.

Markdown sources are read as bytes and decoded with charset-normalizer, so
documents saved in a legacy encoding still render. Rendered output is always
written as UTF-8.
"""

from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# Path Validation
# =============================================================================


def validate_source_path(path_str: str, space_dir: str = ".") -> tuple[Path, str]:
    """Validate a Markdown source file inside the space directory.

    Args:
        path_str: Path to an existing file, absolute or relative to the
            current directory.
        space_dir: Root directory of the document tree.

    Returns:
        Tuple of (resolved path, source path relative to ``space_dir`` with
        forward slashes).

    Raises:
        ValueError: If the file doesn't exist, is not a file, or lies outside
            ``space_dir``.
    """
    resolved = Path(path_str).resolve()
    if not resolved.exists():
        raise ValueError(f"File not found: {path_str}")
    if not resolved.is_file():
        raise ValueError(f"Path is not a file: {path_str}")

    base = Path(space_dir).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(
            f"File is outside the space directory: {resolved} not under {base}"
        )
    return resolved, resolved.relative_to(base).as_posix()


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(path: Path, content: str) -> int:
    """Write UTF-8 content, creating parent directories as needed.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8")
    path.write_bytes(data)
    return len(data)
