"""
Hierarchical configuration loader for markedspace.

Finds YAML config files by convention, resolves ``!include`` directives and
``${VAR}`` references, and merges the files so that the project-level file
wins over the global one.

Usage:
    from markedspace.config_loader import load_unified_config

    unified = load_unified_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .config_schema import UnifiedConfig, build_config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MARKEDSPACE_CONFIG"
PROJECT_CONFIG_DIR = ".markedspace"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Substitute ``${VAR}`` and ``${VAR:-default}`` from the environment.

    An unset or empty variable yields its default, or ``""`` without one.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. YAML !include support
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader with ``!include``; the global ``yaml.SafeLoader`` is left
    untouched."""


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    """Load the file named by ``!include``, relative to the including file."""
    target = Path(loader.construct_scalar(node))
    if not target.is_absolute():
        target = Path(loader.name).resolve().parent / target
    target = target.resolve()

    include_stack: list[Path] = getattr(loader, "_include_stack", [])
    if target in include_stack:
        chain = " -> ".join(str(p) for p in [*include_stack, target])
        raise ValueError(f"Circular include detected: {chain}")

    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} "
            f"(referenced from {Path(loader.name).resolve()})"
        )

    return _load_yaml(target, _include_stack=[*include_stack, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml(path: Path, *, _include_stack: list[Path] | None = None) -> Any:
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. Discovery and bootstrapping
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Search order:
        1. ``MARKEDSPACE_CONFIG`` env var (explicit single path)
        2. ``.markedspace/config.yml`` in CWD
        3. ``.markedspace/config.yaml`` in CWD
        4. ``~/.config/markedspace/config.yml``
    """
    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    project_dir = Path.cwd() / PROJECT_CONFIG_DIR
    candidates.append(project_dir / "config.yml")
    candidates.append(project_dir / "config.yaml")
    candidates.append(Path.home() / ".config" / "markedspace" / "config.yml")

    return [p for p in candidates if p.exists()]


_STARTER_CONFIG = """\
# markedspace configuration
#
# The target space can also be set via environment variables:
#   CONFLUENCE_HOST, CONFLUENCE_SPACE, MARKEDSPACE_RAW_HTML
#
# space:
#   host: example.atlassian.net
#   space_key: DOCS
#   homepage_id: "123456"
#   directory: docs
#
# render:
#   raw_html: unsafe     # escape | omit | unsafe
#   tagfilter: true
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter file first
    when none exists.

    Args:
        target: Where to create the starter file. Defaults to
            ``CWD / .markedspace / config.yml``.

    Returns:
        Path to the config file (existing or newly created).
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or Path.cwd() / PROJECT_CONFIG_DIR / "config.yml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# 4. Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are applied from lowest to highest precedence; each file's
    top-level sections replace those loaded before it. Env var references
    are interpolated after the merge.

    Returns an empty dict when no config file exists.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        data = _load_yaml(path)
        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)


def load_unified_config() -> UnifiedConfig:
    """Discover, merge and validate the YAML configuration."""
    return build_config(load_hierarchical_config())
