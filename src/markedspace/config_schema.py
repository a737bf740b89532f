"""Unified configuration schema for markedspace.

Defines Pydantic models for the unified config structure with dedicated
sections for the target space, rendering options and logging.

Usage:
    from markedspace.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SpaceConfig(BaseModel):
    """Target space settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    host: str | None = Field(
        default=None,
        description="Confluence host, e.g. example.atlassian.net",
    )
    space_key: str | None = Field(
        default=None, description="Key of the target space"
    )
    homepage_id: str | None = Field(
        default=None, description="Content id of the space homepage"
    )
    directory: str = Field(
        default=".",
        description="Root directory of the Markdown document tree",
    )

    model_config = {"frozen": True}


class RawHtmlMode(str, Enum):
    """How raw HTML found in Markdown is written to storage format."""

    ESCAPE = "escape"
    OMIT = "omit"
    UNSAFE = "unsafe"


class RenderOptions(BaseModel):
    """Storage format rendering options.

    Attributes:
        raw_html: ``escape`` writes raw HTML as text, ``omit`` replaces it
            with a placeholder comment, ``unsafe`` passes it through.
        tagfilter: In ``unsafe`` mode, neutralise raw-text tags such as
            ``<script>`` and ``<style>``.
    """

    raw_html: RawHtmlMode = Field(
        default=RawHtmlMode.UNSAFE, description="Raw HTML handling"
    )
    tagfilter: bool = Field(
        default=True,
        description="Filter blacklisted tags when passing raw HTML through",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    space: SpaceConfig = Field(default_factory=SpaceConfig)
    render: RenderOptions = Field(default_factory=RenderOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    logger.debug("Building config from sections: %s", sorted(raw_data))
    return UnifiedConfig(**raw_data)
