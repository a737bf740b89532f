"""Runtime configuration for the markedspace command line.

Reads target space settings from CLI args, environment variables, .env
files, and the YAML config file.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONFLUENCE_HOST: Confluence host, e.g. example.atlassian.net (optional)
    CONFLUENCE_SPACE: Key of the target space (optional)
    MARKEDSPACE_RAW_HTML: Raw HTML handling: escape, omit or unsafe
        (optional, default: unsafe)
    MARKEDSPACE_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
import re
from dataclasses import dataclass

from .config_schema import RawHtmlMode, RenderOptions, SpaceConfig, UnifiedConfig

logger = logging.getLogger(__name__)

_SPACE_KEY = re.compile(r"^~?[A-Za-z0-9]+$")


@dataclass
class Config:
    host: str = ""
    space_key: str = ""
    homepage_id: str | None = None
    space_dir: str = "."
    raw_html: RawHtmlMode = RawHtmlMode.UNSAFE
    tagfilter: bool = True
    debug: bool = False

    @property
    def render_options(self) -> RenderOptions:
        return RenderOptions(raw_html=self.raw_html, tagfilter=self.tagfilter)

    @property
    def space(self) -> SpaceConfig:
        return SpaceConfig(
            host=self.host or None,
            space_key=self.space_key or None,
            homepage_id=self.homepage_id,
            directory=self.space_dir,
        )


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: If the host carries a scheme or path, or the space key
            is not alphanumeric.
    """
    config.host = config.host.strip().removesuffix("/")
    if "://" in config.host or "/" in config.host:
        raise ValueError(
            f"Invalid Confluence host '{config.host}': "
            "expected a bare host name such as example.atlassian.net"
        )

    config.space_key = config.space_key.strip()
    if config.space_key and not _SPACE_KEY.match(config.space_key):
        raise ValueError(
            f"Invalid space key '{config.space_key}': must be alphanumeric"
        )


def _parse_raw_html(value: str, source: str) -> RawHtmlMode:
    try:
        return RawHtmlMode(value.strip().lower())
    except ValueError:
        choices = ", ".join(m.value for m in RawHtmlMode)
        raise ValueError(
            f"Invalid {source} '{value}': must be one of {choices}"
        ) from None


def load_config(
    host: str | None = None,
    space_key: str | None = None,
    space_dir: str | None = None,
    raw_html: str | None = None,
    debug: bool = False,
    yaml_config: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_config > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        host: Override Confluence host.
        space_key: Override space key.
        space_dir: Override the document tree root directory.
        raw_html: Override raw HTML handling (escape, omit, unsafe).
        debug: Enable debug logging (CLI flag).
        yaml_config: Validated YAML configuration used as fallback.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed.
    """
    fb = yaml_config or UnifiedConfig()

    final_host = host or os.getenv("CONFLUENCE_HOST") or fb.space.host or ""
    final_space = (
        space_key or os.getenv("CONFLUENCE_SPACE") or fb.space.space_key or ""
    )

    if raw_html:
        final_raw_html = _parse_raw_html(raw_html, "--raw-html")
    elif os.getenv("MARKEDSPACE_RAW_HTML"):
        final_raw_html = _parse_raw_html(
            os.environ["MARKEDSPACE_RAW_HTML"], "MARKEDSPACE_RAW_HTML"
        )
    else:
        final_raw_html = fb.render.raw_html

    if debug:
        final_debug = True
    else:
        env_debug = os.getenv("MARKEDSPACE_DEBUG")
        final_debug = env_debug is not None and env_debug.lower() in (
            "true",
            "1",
            "yes",
            "on",
        )

    config = Config(
        host=final_host,
        space_key=final_space,
        homepage_id=fb.space.homepage_id,
        space_dir=space_dir or fb.space.directory,
        raw_html=final_raw_html,
        tagfilter=fb.render.tagfilter,
        debug=final_debug,
    )

    validate_config(config)

    if config.raw_html is RawHtmlMode.UNSAFE and not config.tagfilter:
        logger.warning(
            "Raw HTML is passed through without tag filtering. "
            "Use only with trusted sources."
        )

    return config
