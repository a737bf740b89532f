"""Tests for markedspace.config: env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models).
"""

import logging

import pytest

from markedspace.config import Config, load_config, validate_config
from markedspace.config_schema import (
    RawHtmlMode,
    RenderOptions,
    SpaceConfig,
    UnifiedConfig,
)

# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_valid(self):
        config = Config(host="example.atlassian.net", space_key="DOCS")
        validate_config(config)

    def test_personal_space_key(self):
        validate_config(Config(space_key="~jdoe"))

    def test_trailing_slash_stripped(self):
        config = Config(host=" example.atlassian.net/ ")
        validate_config(config)
        assert config.host == "example.atlassian.net"

    @pytest.mark.parametrize(
        "host", ["https://example.atlassian.net", "example.net/wiki"]
    )
    def test_host_must_be_bare(self, host):
        with pytest.raises(ValueError, match="bare host name"):
            validate_config(Config(host=host))

    def test_space_key_must_be_alphanumeric(self):
        with pytest.raises(ValueError, match="must be alphanumeric"):
            validate_config(Config(space_key="MY SPACE"))


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config.host == ""
        assert config.space_dir == "."
        assert config.raw_html is RawHtmlMode.UNSAFE
        assert config.tagfilter is True
        assert config.debug is False

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("CONFLUENCE_HOST", "env.example.com")
        monkeypatch.setenv("CONFLUENCE_SPACE", "ENV")
        monkeypatch.setenv("MARKEDSPACE_RAW_HTML", "Escape")
        monkeypatch.setenv("MARKEDSPACE_DEBUG", "yes")

        config = load_config()
        assert config.host == "env.example.com"
        assert config.space_key == "ENV"
        assert config.raw_html is RawHtmlMode.ESCAPE
        assert config.debug is True

    def test_cli_beats_env_beats_yaml(self, monkeypatch):
        yaml_config = UnifiedConfig(
            space=SpaceConfig(
                host="yaml.example.com",
                space_key="YAML",
                homepage_id="7",
                directory="docs",
            ),
            render=RenderOptions(raw_html=RawHtmlMode.OMIT),
        )
        monkeypatch.setenv("CONFLUENCE_SPACE", "ENV")
        monkeypatch.setenv("MARKEDSPACE_RAW_HTML", "escape")

        config = load_config(
            host="cli.example.com", raw_html="unsafe", yaml_config=yaml_config
        )
        assert config.host == "cli.example.com"
        assert config.space_key == "ENV"
        assert config.homepage_id == "7"
        assert config.space_dir == "docs"
        assert config.raw_html is RawHtmlMode.UNSAFE

    def test_yaml_fallback(self):
        yaml_config = UnifiedConfig(
            render=RenderOptions(raw_html=RawHtmlMode.OMIT, tagfilter=False)
        )
        config = load_config(space_dir="src", yaml_config=yaml_config)
        assert config.space_dir == "src"
        assert config.render_options == RenderOptions(
            raw_html=RawHtmlMode.OMIT, tagfilter=False
        )

    def test_invalid_raw_html(self, monkeypatch):
        monkeypatch.setenv("MARKEDSPACE_RAW_HTML", "sanitize")
        with pytest.raises(
            ValueError,
            match="Invalid MARKEDSPACE_RAW_HTML 'sanitize': "
            "must be one of escape, omit, unsafe",
        ):
            load_config()

    def test_debug_env_false(self, monkeypatch):
        monkeypatch.setenv("MARKEDSPACE_DEBUG", "0")
        assert load_config().debug is False

    def test_unfiltered_html_warns(self, caplog):
        yaml_config = UnifiedConfig(render=RenderOptions(tagfilter=False))
        with caplog.at_level(logging.WARNING, logger="markedspace.config"):
            load_config(yaml_config=yaml_config)
        assert "without tag filtering" in caplog.text

    def test_space_property(self):
        config = load_config(host="h.example", space_key="K")
        assert config.space == SpaceConfig(
            host="h.example", space_key="K", directory="."
        )
