"""Shared pytest fixtures for markedspace tests."""

import pytest
from dotenv import load_dotenv

from markedspace.converters import parse_markdown
from markedspace.converters.storage_renderer import StorageRenderer
from markedspace.link_registry import LinkRegistry
from markedspace.models import (
    VERSION_MESSAGE_PREFIX,
    ContentStatus,
    NodeType,
    RemoteDocument,
    Version,
)

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a configured Confluence space",
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep developer config files and env vars out of the tests."""
    for name in (
        "MARKEDSPACE_CONFIG",
        "CONFLUENCE_HOST",
        "CONFLUENCE_SPACE",
        "MARKEDSPACE_RAW_HTML",
        "MARKEDSPACE_DEBUG",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def registry():
    """Registry for the example space used throughout the tests."""
    return LinkRegistry("example.atlassian.net", "TEST", "999")


@pytest.fixture
def render(registry):
    """Factory rendering Markdown text to storage format.

    The first heading is not stripped; tests that need title extraction go
    through ``MarkdownPage``.
    """

    def _render(text, source="page.md", options=None):
        tree = parse_markdown(text)
        return StorageRenderer(
            tree, registry, source=source, options=options
        ).render()

    return _render


@pytest.fixture
def remote_document():
    """Factory for remote documents; managed by default."""

    def _create(
        title,
        *,
        status=ContentStatus.CURRENT,
        managed=True,
        source=None,
        node_type=NodeType.PAGE,
        id="1",
    ):
        message = ""
        if managed:
            message = VERSION_MESSAGE_PREFIX
            if source is not None:
                message += f" source={source}; checksum=abc"
        return RemoteDocument(
            id=id,
            title=title,
            status=status,
            node_type=node_type,
            version=Version(number=1, message=message),
        )

    return _create
