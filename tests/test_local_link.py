"""Tests for markedspace.local_link."""

import pytest

from markedspace.errors import (
    EmptyAnchorError,
    LocalLinkError,
    PathEscapeError,
    RootLinkError,
)
from markedspace.local_link import LocalLink, simplify_path


class TestSimplifyPath:
    def test_drops_dot_and_empty_components(self):
        assert simplify_path("./a//b/./c.md") == "a/b/c.md"

    def test_resolves_parent_components(self):
        assert simplify_path("a/b/../c.md") == "a/c.md"

    def test_backslash_separators(self):
        assert simplify_path("a\\b\\..\\c.md") == "a/c.md"

    def test_escape_raises(self):
        with pytest.raises(PathEscapeError, match="goes outside of space tree"):
            simplify_path("../c.md")


class TestLocalLinkParse:
    def test_without_anchor(self):
        link = LocalLink.parse("test.md")
        assert link.target == "test.md"
        assert link.anchor is None

    def test_with_anchor(self):
        link = LocalLink.parse("test.md#anchor")
        assert link.target == "test.md"
        assert link.anchor == "anchor"

    def test_empty_anchor_is_an_error(self):
        assert LocalLink.parse("test.md#a").anchor == "a"
        with pytest.raises(EmptyAnchorError, match="Cannot have empty anchors"):
            LocalLink.parse("test.md#")

    def test_simplifies_relative_links(self):
        link = LocalLink.parse("../test.md#a", "subdir")
        assert link.target == "test.md"
        assert link.anchor == "a"

    def test_errors_if_link_is_outside_of_space(self):
        with pytest.raises(PathEscapeError) as exc_info:
            LocalLink.parse("../test.md#a")
        assert exc_info.value.text == "../test.md#a"
        assert "../test.md#a" in str(exc_info.value)

    def test_too_many_parents_from_nested_dir(self):
        with pytest.raises(LocalLinkError):
            LocalLink.parse("../../../x.md", "a/b")

    def test_depth_matching_parents(self):
        assert LocalLink.parse("../../x.md", "a/b").target == "x.md"

    def test_relative_to_document_dir(self):
        assert LocalLink.parse("other.md", "guide").target == "guide/other.md"

    def test_leading_slash_is_tree_root(self):
        assert LocalLink.parse("/other.md", "guide").target == "other.md"

    def test_same_document_anchor(self):
        link = LocalLink.parse("#section", "guide")
        assert link.is_same_document
        assert link.anchor == "section"

    @pytest.mark.parametrize("text", ["./", "guide/..", "./#intro"])
    def test_path_resolving_to_root_is_an_error(self, text):
        with pytest.raises(RootLinkError, match="points at the space tree root"):
            LocalLink.parse(text)

    def test_is_document(self):
        assert LocalLink.parse("a.md").is_document
        assert not LocalLink.parse("a.pdf").is_document

    def test_attachment_name(self):
        link = LocalLink.parse("files/report.pdf", "guide")
        assert link.attachment_name == "guide_files_report.pdf"

    def test_str_uses_forward_slashes(self):
        assert str(LocalLink.parse("b\\c.md#x", "a")) == "a/b/c.md#x"
        assert str(LocalLink.parse("c.md", "a")) == "a/c.md"
