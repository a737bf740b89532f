"""Tests for markedspace.attachments."""

from markedspace.attachments import ImageAttachment, is_remote, to_flat_name


class TestToFlatName:
    def test_nested_path(self):
        assert to_flat_name("assets/image.png") == "assets_image.png"

    def test_leading_dot_segment_kept(self):
        assert to_flat_name("./assets/image.png") == "._assets_image.png"

    def test_backslashes(self):
        assert to_flat_name("assets\\img\\a.png") == "assets_img_a.png"

    def test_flat_name_unchanged(self):
        assert to_flat_name("image.png") == "image.png"


class TestIsRemote:
    def test_remote_urls(self):
        assert is_remote("https://example.com/a.png")
        assert is_remote("ftp://host/file")

    def test_local_paths(self):
        assert not is_remote("assets/a.png")
        assert not is_remote("mailto:someone@example.com")


class TestImageAttachment:
    def test_from_url_in_subdirectory(self):
        attachment = ImageAttachment.from_url("assets/image.png", "guide")
        assert attachment.url == "assets/image.png"
        assert attachment.path == "guide/assets/image.png"
        assert attachment.name == "assets_image.png"

    def test_from_url_at_root(self):
        attachment = ImageAttachment.from_url("image.png")
        assert attachment.path == "image.png"
        assert attachment.name == "image.png"
