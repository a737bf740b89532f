"""Tests for markedspace.escaping."""

from markedspace.escaping import escape, escape_href, tagfilter, tagfilter_block


class TestEscape:
    def test_escapes_markup_characters(self):
        assert escape('<a href="x">&</a>') == (
            "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"
        )

    def test_leaves_other_characters(self):
        assert escape("it's ünïcode {{ x }}") == "it's ünïcode {{ x }}"

    def test_empty(self):
        assert escape("") == ""


class TestEscapeHref:
    def test_ampersand_and_apostrophe(self):
        assert escape_href("a&b'c") == "a&amp;b&#x27;c"

    def test_alphanumerics_untouched(self):
        assert escape_href("abcXYZ0189") == "abcXYZ0189"

    def test_safe_punctuation_untouched(self):
        url = "https://ddg.gg/?q=a%20b#frag"
        assert escape_href(url) == url

    def test_percent_encodes_other_bytes(self):
        assert escape_href("a b<c>") == "a%20b%3Cc%3E"

    def test_percent_encodes_utf8_bytes_uppercase(self):
        assert escape_href("é") == "%C3%A9"

    def test_single_pass_only(self):
        once = escape_href("&")
        assert once == "&amp;"
        assert escape_href(once) == "&amp;amp;"


class TestTagfilter:
    def test_blacklisted_open_and_close_tags(self):
        assert tagfilter("<script>")
        assert tagfilter("</style>")
        assert tagfilter("<IFRAME src=x>")
        assert tagfilter("<textarea/>")
        assert tagfilter("<title\n>")

    def test_other_tags_pass(self):
        assert not tagfilter("<div>")
        assert not tagfilter("<scripts>")
        assert not tagfilter("<b>")

    def test_short_or_non_tag_literals(self):
        assert not tagfilter("<")
        assert not tagfilter("<x")
        assert not tagfilter("script>")

    def test_name_at_end_of_literal(self):
        assert not tagfilter("<script")

    def test_lone_slash_after_name(self):
        assert not tagfilter("<script/")

    def test_block_neutralises_only_blacklisted_tags(self):
        html = "<div><script>alert(1)</script><em>x</em></div>"
        assert tagfilter_block(html) == (
            "<div>&lt;script>alert(1)&lt;/script><em>x</em></div>"
        )

    def test_block_without_tags(self):
        assert tagfilter_block("plain text") == "plain text"
