"""Tests for markedspace.converters.alerts."""

import pytest

from markedspace.converters.alerts import (
    AlertType,
    alert_markup,
    expand_markup,
    is_expand,
)
from markedspace.converters.document_tree import Phase

CLOSE = "</ac:rich-text-body></ac:structured-macro>"


class TestAlertType:
    def test_from_marker_case_insensitive(self):
        assert AlertType.from_marker("NOTE") is AlertType.NOTE
        assert AlertType.from_marker("Caution") is AlertType.CAUTION
        assert AlertType.from_marker("danger") is None

    @pytest.mark.parametrize(
        "alert_type,title",
        [
            (AlertType.NOTE, "Note"),
            (AlertType.TIP, "Tip"),
            (AlertType.IMPORTANT, "Important"),
            (AlertType.WARNING, "Warning"),
            (AlertType.CAUTION, "Caution"),
        ],
    )
    def test_default_titles(self, alert_type, title):
        assert alert_type.default_title == title


class TestAlertMarkup:
    @pytest.mark.parametrize(
        "alert_type,macro",
        [
            (AlertType.NOTE, '<ac:structured-macro ac:name="info">'),
            (AlertType.TIP, '<ac:structured-macro ac:name="tip">'),
            (
                AlertType.IMPORTANT,
                '<ac:structured-macro ac:name="panel">'
                '<ac:parameter ac:name="bgColor">#EAE6FF</ac:parameter>',
            ),
            (AlertType.WARNING, '<ac:structured-macro ac:name="note">'),
            (AlertType.CAUTION, '<ac:structured-macro ac:name="warning">'),
        ],
    )
    def test_opening_macro_per_severity(self, alert_type, macro):
        assert alert_markup(alert_type, None, Phase.PRE) == (
            f"{macro}<ac:rich-text-body>\n"
            f"<p><strong>{alert_type.default_title}</strong></p>\n"
        )

    def test_explicit_title_is_escaped(self):
        markup = alert_markup(AlertType.TIP, "Fish & <Chips>", Phase.PRE)
        assert "<p><strong>Fish &amp; &lt;Chips&gt;</strong></p>" in markup

    def test_closing_markup(self):
        for alert_type in AlertType:
            assert alert_markup(alert_type, "x", Phase.POST) == CLOSE


class TestExpand:
    def test_is_expand(self):
        assert is_expand("[expand] Title")
        assert is_expand("[expand]")
        assert not is_expand(None)
        assert not is_expand("Title [expand]")

    def test_with_title(self):
        assert expand_markup("[expand] My Title", Phase.PRE) == (
            '<ac:structured-macro ac:name="expand">'
            '<ac:parameter ac:name="title">My Title</ac:parameter>'
            "<ac:rich-text-body>"
        )

    def test_without_title_omits_parameter(self):
        assert expand_markup("[expand]  ", Phase.PRE) == (
            '<ac:structured-macro ac:name="expand"><ac:rich-text-body>'
        )

    def test_expand_wins_over_severity(self):
        for alert_type in AlertType:
            markup = alert_markup(alert_type, "[expand]", Phase.PRE)
            assert markup.startswith('<ac:structured-macro ac:name="expand">')
        assert alert_markup(AlertType.NOTE, "[expand]", Phase.POST) == CLOSE
