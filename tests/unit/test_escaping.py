"""Unit tests for HTML escaping."""

from whisker.escaping import HTML_ESCAPES, escape_html


class TestEscapeHtml:
    """Tests for escape_html."""

    def test_escapes_markup(self) -> None:
        """Test escaping angle brackets and ampersands."""
        assert escape_html("<a>&") == "&lt;a&gt;&amp;"

    def test_escapes_quotes(self) -> None:
        """Test escaping both quote characters."""
        assert escape_html("\"it's\"") == "&quot;it&apos;s&quot;"

    def test_ampersands_not_double_escaped(self) -> None:
        """Test that entities produced by the table are left alone."""
        assert escape_html("<") == "&lt;"
        assert escape_html("&lt;") == "&amp;lt;"

    def test_plain_text_unchanged(self) -> None:
        """Test that text without special characters passes through."""
        assert escape_html("hello world") == "hello world"
        assert escape_html("") == ""

    def test_ampersand_escaped_first(self) -> None:
        """Test that the table starts with the ampersand entry."""
        assert HTML_ESCAPES[0] == ("&", "&amp;")
