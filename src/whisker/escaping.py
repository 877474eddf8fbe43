"""HTML escaping for variable output."""

# Applied in order so that ampersands introduced by later entries
# are not escaped a second time.
HTML_ESCAPES: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    ("'", "&apos;"),
    ('"', "&quot;"),
    ("<", "&lt;"),
    (">", "&gt;"),
)


def escape_html(text: str) -> str:
    """Escape text for safe inclusion in HTML content and attributes.

    Examples:
        >>> escape_html("<a>&")
        '&lt;a&gt;&amp;'
    """
    for raw, entity in HTML_ESCAPES:
        text = text.replace(raw, entity)
    return text
