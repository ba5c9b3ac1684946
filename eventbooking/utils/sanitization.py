import html
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Trim and HTML-escape free text shown back in the portal or on the quote page.
    Already escaped text is unescaped first, so re-saving an edited value is a no-op.
    """
    if not isinstance(value, str):
        return value
    return html.escape(html.unescape(value).strip(), quote=True)


def sanitize_fields(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """
    Copy of data with the named text fields escaped.
    Fields absent from data stay absent; other keys are untouched.
    """
    return {key: sanitize_string(value) if key in fields else value for key, value in data.items()}
