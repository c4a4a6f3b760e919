"""Small XML text helpers shared by the GPX reader and writer."""

from __future__ import annotations

from xml.sax.saxutils import escape

_EXTRA_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: object) -> str:
    """Escape the five reserved XML characters; ``None`` becomes an empty string."""
    if value is None:
        return ""
    return escape(str(value), _EXTRA_ENTITIES)


def local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[-1]
    return tag


def format_number(value: object) -> str:
    """Render a JSON number the way it would be written back out of JSON."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
