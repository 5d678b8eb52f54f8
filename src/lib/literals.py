"""
Render typed query values as inline Markdown

Inline expressions evaluate to a value rather than to Markdown. The engine
adapter hands such values over as JSON (or, for library callers, as plain
Python objects) and this module turns them into the short text placed
between the inline markers.

Conventions for values that JSON cannot express directly:
    - a link is an object with "path" and "embed" keys, plus optional
      "display", "subpath" and "type" ("header" or "block")
    - a date or datetime is an ISO 8601 string
"""

import re
from datetime import date, datetime
from typing import Any

EMPTY_PLACEHOLDER = "-"

ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:\d{2})?$")

TASK_CHECKBOX_PATTERN = re.compile(r"^(\s*-\s*)\[.\][ \t]*", re.MULTILINE)


def link_is(value: Any) -> bool:
    """True for link objects"""
    return (
        isinstance(value, dict)
        and isinstance(value.get("path"), str)
        and isinstance(value.get("embed"), bool)
    )


def link_toString(link: dict) -> str:
    """
    Render a link object as a wiki link.

    Example:
        >>> link_toString({"path": "People/Alice.md", "embed": False, "display": "Alice"})
        '[[People/Alice.md|Alice]]'
    """
    prefix = "!" if link["embed"] else ""
    link_path = link["path"]

    subpath = link.get("subpath")
    if subpath:
        if link.get("type") == "header":
            link_path += "#" + subpath
        elif link.get("type") == "block":
            link_path += "#^" + subpath

    display = link.get("display")
    if display and display != link["path"]:
        return f"{prefix}[[{link_path}|{display}]]"
    return f"{prefix}[[{link_path}]]"


def datetime_toString(value: datetime) -> str:
    """ISO date when the time is midnight, full ISO timestamp otherwise"""
    if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
        return value.date().isoformat()
    return value.isoformat()


def literal_toString(value: Any) -> str:
    """
    Convert a query value to its inline text.

    Args:
        value: Decoded JSON value or Python object

    Returns:
        Rendered text; "-" for null and for empty lists or objects

    Example:
        >>> literal_toString(["a", 2, True, None])
        'a, 2, true, -'
        >>> literal_toString({"status": "done", "tags": []})
        '{ status: done, tags: - }'
        >>> literal_toString("2024-03-01T00:00:00")
        '2024-03-01'
    """
    if value is None:
        return EMPTY_PLACEHOLDER

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, float) and value.is_integer():
        return str(int(value))

    if isinstance(value, (int, float)):
        return str(value)

    if isinstance(value, datetime):
        return datetime_toString(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, str):
        if ISO_DATETIME_PATTERN.match(value):
            try:
                return datetime_toString(datetime.fromisoformat(value.replace("Z", "+00:00")))
            except ValueError:
                return value
        return value

    if link_is(value):
        return link_toString(value)

    if isinstance(value, (list, tuple)):
        if not value:
            return EMPTY_PLACEHOLDER
        return ", ".join(literal_toString(item) for item in value)

    if isinstance(value, dict):
        if not value:
            return EMPTY_PLACEHOLDER
        pairs = ", ".join(f"{key}: {literal_toString(item)}" for key, item in value.items())
        return f"{{ {pairs} }}"

    return str(value)


def table_escape(value: str) -> str:
    """Escape pipes so a value can sit inside a Markdown table cell"""
    return value.replace("|", "\\|")


def taskCheckboxes_strip(markdown: str) -> str:
    """
    Turn task list items into plain list items.

    Serialized task output would otherwise be picked up again by the next
    TASK query over the same notes.

    Example:
        >>> taskCheckboxes_strip("- [ ] open\\n  - [x] done")
        '- open\\n  - done'
    """
    return TASK_CHECKBOX_PATTERN.sub(r"\1", markdown)
