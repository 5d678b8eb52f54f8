"""
Inline value rendering tests

Tests literal_toString() over every value shape an expression can
evaluate to, plus table escaping and task checkbox stripping.
"""

import pytest
from datetime import date, datetime

from dvserializer.lib.literals import (
    EMPTY_PLACEHOLDER,
    link_toString,
    literal_toString,
    table_escape,
    taskCheckboxes_strip,
)


class TestScalars:
    """Test scalar values"""

    def test_null(self):
        """None renders as the placeholder"""
        assert literal_toString(None) == EMPTY_PLACEHOLDER == "-"

    def test_booleans(self):
        """Booleans render lower-case"""
        assert literal_toString(True) == "true"
        assert literal_toString(False) == "false"

    def test_numbers(self):
        """Whole floats lose their fraction"""
        assert literal_toString(3) == "3"
        assert literal_toString(3.0) == "3"
        assert literal_toString(2.5) == "2.5"

    def test_strings(self):
        """Plain strings pass through"""
        assert literal_toString("hello") == "hello"
        assert literal_toString("") == ""


class TestDates:
    """Test dates and datetimes"""

    def test_midnight_datetime(self):
        """Midnight renders as a date"""
        assert literal_toString(datetime(2024, 3, 1)) == "2024-03-01"

    def test_datetime_with_time(self):
        """Other times render as ISO timestamps"""
        assert literal_toString(datetime(2024, 3, 1, 10, 30)) == "2024-03-01T10:30:00"

    def test_date(self):
        """Date objects"""
        assert literal_toString(date(2024, 3, 1)) == "2024-03-01"

    def test_iso_strings(self):
        """ISO strings from JSON are recognised"""
        assert literal_toString("2024-03-01T00:00:00") == "2024-03-01"
        assert literal_toString("2024-03-01T10:30:00") == "2024-03-01T10:30:00"

    def test_non_iso_string(self):
        """Date-like prose is left alone"""
        assert literal_toString("March 1st") == "March 1st"


class TestLinks:
    """Test link objects"""

    def test_plain_link(self):
        """Link without display text"""
        assert literal_toString({"path": "Notes/A.md", "embed": False}) == "[[Notes/A.md]]"

    def test_display(self):
        """Display text differing from the path"""
        link = {"path": "People/Alice.md", "embed": False, "display": "Alice"}
        assert link_toString(link) == "[[People/Alice.md|Alice]]"

    def test_embed(self):
        """Embedded links get the "!" prefix"""
        assert literal_toString({"path": "img.png", "embed": True}) == "![[img.png]]"

    def test_subpaths(self):
        """Header and block subpaths"""
        header = {"path": "A.md", "embed": False, "subpath": "Intro", "type": "header"}
        block = {"path": "A.md", "embed": False, "subpath": "abc123", "type": "block"}

        assert literal_toString(header) == "[[A.md#Intro]]"
        assert literal_toString(block) == "[[A.md#^abc123]]"


class TestCollections:
    """Test lists and objects"""

    def test_list(self):
        """Items are joined with commas"""
        assert literal_toString(["a", 2, True, None]) == "a, 2, true, -"

    def test_list_of_links(self):
        """Nested values render recursively"""
        links = [{"path": "A.md", "embed": False}, {"path": "B.md", "embed": False}]
        assert literal_toString(links) == "[[A.md]], [[B.md]]"

    def test_empty_collections(self):
        """Empty lists and objects render as the placeholder"""
        assert literal_toString([]) == "-"
        assert literal_toString({}) == "-"

    def test_object(self):
        """Objects render as key/value pairs"""
        assert literal_toString({"status": "done", "tags": []}) == "{ status: done, tags: - }"


class TestHelpers:
    """Test escaping and checkbox stripping"""

    def test_table_escape(self):
        """Pipes are escaped"""
        assert table_escape("a|b|c") == "a\\|b\\|c"
        assert table_escape("plain") == "plain"

    def test_checkboxes_stripped(self):
        """Task items become plain list items"""
        markdown = "- [ ] open\n- [x] done\n  - [/] partial"
        assert taskCheckboxes_strip(markdown) == "- open\n- done\n  - partial"

    def test_other_lines_untouched(self):
        """Non-task lines are unchanged"""
        markdown = "Heading\n- plain item\n[ ] not a list"
        assert taskCheckboxes_strip(markdown) == markdown
