"""
Query and script locator tests - multi-line directives

Tests directives spanning several lines: body normalization, the
verbatim definition kept for rewriting, and incomplete directives.
"""

import pytest

from dvserializer.lib.locator import QueryLocator, queries_locate, scripts_locate
from dvserializer.models.markers import UpdateMode, SyntaxFamily


class TestMultilineQueries:
    """Test multi-line block query directives"""

    def test_body_is_normalized(self):
        """Lines are trimmed and joined with single spaces"""
        source = "<!-- QueryToSerialize: LIST\nFROM #a\nWHERE x -->\n"
        queries = queries_locate(source)

        assert len(queries) == 1
        assert queries[0].query == "LIST FROM #a WHERE x"
        assert queries[0].is_multiline is True

    def test_original_definition_is_verbatim(self):
        """The definition spans from the trigger line to the closing line"""
        source = "Intro\n<!-- QueryToSerialize: LIST\n    FROM #a\n-->\nOutro\n"
        queries = queries_locate(source)

        assert queries[0].original_definition == "<!-- QueryToSerialize: LIST\n    FROM #a\n-->"
        assert queries[0].query == "LIST FROM #a"

    def test_opening_marker_alone_on_line(self):
        """Opening marker without body on the trigger line"""
        source = "<!-- QueryToSerialize:\nTABLE file.name\nFROM #a\n-->"
        queries = queries_locate(source)

        assert queries[0].query == "TABLE file.name FROM #a"
        assert queries[0].flag_open == "<!-- QueryToSerialize:"
        assert queries[0].flag_close == "-->"

    def test_closing_marker_with_space(self):
        """Closing marker preceded by a space keeps its space"""
        queries = queries_locate("<!-- QueryToSerialize: LIST\nFROM #a -->")
        assert queries[0].flag_close == " -->"

    def test_whitespace_runs_collapse(self):
        """Runs of blanks inside lines collapse as well"""
        queries = queries_locate("<!-- QueryToSerialize: LIST   FROM\n\t#a    WHERE  x\n-->")
        assert queries[0].query == "LIST FROM #a WHERE x"

    def test_mode_and_indentation(self):
        """Mode, family and indentation come from the trigger line"""
        source = "  <!-- dataview-serializer-query-once: LIST\n  FROM #a\n  -->"
        queries = queries_locate(source)

        assert queries[0].update_mode is UpdateMode.ONCE
        assert queries[0].syntax_family is SyntaxFamily.ALTERNATIVE
        assert queries[0].indentation == "  "

    def test_incomplete_directive_discarded(self):
        """A directive with no closing marker before the end is dropped"""
        assert queries_locate("<!-- QueryToSerialize: LIST\nFROM #a\n") == []

    def test_incomplete_after_complete(self):
        """Earlier complete directives survive a trailing incomplete one"""
        source = "<!-- QueryToSerialize: LIST FROM #a -->\n<!-- QueryToSerialize: LIST\nFROM #b\n"
        assert [q.query for q in queries_locate(source)] == ["LIST FROM #a"]

    def test_single_and_multiline_mixed(self):
        """Directives are returned in source order"""
        source = (
            "<!-- QueryToSerialize: LIST FROM #a -->\n"
            "<!-- QueryToSerialize: TABLE x\nFROM #b -->\n"
            "<!-- QueryToSerialize: TASK FROM #c -->\n"
        )
        assert [q.query for q in queries_locate(source)] == [
            "LIST FROM #a",
            "TABLE x FROM #b",
            "TASK FROM #c",
        ]

    def test_markers_inside_capture_are_body(self):
        """Opening markers met while capturing are part of the body"""
        source = "<!-- QueryToSerialize: LIST\n<!-- QueryToSerialize: FROM #a -->"
        queries = queries_locate(source)

        assert len(queries) == 1
        assert queries[0].query == "LIST <!-- QueryToSerialize: FROM #a"

    def test_body_normalize(self):
        """Static normalization helper"""
        assert QueryLocator.body_normalize("\n  LIST\n  FROM  #a\n") == "LIST FROM #a"


class TestScripts:
    """Test script query directives"""

    def test_multiline_script(self):
        """Script body keeps its inner line structure"""
        source = (
            "<!-- DataviewJSToSerialize:\n"
            "const pages = dv.pages('#a');\n"
            "dv.list(pages.file.link);\n"
            "-->\n"
        )
        scripts = scripts_locate(source)

        assert len(scripts) == 1
        assert scripts[0].code == "const pages = dv.pages('#a');\ndv.list(pages.file.link);"
        assert scripts[0].original_definition == source.rstrip("\n")
        assert scripts[0].update_mode is UpdateMode.AUTO

    def test_single_line_script(self):
        """Single-line scripts record the whole line as definition"""
        line = "<!-- DataviewJSToSerialize: dv.paragraph('hi') -->"
        scripts = scripts_locate(line)

        assert scripts[0].code == "dv.paragraph('hi')"
        assert scripts[0].original_definition == line

    def test_script_modes(self):
        """Script markers carry update modes and families"""
        source = (
            "<!-- DataviewJSToSerializeManual: dv.paragraph(1) -->\n"
            "<!-- dataview-serializer-js-once-and-eject: dv.paragraph(2) -->\n"
        )
        scripts = scripts_locate(source)

        assert scripts[0].update_mode is UpdateMode.MANUAL
        assert scripts[0].syntax_family is SyntaxFamily.LEGACY
        assert scripts[1].update_mode is UpdateMode.ONCE_AND_EJECT
        assert scripts[1].syntax_family is SyntaxFamily.ALTERNATIVE

    def test_empty_script_dropped(self):
        """A script without code is dropped"""
        assert scripts_locate("<!-- DataviewJSToSerialize:\n\n-->") == []

    def test_duplicate_script_dropped(self):
        """The same script twice is located once"""
        line = "<!-- DataviewJSToSerialize: dv.paragraph(1) -->"
        assert len(scripts_locate(f"{line}\n{line}\n")) == 1

    def test_scripts_not_queries(self):
        """Script markers are not picked up as block queries"""
        assert queries_locate("<!-- DataviewJSToSerialize: dv.paragraph(1) -->") == []
