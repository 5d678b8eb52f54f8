"""
Locator for inline expression directives

Inline expressions substitute a single value into prose or a table cell:

    Name: <!-- IQ: =this.name -->Alice<!-- /IQ -->

Unlike block queries they carry their previous result between the closing
flag and the inline-end marker, and several may share one line, so the
whole text is scanned with one pattern per opening marker instead of
line by line.

The module also finds raw inline expressions in the query engine's own
backtick shorthand (`=this.name`), which only the converter uses.
"""

import re
from typing import List, Optional

from ..models.markers import (
    FlagSpec,
    INLINE_QUERY_FLAGS,
    QUERY_FLAG_CLOSE,
    SyntaxFamily,
    UpdateMode,
    flagSpec_find,
)
from ..models.queries import LocatedInlineExpression, RawInlineExpression
from .log import LOG


RAW_INLINE_PATTERN = re.compile(r"`=\s*([^`]+)`")

# Unescaped pipe, for the table-cell heuristic
TABLE_PIPE_PATTERN = re.compile(r"(?<!\\)\|")

# Any inline opening marker, trimmed, of either family
INLINE_FLAGS_ALTERNATION = "|".join(re.escape(spec.flag_trimmed) for spec in INLINE_QUERY_FLAGS)


def inlinePattern_build(spec: FlagSpec) -> "re.Pattern[str]":
    """
    Build the scan pattern for one inline opening marker.

    The opening marker may appear with or without its trailing space. The
    expression starts with "=" and may contain anything except the "-->"
    close sequence. The previous result is everything up to the nearest
    end marker of the marker's family, and never runs into another inline
    opening marker: an unterminated directive does not capture the next one.
    The expression is held to the same rule.

    Args:
        spec: Inline opening marker

    Returns:
        Compiled pattern with groups flag, expression, result
    """
    return re.compile(
        r"(?P<flag>" + re.escape(spec.flag_trimmed) + r" ?)"
        r"(?P<expression>=(?:(?!" + INLINE_FLAGS_ALTERNATION + r")(?:[^-]|-(?!->)))*?)"
        r" ?-->"
        r"(?P<result>(?:(?!" + INLINE_FLAGS_ALTERNATION + r").)*?)"
        + re.escape(spec.end_marker),
        re.DOTALL,
    )


INLINE_PATTERNS: List[tuple] = [(spec, inlinePattern_build(spec)) for spec in INLINE_QUERY_FLAGS]


class InlineLocator:
    """
    Scan a document for inline expression directives.

    Each opening marker is searched over the whole text, most specific
    marker first. Matches are then ordered by offset; where more than one
    marker matched at the same offset the most specific match is kept, and
    a match overlapping an already kept span is dropped, so the spans
    returned never overlap.

    Example:
        >>> locator = InlineLocator("a <!-- IQ: =this.x -->1<!-- /IQ --> b")
        >>> [(e.expression, e.current_result) for e in locator.locate()]
        [('=this.x', '1')]
    """

    def __init__(self, source: str, debug: bool = False):
        self.source = source
        self.debug = debug

    def locate(self) -> List[LocatedInlineExpression]:
        """
        Locate inline expression directives.

        Returns:
            Located expressions with ascending, non-overlapping spans
        """
        candidates: List[LocatedInlineExpression] = []

        for spec, pattern in INLINE_PATTERNS:
            for match in pattern.finditer(self.source):
                expression = match.group("expression").strip()
                if not expression.lstrip("=").strip():
                    continue
                candidates.append(
                    LocatedInlineExpression(
                        expression=expression,
                        start_offset=match.start(),
                        end_offset=match.end(),
                        update_mode=spec.update_mode,
                        flag_open=match.group("flag"),
                        syntax_family=spec.syntax_family,
                        current_result=match.group("result"),
                        full_match=match.group(0),
                    )
                )

        # Stable sort: at equal offsets the most specific marker stays first
        candidates.sort(key=lambda located: located.start_offset)

        located_expressions: List[LocatedInlineExpression] = []
        for candidate in candidates:
            if located_expressions and candidate.start_offset < located_expressions[-1].end_offset:
                if self.debug:
                    LOG(f"Dropping overlapping inline match at {candidate.start_offset}", level=3)
                continue
            if self.debug:
                LOG(f"Inline match at {candidate.start_offset}: {candidate.full_match!r}", level=3)
            located_expressions.append(candidate)
        return located_expressions

    def raw_locate(self) -> List[RawInlineExpression]:
        """
        Locate raw `=expression` shorthand not yet converted to markers.

        Returns:
            Raw expressions in source order, expression normalized to "=expr"
        """
        located: List[RawInlineExpression] = []
        for match in RAW_INLINE_PATTERN.finditer(self.source):
            expression = match.group(1).strip()
            if not expression:
                continue
            located.append(
                RawInlineExpression(
                    expression=f"={expression}",
                    start_offset=match.start(),
                    end_offset=match.end(),
                    full_match=match.group(0),
                )
            )
        return located


def inlineQuery_build(
    expression: str,
    result: str,
    update_mode: UpdateMode = UpdateMode.AUTO,
    syntax_family: SyntaxFamily = SyntaxFamily.LEGACY,
    flag_open: Optional[str] = None,
) -> str:
    """
    Build a complete inline directive span.

    Args:
        expression: Expression including its "=" prefix
        result: Serialized value placed before the end marker
        update_mode: Mode selecting the opening marker
        syntax_family: Family selecting the opening and end markers
        flag_open: Exact opening-marker variant to reuse, if any

    Returns:
        The span, e.g. "<!-- IQ: =this.name -->Alice<!-- /IQ -->"
    """
    spec = flagSpec_find(INLINE_QUERY_FLAGS, update_mode, syntax_family)
    flag = flag_open if flag_open is not None else spec.flag
    return f"{flag}{expression}{QUERY_FLAG_CLOSE}{result}{spec.end_marker}"


def table_contains(text: str, offset: int) -> bool:
    """
    Guess whether an offset lies inside a Markdown table row.

    A line counts as a table row when, trimmed, it starts or ends with "|",
    or contains at least two unescaped pipes.
    """
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    line = text[line_start:line_end].strip()

    if line.startswith("|") or line.endswith("|"):
        return True
    return len(TABLE_PIPE_PATTERN.findall(line)) >= 2


def expressions_locate(text: str, debug: bool = False) -> List[LocatedInlineExpression]:
    """Locate the inline expression directives in a document"""
    return InlineLocator(text, debug=debug).locate()
