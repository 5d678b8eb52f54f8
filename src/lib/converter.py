"""
Conversion of query-engine notation into serialization markers

Notes written for the query engine embed queries as fenced codeblocks

    ```dataview
    LIST FROM #project
    ```

and inline expressions as `= this.name`. The converter rewrites them into
empty (not yet serialized) directives:

    <!-- QueryToSerialize: LIST FROM #project -->
    <!-- IQ: =this.name --><!-- /IQ -->

Codeblocks whose query kind cannot be serialized are left in place and
reported as skipped. Inline expressions are always converted.
"""

import re
from typing import List, Optional

from ..models.markers import QUERY_FLAG_CLOSE, QUERY_FLAG_OPEN
from ..models.queries import ConversionResult, DetectedQuery
from .inline import InlineLocator, inlineQuery_build
from .locator import QueryLocator, queryType_isSupported
from .log import LOG


CODEBLOCK_PATTERN = re.compile(r"^([ \t]*)```dataview\r?\n([\s\S]*?)\r?\n\1```", re.MULTILINE)


def codeblocks_find(text: str) -> List[DetectedQuery]:
    """Find non-empty query codeblocks"""
    detected: List[DetectedQuery] = []
    for match in CODEBLOCK_PATTERN.finditer(text):
        query = match.group(2).strip()
        if not query:
            continue
        detected.append(
            DetectedQuery(
                query=query,
                start_offset=match.start(),
                end_offset=match.end(),
                indentation=match.group(1),
                is_inline=False,
            )
        )
    return detected


def inlineQueries_find(text: str) -> List[DetectedQuery]:
    """Find `=expression` shorthand"""
    detected: List[DetectedQuery] = []
    for raw in InlineLocator(text).raw_locate():
        line_start = text.rfind("\n", 0, raw.start_offset) + 1
        prefix = text[line_start:raw.start_offset]
        indentation = prefix[: len(prefix) - len(prefix.lstrip(" \t"))]
        detected.append(
            DetectedQuery(
                query=raw.expression[1:],
                start_offset=raw.start_offset,
                end_offset=raw.end_offset,
                indentation=indentation,
                is_inline=True,
            )
        )
    return detected


def queries_find(text: str) -> List[DetectedQuery]:
    """
    Find codeblocks and inline expressions, ordered by offset.

    Inline shorthand inside a codeblock belongs to the codeblock and is
    not reported separately.
    """
    codeblocks = codeblocks_find(text)
    inline = [
        detected
        for detected in inlineQueries_find(text)
        if not any(block.start_offset <= detected.start_offset < block.end_offset for block in codeblocks)
    ]
    return sorted(codeblocks + inline, key=lambda detected: detected.start_offset)


def serializedFormat_make(detected: DetectedQuery) -> str:
    """
    Build the directive that replaces a detected query.

    Example:
        >>> serializedFormat_make(DetectedQuery("LIST\\n  FROM #a", 0, 0, "  ", False))
        '  <!-- QueryToSerialize: LIST FROM #a -->'
        >>> serializedFormat_make(DetectedQuery("this.name", 0, 0, "", True))
        '<!-- IQ: =this.name --><!-- /IQ -->'
    """
    if detected.is_inline:
        return inlineQuery_build(f"={detected.query}", "")
    return f"{detected.indentation}{QUERY_FLAG_OPEN}{QueryLocator.body_normalize(detected.query)}{QUERY_FLAG_CLOSE}"


def queries_convert(text: str, detected: List[DetectedQuery]) -> ConversionResult:
    """
    Replace the detected queries in text.

    Replacements run from the last query to the first so earlier offsets
    stay valid.
    """
    if not detected:
        return ConversionResult(converted=False, new_text=text, count=0)

    new_text = text
    count = 0
    skipped: List[str] = []

    for item in reversed(detected):
        if not item.is_inline and not queryType_isSupported(item.query):
            LOG(f"Skipping unsupported codeblock [{item.query}]", level=2)
            skipped.append(item.query)
            continue
        new_text = new_text[: item.start_offset] + serializedFormat_make(item) + new_text[item.end_offset:]
        count += 1

    skipped.reverse()
    return ConversionResult(converted=count > 0, new_text=new_text, count=count, skipped=skipped)


def query_findAtCursor(text: str, cursor_offset: int) -> Optional[DetectedQuery]:
    """Return the query whose span contains the cursor (bounds inclusive)"""
    for detected in queries_find(text):
        if detected.start_offset <= cursor_offset <= detected.end_offset:
            return detected
    return None


def query_convertAtCursor(text: str, cursor_offset: int) -> ConversionResult:
    """
    Convert the query under the cursor.

    Args:
        text: Document text
        cursor_offset: Cursor position as a character offset

    Returns:
        ConversionResult; unchanged text when the cursor is not on a query
    """
    detected = query_findAtCursor(text, cursor_offset)
    return queries_convert(text, [detected] if detected else [])


def queries_convertInSelection(selected_text: str) -> ConversionResult:
    """Convert every query inside a selection"""
    return queries_convert(selected_text, queries_find(selected_text))


def queries_convertAll(text: str) -> ConversionResult:
    """Convert every query in a document"""
    return queries_convert(text, queries_find(text))
