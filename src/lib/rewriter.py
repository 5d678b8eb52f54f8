"""
Document rewriter

Folds serialized results back into a document.

For every successfully resolved directive the rewriter finds the directive
in the text with an exact-match pattern and writes its result right after
it. Block queries and scripts get a result block between start and end
markers; inline expressions carry their value between the closing flag and
the inline-end marker. Directives in once-and-eject mode are replaced by
their bare content, markers and all.

Block layout written for a query:

    <!-- QueryToSerialize: LIST FROM #a -->
    <!-- SerializedQuery: LIST FROM #a -->
    - [[Note]]
    <!-- SerializedQuery END -->

The rewriter is idempotent: a directive whose existing result already
carries the current query text and the same trimmed content is left
alone, so a second pass with unchanged results returns the input.

Example:
    >>> from dvserializer.lib.locator import queries_locate
    >>> from dvserializer.models.queries import ResolvedDirective, SerializationResult
    >>> text = "<!-- QueryToSerialize: LIST FROM #a -->\\n"
    >>> resolved = [ResolvedDirective(q, SerializationResult.ok("- [[Note]]"))
    ...             for q in queries_locate(text)]
    >>> print(Rewriter(text).rewrite(resolved), end="")
    <!-- QueryToSerialize: LIST FROM #a -->
    <!-- SerializedQuery: LIST FROM #a -->
    - [[Note]]
    <!-- SerializedQuery END -->
"""

import re
from typing import List, Optional, Union

from ..models.markers import (
    QUERY_FLAG_CLOSE,
    SERIALIZED_QUERY_START,
    SERIALIZED_QUERY_START_ALT,
    SERIALIZED_QUERY_END,
    SERIALIZED_QUERY_END_ALT,
    SERIALIZED_SCRIPT_START,
    SERIALIZED_SCRIPT_START_ALT,
    SERIALIZED_SCRIPT_END,
    SERIALIZED_SCRIPT_END_ALT,
    UpdateMode,
    resultMarkers_get,
    scriptResultMarkers_get,
)
from ..models.queries import (
    LocatedInlineExpression,
    LocatedQuery,
    LocatedScript,
    ResolvedDirective,
)
from .inline import inlineQuery_build
from .locator import queryType_isTable
from .log import LOG


BlockDirective = Union[LocatedQuery, LocatedScript]

# Existing result blocks are matched whatever query text their start
# marker carries, so a block left behind by an edited query is replaced
# instead of orphaned. Either family is accepted.
QUERY_RESULT_BLOCK = (
    r"(?P<block>"
    r"(?:" + re.escape(SERIALIZED_QUERY_START) + "|" + re.escape(SERIALIZED_QUERY_START_ALT) + r")"
    r"(?P<marker_query>[^\n]*?) ?-->\n"
    r"(?P<content>(?s:.*?))"
    r"(?:" + re.escape(SERIALIZED_QUERY_END) + "|" + re.escape(SERIALIZED_QUERY_END_ALT) + r")"
    r"(?:\n|\Z))?"
)

SCRIPT_RESULT_BLOCK = (
    r"(?P<block>"
    r"(?:" + re.escape(SERIALIZED_SCRIPT_START) + "|" + re.escape(SERIALIZED_SCRIPT_START_ALT) + r")\n"
    r"(?P<content>(?s:.*?))"
    r"(?:" + re.escape(SERIALIZED_SCRIPT_END) + "|" + re.escape(SERIALIZED_SCRIPT_END_ALT) + r")"
    r"(?:\n|\Z))?"
)


def content_indent(content: str, indentation: str) -> str:
    """
    Prefix every content line with a whitespace-only indentation.

    Indentation that contains other characters (a list bullet, a quote
    marker) is not repeated on each line.
    """
    if not indentation or indentation.strip():
        return content
    return "\n".join(indentation + line for line in content.split("\n"))


class Rewriter:
    """
    Apply resolved directives to a document.

    Args:
        source: Document text the directives were located in
        add_trailing_newline: Always leave a blank line before the result
                              end marker (indented directives always get one)
        debug: Emit the constructed patterns through LOG()
    """

    def __init__(self, source: str, add_trailing_newline: bool = False, debug: bool = False):
        self.source = source
        self.add_trailing_newline = add_trailing_newline
        self.debug = debug

    def blockPattern_build(self, located: BlockDirective) -> "re.Pattern[str]":
        """
        Build the exact-match pattern for a block directive and its result.

        A single-line query is matched on its indentation, exact opening
        marker variant, exact query text, optional blanks and exact closing
        marker variant. Nothing else may sit between the query and the
        closing marker, so "LIST FROM #a" never matches the directive of
        "LIST FROM #a and #b". Multi-line directives and scripts are
        matched on their verbatim source span.

        Groups:
            directive: The directive line(s), without the line break
            block: The existing result block, if any
            marker_query: Query text in the existing block (queries only)
            content: Content of the existing block
        """
        if isinstance(located, LocatedQuery) and located.original_definition is None:
            directive = (
                re.escape(located.indentation)
                + re.escape(located.flag_open)
                + r"[ \t]*"
                + re.escape(located.query)
                + r"[ \t]*"
                + re.escape(located.flag_close)
                + r"[^\n]*"
            )
        else:
            assert located.original_definition is not None
            directive = re.escape(located.original_definition)

        result_block = SCRIPT_RESULT_BLOCK if isinstance(located, LocatedScript) else QUERY_RESULT_BLOCK
        pattern = r"^(?P<directive>" + directive + r")(?:\n|\Z)" + result_block

        if self.debug:
            LOG(f"Block pattern for [{located.text}]: {pattern}", level=3)
        return re.compile(pattern, re.MULTILINE)

    def existingResult_find(self, located: BlockDirective, text: Optional[str] = None) -> Optional[str]:
        """
        Return the content of the result block written for a directive.

        For block queries the block only counts when its start marker
        carries the directive's current query text; a stale block left by
        an edited query is reported as missing.

        Args:
            located: Block query or script
            text: Text to search; defaults to the rewriter's source

        Returns:
            The block content, or None when the directive has no result yet
        """
        match = self.blockPattern_build(located).search(self.source if text is None else text)
        if match is None or match.group("block") is None:
            return None
        if isinstance(located, LocatedQuery) and match.group("marker_query").strip() != located.query:
            return None
        return match.group("content")

    def trailingNewline_need(self, located: BlockDirective) -> bool:
        return len(located.indentation) > 0 or self.add_trailing_newline

    def blockReplacement_build(self, located: BlockDirective, content: str, directive: str) -> str:
        """
        Build the text that replaces a directive and its old result block.

        Args:
            located: Block query or script
            content: Serialized content, already indented
            directive: Directive text as found in the document

        Returns:
            Directive plus fresh result block, or the bare content for
            once-and-eject directives
        """
        if located.update_mode is UpdateMode.ONCE_AND_EJECT:
            return f"{content}\n"

        trailing = "\n" if self.trailingNewline_need(located) else ""

        if isinstance(located, LocatedScript):
            start, end = scriptResultMarkers_get(located.syntax_family)
            return f"{directive}\n{start}\n{content}\n{trailing}{end}\n"

        start, end = resultMarkers_get(located.syntax_family)
        leading = "\n" if queryType_isTable(located.query) else ""
        return f"{directive}\n{start}{located.query}{QUERY_FLAG_CLOSE}\n{leading}{content}\n{trailing}{end}\n"

    def block_apply(self, text: str, item: ResolvedDirective) -> str:
        """Write one block query or script result into the text"""
        located = item.directive
        assert isinstance(located, (LocatedQuery, LocatedScript))
        content = content_indent(item.result.content.rstrip("\n"), located.indentation)

        if located.update_mode is UpdateMode.ONCE_AND_EJECT and not content.strip():
            LOG(f"Not ejecting [{located.text}]: empty result", level=2)
            return text

        match = self.blockPattern_build(located).search(text)
        if match is None:
            LOG(f"Directive [{located.text}] not found in text", level=2)
            return text

        if match.group("block") is not None and located.update_mode is not UpdateMode.ONCE_AND_EJECT:
            marker_matches = (
                isinstance(located, LocatedScript)
                or match.group("marker_query").strip() == located.query
            )
            if marker_matches and match.group("content").strip() == content.strip():
                LOG(f"Result unchanged for [{located.text}]", level=2)
                return text

        # The directive is written back exactly as the user wrote it
        replacement = self.blockReplacement_build(located, content, match.group("directive"))
        return text[: match.start()] + replacement + text[match.end():]

    def inline_apply(self, text: str, items: List[ResolvedDirective]) -> str:
        """
        Splice inline expression results into the text.

        Offsets refer to the text the expressions were located in, so the
        splices run from the last expression to the first.
        """
        for item in sorted(items, key=lambda entry: entry.directive.start_offset, reverse=True):
            located = item.directive
            assert isinstance(located, LocatedInlineExpression)
            result = item.result.content

            if result.strip() == located.current_result.strip():
                LOG(f"Result unchanged for [{located.expression}]", level=2)
                continue

            if located.update_mode is UpdateMode.ONCE_AND_EJECT:
                if not result.strip():
                    continue
                replacement = result
            else:
                replacement = inlineQuery_build(
                    located.expression,
                    result,
                    located.update_mode,
                    located.syntax_family,
                    flag_open=located.flag_open,
                )

            text = text[: located.start_offset] + replacement + text[located.end_offset:]
        return text

    def rewrite(self, resolved: List[ResolvedDirective]) -> str:
        """
        Produce the new document text.

        Failed results are ignored and leave their directive untouched.
        Inline expressions are spliced first, while their offsets still
        match the source. Block queries and scripts follow in the order
        given.

        Args:
            resolved: Directives located in the source, with their results

        Returns:
            The rewritten text (the source itself when nothing changed)
        """
        successful = [item for item in resolved if item.result.success]
        inline = [item for item in successful if isinstance(item.directive, LocatedInlineExpression)]
        blocks = [item for item in successful if not isinstance(item.directive, LocatedInlineExpression)]

        text = self.inline_apply(self.source, inline)
        for item in blocks:
            text = self.block_apply(text, item)
        return text


def document_rewrite(text: str, resolved: List[ResolvedDirective], add_trailing_newline: bool = False) -> str:
    """Rewrite a document with its resolved directives"""
    return Rewriter(text, add_trailing_newline=add_trailing_newline).rewrite(resolved)
