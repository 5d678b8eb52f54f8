"""
Locator for block and script query directives

Scans document text line by line and returns the query directives it
contains, in source order.

The scan is a two-state machine:
1. IDLE: look for the most specific opening marker on each line. If the
   closing marker follows on the same line, emit a single-line directive;
   otherwise switch to CAPTURING.
2. CAPTURING: accumulate lines verbatim until one contains the closing
   marker, then emit a multi-line directive and return to IDLE.

A directive still being captured when the input ends is discarded.

Example:
    >>> locator = QueryLocator('<!-- QueryToSerialize: LIST FROM #a -->')
    >>> queries = locator.locate()
    >>> queries[0].query
    'LIST FROM #a'
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..models.markers import (
    FlagSpec,
    QUERY_FLAGS,
    SCRIPT_FLAGS,
    QUERY_FLAG_CLOSE,
    QUERY_TYPE_TABLE,
    QUERY_TYPE_TASK,
    SUPPORTED_QUERY_TYPES,
)
from ..models.queries import LocatedQuery, LocatedScript
from .log import LOG


class LocatorState(Enum):
    """States of the line scanner"""
    IDLE = "idle"
    CAPTURING = "capturing"


@dataclass
class CaptureContext:
    """
    Bookkeeping for a multi-line directive being captured

    Attributes:
        spec: Opening marker that started the capture
        flag_open: Exact opening-marker variant found on the trigger line
        indentation: Text before the opening marker on the trigger line
        lines: Source lines accumulated so far, trigger line included
    """
    spec: FlagSpec
    flag_open: str
    indentation: str
    lines: List[str] = field(default_factory=list)


def queryType_isSupported(query: str) -> bool:
    """True if the query starts with one of the supported query kinds"""
    query_lower = query.strip().lower()
    return any(query_lower.startswith(query_type) for query_type in SUPPORTED_QUERY_TYPES)


def queryType_isTable(query: str) -> bool:
    """True for TABLE queries"""
    return query.strip().lower().startswith(QUERY_TYPE_TABLE)


def queryType_isTask(query: str) -> bool:
    """True for TASK queries"""
    return query.strip().lower().startswith(QUERY_TYPE_TASK)


def flagClose_find(text: str, start: int) -> Optional[Tuple[int, str]]:
    """
    Find the closing marker at or after a position

    The closing marker is recognised with or without its leading space;
    the variant found is returned alongside its position.

    Args:
        text: Text to search
        start: First position the marker may begin at

    Returns:
        (position, variant) or None when no closing marker follows

    Example:
        >>> flagClose_find("<!-- X: a -->", 8)
        (9, ' -->')
        >>> flagClose_find("<!-- X: a-->", 8)
        (9, '-->')
    """
    flag_trimmed = QUERY_FLAG_CLOSE.strip()
    index = text.find(flag_trimmed, start)
    if index == -1:
        return None
    if index > start and text[index - 1] == " ":
        return index - 1, QUERY_FLAG_CLOSE
    return index, flag_trimmed


class DirectiveLocator(ABC):
    """
    Line-oriented state machine shared by the block and script locators

    Subclasses provide the opening markers to look for and decide how a
    directive body is normalized and emitted.
    """

    flags: List[FlagSpec] = []

    def __init__(self, source: str, debug: bool = False):
        """
        Initialize locator with document text

        Args:
            source: Raw document text
            debug: Emit per-line trace messages through LOG()

        Attributes:
            source: Document text being scanned
            state: Current scanner state
            capture: Context of the directive being captured, if any
            located: Directives emitted so far
        """
        self.source = source
        self.debug = debug
        self.state = LocatorState.IDLE
        self.capture: Optional[CaptureContext] = None
        self.located: List = []

    def locate(self) -> List:
        """
        Scan the source and return the located directives in source order

        Returns:
            List of located directives (empty for text without directives)
        """
        self.state = LocatorState.IDLE
        self.capture = None
        self.located = []

        for line_number, line in enumerate(self.source.split("\n"), start=1):
            if self.state is LocatorState.CAPTURING:
                self.line_capture(line, line_number)
            else:
                self.line_scan(line, line_number)

        if self.state is LocatorState.CAPTURING and self.debug:
            LOG("Discarding incomplete directive at end of document", level=3)

        return self.located

    def flag_detect(self, trimmed_line: str, line: str) -> Optional[Tuple[FlagSpec, str]]:
        """
        Detect the most specific opening marker present in a line

        Args:
            trimmed_line: The line with surrounding whitespace removed
            line: The original line (to decide which marker variant is present)

        Returns:
            (marker spec, exact variant found) or None
        """
        for spec in self.flags:
            if spec.flag_trimmed in trimmed_line:
                return spec, spec.variant_resolve(line, line.index(spec.flag_trimmed))
        return None

    def line_scan(self, line: str, line_number: int) -> None:
        """Handle one line while IDLE"""
        trimmed_line = line.strip()
        detected = self.flag_detect(trimmed_line, line)
        if detected is None:
            return

        spec, flag_open = detected
        flag_index = line.index(spec.flag_trimmed)
        indentation = line[:flag_index]
        body_start = flag_index + len(flag_open)

        closing = flagClose_find(line, body_start)
        if closing is None:
            if self.debug:
                LOG(f"Line {line_number}: start of multi-line directive ({spec.update_mode.value})", level=3)
            self.state = LocatorState.CAPTURING
            self.capture = CaptureContext(
                spec=spec, flag_open=flag_open, indentation=indentation, lines=[line]
            )
            return

        close_index, flag_close = closing
        body = line[body_start:close_index]
        if self.debug:
            LOG(f"Line {line_number}: single-line directive [{body.strip()}]", level=3)
        self.directive_emit(spec, flag_open, flag_close, indentation, body, line, False)

    def line_capture(self, line: str, line_number: int) -> None:
        """Handle one line while CAPTURING"""
        assert self.capture is not None
        self.capture.lines.append(line)

        if QUERY_FLAG_CLOSE.strip() not in line:
            return

        definition = "\n".join(self.capture.lines)
        body_start = definition.index(self.capture.spec.flag_trimmed) + len(self.capture.flag_open)
        closing = flagClose_find(definition, body_start)
        assert closing is not None
        close_index, flag_close = closing

        if self.debug:
            LOG(
                f"Line {line_number}: end of multi-line directive "
                f"({len(self.capture.lines)} lines)",
                level=3,
            )

        self.directive_emit(
            self.capture.spec,
            self.capture.flag_open,
            flag_close,
            self.capture.indentation,
            definition[body_start:close_index],
            definition,
            True,
        )
        self.state = LocatorState.IDLE
        self.capture = None

    @abstractmethod
    def directive_emit(
        self,
        spec: FlagSpec,
        flag_open: str,
        flag_close: str,
        indentation: str,
        body: str,
        definition: str,
        multiline: bool,
    ) -> None:
        """Normalize a directive body and append it unless filtered out"""


class QueryLocator(DirectiveLocator):
    """
    Locator for block query directives

    Single-line bodies are trimmed. Multi-line bodies are joined into one
    line: each line trimmed, lines joined with single spaces, runs of
    whitespace collapsed. Duplicate query texts and unsupported query kinds
    are dropped without error.
    """

    flags = QUERY_FLAGS

    def locate(self) -> List[LocatedQuery]:
        return super().locate()

    @staticmethod
    def body_normalize(body: str) -> str:
        """
        Collapse a multi-line query body into a single line

        Example:
            >>> QueryLocator.body_normalize("\\n  LIST\\n  FROM  #a\\n")
            'LIST FROM #a'
        """
        joined = " ".join(line.strip() for line in body.split("\n"))
        return re.sub(r"\s+", " ", joined).strip()

    def directive_emit(
        self,
        spec: FlagSpec,
        flag_open: str,
        flag_close: str,
        indentation: str,
        body: str,
        definition: str,
        multiline: bool,
    ) -> None:
        query = self.body_normalize(body) if multiline else body.strip()

        if any(item.query == query for item in self.located):
            if self.debug:
                LOG(f"Ignoring duplicate query [{query}]", level=3)
            return

        if not queryType_isSupported(query):
            if self.debug:
                LOG(f"Ignoring unsupported query [{query}]", level=3)
            return

        self.located.append(
            LocatedQuery(
                query=query,
                indentation=indentation,
                update_mode=spec.update_mode,
                flag_open=flag_open,
                flag_close=flag_close,
                syntax_family=spec.syntax_family,
                original_definition=definition if multiline else None,
            )
        )


class ScriptLocator(DirectiveLocator):
    """
    Locator for script query directives

    The script body keeps its internal line structure; only surrounding
    whitespace is trimmed. Empty bodies and duplicates are dropped. The
    verbatim definition is always recorded, also for single-line scripts.
    """

    flags = SCRIPT_FLAGS

    def locate(self) -> List[LocatedScript]:
        return super().locate()

    def directive_emit(
        self,
        spec: FlagSpec,
        flag_open: str,
        flag_close: str,
        indentation: str,
        body: str,
        definition: str,
        multiline: bool,
    ) -> None:
        code = body.strip()
        if not code or any(item.code == code for item in self.located):
            return

        self.located.append(
            LocatedScript(
                code=code,
                indentation=indentation,
                update_mode=spec.update_mode,
                flag_open=flag_open,
                flag_close=flag_close,
                syntax_family=spec.syntax_family,
                original_definition=definition,
            )
        )


def queries_locate(text: str, debug: bool = False) -> List[LocatedQuery]:
    """Locate the block query directives in a document"""
    return QueryLocator(text, debug=debug).locate()


def scripts_locate(text: str, debug: bool = False) -> List[LocatedScript]:
    """Locate the script query directives in a document"""
    return ScriptLocator(text, debug=debug).locate()
