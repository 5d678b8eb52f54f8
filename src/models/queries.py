"""
Located-directive data models

Type-safe structures produced by the locators, consumed by the rewriter,
and returned to callers of a processing pass.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .markers import DirectiveKind, FlagVariant, SyntaxFamily, UpdateMode, flagClose_variant


@dataclass
class LocatedQuery:
    """
    A block query directive found in a document

    Attributes:
        query: Normalized query text (trimmed; multi-line bodies joined with
               single spaces and whitespace collapsed)
        indentation: Everything on the directive's line before the opening marker
        update_mode: Update mode selected by the opening marker
        flag_open: Exact opening-marker variant present in the source
        flag_close: Exact closing-marker variant present in the source
        syntax_family: Marker family the directive was written in
        original_definition: Verbatim source span (opening line through
                             closing marker line) for multi-line directives,
                             None for single-line ones

    Example:
        For source "  <!-- QueryToSerialize: LIST FROM #a -->":
        LocatedQuery(query="LIST FROM #a", indentation="  ",
                     update_mode=UpdateMode.AUTO,
                     flag_open="<!-- QueryToSerialize: ", flag_close=" -->",
                     syntax_family=SyntaxFamily.LEGACY)
    """
    query: str
    indentation: str
    update_mode: UpdateMode
    flag_open: str
    flag_close: str
    syntax_family: SyntaxFamily
    original_definition: Optional[str] = None

    kind = DirectiveKind.QUERY

    @property
    def flag_close_variant(self) -> FlagVariant:
        return flagClose_variant(self.flag_close)

    @property
    def is_multiline(self) -> bool:
        return self.original_definition is not None

    @property
    def text(self) -> str:
        return self.query


@dataclass
class LocatedScript:
    """
    A script (JavaScript-style) query directive found in a document

    Attributes:
        code: Script body with surrounding whitespace trimmed and internal
              formatting preserved
        indentation: Text before the opening marker on its line
        update_mode: Update mode selected by the opening marker
        flag_open: Exact opening-marker variant present in the source
        flag_close: Exact closing-marker variant present in the source
        syntax_family: Marker family the directive was written in
        original_definition: Verbatim source span, opening marker through
                             closing marker
    """
    code: str
    indentation: str
    update_mode: UpdateMode
    flag_open: str
    flag_close: str
    syntax_family: SyntaxFamily
    original_definition: str

    kind = DirectiveKind.SCRIPT

    @property
    def text(self) -> str:
        return self.code


@dataclass
class LocatedInlineExpression:
    """
    An inline expression directive found in a document

    Attributes:
        expression: Expression text including its leading "=" (e.g. "=this.name")
        start_offset: Character offset of the opening marker
        end_offset: Character offset just past the inline-end marker
        update_mode: Update mode selected by the opening marker
        flag_open: Opening marker that produced the match
        syntax_family: Marker family the directive was written in
        current_result: Text currently stored between the closing flag and
                        the inline-end marker
        full_match: Complete matched span, used for splicing
    """
    expression: str
    start_offset: int
    end_offset: int
    update_mode: UpdateMode
    flag_open: str
    syntax_family: SyntaxFamily
    current_result: str
    full_match: str

    kind = DirectiveKind.EXPRESSION

    @property
    def is_serialized(self) -> bool:
        return self.current_result != ""

    @property
    def text(self) -> str:
        return self.expression


@dataclass
class RawInlineExpression:
    """
    A not-yet-converted inline expression in backtick shorthand (`=expr`)

    Attributes:
        expression: Expression including its "=" prefix
        start_offset: Offset of the opening backtick
        end_offset: Offset just past the closing backtick
        full_match: The backtick-delimited source text
    """
    expression: str
    start_offset: int
    end_offset: int
    full_match: str


@dataclass
class QueryError:
    """Message plus the offending query, expression or script text"""
    message: str
    query: str


@dataclass
class SerializationResult:
    """
    Outcome of one engine call

    Either a success carrying rendered content (possibly empty) or a failure
    carrying a QueryError. Use the ok()/failure() constructors.
    """
    success: bool
    content: str = ""
    error: Optional[QueryError] = None

    @classmethod
    def ok(cls, content: str) -> "SerializationResult":
        return cls(success=True, content=content)

    @classmethod
    def failure(cls, message: str, query: str) -> "SerializationResult":
        return cls(success=False, error=QueryError(message=message, query=query))


LocatedDirective = Union[LocatedQuery, LocatedScript, LocatedInlineExpression]


@dataclass
class ResolvedDirective:
    """A located directive paired with the result of serializing it"""
    directive: LocatedDirective
    result: SerializationResult


@dataclass
class FileProcessingResult:
    """
    Result of one processing pass over a file

    Attributes:
        file_path: Path of the processed file ("" when nothing was processed)
        errors: Failures collected during the pass
        changed: True when the file content was rewritten
    """
    file_path: str
    errors: List[QueryError] = field(default_factory=list)
    changed: bool = False


@dataclass
class ConversionResult:
    """
    Result of converting third-party notation into serialized markers

    Attributes:
        converted: Whether at least one query was converted
        new_text: The text after conversion (the input when nothing changed)
        count: Number of queries converted
        skipped: Unsupported query texts that were left untouched
    """
    converted: bool
    new_text: str
    count: int
    skipped: List[str] = field(default_factory=list)


@dataclass
class DetectedQuery:
    """
    A query in the query engine's own notation, found by the converter

    Attributes:
        query: Query or expression text (codeblock body trimmed, inline
               expression without its "=" prefix)
        start_offset: Offset where the codeblock fence or backtick starts
        end_offset: Offset just past the closing fence or backtick
        indentation: Leading blanks of the line the query starts on
        is_inline: True for `=expression` shorthand, False for codeblocks
    """
    query: str
    start_offset: int
    end_offset: int
    indentation: str
    is_inline: bool
