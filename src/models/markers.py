"""
Marker vocabulary for serialized queries

Defines the HTML-comment delimiters that identify query directives, their
update mode and syntax family, and the result blocks written after them.
Two interchangeable families are recognised: the legacy one
(<!-- QueryToSerialize: ... -->) and the descriptive alias one
(<!-- dataview-serializer-query: ... -->).
"""

from enum import Enum
from dataclasses import dataclass
from typing import List, Tuple


class UpdateMode(Enum):
    """
    Re-evaluation policy attached to one directive

    AUTO re-evaluates on every pass, MANUAL only on user-triggered passes,
    ONCE until a result exists, ONCE_AND_EJECT like ONCE but removes its own
    markers after the first successful serialization.
    """
    AUTO = "auto"
    MANUAL = "manual"
    ONCE = "once"
    ONCE_AND_EJECT = "once-and-eject"


class SyntaxFamily(Enum):
    """Marker vocabulary a directive was written in"""
    LEGACY = "legacy"
    ALTERNATIVE = "alternative"


class FlagVariant(Enum):
    """Whether a marker occurrence kept its separating space"""
    WITH_SPACE = "with-space"
    TRIMMED = "trimmed"


class DirectiveKind(Enum):
    """Kinds of directives the locators emit"""
    QUERY = "query"
    EXPRESSION = "expression"
    SCRIPT = "script"


# Closing flag shared by every directive kind and family
QUERY_FLAG_CLOSE = " -->"

# Block queries, legacy
QUERY_FLAG_OPEN = "<!-- QueryToSerialize: "
QUERY_FLAG_MANUAL_OPEN = "<!-- QueryToSerializeManual: "
QUERY_FLAG_ONCE_OPEN = "<!-- QueryToSerializeOnce: "
QUERY_FLAG_ONCE_AND_EJECT_OPEN = "<!-- QueryToSerializeOnceAndEject: "

# Block queries, alias
QUERY_FLAG_OPEN_ALT = "<!-- dataview-serializer-query: "
QUERY_FLAG_MANUAL_OPEN_ALT = "<!-- dataview-serializer-query-manual: "
QUERY_FLAG_ONCE_OPEN_ALT = "<!-- dataview-serializer-query-once: "
QUERY_FLAG_ONCE_AND_EJECT_OPEN_ALT = "<!-- dataview-serializer-query-once-and-eject: "

# Result blocks: <!-- SerializedQuery: QUERY -->\n<markdown>\n<!-- SerializedQuery END -->
SERIALIZED_QUERY_START = "<!-- SerializedQuery: "
SERIALIZED_QUERY_END = "<!-- SerializedQuery END -->"
SERIALIZED_QUERY_START_ALT = "<!-- dataview-serializer-result: "
SERIALIZED_QUERY_END_ALT = "<!-- dataview-serializer-result-end -->"

# Inline expressions, legacy
INLINE_QUERY_FLAG_OPEN = "<!-- IQ: "
INLINE_QUERY_FLAG_MANUAL_OPEN = "<!-- IQManual: "
INLINE_QUERY_FLAG_ONCE_OPEN = "<!-- IQOnce: "
INLINE_QUERY_FLAG_ONCE_AND_EJECT_OPEN = "<!-- IQOnceAndEject: "
INLINE_QUERY_END = "<!-- /IQ -->"

# Inline expressions, alias
INLINE_QUERY_FLAG_OPEN_ALT = "<!-- dataview-serializer-iq: "
INLINE_QUERY_FLAG_MANUAL_OPEN_ALT = "<!-- dataview-serializer-iq-manual: "
INLINE_QUERY_FLAG_ONCE_OPEN_ALT = "<!-- dataview-serializer-iq-once: "
INLINE_QUERY_FLAG_ONCE_AND_EJECT_OPEN_ALT = "<!-- dataview-serializer-iq-once-and-eject: "
INLINE_QUERY_END_ALT = "<!-- /dataview-serializer-iq -->"

# Script queries, legacy
SCRIPT_FLAG_OPEN = "<!-- DataviewJSToSerialize: "
SCRIPT_FLAG_MANUAL_OPEN = "<!-- DataviewJSToSerializeManual: "
SCRIPT_FLAG_ONCE_OPEN = "<!-- DataviewJSToSerializeOnce: "
SCRIPT_FLAG_ONCE_AND_EJECT_OPEN = "<!-- DataviewJSToSerializeOnceAndEject: "

# Script queries, alias
SCRIPT_FLAG_OPEN_ALT = "<!-- dataview-serializer-js: "
SCRIPT_FLAG_MANUAL_OPEN_ALT = "<!-- dataview-serializer-js-manual: "
SCRIPT_FLAG_ONCE_OPEN_ALT = "<!-- dataview-serializer-js-once: "
SCRIPT_FLAG_ONCE_AND_EJECT_OPEN_ALT = "<!-- dataview-serializer-js-once-and-eject: "

SERIALIZED_SCRIPT_START = "<!-- SerializedDataviewJS -->"
SERIALIZED_SCRIPT_END = "<!-- SerializedDataviewJS END -->"
SERIALIZED_SCRIPT_START_ALT = "<!-- dataview-serializer-js-result -->"
SERIALIZED_SCRIPT_END_ALT = "<!-- dataview-serializer-js-result-end -->"

QUERY_TYPE_LIST = "list"
QUERY_TYPE_TABLE = "table"
QUERY_TYPE_TASK = "task"

SUPPORTED_QUERY_TYPES: Tuple[str, ...] = (QUERY_TYPE_LIST, QUERY_TYPE_TABLE, QUERY_TYPE_TASK)


@dataclass(frozen=True)
class FlagSpec:
    """
    One opening marker together with what it implies

    Attributes:
        flag: Opening marker text, including its trailing space
        update_mode: Update mode selected by this marker
        syntax_family: Family the marker belongs to
        end_marker: Closing delimiter of the result written for this marker
                    (result-end marker for blocks, inline-end marker for
                    inline expressions)
    """
    flag: str
    update_mode: UpdateMode
    syntax_family: SyntaxFamily
    end_marker: str

    @property
    def flag_trimmed(self) -> str:
        """Marker text without its trailing space"""
        return self.flag.strip()

    def variant_resolve(self, line: str, flag_index: int) -> str:
        """
        Return the marker variant actually present at a position

        Args:
            line: Original (non-trimmed) source line
            flag_index: Position the trimmed marker was found at

        Returns:
            The full marker if it starts at flag_index, else the trimmed one
        """
        return self.flag if line.startswith(self.flag, flag_index) else self.flag_trimmed


# Order matters: alias family first, then once-and-eject, manual, once, plain
QUERY_FLAGS: List[FlagSpec] = [
    FlagSpec(QUERY_FLAG_ONCE_AND_EJECT_OPEN_ALT, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.ALTERNATIVE, SERIALIZED_QUERY_END_ALT),
    FlagSpec(QUERY_FLAG_MANUAL_OPEN_ALT, UpdateMode.MANUAL, SyntaxFamily.ALTERNATIVE, SERIALIZED_QUERY_END_ALT),
    FlagSpec(QUERY_FLAG_ONCE_OPEN_ALT, UpdateMode.ONCE, SyntaxFamily.ALTERNATIVE, SERIALIZED_QUERY_END_ALT),
    FlagSpec(QUERY_FLAG_OPEN_ALT, UpdateMode.AUTO, SyntaxFamily.ALTERNATIVE, SERIALIZED_QUERY_END_ALT),
    FlagSpec(QUERY_FLAG_ONCE_AND_EJECT_OPEN, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.LEGACY, SERIALIZED_QUERY_END),
    FlagSpec(QUERY_FLAG_MANUAL_OPEN, UpdateMode.MANUAL, SyntaxFamily.LEGACY, SERIALIZED_QUERY_END),
    FlagSpec(QUERY_FLAG_ONCE_OPEN, UpdateMode.ONCE, SyntaxFamily.LEGACY, SERIALIZED_QUERY_END),
    FlagSpec(QUERY_FLAG_OPEN, UpdateMode.AUTO, SyntaxFamily.LEGACY, SERIALIZED_QUERY_END),
]

INLINE_QUERY_FLAGS: List[FlagSpec] = [
    FlagSpec(INLINE_QUERY_FLAG_ONCE_AND_EJECT_OPEN_ALT, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.ALTERNATIVE, INLINE_QUERY_END_ALT),
    FlagSpec(INLINE_QUERY_FLAG_MANUAL_OPEN_ALT, UpdateMode.MANUAL, SyntaxFamily.ALTERNATIVE, INLINE_QUERY_END_ALT),
    FlagSpec(INLINE_QUERY_FLAG_ONCE_OPEN_ALT, UpdateMode.ONCE, SyntaxFamily.ALTERNATIVE, INLINE_QUERY_END_ALT),
    FlagSpec(INLINE_QUERY_FLAG_OPEN_ALT, UpdateMode.AUTO, SyntaxFamily.ALTERNATIVE, INLINE_QUERY_END_ALT),
    FlagSpec(INLINE_QUERY_FLAG_ONCE_AND_EJECT_OPEN, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.LEGACY, INLINE_QUERY_END),
    FlagSpec(INLINE_QUERY_FLAG_MANUAL_OPEN, UpdateMode.MANUAL, SyntaxFamily.LEGACY, INLINE_QUERY_END),
    FlagSpec(INLINE_QUERY_FLAG_ONCE_OPEN, UpdateMode.ONCE, SyntaxFamily.LEGACY, INLINE_QUERY_END),
    FlagSpec(INLINE_QUERY_FLAG_OPEN, UpdateMode.AUTO, SyntaxFamily.LEGACY, INLINE_QUERY_END),
]

SCRIPT_FLAGS: List[FlagSpec] = [
    FlagSpec(SCRIPT_FLAG_ONCE_AND_EJECT_OPEN_ALT, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.ALTERNATIVE, SERIALIZED_SCRIPT_END_ALT),
    FlagSpec(SCRIPT_FLAG_MANUAL_OPEN_ALT, UpdateMode.MANUAL, SyntaxFamily.ALTERNATIVE, SERIALIZED_SCRIPT_END_ALT),
    FlagSpec(SCRIPT_FLAG_ONCE_OPEN_ALT, UpdateMode.ONCE, SyntaxFamily.ALTERNATIVE, SERIALIZED_SCRIPT_END_ALT),
    FlagSpec(SCRIPT_FLAG_OPEN_ALT, UpdateMode.AUTO, SyntaxFamily.ALTERNATIVE, SERIALIZED_SCRIPT_END_ALT),
    FlagSpec(SCRIPT_FLAG_ONCE_AND_EJECT_OPEN, UpdateMode.ONCE_AND_EJECT, SyntaxFamily.LEGACY, SERIALIZED_SCRIPT_END),
    FlagSpec(SCRIPT_FLAG_MANUAL_OPEN, UpdateMode.MANUAL, SyntaxFamily.LEGACY, SERIALIZED_SCRIPT_END),
    FlagSpec(SCRIPT_FLAG_ONCE_OPEN, UpdateMode.ONCE, SyntaxFamily.LEGACY, SERIALIZED_SCRIPT_END),
    FlagSpec(SCRIPT_FLAG_OPEN, UpdateMode.AUTO, SyntaxFamily.LEGACY, SERIALIZED_SCRIPT_END),
]


def flagClose_variant(flag_close: str) -> FlagVariant:
    """Tag a closing marker occurrence as spaced or trimmed"""
    return FlagVariant.WITH_SPACE if flag_close == QUERY_FLAG_CLOSE else FlagVariant.TRIMMED


def flagSpec_find(flags: List[FlagSpec], update_mode: UpdateMode, syntax_family: SyntaxFamily) -> FlagSpec:
    """
    Look up the opening marker for a mode and family

    Raises:
        KeyError: If no marker exists for the combination
    """
    for spec in flags:
        if spec.update_mode is update_mode and spec.syntax_family is syntax_family:
            return spec
    raise KeyError(f"No marker for {update_mode.value}/{syntax_family.value}")


def resultMarkers_get(syntax_family: SyntaxFamily) -> Tuple[str, str]:
    """Result-start and result-end markers for block queries of a family"""
    if syntax_family is SyntaxFamily.ALTERNATIVE:
        return SERIALIZED_QUERY_START_ALT, SERIALIZED_QUERY_END_ALT
    return SERIALIZED_QUERY_START, SERIALIZED_QUERY_END


def scriptResultMarkers_get(syntax_family: SyntaxFamily) -> Tuple[str, str]:
    """Result-start and result-end markers for script queries of a family"""
    if syntax_family is SyntaxFamily.ALTERNATIVE:
        return SERIALIZED_SCRIPT_START_ALT, SERIALIZED_SCRIPT_END_ALT
    return SERIALIZED_SCRIPT_START, SERIALIZED_SCRIPT_END
