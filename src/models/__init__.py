"""
Models package for dvserializer

Contains the marker vocabulary, located-directive data structures and the
pipeline state.
"""

from .state import ProgramState, pipeline
from .markers import UpdateMode, SyntaxFamily, FlagVariant, DirectiveKind
from .queries import (
    LocatedQuery,
    LocatedScript,
    LocatedInlineExpression,
    RawInlineExpression,
    DetectedQuery,
    QueryError,
    SerializationResult,
    ResolvedDirective,
    FileProcessingResult,
    ConversionResult,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "UpdateMode",
    "SyntaxFamily",
    "FlagVariant",
    "DirectiveKind",
    "LocatedQuery",
    "LocatedScript",
    "LocatedInlineExpression",
    "RawInlineExpression",
    "DetectedQuery",
    "QueryError",
    "SerializationResult",
    "ResolvedDirective",
    "FileProcessingResult",
    "ConversionResult",
]
