"""
dvserializer - Serialize embedded query results into Markdown notes

Locates query directives in notes, evaluates them through a query engine
and writes the rendered results back between HTML-comment markers.
"""

__version__ = "1.0.0"

from .locator import QueryLocator, ScriptLocator, queries_locate, scripts_locate
from .inline import InlineLocator, expressions_locate
from .policy import query_shouldSkip
from .engine import QueryEngine, CommandEngine
from .rewriter import Rewriter, document_rewrite
from .converter import query_convertAtCursor, queries_convertInSelection, queries_convertAll
from .processor import FileProcessor
from .log import LOG, state_connectToLogger

__all__ = [
    "QueryLocator",
    "ScriptLocator",
    "InlineLocator",
    "queries_locate",
    "scripts_locate",
    "expressions_locate",
    "query_shouldSkip",
    "QueryEngine",
    "CommandEngine",
    "Rewriter",
    "document_rewrite",
    "query_convertAtCursor",
    "queries_convertInSelection",
    "queries_convertAll",
    "FileProcessor",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
