"""
dvserializer - Serialize embedded query results into Markdown notes

Turns dynamic query directives into static, portable Markdown.
"""

__version__ = "1.0.0"

from .lib import (
    QueryLocator,
    InlineLocator,
    Rewriter,
    FileProcessor,
    CommandEngine,
    document_rewrite,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "QueryLocator",
    "InlineLocator",
    "Rewriter",
    "FileProcessor",
    "CommandEngine",
    "document_rewrite",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
