"""
File processing pass

Runs the whole cycle for one note: locate directives, apply the update-mode
policy, evaluate what is due through the query engine, fold the results
back with the rewriter and write the note when its text changed.

FileProcessor also owns the one piece of state that outlives a pass: for
every note it wrote, the earliest time the note may be processed again.
A note whose modification time falls before that moment was last touched
by this processor and is left alone, which breaks the write/notify/process
loop of a watched notes folder.
"""

from pathlib import Path
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import yaml

from ..config.settings import AppSettings, appsettings
from ..models.queries import (
    FileProcessingResult,
    LocatedInlineExpression,
    LocatedQuery,
    LocatedScript,
    QueryError,
    ResolvedDirective,
    SerializationResult,
)
from .engine import QueryEngine
from .inline import InlineLocator, table_contains
from .locator import QueryLocator, ScriptLocator
from .log import LOG
from .policy import query_shouldSkip
from .rewriter import Rewriter


MARKDOWN_FILE_EXTENSION = ".md"
CANVAS_FILE_NAME = "Canvas.md"
EXCALIDRAW_FILE_SUFFIX = ".excalidraw.md"
EXCALIDRAW_FRONTMATTER_KEY = "excalidraw-plugin"


def frontmatter_parse(text: str) -> Dict:
    """
    Parse the YAML frontmatter block at the top of a note.

    Returns:
        The frontmatter mapping; empty when the note has none or it is
        not a valid YAML mapping
    """
    if not text.startswith("---"):
        return {}
    lines = text.split("\n")
    if lines[0].strip() != "---":
        return {}
    for index, line in enumerate(lines[1:], start=1):
        if line.strip() in ("---", "..."):
            try:
                data = yaml.safe_load("\n".join(lines[1:index]))
            except yaml.YAMLError:
                return {}
            return data if isinstance(data, dict) else {}
    return {}


def excalidraw_is(path: Path, text: str) -> bool:
    """True for Excalidraw drawings stored as Markdown"""
    if path.name.endswith(EXCALIDRAW_FILE_SUFFIX):
        return True
    return EXCALIDRAW_FRONTMATTER_KEY in frontmatter_parse(text)


class FileProcessor:
    """
    Process notes below a root directory.

    Args:
        engine: Query engine used to evaluate directives
        root: Directory the notes live in; origins are paths relative to it
        output_root: Directory changed notes are written to, under their
                     relative paths; defaults to root (in-place)
        settings: Application settings
        debug: Emit locator and rewriter traces

    Example:
        processor = FileProcessor(CommandEngine("dataview-cli"), Path("notes"))
        result = processor.file_process(Path("notes/index.md"))
        for error in result.errors:
            print(error.query, error.message)
    """

    def __init__(
        self,
        engine: QueryEngine,
        root: Path,
        output_root: Optional[Path] = None,
        settings: AppSettings = appsettings,
        debug: bool = False,
    ):
        self.engine = engine
        self.root = root
        self.output_root = output_root if output_root is not None else root
        self.settings = settings
        self.debug = debug
        self.next_possible_updates: Dict[str, datetime] = {}

    def path_relative(self, path: Path) -> str:
        """Note path relative to the root, "/" separated"""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def file_shouldIgnore(self, path: Path, text: str, force: bool = False) -> bool:
        """
        Decide whether a note is left out of processing.

        Non-Markdown files, the canvas note, empty notes and Excalidraw
        drawings are always ignored. Unless forced, so are notes written by
        this processor too recently and notes in ignored folders.
        """
        relative = self.path_relative(path)

        if path.suffix != MARKDOWN_FILE_EXTENSION:
            return True
        if path.name == CANVAS_FILE_NAME:
            return True
        if not text.strip():
            return True
        if excalidraw_is(path, text):
            LOG(f"Ignoring Excalidraw drawing {relative}", level=2)
            return True
        if force:
            return False

        next_possible_update = self.next_possible_updates.get(relative)
        if next_possible_update is not None:
            modified = datetime.fromtimestamp(path.stat().st_mtime)
            if modified < next_possible_update:
                LOG(f"{relative} was updated recently. Ignoring", level=2)
                return True

        if self.settings.folder_isIgnored(relative):
            LOG(f"{relative} is in an ignored folder", level=2)
            return True
        return False

    def directive_serialize(self, directive, origin: str, text: str) -> SerializationResult:
        """
        Evaluate one directive through the engine.

        An exception raised by the engine fails the directive instead of
        the pass.
        """
        try:
            if isinstance(directive, LocatedQuery):
                return self.engine.query_serialize(directive.query, origin)
            if isinstance(directive, LocatedScript):
                return self.engine.script_serialize(directive.code, origin)
            return self.engine.expression_serialize(
                directive.expression, origin, table_contains(text, directive.start_offset)
            )
        except Exception as exc:
            LOG(f"Engine failed on [{directive.text}]: {exc}", level=1, severity="WARNING")
            return SerializationResult.failure(str(exc), directive.text)

    def text_process(
        self,
        text: str,
        origin: str,
        target_query: Optional[str] = None,
        is_manual_trigger: bool = False,
    ) -> Tuple[str, List[QueryError]]:
        """
        Serialize the directives of one note's text.

        Args:
            text: Note text
            origin: Note path handed to the engine
            target_query: Only process the directive with this exact text
            is_manual_trigger: The pass was started by the user

        Returns:
            (new text, errors); the new text is the input when nothing changed
        """
        rewriter = Rewriter(text, add_trailing_newline=self.settings.add_trailing_newline, debug=self.debug)
        queries = QueryLocator(text, debug=self.debug).locate()
        scripts = ScriptLocator(text, debug=self.debug).locate()
        expressions = InlineLocator(text, debug=self.debug).locate()

        LOG(
            f"{origin}: {len(queries)} queries, {len(scripts)} scripts, {len(expressions)} inline expressions",
            level=2,
        )

        resolved: List[ResolvedDirective] = []
        errors: List[QueryError] = []

        for directive in [*queries, *scripts, *expressions]:
            if target_query is not None and directive.text != target_query:
                continue

            if isinstance(directive, LocatedInlineExpression):
                is_already_serialized = directive.is_serialized
            else:
                is_already_serialized = rewriter.existingResult_find(directive) is not None

            if query_shouldSkip(directive.update_mode, is_manual_trigger, is_already_serialized):
                LOG(f"Skipping [{directive.text}] ({directive.update_mode.value})", level=2)
                continue

            LOG(f"Processing [{directive.text}] in {origin}", level=2)
            result = self.directive_serialize(directive, origin, text)
            if not result.success:
                assert result.error is not None
                errors.append(result.error)
                continue
            resolved.append(ResolvedDirective(directive=directive, result=result))

        return rewriter.rewrite(resolved), errors

    def file_process(
        self,
        path: Path,
        force: bool = False,
        target_query: Optional[str] = None,
        is_manual_trigger: bool = False,
    ) -> FileProcessingResult:
        """
        Process one note and write it back when its text changed.

        Args:
            path: Note to process
            force: Bypass the recent-update guard and the ignored folders
            target_query: Only process the directive with this exact text
            is_manual_trigger: The pass was started by the user

        Returns:
            FileProcessingResult with the errors of the pass
        """
        if not path.is_file():
            return FileProcessingResult(file_path="")

        relative = self.path_relative(path)
        result = FileProcessingResult(file_path=relative)

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOG(f"Could not read {relative}: {exc}", level=1, severity="WARNING")
            return result

        if self.file_shouldIgnore(path, text, force):
            return result

        new_text, result.errors = self.text_process(text, relative, target_query, is_manual_trigger)

        self.next_possible_updates[relative] = datetime.now() + timedelta(
            seconds=self.settings.minimum_seconds_between_updates
        )

        if new_text == text:
            return result

        output_path = self.output_root / relative
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(new_text, encoding="utf-8")
        except OSError as exc:
            LOG(f"Could not write {output_path}: {exc}", level=1, severity="WARNING")
            return result

        LOG(f"Wrote {output_path}", level=1)
        result.changed = True
        return result

    def notes_list(self) -> List[Path]:
        """Markdown notes below the root, limited to folders_to_scan"""
        return [
            path
            for path in sorted(self.root.rglob(f"*{MARKDOWN_FILE_EXTENSION}"))
            if path.is_file() and self.settings.folder_isScanned(self.path_relative(path))
        ]

    def notes_process(
        self,
        force: bool = False,
        target_query: Optional[str] = None,
        is_manual_trigger: bool = False,
    ) -> List[FileProcessingResult]:
        """Process every note below the root"""
        return [
            self.file_process(path, force=force, target_query=target_query, is_manual_trigger=is_manual_trigger)
            for path in self.notes_list()
        ]
