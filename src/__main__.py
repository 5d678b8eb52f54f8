#!/usr/bin/env python3
"""
dvserializer - Serialize embedded query results into Markdown notes

Scans a folder of Markdown notes for query directives such as

    <!-- QueryToSerialize: LIST FROM #project -->

evaluates each query through an external engine command and writes the
rendered result right below the directive, between result markers. The
notes become static Markdown that reads the same in any viewer.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Update modes (chosen by the directive marker):
    - QueryToSerialize: re-evaluated on every run
    - QueryToSerializeManual: only re-evaluated with --manual
    - QueryToSerializeOnce: evaluated until a result exists
    - QueryToSerializeOnceAndEject: evaluated once, then the markers are removed

Usage:
    dvserializer inputdir/ outputdir/ --engine "dataview-cli render"

    Notes whose text changed are written to outputdir/ under their
    relative paths. Pass the same directory twice to update in place.

Examples:
    # Serialize every note in place
    dvserializer notes/ notes/ --engine "dataview-cli render"

    # Include manual directives, one note only
    dvserializer notes/ out/ --engine ./render.sh --manual --inputFile daily.md

    # Convert ```dataview codeblocks and `=expr` shorthand into directives
    dvserializer notes/ notes/ --convert
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import CommandEngine, FileProcessor, queries_convertAll, __version__, LOG, state_connectToLogger
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="dvserializer - Serialize embedded query results into Markdown notes",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--engine",
    default="",
    type=str,
    help="Command that evaluates one query read from stdin (default: DVSERIALIZER_ENGINE_COMMAND)",
)

parser.add_argument(
    "--timeout",
    default=None,
    type=float,
    help="Seconds one query may take (default: DVSERIALIZER_SERIALIZATION_TIMEOUT)",
)

parser.add_argument(
    "--inputFile",
    default="",
    type=str,
    help="Process only this note (relative to inputdir)",
)

parser.add_argument(
    "--targetQuery",
    default=None,
    type=str,
    help="Process only the directive with exactly this query or expression text",
)

parser.add_argument(
    "--convert",
    action="store_true",
    help="Convert query-engine codeblocks and inline shorthand into directives instead of serializing",
)

parser.add_argument(
    "--manual",
    action="store_true",
    help="Treat the run as user-triggered: manual and once directives are evaluated too",
)

parser.add_argument(
    "--force",
    action="store_true",
    help="Process notes even if recently updated or inside an ignored folder",
)

parser.add_argument(
    "--addTrailingNewline",
    action="store_true",
    help="Leave a blank line before every result end marker",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve the engine and directories.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - engineCommand: Engine command (CLI option, else settings)
            - engineTimeout: Per-query timeout (CLI option, else settings)
            - notesInputdir: Notes directory
            - notesOutputdir: Created output directory
            - envOK: True if environment is valid

    Exits:
        1 if the notes directory or input note is missing, or no engine
        command is configured for a serialization run
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Notes directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    state.notesInputdir = state.inputdir

    if state.inputFile and not (state.inputdir / state.inputFile).is_file():
        print(f"Error: Input note not found: {state.inputdir / state.inputFile}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.engineCommand = state.engine or appsettings.engine_command
    if not state.convert and not state.engineCommand:
        print("Error: No engine command. Use --engine or set DVSERIALIZER_ENGINE_COMMAND", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Engine command: {state.engineCommand or '(none)'}", level=2)

    state.engineTimeout = state.timeout if state.timeout is not None else appsettings.serialization_timeout
    LOG(f"Query timeout: {state.engineTimeout}s", level=2)

    assert state.outputdir is not None
    state.notesOutputdir = state.outputdir
    state.notesOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.notesOutputdir}", level=2)

    state.envOK = True
    return state


def notes_process(inputstate: ProgramState) -> ProgramState:
    """
    Serialize the directives of every note (or of the one input note).

    Args:
        inputstate: Program state with engineCommand and directories resolved

    Returns:
        ProgramState with added field:
            - processingResults: List[FileProcessingResult], one per note

    Exits:
        1 if the engine command cannot be parsed
    """

    state = inputstate.copy()

    try:
        engine = CommandEngine(state.engineCommand, timeout=state.engineTimeout)
    except ValueError as e:
        print(f"Engine error: {e}", file=sys.stderr)
        sys.exit(1)

    settings = appsettings.model_copy(
        update={"add_trailing_newline": state.addTrailingNewline or appsettings.add_trailing_newline}
    )
    processor = FileProcessor(
        engine,
        state.notesInputdir,
        output_root=state.notesOutputdir,
        settings=settings,
        debug=(state.verbosity >= 3),
    )

    if state.inputFile:
        LOG(f"Processing {state.inputFile}...", level=1)
        state.processingResults = [
            processor.file_process(
                state.notesInputdir / state.inputFile,
                force=state.force,
                target_query=state.targetQuery,
                is_manual_trigger=state.manual,
            )
        ]
    else:
        LOG(f"Processing notes in {state.notesInputdir}...", level=1)
        state.processingResults = processor.notes_process(
            force=state.force,
            target_query=state.targetQuery,
            is_manual_trigger=state.manual,
        )
    return state


def notes_convert(inputstate: ProgramState) -> ProgramState:
    """
    Convert query-engine notation into serialization directives.

    Args:
        inputstate: Program state with directories resolved

    Returns:
        ProgramState with added field:
            - conversionResults: (note path, ConversionResult) per note with
              something to convert or skip

    Exits:
        1 if a note cannot be read or written
    """

    state = inputstate.copy()
    state.conversionResults = []

    if state.inputFile:
        notes = [state.notesInputdir / state.inputFile]
    else:
        notes = sorted(state.notesInputdir.rglob("*.md"))
    LOG(f"Converting {len(notes)} notes...", level=1)

    for note in notes:
        relative = note.relative_to(state.notesInputdir).as_posix()
        try:
            conversion = queries_convertAll(note.read_text(encoding="utf-8"))
            if conversion.converted:
                output_note = state.notesOutputdir / relative
                output_note.parent.mkdir(parents=True, exist_ok=True)
                output_note.write_text(conversion.new_text, encoding="utf-8")
        except OSError as e:
            print(f"Error converting {relative}: {e}", file=sys.stderr)
            sys.exit(1)

        if conversion.count or conversion.skipped:
            LOG(f"{relative}: {conversion.count} converted, {len(conversion.skipped)} skipped", level=2)
            state.conversionResults.append((relative, conversion))
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display the run's results.

    Individual query errors are shown up to the max_error_notifications
    setting; the rest are summarized by count.

    Args:
        inputstate: Program state with processingResults or conversionResults

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if neither result list is populated
    """
    state: ProgramState = inputstate.copy()

    if state.conversionResults is not None:
        converted = sum(conversion.count for _, conversion in state.conversionResults)
        for relative, conversion in state.conversionResults:
            for query in conversion.skipped:
                print(f"Skipped unsupported query in {relative}: {query}", file=sys.stderr)
        LOG(f"\n✓ Converted {converted} queries in {len(state.conversionResults)} notes", level=1)
        return state

    if state.processingResults is None:
        print("Error: Processing failed", file=sys.stderr)
        sys.exit(1)

    changed = [result for result in state.processingResults if result.changed]
    errors = [
        (result.file_path, error) for result in state.processingResults for error in result.errors
    ]

    for file_path, error in errors[: appsettings.max_error_notifications]:
        print(f"Query error in {file_path}: {error.message}\n  {error.query}", file=sys.stderr)
    if len(errors) > appsettings.max_error_notifications:
        print(
            f"{len(errors) - appsettings.max_error_notifications} more query error(s) occurred. "
            f"Run with -vv for details.",
            file=sys.stderr,
        )

    LOG(f"\n✓ Processed {len(state.processingResults)} notes", level=1)
    LOG(f"  Updated: {len(changed)}", level=1)
    LOG(f"  Errors:  {state.errors_count()}", level=1)
    for result in changed:
        LOG(f"  - {result.file_path}", level=2)
    return state


@chris_plugin(
    parser=parser,
    title="dvserializer - Serialize embedded query results into Markdown notes",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - serialize (or convert) the notes in inputdir.

    Orchestrates the pipeline:
        1. env_check: Validate directories and resolve the engine
        2. notes_process: Serialize directives (notes_convert with --convert)
        3. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing the notes
        outputdir: Directory where changed notes are written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )
    if appsettings.debug_logging:
        state.verbosity = max(state.verbosity, 3)

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, notes_convert if state.convert else notes_process, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
