"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Optional, Type, TypeVar, List, Tuple, Callable
from dataclasses import dataclass, field

from .queries import ConversionResult, FileProcessingResult


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the serialization pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the run progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, engine, timeout, inputFile,
          targetQuery, convert, manual, force, addTrailingNewline
        - env_check: engineCommand, engineTimeout, notesInputdir, notesOutputdir, envOK
        - notes_process: processingResults
        - notes_convert: conversionResults
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the notes
        outputdir: Directory changed notes are written to
        verbosity: Logging verbosity level (1-3)
        engine: Engine command given on the command line
        timeout: Per-query timeout given on the command line
        inputFile: Single note to process (relative to inputdir), "" for all
        targetQuery: Only process the directive with this exact text
        convert: Convert query-engine notation instead of serializing
        manual: Treat the run as user-triggered (evaluates manual directives)
        force: Ignore the recent-update guard and ignored folders
        addTrailingNewline: Blank line before every result end marker
        envOK: Environment validation passed
        engineCommand: Resolved engine command
        engineTimeout: Resolved per-query timeout in seconds
        notesInputdir: Resolved notes directory
        notesOutputdir: Resolved output directory
        processingResults: One result per processed note
        conversionResults: (note path, conversion result) per converted note
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    engine: str = field(default="")
    timeout: Optional[float] = field(default=None)
    inputFile: str = field(default="")
    targetQuery: Optional[str] = field(default=None)
    convert: bool = field(default=False)
    manual: bool = field(default=False)
    force: bool = field(default=False)
    addTrailingNewline: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    engineCommand: str = field(default="")
    engineTimeout: float = field(default=30.0)
    notesInputdir: Path = field(default=Path("/"))
    notesOutputdir: Path = field(default=Path("/"))
    processingResults: Optional[List[FileProcessingResult]] = field(default=None)
    conversionResults: Optional[List[Tuple[str, ConversionResult]]] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Merges CLI options with explicitly provided directories to create
        the initial program state for the pipeline.

        Args:
            options: Parsed CLI arguments (engine, timeout, convert, etc.)
            inputdir: Directory containing the notes
            outputdir: Directory for rewritten notes

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        # Get the dictionary of all attributes from the Namespace
        options_dict = vars(options)

        # Get the set of valid field names for ProgramState
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Filter options_dict to only include fields that exist in ProgramState
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        # Merge the filtered CLI options with the explicitly defined arguments.
        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}

        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)

    def errors_count(self) -> int:
        """Total query errors collected by notes_process"""
        return sum(len(result.errors) for result in self.processingResults or [])


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(initial_state, env_check, notes_process, results_report)

    This is equivalent to:
        results_report(notes_process(env_check(initial_state)))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)

