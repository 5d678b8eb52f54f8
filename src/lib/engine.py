"""
Query engine boundary

The rewrite core never evaluates queries itself. It talks to a QueryEngine,
which turns one block query, inline expression or script into rendered
Markdown, or into a failure carrying a message and the offending text.

CommandEngine is the bundled implementation: it runs an external command
once per query, feeding the query text on stdin and reading the rendered
result from stdout. Environment variables tell the command what it is
evaluating:

    DVSERIALIZER_KIND         query | expression | script
    DVSERIALIZER_ORIGIN       path of the note the directive lives in
    DVSERIALIZER_TABLE_CELL   "1" when an inline value sits in a table cell

Example:
    engine = CommandEngine("dataview-cli render --vault ~/notes", timeout=10)
    result = engine.query_serialize('LIST FROM "projects"', "index.md")
    if result.success:
        print(result.content)
"""

import os
import json
import shlex
import subprocess
from typing import Dict, List, Optional, Protocol, Sequence, Union

from ..models.markers import DirectiveKind
from ..models.queries import SerializationResult
from .locator import queryType_isTask
from .literals import EMPTY_PLACEHOLDER, literal_toString, table_escape, taskCheckboxes_strip
from .log import LOG


class QueryEngine(Protocol):
    """Contract between the rewrite core and whatever evaluates queries"""

    def query_serialize(self, query: str, origin: str) -> SerializationResult:
        """Render a block query as Markdown"""
        ...

    def expression_serialize(self, expression: str, origin: str, is_table_cell: bool = False) -> SerializationResult:
        """Render an inline expression (with its "=" prefix) as a short value"""
        ...

    def script_serialize(self, code: str, origin: str) -> SerializationResult:
        """Render a script query as Markdown"""
        ...


def expression_clean(expression: str) -> str:
    """Strip the leading "=" and surrounding whitespace from an expression"""
    expression = expression.strip()
    if expression.startswith("="):
        expression = expression[1:]
    return expression.strip()


def expressionOutput_render(stdout: str, is_table_cell: bool) -> str:
    """
    Render the raw output of an expression evaluation.

    Output that parses as JSON is rendered with literal_toString(); any
    other output is used as text. An empty value becomes "-" so that a
    serialized expression is never blank, and pipes are escaped for table
    cells.
    """
    text = stdout.strip()
    try:
        rendered = literal_toString(json.loads(text))
    except json.JSONDecodeError:
        rendered = text

    if rendered == "":
        rendered = EMPTY_PLACEHOLDER
    if is_table_cell:
        rendered = table_escape(rendered)
    return rendered


class CommandEngine:
    """
    Evaluate queries by running an external command.

    Each call runs the command once with its own timeout. A timeout, a
    command that cannot be started, or a non-zero exit status becomes a
    failed SerializationResult; nothing is raised.
    """

    def __init__(self, command: Union[str, Sequence[str]], timeout: Optional[float] = 30.0,
                 env: Optional[Dict[str, str]] = None):
        """
        Args:
            command: Command line, as a string (split with shlex) or argv list
            timeout: Seconds one evaluation may take; None waits forever
            env: Extra environment variables for the command
        """
        self.argv: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.argv:
            raise ValueError("Engine command must not be empty")
        self.timeout = timeout
        self.env = env or {}

    def command_run(self, kind: DirectiveKind, text: str, origin: str,
                    is_table_cell: bool = False) -> SerializationResult:
        """
        Run the command for one directive.

        Args:
            kind: Kind of directive being evaluated
            text: Query, expression or script text passed on stdin
            origin: Path of the note the directive comes from
            is_table_cell: Forwarded to the command for inline values

        Returns:
            Success carrying stdout, or a failure describing what went wrong
        """
        env = {
            **os.environ,
            **self.env,
            "DVSERIALIZER_KIND": kind.value,
            "DVSERIALIZER_ORIGIN": origin,
            "DVSERIALIZER_TABLE_CELL": "1" if is_table_cell else "0",
        }
        LOG(f"Running {self.argv[0]} for {kind.value} [{text}]", level=3)

        try:
            proc = subprocess.run(
                self.argv,
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                env=env,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return SerializationResult.failure(f"Evaluation timed out after {self.timeout} seconds", text)
        except OSError as exc:
            return SerializationResult.failure(f"Could not run {self.argv[0]}: {exc}", text)

        if proc.returncode != 0:
            message = proc.stderr.strip() or f"{self.argv[0]} exited with status {proc.returncode}"
            return SerializationResult.failure(message, text)

        return SerializationResult.ok(proc.stdout)

    def query_serialize(self, query: str, origin: str) -> SerializationResult:
        result = self.command_run(DirectiveKind.QUERY, query, origin)
        if not result.success:
            return result
        content = result.content.rstrip("\n")
        if queryType_isTask(query):
            content = taskCheckboxes_strip(content)
        return SerializationResult.ok(content)

    def expression_serialize(self, expression: str, origin: str, is_table_cell: bool = False) -> SerializationResult:
        cleaned = expression_clean(expression)
        if not cleaned:
            return SerializationResult.failure("Empty expression", expression)

        result = self.command_run(DirectiveKind.EXPRESSION, cleaned, origin, is_table_cell)
        if not result.success:
            assert result.error is not None
            return SerializationResult.failure(result.error.message, expression)
        return SerializationResult.ok(expressionOutput_render(result.content, is_table_cell))

    def script_serialize(self, code: str, origin: str) -> SerializationResult:
        result = self.command_run(DirectiveKind.SCRIPT, code, origin)
        if not result.success:
            return result
        return SerializationResult.ok(result.content.rstrip("\n"))
