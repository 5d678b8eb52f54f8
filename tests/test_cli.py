"""
Command-line pipeline tests

Drives the env_check / notes_process / notes_convert / results_report
stages directly with a ProgramState, using a Python one-liner as engine.
"""

import shlex
import sys
import tempfile
from pathlib import Path

import pytest

from dvserializer.__main__ import env_check, notes_convert, notes_process, results_report
from dvserializer.config.settings import AppSettings
from dvserializer.models import ProgramState, pipeline


ENGINE = f"{shlex.quote(sys.executable)} -c \"print('- [[Note]]')\""


def state_make(tmpdir, **kwargs):
    notes = Path(tmpdir) / "notes"
    notes.mkdir(exist_ok=True)
    return ProgramState(inputdir=notes, outputdir=Path(tmpdir) / "out", **kwargs)


class TestEnvCheck:
    """Test environment validation"""

    def test_missing_notes_dir(self):
        """A missing notes directory exits"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = ProgramState(inputdir=Path(tmpdir) / "nope", outputdir=Path(tmpdir) / "out", engine=ENGINE)
            with pytest.raises(SystemExit):
                env_check(state)

    def test_missing_input_file(self):
        """A missing input note exits"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, engine=ENGINE, inputFile="missing.md")
            with pytest.raises(SystemExit):
                env_check(state)

    def test_engine_required(self):
        """Serialization without an engine command exits"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir)
            if state.engine or AppSettings().engine_command:
                pytest.skip("engine command configured in the environment")
            with pytest.raises(SystemExit):
                env_check(state)

    def test_resolved(self):
        """Directories and engine are resolved"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = env_check(state_make(tmpdir, engine=ENGINE, timeout=5.0))

            assert state.envOK is True
            assert state.engineCommand == ENGINE
            assert state.engineTimeout == 5.0
            assert state.notesOutputdir.is_dir()

    def test_input_state_untouched(self):
        """Stages work on a copy of the state"""
        with tempfile.TemporaryDirectory() as tmpdir:
            initial = state_make(tmpdir, engine=ENGINE)
            env_check(initial)
            assert initial.envOK is False


class TestPipeline:
    """Test complete runs"""

    def test_serialize_run(self):
        """Changed notes are written to the output directory"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, engine=ENGINE)
            (state.inputdir / "index.md").write_text("<!-- QueryToSerialize: LIST FROM #a -->\n", encoding="utf-8")
            (state.inputdir / "plain.md").write_text("Nothing here\n", encoding="utf-8")

            final = pipeline(state, env_check, notes_process, results_report)

            assert len(final.processingResults) == 2
            assert final.errors_count() == 0
            assert (state.outputdir / "index.md").read_text(encoding="utf-8") == (
                "<!-- QueryToSerialize: LIST FROM #a -->\n"
                "<!-- SerializedQuery: LIST FROM #a -->\n"
                "- [[Note]]\n"
                "<!-- SerializedQuery END -->\n"
            )
            assert not (state.outputdir / "plain.md").exists()

    def test_single_input_file(self):
        """--inputFile limits the run to one note"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, engine=ENGINE, inputFile="b.md")
            for name in ("a.md", "b.md"):
                (state.inputdir / name).write_text("<!-- QueryToSerialize: LIST FROM #a -->\n", encoding="utf-8")

            final = pipeline(state, env_check, notes_process, results_report)

            assert [r.file_path for r in final.processingResults] == ["b.md"]
            assert not (state.outputdir / "a.md").exists()

    def test_errors_counted(self):
        """Engine failures are collected per note"""
        with tempfile.TemporaryDirectory() as tmpdir:
            failing = f"{shlex.quote(sys.executable)} -c \"import sys; sys.exit(1)\""
            state = state_make(tmpdir, engine=failing)
            (state.inputdir / "index.md").write_text(
                "<!-- QueryToSerialize: LIST FROM #a -->\n<!-- QueryToSerialize: LIST FROM #b -->\n",
                encoding="utf-8",
            )

            final = pipeline(state, env_check, notes_process, results_report)

            assert final.errors_count() == 2

    def test_convert_run(self):
        """--convert rewrites codeblocks without an engine"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, convert=True)
            (state.inputdir / "index.md").write_text("```dataview\nLIST FROM #a\n```\n", encoding="utf-8")

            final = pipeline(state, env_check, notes_convert, results_report)

            assert [relative for relative, _ in final.conversionResults] == ["index.md"]
            assert (state.outputdir / "index.md").read_text(encoding="utf-8") == (
                "<!-- QueryToSerialize: LIST FROM #a -->\n"
            )

    def test_report_without_results(self):
        """Reporting before any processing exits"""
        with pytest.raises(SystemExit):
            results_report(ProgramState())
