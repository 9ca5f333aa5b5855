"""Tests for the LuaSharp CLI, PATH checks and error rendering."""

from __future__ import annotations

import os

import pytest

from luasharp import __version__
from luasharp import config as config_module
from luasharp.cli import main
from luasharp.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    Severity,
    TranspileError,
)
from luasharp.pathutil import running_from_path
from luasharp.source import Span
from tests.helpers import write_settings, write_sources


@pytest.fixture(autouse=True)
def reset_cache(monkeypatch):
    monkeypatch.setattr(config_module, "_cached_settings_file", None)


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "DIRECTORY" in result.output
        assert "--watch" in result.output
        assert "--dump-ir" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_not_on_path(self, runner, tmp_project, monkeypatch):
        monkeypatch.setattr("luasharp.cli.running_from_path", lambda: False)
        result = runner.invoke(main, [str(tmp_project)])
        assert result.exit_code == 2
        assert "must be run from a directory on PATH" in result.output
        assert not (tmp_project / "out").exists()

    def test_missing_directory_argument(self, runner, on_path):
        result = runner.invoke(main, [])
        assert result.exit_code == 2
        assert "no directory specified" in result.output

    def test_nonexistent_directory(self, runner, on_path, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "nope")])
        assert result.exit_code == 2
        assert "does not exist" in result.output


class TestBuildCommand:
    def test_build_success(self, runner, on_path, tmp_project):
        result = runner.invoke(main, [str(tmp_project)])
        assert result.exit_code == 0, result.output
        assert "wrote out/Greeter.lua" in result.output
        assert "transpiled 1 file(s): 1 written" in result.output
        assert (tmp_project / "out" / "Greeter.lua").is_file()

    def test_rebuild_reports_unchanged(self, runner, on_path, tmp_project):
        runner.invoke(main, [str(tmp_project)])
        result = runner.invoke(main, [str(tmp_project)])
        assert result.exit_code == 0
        assert "1 unchanged" in result.output
        assert "wrote" not in result.output

    def test_missing_settings(self, runner, on_path, tmp_path):
        result = runner.invoke(main, [str(tmp_path)])
        assert result.exit_code == 2
        assert "E001" in result.output
        assert "luasharp.settings.json" in result.output

    def test_invalid_settings_touch_nothing(self, runner, on_path, tmp_project):
        (tmp_project / "luasharp.settings.json").write_text("{")
        result = runner.invoke(main, [str(tmp_project)])
        assert result.exit_code == 2
        assert "invalid JSON" in result.output
        assert not (tmp_project / "out").exists()

    def test_failed_file_exit_code(self, runner, on_path, tmp_project):
        write_sources(tmp_project, {"src/Broken.cs": "class Broken { void M( }"})
        result = runner.invoke(main, [str(tmp_project)])
        assert result.exit_code == 1
        assert "E200" in result.output
        assert "1 failed" in result.output
        assert (tmp_project / "out" / "Greeter.lua").is_file()

    def test_relative_directories(self, runner, on_path, tmp_path):
        write_settings(tmp_path, SourceDirectory="code/cs", OutputDirectory="build/lua")
        write_sources(tmp_path, {"code/cs/App.cs": "class App { }"})
        result = runner.invoke(main, [str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "build" / "lua" / "App.lua").is_file()


class TestDumpIr:
    def test_dump_ir(self, runner, on_path, tmp_project):
        result = runner.invoke(main, [str(tmp_project), "--dump-ir"])
        assert result.exit_code == 0, result.output
        assert "# src/Greeter.cs" in result.output
        assert "Namespace Demo" in result.output
        assert "    Method Greet(name: string) -> string" in result.output
        assert not (tmp_project / "out").exists()

    def test_dump_ir_with_syntax_error(self, runner, on_path, tmp_project):
        write_sources(tmp_project, {"src/Bad.cs": "class Bad {"})
        result = runner.invoke(main, [str(tmp_project), "--dump-ir"])
        assert result.exit_code == 1
        assert "E101" in result.output
        assert "Namespace Demo" in result.output


class TestWatchCommand:
    def test_watch_until_interrupted(self, runner, on_path, tmp_project, monkeypatch):
        calls = []

        def fake_watch(config, on_build, *, interval):
            calls.append(interval)
            raise KeyboardInterrupt

        monkeypatch.setattr("luasharp.cli.watch_project", fake_watch)
        result = runner.invoke(main, [str(tmp_project), "--watch", "--interval", "0.25"])
        assert result.exit_code == 0
        assert calls == [0.25]
        assert "watching src" in result.output
        assert "stopped watching" in result.output

    def test_interval_must_be_positive(self, runner, on_path, tmp_project):
        result = runner.invoke(main, [str(tmp_project), "--watch", "--interval", "0"])
        assert result.exit_code == 2


# --- PATH detection ---


class TestRunningFromPath:
    def test_directory_on_path(self, tmp_path):
        exe = tmp_path / "bin" / "luasharp"
        path_env = os.pathsep.join(["/usr/bin", str(tmp_path / "bin")])
        assert running_from_path(str(exe), path_env)

    def test_directory_not_on_path(self, tmp_path):
        exe = tmp_path / "bin" / "luasharp"
        assert not running_from_path(str(exe), "/usr/bin")

    def test_empty_path(self, tmp_path):
        assert not running_from_path(str(tmp_path / "luasharp"), "")

    def test_entries_are_trimmed(self, tmp_path):
        exe = tmp_path / "luasharp"
        assert running_from_path(str(exe), f"  {tmp_path}  ")


# --- Error rendering tests ---


class TestDiagnosticRenderer:
    def test_render_with_source_line(self, tmp_path):
        source = tmp_path / "Bad.cs"
        source.write_text("class A {\n  int Foo(string x }\n")
        span = Span(str(source), 2, 19, 2, 19)
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E101",
            message="expected ',' or ')' in parameter list",
            labels=[DiagnosticLabel(span=span, message="here")],
            notes=["parameters are separated by commas"],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert "error[E101]: expected ',' or ')' in parameter list" in output
        assert f"--> {source}:2:19" in output
        assert "int Foo(string x }" in output
        assert "^" in output
        assert "note: parameters are separated by commas" in output

    def test_render_file_only(self, tmp_path):
        diag = TranspileError(tmp_path / "X.cs", "disk full").to_diagnostic()
        output = DiagnosticRenderer(color=False).render(diag)
        assert output.splitlines()[0] == "error[E200]: failed to transpile: disk full"
        assert output.splitlines()[1].strip() == f"--> {tmp_path / 'X.cs'}"

    def test_render_with_color(self):
        diag = Diagnostic(severity=Severity.WARNING, code="W001", message="careful")
        output = DiagnosticRenderer(color=True).render(diag)
        assert "\033[" in output
        assert "warning[W001]" in output

    def test_compile_error_message(self):
        diags = [
            Diagnostic(severity=Severity.ERROR, code="E100", message="first"),
            Diagnostic(severity=Severity.ERROR, code="E101", message="second"),
        ]
        error = CompileError(diags)
        assert str(error) == "2 error(s): first; second"
        assert error.diagnostics == diags
