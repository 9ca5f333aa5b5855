"""LuaSharp command line interface."""

from __future__ import annotations

from pathlib import Path

import click

from luasharp import __version__
from luasharp.builder import BuildResult, build_project, find_sources, normalize_source
from luasharp.config import ProjectConfig, load_project
from luasharp.errors import CompileError, ConfigurationError, DiagnosticRenderer
from luasharp.ir import dump_ir as ir_lines
from luasharp.pathutil import running_from_path
from luasharp.watcher import DEFAULT_INTERVAL, watch_project

EXIT_FAILED = 1
EXIT_FATAL = 2


def _relative(config: ProjectConfig, path: Path) -> str:
    try:
        return path.relative_to(config.working_directory).as_posix()
    except ValueError:
        return str(path)


def _report(config: ProjectConfig, result: BuildResult, renderer: DiagnosticRenderer) -> None:
    for diag in result.diagnostics:
        click.echo(renderer.render(diag), err=True)
    for file in result.written:
        click.echo(f"wrote {_relative(config, file.output)}")
    unchanged = len(result.files) - len(result.written) - len(result.failed)
    summary = f"transpiled {len(result.files)} file(s): {len(result.written)} written"
    if unchanged:
        summary += f", {unchanged} unchanged"
    if result.failed:
        summary += f", {len(result.failed)} failed"
    click.echo(summary)


def _dump_ir(config: ProjectConfig, renderer: DiagnosticRenderer) -> bool:
    """Print the IR tree of every source file. Returns True if all parsed."""
    ok = True
    for source in find_sources(config):
        click.echo(f"# {_relative(config, source)}")
        try:
            nodes = normalize_source(source.read_text(encoding="utf-8-sig"), str(source))
        except CompileError as e:
            ok = False
            for diag in e.diagnostics:
                click.echo(renderer.render(diag), err=True)
            continue
        except (OSError, UnicodeDecodeError) as e:
            ok = False
            click.echo(f"error: cannot read {source}: {e}", err=True)
            continue
        for line in ir_lines(nodes):
            click.echo(line)
    return ok


@click.command()
@click.version_option(__version__, prog_name="luasharp")
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option("--watch", is_flag=True, help="Rebuild whenever a source file changes.")
@click.option("--dump-ir", is_flag=True, help="Print the IR tree of each source file instead of building.")
@click.option(
    "--interval", type=click.FloatRange(min=0.05), default=DEFAULT_INTERVAL,
    show_default=True, help="Seconds between polls in watch mode.",
)
def main(directory: str | None, watch: bool, dump_ir: bool, interval: float) -> None:
    """Transpile the C# project in DIRECTORY to Lua."""
    if not running_from_path():
        click.echo("error: luasharp must be run from a directory on PATH", err=True)
        raise SystemExit(EXIT_FATAL)

    if directory is None:
        click.echo(
            "error: no directory specified (use '.' for the current directory)", err=True,
        )
        raise SystemExit(EXIT_FATAL)
    project_dir = Path(directory)
    if not project_dir.is_dir():
        click.echo(f"error: directory '{directory}' does not exist", err=True)
        raise SystemExit(EXIT_FATAL)

    renderer = DiagnosticRenderer(color=True)
    try:
        config = load_project(project_dir)
    except ConfigurationError as e:
        click.echo(renderer.render(e.to_diagnostic()), err=True)
        raise SystemExit(EXIT_FATAL)

    if dump_ir:
        if not _dump_ir(config, renderer):
            raise SystemExit(EXIT_FAILED)
        return

    if watch:
        click.echo(f"watching {_relative(config, config.source_directory)} (Ctrl+C to stop)")
        try:
            watch_project(
                config, lambda result: _report(config, result, renderer), interval=interval,
            )
        except KeyboardInterrupt:
            click.echo("stopped watching")
        return

    result = build_project(config)
    _report(config, result, renderer)
    if not result.ok:
        raise SystemExit(EXIT_FAILED)
