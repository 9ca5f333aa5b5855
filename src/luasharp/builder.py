"""Batch pipeline: *.cs sources -> .lua files.

Each file runs lex -> parse -> normalize -> emit -> write on its own. A
failure anywhere in that cycle is recorded against the file and the batch
moves on to the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from luasharp.config import ProjectConfig
from luasharp.errors import CompileError, Diagnostic, TranspileError
from luasharp.ir import IRNode
from luasharp.lua_emitter import LuaEmitter
from luasharp.normalizer import normalize
from luasharp.parser import parse_source

SOURCE_GLOB = "*.cs"
HEADER_PREFIX = "-- Generated by luasharp from "


@dataclass
class FileResult:
    """Outcome of one source file."""

    source: Path
    output: Path | None = None
    error: Diagnostic | None = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BuildResult:
    """Outcome of a build."""

    ok: bool
    files: list[FileResult] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def failed(self) -> list[FileResult]:
        return [f for f in self.files if not f.ok]

    @property
    def written(self) -> list[FileResult]:
        return [f for f in self.files if f.ok and f.changed]


# ── Single file ────────────────────────────────────────────────────


def normalize_source(source: str, filename: str = "<stdin>") -> list[IRNode]:
    """Lex, parse and normalize one source text. Raises CompileError."""
    return normalize(parse_source(source, filename))


def transpile_source(source: str, filename: str = "<stdin>") -> str:
    """Translate one C# source text to Lua. Raises CompileError."""
    return LuaEmitter().emit(normalize_source(source, filename))


def output_path_for(config: ProjectConfig, source: Path) -> Path:
    relative = source.relative_to(config.source_directory)
    return config.output_directory / relative.with_suffix(config.output_extension)


def transpile_file(config: ProjectConfig, source: Path) -> FileResult:
    """Translate one file and write it if its output changed.

    Raises CompileError for syntax errors and TranspileError for unreadable
    input or unwritable output.
    """
    relative = source.relative_to(config.source_directory)
    try:
        text = source.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise TranspileError(source, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise TranspileError(source, f"cannot read: {e.strerror or e}") from e

    lua = transpile_source(text, str(source))
    content = f"{HEADER_PREFIX}{relative.as_posix()}\n\n{lua}"

    output = output_path_for(config, source)
    try:
        if output.is_file() and output.read_text(encoding="utf-8") == content:
            return FileResult(source=source, output=output, changed=False)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TranspileError(source, f"cannot write {output}: {e}") from e
    return FileResult(source=source, output=output, changed=True)


# ── Batch ──────────────────────────────────────────────────────────


def find_sources(config: ProjectConfig) -> list[Path]:
    return sorted(p for p in config.source_directory.rglob(SOURCE_GLOB) if p.is_file())


def build_project(
    config: ProjectConfig, sources: list[Path] | None = None,
) -> BuildResult:
    """Transpile every source file, isolating per-file failures.

    *sources* restricts the batch (watch mode passes only changed files);
    by default the whole source directory is enumerated.
    """
    if sources is None:
        sources = find_sources(config)

    files: list[FileResult] = []
    all_diags: list[Diagnostic] = []

    for source in sources:
        try:
            files.append(_transpile_one(config, source, all_diags))
        except TranspileError as e:
            # Batch boundary: one broken file must not stop the others.
            error = e.to_diagnostic()
            all_diags.append(error)
            files.append(FileResult(source=source, error=error))

    ok = all(f.ok for f in files)
    return BuildResult(ok=ok, files=files, diagnostics=all_diags)


def _transpile_one(
    config: ProjectConfig, source: Path, diagnostics: list[Diagnostic],
) -> FileResult:
    """transpile_file with every failure raised as a TranspileError."""
    try:
        return transpile_file(config, source)
    except CompileError as e:
        diagnostics.extend(e.diagnostics)
        message = e.diagnostics[0].message if e.diagnostics else str(e)
        raise TranspileError(source, message) from e
    except TranspileError:
        raise
    except Exception as e:
        raise TranspileError(source, f"{type(e).__name__}: {e}") from e
