"""Shared test helpers for the LuaSharp test suite."""

from __future__ import annotations

import json
from pathlib import Path

from luasharp.builder import normalize_source, transpile_source
from luasharp.ir import IRNode
from luasharp.lexer import Lexer
from luasharp.parser import Parser
from luasharp.syntax import CompilationUnit


def parse(source: str) -> CompilationUnit:
    """Lex and parse source, return the compilation unit."""
    tokens = Lexer(source, "<test>").lex()
    return Parser(tokens, "<test>").parse()


def normalize(source: str) -> list[IRNode]:
    """Lex, parse and normalize source into its IR forest."""
    return normalize_source(source, "<test>")


def emit(source: str) -> list[str]:
    """Transpile source and return the non-blank Lua lines."""
    return [line for line in transpile_source(source, "<test>").splitlines() if line.strip()]


def write_settings(root: Path, **overrides: object) -> Path:
    """Write a luasharp.settings.json into *root*; keyword overrides win."""
    settings: dict[str, object] = {"SourceDirectory": "src", "OutputDirectory": "out"}
    settings.update(overrides)
    path = root / "luasharp.settings.json"
    path.write_text(json.dumps(settings))
    return path


def write_sources(root: Path, files: dict[str, str | bytes]) -> None:
    """Create source files (relative to *root*), making parent directories."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
