"""Syntax tree produced by the C# declaration parser.

The tree is read-only. Consumers query it by node kind through
``SyntaxNode.children()``, ``walk()`` and ``of_kind()`` and never depend on
how the parser built it.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from luasharp.source import Span


class SyntaxKind(Enum):
    COMPILATION_UNIT = auto()
    USING_DIRECTIVE = auto()
    NAMESPACE_DECLARATION = auto()

    CLASS_DECLARATION = auto()
    STRUCT_DECLARATION = auto()
    INTERFACE_DECLARATION = auto()
    ENUM_DECLARATION = auto()
    RECORD_DECLARATION = auto()
    DELEGATE_DECLARATION = auto()

    METHOD_DECLARATION = auto()
    CONSTRUCTOR_DECLARATION = auto()
    DESTRUCTOR_DECLARATION = auto()
    PROPERTY_DECLARATION = auto()
    INDEXER_DECLARATION = auto()
    FIELD_DECLARATION = auto()
    EVENT_DECLARATION = auto()
    OPERATOR_DECLARATION = auto()

    PARAMETER = auto()


class SyntaxNode:
    """Base for every syntax node: kind-based querying of the tree."""

    kind: SyntaxKind
    span: Span

    def children(self) -> tuple[SyntaxNode, ...]:
        return ()

    def walk(self) -> Iterator[SyntaxNode]:
        """Yield this node and all of its descendants in pre-order."""
        yield self
        for child in self.children():
            yield from child.walk()

    def of_kind(self, kind: SyntaxKind) -> list[SyntaxNode]:
        """All descendants (excluding self) of the given kind, in source order."""
        return [n for n in self.walk() if n is not self and n.kind == kind]


# ── Leaves ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class UsingDirective(SyntaxNode):
    name: str
    alias: str | None
    is_static: bool
    span: Span

    kind = SyntaxKind.USING_DIRECTIVE


@dataclass(frozen=True)
class Parameter(SyntaxNode):
    name: str | None
    type_name: str
    modifier: str | None  # ref, out, in, params, this
    span: Span

    kind = SyntaxKind.PARAMETER


@dataclass(frozen=True)
class MethodDeclaration(SyntaxNode):
    name: str | None
    return_type: str
    type_parameters: tuple[str, ...]
    parameters: tuple[Parameter, ...]
    modifiers: tuple[str, ...]
    has_body: bool
    span: Span

    kind = SyntaxKind.METHOD_DECLARATION

    def children(self) -> tuple[SyntaxNode, ...]:
        return self.parameters


@dataclass(frozen=True)
class MemberDeclaration(SyntaxNode):
    """Any member outside the modeled set: fields, properties, constructors..."""

    kind: SyntaxKind
    name: str | None
    type_name: str | None
    span: Span


# ── Containers ───────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeDeclaration(SyntaxNode):
    """class, struct, interface, enum or record declaration."""

    kind: SyntaxKind
    name: str | None
    type_parameters: tuple[str, ...]
    modifiers: tuple[str, ...]
    members: tuple[SyntaxNode, ...]
    span: Span

    def children(self) -> tuple[SyntaxNode, ...]:
        return self.members


@dataclass(frozen=True)
class NamespaceDeclaration(SyntaxNode):
    name: str | None
    members: tuple[SyntaxNode, ...]
    file_scoped: bool
    span: Span

    kind = SyntaxKind.NAMESPACE_DECLARATION

    def children(self) -> tuple[SyntaxNode, ...]:
        return self.members


@dataclass(frozen=True)
class CompilationUnit(SyntaxNode):
    members: tuple[SyntaxNode, ...]
    span: Span

    kind = SyntaxKind.COMPILATION_UNIT

    def children(self) -> tuple[SyntaxNode, ...]:
        return self.members
