"""Intermediate representation between the C# syntax tree and Lua emission.

A tagged variant over four node types. Every node carries a non-empty
``name``: declarations without an identifier get a deterministic placeholder
at construction, so nothing downstream has to re-check.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class NodeType(Enum):
    NAMESPACE = "Namespace"
    CLASS = "Class"
    METHOD = "Method"
    GENERIC = "Generic"


PLACEHOLDER_NAMES: dict[NodeType, str] = {
    NodeType.NAMESPACE: "UnnamedNamespace",
    NodeType.CLASS: "UnnamedClass",
    NodeType.METHOD: "UnnamedMethod",
    NodeType.GENERIC: "UnnamedNode",
}


def _fill_name(node: object, node_type: NodeType) -> None:
    if not getattr(node, "name", None):
        object.__setattr__(node, "name", PLACEHOLDER_NAMES[node_type])


@dataclass(frozen=True)
class Parameter:
    name: str
    type_name: str


@dataclass(frozen=True)
class MethodNode:
    name: str
    return_type: str
    parameters: tuple[Parameter, ...] = ()
    class_name: str | None = None

    node_type = NodeType.METHOD

    def __post_init__(self) -> None:
        _fill_name(self, NodeType.METHOD)
        if not self.return_type:
            object.__setattr__(self, "return_type", "void")

    @property
    def children(self) -> tuple[()]:
        return ()


@dataclass(frozen=True)
class ClassNode:
    name: str
    children: tuple[MethodNode, ...] = ()
    namespace: str | None = None
    outer_class: str | None = None

    node_type = NodeType.CLASS

    def __post_init__(self) -> None:
        _fill_name(self, NodeType.CLASS)


@dataclass(frozen=True)
class NamespaceNode:
    name: str
    children: tuple[ClassNode, ...] = ()
    parent: str | None = None

    node_type = NodeType.NAMESPACE

    def __post_init__(self) -> None:
        _fill_name(self, NodeType.NAMESPACE)


@dataclass(frozen=True)
class GenericNode:
    """A recognized construct without a dedicated emitter, e.g. a using directive."""

    kind: str
    name: str
    children: tuple[IRNode, ...] = ()

    node_type = NodeType.GENERIC

    def __post_init__(self) -> None:
        _fill_name(self, NodeType.GENERIC)


IRNode = Union[NamespaceNode, ClassNode, MethodNode, GenericNode]


def dump_ir(nodes: tuple[IRNode, ...] | list[IRNode], depth: int = 0) -> list[str]:
    """Render an IR forest as an indented tree, one line per node."""
    lines: list[str] = []
    indent = "  " * depth
    for node in nodes:
        if isinstance(node, MethodNode):
            params = ", ".join(f"{p.name}: {p.type_name}" for p in node.parameters)
            lines.append(f"{indent}Method {node.name}({params}) -> {node.return_type}")
        elif isinstance(node, ClassNode):
            parent = node.outer_class or node.namespace
            suffix = f" (in {parent})" if parent else ""
            lines.append(f"{indent}Class {node.name}{suffix}")
        elif isinstance(node, NamespaceNode):
            lines.append(f"{indent}Namespace {node.name}")
        else:
            lines.append(f"{indent}{node.kind} {node.name}")
        lines.extend(dump_ir(node.children, depth + 1))
    return lines
