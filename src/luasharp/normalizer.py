"""Syntax tree -> IR normalization.

Single-pass recursive descent over one compilation unit. The result is an
ordered forest: using directives first, then namespaces (pre-order, nested
namespaces flattened with dotted names), then classes declared outside any
namespace, each list in source order.

Only namespace, class, method and using declarations are modeled. Every
other syntax kind (structs, interfaces, enums, records, fields, properties,
constructors...) is skipped without an error so that files using the rest
of the language still transpile their modeled parts.
"""

from __future__ import annotations

from luasharp.ir import (
    PLACEHOLDER_NAMES,
    ClassNode,
    GenericNode,
    IRNode,
    MethodNode,
    NamespaceNode,
    NodeType,
    Parameter,
)
from luasharp.scope import ScopeChain, ScopeKind
from luasharp.syntax import (
    CompilationUnit,
    MethodDeclaration,
    NamespaceDeclaration,
    SyntaxKind,
    SyntaxNode,
    TypeDeclaration,
    UsingDirective,
)


class Normalizer:
    """Build the IR forest for one compilation unit."""

    def __init__(self) -> None:
        self._usings: list[GenericNode] = []
        self._namespaces: list[NamespaceNode | None] = []
        self._root_classes: list[ClassNode] = []

    def normalize(self, root: CompilationUnit) -> list[IRNode]:
        self._usings = []
        self._namespaces = []
        self._root_classes = []

        self._visit_members(root.members, ScopeChain(), self._root_classes, [])

        namespaces = [ns for ns in self._namespaces if ns is not None]
        return [*self._usings, *namespaces, *self._root_classes]

    def _visit_members(
        self,
        members: tuple[SyntaxNode, ...],
        chain: ScopeChain,
        classes: list[ClassNode],
        methods: list[MethodNode],
    ) -> None:
        """Dispatch each member on its syntax kind; unmodeled kinds are skipped."""
        for member in members:
            if isinstance(member, UsingDirective):
                self._usings.append(_using_node(member))
            elif isinstance(member, NamespaceDeclaration):
                self._visit_namespace(member, chain)
            elif (isinstance(member, TypeDeclaration)
                    and member.kind == SyntaxKind.CLASS_DECLARATION):
                self._visit_class(member, chain, classes)
            elif isinstance(member, MethodDeclaration) and chain.enclosing_class is not None:
                methods.append(_method_node(member, chain))

    def _visit_namespace(self, decl: NamespaceDeclaration, chain: ScopeChain) -> None:
        name = decl.name or PLACEHOLDER_NAMES[NodeType.NAMESPACE]
        parent = chain.namespace
        inner = chain.push(name, ScopeKind.NAMESPACE)

        # Reserve the slot so an outer namespace precedes its nested ones.
        slot = len(self._namespaces)
        self._namespaces.append(None)

        classes: list[ClassNode] = []
        self._visit_members(decl.members, inner, classes, [])
        self._namespaces[slot] = NamespaceNode(
            name=inner.namespace or name,
            children=tuple(classes),
            parent=parent,
        )

    def _visit_class(
        self, decl: TypeDeclaration, chain: ScopeChain, classes: list[ClassNode],
    ) -> None:
        name = decl.name or PLACEHOLDER_NAMES[NodeType.CLASS]
        inner = chain.push(name, ScopeKind.CLASS)

        methods: list[MethodNode] = []
        nested: list[ClassNode] = []
        self._visit_members(decl.members, inner, nested, methods)

        classes.append(ClassNode(
            name=name,
            children=tuple(methods),
            namespace=chain.namespace,
            outer_class=chain.enclosing_class,
        ))
        # Nested classes follow their outer class so its table exists first.
        classes.extend(nested)


def _using_node(decl: UsingDirective) -> GenericNode:
    name = decl.name
    if decl.is_static:
        name = f"static {name}"
    if decl.alias:
        name = f"{decl.alias} = {name}"
    return GenericNode(kind="Using", name=name)


def _method_node(decl: MethodDeclaration, chain: ScopeChain) -> MethodNode:
    params = tuple(
        Parameter(name=p.name or f"arg{i}", type_name=p.type_name)
        for i, p in enumerate(decl.parameters, start=1)
    )
    return MethodNode(
        name=decl.name or "",
        return_type=decl.return_type,
        parameters=params,
        class_name=chain.enclosing_class,
    )


def normalize(root: CompilationUnit) -> list[IRNode]:
    """Normalize one compilation unit into its IR forest."""
    return Normalizer().normalize(root)
