"""Lua code generation from the IR forest.

Every namespace and class becomes a Lua table. Methods become functions
assigned onto their class table. A class is attached to its namespace (or
outer class) only after the class table and all of its methods exist, so
the generated chunk never references a table before declaring it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from luasharp.ir import ClassNode, IRNode, MethodNode, NamespaceNode, NodeType
from luasharp.lua_types import map_return
from luasharp.scope import ScopeChain, ScopeKind, lua_identifier

INDENT = "    "
BODY_PLACEHOLDER = "-- body not translated"

# (kind, enclosing namespace, name) of a declared table
TableKey = tuple[ScopeKind, str | None, str]


class EmissionBuffer:
    """Accumulates emitted lines; shareable across several ``emit_into`` calls.

    The buffer is one Lua chunk, so it also owns the chunk's table locals:
    every namespace or class gets exactly one local name, distinct from all
    others in the chunk.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.indent = 0
        self.locals: dict[TableKey, str] = {}

    def local_for(self, key: TableKey) -> str | None:
        return self.locals.get(key)

    def allocate(self, key: TableKey, *candidates: str) -> str:
        """Bind *key* to the first candidate no other table uses."""
        taken = set(self.locals.values())
        ident = next((c for c in candidates if c not in taken), None)
        if ident is None:
            base = candidates[-1]
            n = 2
            while f"{base}_{n}" in taken:
                n += 1
            ident = f"{base}_{n}"
        self.locals[key] = ident
        return ident

    def line(self, text: str = "") -> None:
        if text:
            self.lines.append(INDENT * self.indent + text)
        else:
            self.lines.append("")

    def blank(self) -> None:
        """Separate two blocks; never stacks blank lines."""
        if self.lines and self.lines[-1]:
            self.lines.append("")

    def text(self) -> str:
        lines = list(self.lines)
        while lines and not lines[-1]:
            lines.pop()
        if not lines:
            return ""
        return "\n".join(lines) + "\n"


Handler = Callable[[EmissionBuffer, IRNode, ScopeChain], None]


class LuaEmitter:
    """Walk IR nodes through a ``NodeType`` dispatch table, producing Lua."""

    def __init__(self) -> None:
        # GENERIC is served by the fallback.
        self._handlers: dict[NodeType, Handler] = {
            NodeType.NAMESPACE: self._emit_namespace,
            NodeType.CLASS: self._emit_class,
            NodeType.METHOD: self._emit_method,
        }

    # ── Public API ─────────────────────────────────────────────────

    def emit(self, nodes: Iterable[IRNode]) -> str:
        buffer = EmissionBuffer()
        self.emit_into(buffer, nodes)
        return buffer.text()

    def emit_into(
        self, buffer: EmissionBuffer, nodes: Iterable[IRNode],
        chain: ScopeChain | None = None,
    ) -> None:
        chain = chain or ScopeChain()
        for node in nodes:
            self._dispatch(buffer, node, chain)

    # ── Dispatch ───────────────────────────────────────────────────

    def _dispatch(self, buffer: EmissionBuffer, node: IRNode, chain: ScopeChain) -> None:
        node_type = getattr(node, "node_type", None)
        handler = self._handlers.get(node_type, self._emit_generic)
        handler(buffer, node, chain)

    def _emit_generic(self, buffer: EmissionBuffer, node: IRNode, chain: ScopeChain) -> None:
        kind = getattr(node, "kind", None)
        if kind is None:
            node_type = getattr(node, "node_type", None)
            kind = node_type.value if node_type is not None else type(node).__name__
        name = getattr(node, "name", None) or "?"
        buffer.line(f"-- {kind}: {name}")
        for child in getattr(node, "children", ()):
            self._dispatch(buffer, child, chain)

    # ── Declarations ───────────────────────────────────────────────

    @staticmethod
    def _local(buffer: EmissionBuffer, key: TableKey) -> str:
        """Local name of a declared table; IR emitted out of context falls back to its name."""
        return buffer.local_for(key) or lua_identifier(key[2])

    def _emit_table(self, buffer: EmissionBuffer, key: TableKey, *candidates: str) -> str:
        """Declare the table for *key*; a reopened declaration keeps its contents."""
        ident = buffer.local_for(key)
        buffer.blank()
        if ident is None:
            ident = buffer.allocate(key, *candidates)
            buffer.line(f"local {ident} = {{}}")
        else:
            # partial class or repeated namespace block
            buffer.line(f"local {ident} = {ident} or {{}}")
        buffer.line(f"{ident}.__index = {ident}")
        buffer.blank()
        return ident

    def _emit_namespace(
        self, buffer: EmissionBuffer, node: NamespaceNode, chain: ScopeChain,
    ) -> None:
        key = (ScopeKind.NAMESPACE, None, node.name)
        ident = self._emit_table(buffer, key, lua_identifier(node.name))
        if node.parent:
            # The parent namespace precedes its nested ones in the forest.
            parent = self._local(buffer, (ScopeKind.NAMESPACE, None, node.parent))
            leaf = lua_identifier(node.name.rsplit(".", 1)[-1])
            buffer.line(f"{parent}.{leaf} = {ident}")
            buffer.blank()

        inner = chain
        for part in node.name.split("."):
            inner = inner.push(part, ScopeKind.NAMESPACE)
        for child in node.children:
            self._dispatch(buffer, child, inner)

    def _emit_class(self, buffer: EmissionBuffer, node: ClassNode, chain: ScopeChain) -> None:
        namespace = chain.namespace
        qualified = ".".join(p for p in (namespace, node.outer_class, node.name) if p)
        ident = self._emit_table(
            buffer, (ScopeKind.CLASS, namespace, node.name),
            lua_identifier(node.name), lua_identifier(qualified),
        )

        inner = chain.push(node.name, ScopeKind.CLASS)
        for method in node.children:
            self._dispatch(buffer, method, inner)

        if node.outer_class:
            owner = self._local(buffer, (ScopeKind.CLASS, namespace, node.outer_class))
        elif node.namespace:
            owner = self._local(buffer, (ScopeKind.NAMESPACE, None, node.namespace))
        else:
            return
        buffer.blank()
        buffer.line(f"{owner}.{lua_identifier(node.name)} = {ident}")
        buffer.blank()

    def _emit_method(self, buffer: EmissionBuffer, node: MethodNode, chain: ScopeChain) -> None:
        owner = chain.enclosing_class or node.class_name
        name = lua_identifier(node.name)
        if owner:
            table = self._local(buffer, (ScopeKind.CLASS, chain.namespace, owner))
            target = f"{table}.{name}"
        else:
            target = f"local function {name}"
        params = ", ".join(lua_identifier(p.name) for p in node.parameters)

        buffer.blank()
        if owner:
            buffer.line(f"{target} = function({params})")
        else:
            buffer.line(f"{target}({params})")
        buffer.indent += 1
        buffer.line(BODY_PLACEHOLDER)
        placeholder = map_return(node.return_type)
        if placeholder is not None:
            buffer.line(f"return {placeholder}")
        buffer.indent -= 1
        buffer.line("end")
        buffer.blank()


def emit_lua(nodes: Iterable[IRNode]) -> str:
    """Emit one IR forest as a complete Lua chunk."""
    return LuaEmitter().emit(nodes)
