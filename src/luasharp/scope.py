"""Enclosing-scope chains used to qualify emitted names.

A ``ScopeChain`` is an immutable value: ``push`` returns a new chain and the
caller's chain is left untouched, so recursive walkers pass it down as a
parameter instead of sharing a mutable stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Lua 5.1 / Luau reserved words; a C# identifier spelled like one of these
# cannot be used as a Lua local.
LUA_KEYWORDS: frozenset[str] = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for",
    "function", "goto", "if", "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while",
})


class ScopeKind(Enum):
    NAMESPACE = "namespace"
    CLASS = "class"


@dataclass(frozen=True)
class Scope:
    name: str
    kind: ScopeKind


@dataclass(frozen=True)
class ScopeChain:
    """Enclosing scopes, outermost first."""

    scopes: tuple[Scope, ...] = ()

    def push(self, name: str, kind: ScopeKind) -> ScopeChain:
        return ScopeChain(self.scopes + (Scope(name, kind),))

    def pop(self) -> ScopeChain:
        if not self.scopes:
            raise IndexError("pop from an empty scope chain")
        return ScopeChain(self.scopes[:-1])

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.scopes)

    def innermost(self, kind: ScopeKind | None = None) -> str | None:
        """Name of the innermost scope, optionally restricted to one kind."""
        for scope in reversed(self.scopes):
            if kind is None or scope.kind == kind:
                return scope.name
        return None

    @property
    def namespace(self) -> str | None:
        """Fully qualified name of the innermost enclosing namespace."""
        parts: list[str] = []
        for scope in self.scopes:
            if scope.kind == ScopeKind.NAMESPACE:
                parts.append(scope.name)
            else:
                break
        return ".".join(parts) or None

    @property
    def enclosing_class(self) -> str | None:
        return self.innermost(ScopeKind.CLASS)

    def qualify(self, name: str) -> str:
        return ".".join(self.names + (name,))

    def __len__(self) -> int:
        return len(self.scopes)


def lua_identifier(name: str) -> str:
    """Turn a (possibly dotted) C# name into a valid Lua identifier.

    ``Company.Product`` becomes ``Company_Product``; a name that is a Lua
    keyword gets a trailing underscore (``end`` -> ``end_``).
    """
    ident = name.replace(".", "_").replace("::", "_")
    ident = "".join(ch if (ch.isascii() and ch.isalnum()) or ch == "_" else "_" for ch in ident)
    if not ident or ident[0].isdigit():
        ident = "_" + ident
    if ident in LUA_KEYWORDS:
        ident += "_"
    return ident
