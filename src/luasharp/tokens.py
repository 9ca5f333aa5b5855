"""Token kinds and token representation for the C# lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from luasharp.source import Span


class TokenKind(Enum):
    # Declaration keywords
    USING = auto()
    NAMESPACE = auto()
    CLASS = auto()
    STRUCT = auto()
    INTERFACE = auto()
    ENUM = auto()
    DELEGATE = auto()
    EVENT = auto()
    OPERATOR = auto()
    IMPLICIT = auto()
    EXPLICIT = auto()
    THIS = auto()

    # Keyword groups
    MODIFIER = auto()
    PARAM_MODIFIER = auto()

    # Literals
    INTEGER_LIT = auto()
    REAL_LIT = auto()
    STRING_LIT = auto()
    CHAR_LIT = auto()

    # Punctuation
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LESS = auto()
    GREATER = auto()
    COMMA = auto()
    SEMICOLON = auto()
    DOT = auto()
    COLON = auto()
    DOUBLE_COLON = auto()
    QUESTION = auto()
    ASSIGN = auto()
    FAT_ARROW = auto()
    STAR = auto()
    TILDE = auto()

    # Any other operator (+, ==, &&, ??, ...)
    OPERATOR_SYM = auto()

    # Identifiers, including predefined type names such as int and void
    IDENTIFIER = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span


_MODIFIERS = (
    "public", "private", "protected", "internal", "static", "abstract",
    "sealed", "virtual", "override", "readonly", "const", "extern",
    "unsafe", "new", "volatile", "fixed",
)

KEYWORDS: dict[str, TokenKind] = {
    "using": TokenKind.USING,
    "namespace": TokenKind.NAMESPACE,
    "class": TokenKind.CLASS,
    "struct": TokenKind.STRUCT,
    "interface": TokenKind.INTERFACE,
    "enum": TokenKind.ENUM,
    "delegate": TokenKind.DELEGATE,
    "event": TokenKind.EVENT,
    "operator": TokenKind.OPERATOR,
    "implicit": TokenKind.IMPLICIT,
    "explicit": TokenKind.EXPLICIT,
    "this": TokenKind.THIS,
    "ref": TokenKind.PARAM_MODIFIER,
    "out": TokenKind.PARAM_MODIFIER,
    "in": TokenKind.PARAM_MODIFIER,
    "params": TokenKind.PARAM_MODIFIER,
    **{m: TokenKind.MODIFIER for m in _MODIFIERS},
}

# Identifiers that act as modifiers only in declaration position.
CONTEXTUAL_MODIFIERS: frozenset[str] = frozenset({
    "partial", "async", "required", "file", "scoped",
})

# Multi-character operators, longest first so the lexer can match greedily.
# `<` and `>` are never combined: `List<List<int>>` must close twice.
OPERATORS: tuple[str, ...] = (
    "??=", "<<=",
    "==", "!=", "&&", "||", "++", "--", "+=", "-=", "*=", "/=", "%=",
    "&=", "|=", "^=", "??", "?.", "->", "<=",
)
