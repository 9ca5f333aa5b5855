"""Lexer for C# source.

Produces the token stream consumed by the declaration parser. Comments,
whitespace and preprocessor directives are dropped; every literal form
(regular, verbatim, interpolated and raw strings, chars, numbers) becomes a
single token so the parser can skip bodies by counting brackets.
"""

from __future__ import annotations

from luasharp.errors import CompileError, Diagnostic, DiagnosticLabel, Severity
from luasharp.source import Span
from luasharp.tokens import KEYWORDS, OPERATORS, Token, TokenKind

_SINGLE_CHAR: dict[str, TokenKind] = {
    '{': TokenKind.LBRACE,
    '}': TokenKind.RBRACE,
    '(': TokenKind.LPAREN,
    ')': TokenKind.RPAREN,
    '[': TokenKind.LBRACKET,
    ']': TokenKind.RBRACKET,
    '<': TokenKind.LESS,
    '>': TokenKind.GREATER,
    ',': TokenKind.COMMA,
    ';': TokenKind.SEMICOLON,
    '.': TokenKind.DOT,
    ':': TokenKind.COLON,
    '?': TokenKind.QUESTION,
    '=': TokenKind.ASSIGN,
    '*': TokenKind.STAR,
    '~': TokenKind.TILDE,
}

_OPERATOR_CHARS = frozenset("+-/%&|^!")


class Lexer:
    """Tokenizes C# source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []
        self.diagnostics: list[Diagnostic] = []
        self._at_line_start = True

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        if self.source.startswith('\ufeff'):
            self.pos = 1
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '\n':
                self._advance()
                self._at_line_start = True
                continue
            if ch in ' \t\r\f\v':
                self._advance()
                continue
            at_line_start = self._at_line_start
            self._at_line_start = False
            if ch == '#' and at_line_start:
                self._skip_line()
            elif ch == '/' and self._peek(1) == '/':
                self._skip_line()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_block_comment()
            elif ch == '"' or self._at_string_prefix():
                self._lex_string()
            elif ch == "'":
                self._lex_char()
            elif ch.isdigit() or (ch == '.' and self._peek(1).isdigit()):
                self._lex_number()
            elif ch.isalpha() or ch == '_' or (ch == '@' and self._is_ident_start(self._peek(1))):
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        self._emit(TokenKind.EOF, "", self.line, self.col)

        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        return ch.isalpha() or ch == '_'

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        return tok

    def _error(self, message: str, line: int, col: int) -> None:
        span = Span(self.filename, line, col, line, col)
        self.diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                code="E100",
                message=message,
                labels=[DiagnosticLabel(span=span, message="")],
            )
        )

    # ── Comments and directives ──────────────────────────────────

    def _skip_line(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != '\n':
            self._advance()

    def _skip_block_comment(self) -> None:
        start_line, start_col = self.line, self.col
        self._advance()
        self._advance()
        while self.pos < len(self.source):
            if self.source[self.pos] == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()
        self._error("unterminated block comment", start_line, start_col)

    # ── Strings and chars ────────────────────────────────────────

    def _at_string_prefix(self) -> bool:
        """True at a `@`, `$` or `$@` prefix followed by a quote."""
        i = self.pos
        while i < len(self.source) and self.source[i] in '$@':
            i += 1
        return i > self.pos and i < len(self.source) and self.source[i] == '"'

    def _lex_string(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        verbatim = False
        interpolated = False
        while self.source[self.pos] in '$@':
            if self.source[self.pos] == '@':
                verbatim = True
            else:
                interpolated = True
            self._advance()

        if self._peek(0) == '"' and self._peek(1) == '"' and self._peek(2) == '"':
            ok = self._scan_raw_string()
        else:
            self._advance()  # opening quote
            ok = self._scan_string_body(verbatim=verbatim, interpolated=interpolated)

        if not ok:
            self._error("unterminated string literal", start_line, start_col)
        self._emit(TokenKind.STRING_LIT, self.source[start:self.pos], start_line, start_col)

    def _scan_raw_string(self) -> bool:
        quotes = 0
        while self._peek(0) == '"':
            quotes += 1
            self._advance()
        closing = '"' * quotes
        while self.pos < len(self.source):
            if self.source.startswith(closing, self.pos):
                for _ in range(quotes):
                    self._advance()
                return True
            self._advance()
        return False

    def _scan_string_body(self, *, verbatim: bool, interpolated: bool) -> bool:
        """Consume up to and including the closing quote. False if unterminated."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '"':
                if verbatim and self._peek(1) == '"':
                    self._advance()
                    self._advance()
                    continue
                self._advance()
                return True
            if ch == '\\' and not verbatim:
                self._advance()
                if self.pos < len(self.source):
                    self._advance()
                continue
            if ch == '\n' and not verbatim:
                return False
            if ch == '{' and interpolated:
                if self._peek(1) == '{':
                    self._advance()
                    self._advance()
                    continue
                if not self._scan_interpolation_hole():
                    return False
                continue
            self._advance()
        return False

    def _scan_interpolation_hole(self) -> bool:
        """Consume `{expr}` inside an interpolated string, nested strings included."""
        depth = 0
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '{':
                depth += 1
            elif ch == '}':
                depth -= 1
                if depth == 0:
                    self._advance()
                    return True
            elif ch == '"' or self._at_string_prefix():
                verbatim = False
                interpolated = False
                while self.source[self.pos] in '$@':
                    verbatim = verbatim or self.source[self.pos] == '@'
                    interpolated = interpolated or self.source[self.pos] == '$'
                    self._advance()
                self._advance()
                if not self._scan_string_body(verbatim=verbatim, interpolated=interpolated):
                    return False
                continue
            elif ch == "'":
                self._scan_char_body()
                continue
            self._advance()
        return False

    def _scan_char_body(self) -> bool:
        self._advance()  # opening quote
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '\\':
                self._advance()
                if self.pos < len(self.source):
                    self._advance()
                continue
            if ch == '\n':
                return False
            self._advance()
            if ch == "'":
                return True
        return False

    def _lex_char(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        if not self._scan_char_body():
            self._error("unterminated character literal", start_line, start_col)
        self._emit(TokenKind.CHAR_LIT, self.source[start:self.pos], start_line, start_col)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        kind = TokenKind.INTEGER_LIT

        if self._peek(0) == '0' and self._peek(1) in 'xXbB':
            self._advance()
            self._advance()
            while self.pos < len(self.source) and (
                self.source[self.pos].isalnum() or self.source[self.pos] == '_'
            ):
                self._advance()
            self._emit(kind, self.source[start:self.pos], start_line, start_col)
            return

        while self.pos < len(self.source) and (self._peek(0).isdigit() or self._peek(0) == '_'):
            self._advance()
        if self._peek(0) == '.' and self._peek(1).isdigit():
            kind = TokenKind.REAL_LIT
            self._advance()
            while self.pos < len(self.source) and (self._peek(0).isdigit() or self._peek(0) == '_'):
                self._advance()
        if self._peek(0) in 'eE' and (
            self._peek(1).isdigit() or (self._peek(1) in '+-' and self._peek(2).isdigit())
        ):
            kind = TokenKind.REAL_LIT
            self._advance()
            if self._peek(0) in '+-':
                self._advance()
            while self.pos < len(self.source) and self._peek(0).isdigit():
                self._advance()
        while self.pos < len(self.source) and self._peek(0) in 'uUlLfFdDmM':
            if self._peek(0) in 'fFdDmM':
                kind = TokenKind.REAL_LIT
            self._advance()

        self._emit(kind, self.source[start:self.pos], start_line, start_col)

    # ── Identifiers ──────────────────────────────────────────────

    def _lex_identifier(self) -> None:
        start_line, start_col = self.line, self.col
        verbatim = False
        if self._peek(0) == '@':
            verbatim = True
            self._advance()
        start = self.pos
        while self.pos < len(self.source) and (
            self.source[self.pos].isalnum() or self.source[self.pos] == '_'
        ):
            self._advance()
        text = self.source[start:self.pos]
        kind = TokenKind.IDENTIFIER if verbatim else KEYWORDS.get(text, TokenKind.IDENTIFIER)
        self._emit(kind, text, start_line, start_col)

    # ── Operators and punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line, start_col = self.line, self.col
        ch = self.source[self.pos]

        if ch == '=' and self._peek(1) == '>':
            self._advance()
            self._advance()
            self._emit(TokenKind.FAT_ARROW, "=>", start_line, start_col)
            return
        if ch == ':' and self._peek(1) == ':':
            self._advance()
            self._advance()
            self._emit(TokenKind.DOUBLE_COLON, "::", start_line, start_col)
            return

        for op in OPERATORS:
            if self.source.startswith(op, self.pos):
                for _ in op:
                    self._advance()
                self._emit(TokenKind.OPERATOR_SYM, op, start_line, start_col)
                return

        if ch in _SINGLE_CHAR:
            self._advance()
            self._emit(_SINGLE_CHAR[ch], ch, start_line, start_col)
            return
        if ch in _OPERATOR_CHARS:
            self._advance()
            self._emit(TokenKind.OPERATOR_SYM, ch, start_line, start_col)
            return

        self._advance()
        self._error(f"unexpected character {ch!r}", start_line, start_col)
