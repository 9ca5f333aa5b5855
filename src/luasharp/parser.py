"""Declaration-level parser for C#.

Recursive descent over namespaces, type declarations and member
signatures. Everything below the signature level (method bodies, property
accessors, initializers, attributes, base lists, constraints) is skipped by
balanced-bracket matching, so any statement syntax is accepted as long as
its brackets balance.
"""

from __future__ import annotations

from typing import NoReturn

from luasharp.errors import CompileError, Diagnostic, DiagnosticLabel, Severity
from luasharp.source import Span
from luasharp.syntax import (
    CompilationUnit,
    MemberDeclaration,
    MethodDeclaration,
    NamespaceDeclaration,
    Parameter,
    SyntaxKind,
    SyntaxNode,
    TypeDeclaration,
    UsingDirective,
)
from luasharp.tokens import CONTEXTUAL_MODIFIERS, Token, TokenKind

_TYPE_KEYWORDS: dict[TokenKind, SyntaxKind] = {
    TokenKind.CLASS: SyntaxKind.CLASS_DECLARATION,
    TokenKind.STRUCT: SyntaxKind.STRUCT_DECLARATION,
    TokenKind.INTERFACE: SyntaxKind.INTERFACE_DECLARATION,
    TokenKind.ENUM: SyntaxKind.ENUM_DECLARATION,
}

_OPENERS = frozenset({TokenKind.LBRACE, TokenKind.LPAREN, TokenKind.LBRACKET})
_CLOSERS = frozenset({TokenKind.RBRACE, TokenKind.RPAREN, TokenKind.RBRACKET})


class _ParseError(Exception):
    pass


class Parser:
    """Parses a list of C# tokens into a syntax tree."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _at_word(self, word: str) -> bool:
        tok = self._current()
        return tok.kind == TokenKind.IDENTIFIER and tok.value == word

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, kind: TokenKind, what: str) -> Token:
        if self._current().kind == kind:
            return self._advance()
        tok = self._current()
        self._fail(f"expected {what}, got {_describe(tok)}", tok)

    def _error(self, message: str, span: Span) -> None:
        self.diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                code="E101",
                message=message,
                labels=[DiagnosticLabel(span=span, message="")],
            )
        )

    def _fail(self, message: str, tok: Token) -> NoReturn:
        self._error(message, tok.span)
        raise _ParseError

    def _span(self, start: Span, end: Span) -> Span:
        """Build a Span from a start span to an end span."""
        return Span(
            self.filename,
            start.start_line, start.start_col,
            end.end_line, end.end_col,
        )

    def _prev_span(self) -> Span:
        return self.tokens[self.pos - 1].span if self.pos > 0 else self._current().span

    def _synchronize(self) -> None:
        """Skip to just past the next `;` or `}` that could end a declaration."""
        while not self._at(TokenKind.EOF):
            if self._at_any(TokenKind.SEMICOLON, TokenKind.RBRACE):
                self._advance()
                return
            self._advance()

    # ── Skipping ─────────────────────────────────────────────────

    def _skip_balanced(self) -> None:
        """Consume a bracketed group starting at the current opener."""
        opener = self._advance()
        depth = 1
        while depth > 0:
            tok = self._current()
            if tok.kind == TokenKind.EOF:
                self._fail(f"unexpected end of file; unclosed {opener.value!r}", opener)
            if tok.kind in _OPENERS:
                depth += 1
            elif tok.kind in _CLOSERS:
                depth -= 1
            self._advance()

    def _skip_until(self, *stops: TokenKind) -> None:
        """Advance to the first stop token at bracket depth 0 (not consumed)."""
        while not self._at_any(*stops):
            tok = self._current()
            if tok.kind == TokenKind.EOF:
                self._fail("unexpected end of file", tok)
            if tok.kind in _CLOSERS:
                self._fail(f"unexpected {tok.value!r}", tok)
            if tok.kind in _OPENERS:
                self._skip_balanced()
            else:
                self._advance()

    def _skip_statement(self) -> None:
        """Skip through the terminating `;` at bracket depth 0."""
        self._skip_until(TokenKind.SEMICOLON)
        self._advance()

    def _skip_body(self) -> bool:
        """Skip a `{ ... }` block, `=> expr;` or a bare `;`. Returns has_body."""
        if self._at(TokenKind.LBRACE):
            self._skip_balanced()
            return True
        if self._at(TokenKind.FAT_ARROW):
            self._skip_statement()
            return True
        self._expect(TokenKind.SEMICOLON, "'{', '=>' or ';'")
        return False

    def _skip_attributes(self) -> None:
        while self._at(TokenKind.LBRACKET):
            self._skip_balanced()

    # ── Top level ────────────────────────────────────────────────

    def parse(self) -> CompilationUnit:
        """Parse the entire token stream into a CompilationUnit."""
        members = self._parse_members(terminator=None, allow_file_scoped=True)
        end = self._current().span
        span = Span(self.filename, 1, 1, end.end_line, end.end_col)
        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return CompilationUnit(members=tuple(members), span=span)

    def _parse_members(
        self, terminator: TokenKind | None, *, allow_file_scoped: bool = False,
    ) -> list[SyntaxNode]:
        """Parse members until *terminator* (or EOF when None)."""
        members: list[SyntaxNode] = []
        while not self._at(TokenKind.EOF):
            if terminator is not None and self._at(terminator):
                break
            if self._at(TokenKind.SEMICOLON):
                self._advance()
                continue
            if terminator is None and self._at(TokenKind.RBRACE):
                tok = self._advance()
                self._error("unexpected '}'", tok.span)
                continue
            try:
                if self._at(TokenKind.NAMESPACE):
                    ns = self._parse_namespace(allow_file_scoped)
                    members.append(ns)
                    if ns.file_scoped:
                        break
                    continue
                node = self._parse_member()
            except _ParseError:
                self._synchronize()
                continue
            if node is not None:
                members.append(node)
        return members

    def _parse_using(self) -> UsingDirective:
        start = self._advance().span  # using
        is_static = False
        alias = None
        if self._at(TokenKind.MODIFIER) and self._current().value == "static":
            self._advance()
            is_static = True
        if self._at(TokenKind.IDENTIFIER) and self._peek(1).kind == TokenKind.ASSIGN:
            alias = self._advance().value
            self._advance()
        name = self._parse_type()
        end = self._expect(TokenKind.SEMICOLON, "';' after using directive").span
        return UsingDirective(name=name, alias=alias, is_static=is_static,
                              span=self._span(start, end))

    def _parse_namespace(self, allow_file_scoped: bool) -> NamespaceDeclaration:
        start = self._advance().span  # namespace
        name = None
        if self._at(TokenKind.IDENTIFIER):
            name = self._parse_qualified_name()

        if self._at(TokenKind.SEMICOLON):
            tok = self._advance()
            if not allow_file_scoped:
                self._error("file-scoped namespace must be declared at file level", tok.span)
            members = self._parse_members(terminator=None)
            return NamespaceDeclaration(
                name=name, members=tuple(members), file_scoped=True,
                span=self._span(start, self._current().span),
            )

        open_brace = self._expect(TokenKind.LBRACE, "'{' after namespace name")
        members = self._parse_members(terminator=TokenKind.RBRACE)
        if self._at(TokenKind.EOF):
            self._fail("unexpected end of file; unclosed '{'", open_brace)
        end = self._advance().span
        return NamespaceDeclaration(
            name=name, members=tuple(members), file_scoped=False,
            span=self._span(start, end),
        )

    # ── Members ──────────────────────────────────────────────────

    def _parse_member(self) -> SyntaxNode | None:
        """Parse one namespace or type member; None when it is skipped entirely."""
        if self._at_word("global") and self._peek(1).kind == TokenKind.USING:
            self._advance()
        if self._at(TokenKind.USING):
            return self._parse_using()
        if (self._at(TokenKind.MODIFIER) and self._current().value == "extern"
                and self._peek(1).value == "alias"):
            self._skip_statement()
            return None

        start = self._current().span
        self._skip_attributes()
        modifiers = self._parse_modifiers()

        tok = self._current()
        if tok.kind in _TYPE_KEYWORDS:
            return self._parse_type_declaration(_TYPE_KEYWORDS[tok.kind], modifiers, start)
        if self._at_word("record") and self._peek(1).kind in (
            TokenKind.IDENTIFIER, TokenKind.CLASS, TokenKind.STRUCT,
        ):
            self._advance()
            if self._at_any(TokenKind.CLASS, TokenKind.STRUCT):
                self._advance()
            return self._parse_type_body(SyntaxKind.RECORD_DECLARATION, modifiers, start)
        if tok.kind == TokenKind.DELEGATE:
            self._advance()
            self._parse_modifiers()  # delegate ref readonly T D();
            return_type = self._parse_type()
            name = self._parse_identifier()
            self._skip_statement()
            return MemberDeclaration(SyntaxKind.DELEGATE_DECLARATION, name, return_type,
                                     self._span(start, self._prev_span()))
        if tok.kind == TokenKind.EVENT:
            self._advance()
            type_name = self._parse_type()
            name = self._parse_member_name() if self._at(TokenKind.IDENTIFIER) else None
            if self._at(TokenKind.LBRACE):
                self._skip_balanced()
            else:
                self._skip_statement()
            return MemberDeclaration(SyntaxKind.EVENT_DECLARATION, name, type_name,
                                     self._span(start, self._prev_span()))
        if tok.kind == TokenKind.TILDE:
            self._advance()
            name = self._parse_identifier()
            self._skip_parenthesized("'(' after destructor name")
            self._skip_body()
            return MemberDeclaration(SyntaxKind.DESTRUCTOR_DECLARATION, name, None,
                                     self._span(start, self._prev_span()))
        if tok.kind in (TokenKind.IMPLICIT, TokenKind.EXPLICIT):
            self._advance()
            self._expect(TokenKind.OPERATOR, "'operator'")
            type_name = self._parse_type()
            return self._finish_operator(type_name, start)
        if tok.kind == TokenKind.IDENTIFIER and self._peek(1).kind == TokenKind.LPAREN:
            name = self._advance().value
            self._skip_balanced()
            if self._at(TokenKind.COLON):  # base(...) / this(...) initializer
                self._skip_until(TokenKind.LBRACE, TokenKind.FAT_ARROW, TokenKind.SEMICOLON)
            self._skip_body()
            return MemberDeclaration(SyntaxKind.CONSTRUCTOR_DECLARATION, name, None,
                                     self._span(start, self._prev_span()))

        if tok.kind not in (TokenKind.IDENTIFIER, TokenKind.LPAREN):
            self._fail(f"unexpected {_describe(tok)} in declaration", tok)

        type_name = self._parse_type()

        if self._at(TokenKind.OPERATOR):
            self._advance()
            return self._finish_operator(type_name, start)
        if self._at(TokenKind.THIS):
            self._advance()
            self._skip_balanced()  # [params]
            self._skip_accessors()
            return MemberDeclaration(SyntaxKind.INDEXER_DECLARATION, "this", type_name,
                                     self._span(start, self._prev_span()))
        if not self._at(TokenKind.IDENTIFIER):
            # Statement-level code (top-level statements, stray expressions)
            self._skip_until(TokenKind.SEMICOLON, TokenKind.LBRACE)
            if self._at(TokenKind.LBRACE):
                self._skip_balanced()
            else:
                self._advance()
            return None

        name = self._parse_member_name()

        if self._at_any(TokenKind.LESS, TokenKind.LPAREN):
            return self._finish_method(name, type_name, modifiers, start)
        if self._at_any(TokenKind.LBRACE, TokenKind.FAT_ARROW):
            self._skip_accessors()
            return MemberDeclaration(SyntaxKind.PROPERTY_DECLARATION, name, type_name,
                                     self._span(start, self._prev_span()))
        self._skip_statement()
        return MemberDeclaration(SyntaxKind.FIELD_DECLARATION, name, type_name,
                                 self._span(start, self._prev_span()))

    def _parse_modifiers(self) -> tuple[str, ...]:
        modifiers: list[str] = []
        while True:
            tok = self._current()
            if tok.kind == TokenKind.MODIFIER:
                modifiers.append(self._advance().value)
                continue
            # ref struct, ref returns, ref readonly returns and ref fields
            if tok.kind == TokenKind.PARAM_MODIFIER and tok.value == "ref":
                modifiers.append(self._advance().value)
                continue
            if (tok.kind == TokenKind.IDENTIFIER and tok.value in CONTEXTUAL_MODIFIERS
                    and self._peek(1).kind not in (
                        TokenKind.LPAREN, TokenKind.ASSIGN, TokenKind.SEMICOLON,
                        TokenKind.COMMA, TokenKind.DOT, TokenKind.LESS,
                        TokenKind.LBRACE, TokenKind.FAT_ARROW,
                    )):
                modifiers.append(self._advance().value)
                continue
            return tuple(modifiers)

    def _parse_type_declaration(
        self, kind: SyntaxKind, modifiers: tuple[str, ...], start: Span,
    ) -> TypeDeclaration:
        self._advance()  # class / struct / interface / enum
        if kind == SyntaxKind.ENUM_DECLARATION:
            name = self._parse_identifier()
            self._skip_until(TokenKind.LBRACE)
            self._skip_balanced()
            if self._at(TokenKind.SEMICOLON):
                self._advance()
            return TypeDeclaration(kind, name, (), modifiers, (),
                                   self._span(start, self._prev_span()))
        return self._parse_type_body(kind, modifiers, start)

    def _parse_type_body(
        self, kind: SyntaxKind, modifiers: tuple[str, ...], start: Span,
    ) -> TypeDeclaration:
        """Name, type parameters, base list, then `{ members }` or `;`."""
        name = self._parse_identifier()
        type_params = self._parse_type_parameters() if self._at(TokenKind.LESS) else ()
        if self._at(TokenKind.LPAREN):  # primary constructor
            self._skip_balanced()
        self._skip_until(TokenKind.LBRACE, TokenKind.SEMICOLON)

        members: list[SyntaxNode] = []
        if self._at(TokenKind.SEMICOLON):
            self._advance()
        else:
            open_brace = self._advance()
            members = self._parse_members(terminator=TokenKind.RBRACE)
            if self._at(TokenKind.EOF):
                self._fail("unexpected end of file; unclosed '{'", open_brace)
            self._advance()
            if self._at(TokenKind.SEMICOLON):
                self._advance()
        return TypeDeclaration(kind, name, type_params, modifiers, tuple(members),
                               self._span(start, self._prev_span()))

    def _finish_method(
        self, name: str | None, return_type: str, modifiers: tuple[str, ...], start: Span,
    ) -> MethodDeclaration:
        type_params = self._parse_type_parameters() if self._at(TokenKind.LESS) else ()
        params = self._parse_parameter_list()
        if self._at_word("where"):
            self._skip_until(TokenKind.LBRACE, TokenKind.FAT_ARROW, TokenKind.SEMICOLON)
        has_body = self._skip_body()
        return MethodDeclaration(
            name=name,
            return_type=return_type,
            type_parameters=type_params,
            parameters=tuple(params),
            modifiers=modifiers,
            has_body=has_body,
            span=self._span(start, self._prev_span()),
        )

    def _finish_operator(self, type_name: str, start: Span) -> MemberDeclaration:
        symbol = ""
        while not self._at_any(TokenKind.LPAREN, TokenKind.EOF):
            symbol += self._advance().value
        self._skip_parenthesized("'(' after operator")
        self._skip_body()
        return MemberDeclaration(SyntaxKind.OPERATOR_DECLARATION, f"operator{symbol}",
                                 type_name, self._span(start, self._prev_span()))

    def _skip_accessors(self) -> None:
        """Skip a property/indexer body plus an optional `= initializer;`."""
        if self._at(TokenKind.FAT_ARROW):
            self._skip_statement()
            return
        if not self._at(TokenKind.LBRACE):
            tok = self._current()
            self._fail(f"expected '{{' or '=>', got {_describe(tok)}", tok)
        self._skip_balanced()
        if self._at(TokenKind.ASSIGN):
            self._skip_statement()

    # ── Parameters ───────────────────────────────────────────────

    def _parse_parameter_list(self) -> list[Parameter]:
        self._expect(TokenKind.LPAREN, "'('")
        params: list[Parameter] = []
        while not self._at(TokenKind.RPAREN):
            params.append(self._parse_parameter())
            if self._at(TokenKind.COMMA):
                self._advance()
                continue
            if not self._at(TokenKind.RPAREN):
                tok = self._current()
                self._fail(f"expected ',' or ')' in parameter list, got {_describe(tok)}", tok)
        self._advance()
        return params

    def _parse_parameter(self) -> Parameter:
        start = self._current().span
        self._skip_attributes()
        modifier = None
        while self._at_any(TokenKind.PARAM_MODIFIER, TokenKind.THIS) or self._at_word("scoped"):
            tok = self._advance()
            if tok.value != "scoped":
                modifier = tok.value
        type_name = self._parse_type()
        name = None
        if self._at(TokenKind.IDENTIFIER):
            name = self._advance().value
        if self._at(TokenKind.ASSIGN):
            self._skip_until(TokenKind.COMMA, TokenKind.RPAREN)
        return Parameter(name=name, type_name=type_name, modifier=modifier,
                         span=self._span(start, self._prev_span()))

    def _parse_type_parameters(self) -> tuple[str, ...]:
        self._advance()  # <
        names: list[str] = []
        while not self._at(TokenKind.GREATER):
            self._skip_attributes()
            if self._at(TokenKind.PARAM_MODIFIER):
                self._advance()  # variance: in / out
            names.append(self._expect(TokenKind.IDENTIFIER, "type parameter name").value)
            if self._at(TokenKind.COMMA):
                self._advance()
            elif not self._at(TokenKind.GREATER):
                tok = self._current()
                self._fail(f"expected ',' or '>' in type parameters, got {_describe(tok)}", tok)
        self._advance()
        return tuple(names)

    # ── Names and types ──────────────────────────────────────────

    def _parse_identifier(self) -> str | None:
        """An identifier if one is present; a declaration may omit it."""
        if self._at(TokenKind.IDENTIFIER):
            return self._advance().value
        return None

    def _parse_member_name(self) -> str:
        """Member name; `IFoo.Bar` explicit implementations keep the last segment."""
        name = self._advance().value
        while True:
            if self._at(TokenKind.LESS):
                close = self._closing_angle()
                if close is None or self.tokens[close + 1].kind != TokenKind.DOT:
                    return name  # method type parameters
                self.pos = close + 1  # IFoo<T>.Bar
            if self._at(TokenKind.DOT) and self._peek(1).kind == TokenKind.IDENTIFIER:
                self._advance()
                name = self._advance().value
                continue
            return name

    def _closing_angle(self) -> int | None:
        """Index of the `>` matching the `<` at the current position."""
        depth = 0
        for idx in range(self.pos, len(self.tokens)):
            kind = self.tokens[idx].kind
            if kind == TokenKind.LESS:
                depth += 1
            elif kind == TokenKind.GREATER:
                depth -= 1
                if depth == 0:
                    return idx
            elif kind in (TokenKind.LBRACE, TokenKind.SEMICOLON, TokenKind.EOF):
                return None
        return None

    def _skip_parenthesized(self, what: str) -> None:
        if not self._at(TokenKind.LPAREN):
            tok = self._current()
            self._fail(f"expected {what}, got {_describe(tok)}", tok)
        self._skip_balanced()

    def _parse_qualified_name(self) -> str:
        parts = [self._expect(TokenKind.IDENTIFIER, "name").value]
        while self._at(TokenKind.DOT):
            self._advance()
            parts.append(self._expect(TokenKind.IDENTIFIER, "name after '.'").value)
        return ".".join(parts)

    def _parse_type(self) -> str:
        """Parse a type and return its canonical text, e.g. `List<int>[]`."""
        if self._at(TokenKind.LPAREN):
            text = self._parse_tuple_type()
        else:
            text = self._parse_type_name()
        while True:
            if self._at(TokenKind.QUESTION):
                self._advance()
                text += "?"
            elif self._at(TokenKind.STAR):
                self._advance()
                text += "*"
            elif self._at(TokenKind.LBRACKET) and self._peek(1).kind in (
                TokenKind.RBRACKET, TokenKind.COMMA,
            ):
                self._advance()
                commas = ""
                while self._at(TokenKind.COMMA):
                    self._advance()
                    commas += ","
                self._expect(TokenKind.RBRACKET, "']'")
                text += f"[{commas}]"
            else:
                return text

    def _parse_type_name(self) -> str:
        first = self._expect(TokenKind.IDENTIFIER, "type name").value
        text = first
        if self._at(TokenKind.DOUBLE_COLON):
            self._advance()
            text += "::" + self._expect(TokenKind.IDENTIFIER, "name after '::'").value
        if self._at(TokenKind.LESS):
            text += self._parse_type_arguments()
        while self._at(TokenKind.DOT) and self._peek(1).kind == TokenKind.IDENTIFIER:
            self._advance()
            text += "." + self._advance().value
            if self._at(TokenKind.LESS):
                text += self._parse_type_arguments()
        return text

    def _parse_type_arguments(self) -> str:
        self._advance()  # <
        args: list[str] = []
        while not self._at(TokenKind.GREATER):
            if self._at(TokenKind.COMMA):  # open generic: Dictionary<,>
                self._advance()
                args.append("")
                continue
            args.append(self._parse_type())
            if self._at(TokenKind.COMMA):
                self._advance()
            elif not self._at(TokenKind.GREATER):
                tok = self._current()
                self._fail(f"expected ',' or '>' in type arguments, got {_describe(tok)}", tok)
        self._advance()
        return "<" + ", ".join(args) + ">"

    def _parse_tuple_type(self) -> str:
        self._advance()  # (
        elements: list[str] = []
        while not self._at(TokenKind.RPAREN):
            elements.append(self._parse_type())
            if self._at(TokenKind.IDENTIFIER):
                self._advance()  # element name
            if self._at(TokenKind.COMMA):
                self._advance()
            elif not self._at(TokenKind.RPAREN):
                tok = self._current()
                self._fail(f"expected ',' or ')' in tuple type, got {_describe(tok)}", tok)
        self._advance()
        return "(" + ", ".join(elements) + ")"


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of file"
    return f"{tok.kind.name} ({tok.value!r})"


def parse_source(source: str, filename: str = "<stdin>") -> CompilationUnit:
    """Lex and parse *source* in one step. Raises CompileError."""
    from luasharp.lexer import Lexer

    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename).parse()
