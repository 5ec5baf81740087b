"""Lexer turning scanned units of a service definition into tokens."""

from __future__ import annotations

from collections.abc import Iterator

from truss.svcparse.scanner import Source, SvcScanner
from truss.svcparse.tokens import Token, TokenGroup


def _is_comment(unit: str) -> bool:
    return len(unit) > 1 and unit[0] == "/"


def _read_comment(scanner: SvcScanner, first: str) -> str:
    """Join consecutive comments; whitespace between them on one line is kept."""
    text = first
    while True:
        one_pos = scanner.unit_pos
        try:
            one = scanner.read_unit()
            if _is_comment(one):
                text += one
                continue
            if one[0].isspace() and "\n" not in one:
                two = scanner.read_unit()
                if _is_comment(two):
                    text += one + two
                    continue
        except EOFError:
            pass
        scanner.unread_to_position(one_pos)
        return text


def new_token_group(scanner: SvcScanner) -> TokenGroup:
    """Read the next token from scanner, skipping text outside service definitions."""
    if scanner.brace_level == 0:
        try:
            scanner.fast_forward()
        except EOFError:
            return TokenGroup(Token.EOF, "", scanner.line_no)
    try:
        unit = scanner.read_unit()
    except EOFError:
        return TokenGroup(Token.EOF, "", scanner.line_no)

    if not unit:
        return TokenGroup(Token.ILLEGAL, "", scanner.line_no)
    first = unit[0]
    if first.isspace():
        kind = Token.WHITESPACE
    elif first.isalpha() or first.isdecimal() or first == "_":
        kind = Token.IDENT
    elif first == '"':
        kind = Token.STRING_LITERAL
    elif first == "(":
        kind = Token.OPEN_PAREN
    elif first == ")":
        kind = Token.CLOSE_PAREN
    elif first == "{":
        kind = Token.OPEN_BRACE
    elif first == "}":
        kind = Token.CLOSE_BRACE
    elif _is_comment(unit):
        text = _read_comment(scanner, unit)
        return TokenGroup(Token.COMMENT, text, scanner.line_no)
    elif len(unit) == 1:
        kind = Token.SYMBOL
    else:
        kind = Token.ILLEGAL
    return TokenGroup(kind, unit, scanner.line_no)


def _token_groups(scanner: SvcScanner) -> Iterator[TokenGroup]:
    while True:
        group = new_token_group(scanner)
        if group.token in (Token.ILLEGAL, Token.EOF):
            return
        yield group


class SvcLexer:
    """Buffered token stream over the service definitions of a proto file."""

    def __init__(self, source: Source) -> None:
        self.scanner = SvcScanner(source)
        self.groups: list[TokenGroup] = list(_token_groups(self.scanner))
        self.position = 0
        self.line_no = 0

    def get_token(self) -> tuple[Token, str]:
        """Return the next token and its text; (EOF, "") at the end."""
        if self.position >= len(self.groups):
            return Token.EOF, ""
        group = self.groups[self.position]
        self.line_no = group.line
        self.position += 1
        return group.token, group.value

    def unget_token(self) -> None:
        """Step back one token."""
        if self.position == 0:
            raise ValueError("cannot unread when lexer is at start of input")
        self.position -= 1
        self.line_no = self.groups[self.position].line

    def unget_to_position(self, position: int) -> None:
        """Step back until the current position equals position."""
        while self.position != position:
            self.unget_token()

    def _get_token_skipping(self, *skip: Token) -> tuple[Token, str]:
        while True:
            token, value = self.get_token()
            if token not in skip:
                return token, value

    def get_token_ignore_comment_and_whitespace(self) -> tuple[Token, str]:
        """Return the next token that is neither a comment nor whitespace."""
        return self._get_token_skipping(Token.COMMENT, Token.WHITESPACE)

    def get_token_ignore_whitespace(self) -> tuple[Token, str]:
        """Return the next token that is not whitespace."""
        return self._get_token_skipping(Token.WHITESPACE)