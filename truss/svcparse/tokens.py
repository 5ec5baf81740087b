"""Token kinds and token groups produced by the service lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Token(Enum):
    """Kind of a lexical token found in a protobuf service definition."""

    ILLEGAL = 0
    EOF = 1
    WHITESPACE = 2
    COMMENT = 3
    SYMBOL = 4
    IDENT = 5
    STRING_LITERAL = 6
    OPEN_PAREN = 7
    CLOSE_PAREN = 8
    OPEN_BRACE = 9
    CLOSE_BRACE = 10

    def __str__(self) -> str:
        return self.name


def _escape(text: str) -> str:
    return text.replace("\n", "\\n").replace("\t", "\\t").replace('"', '\\"')


@dataclass(frozen=True)
class TokenGroup:
    """A token kind together with its text and the line it ends on."""

    token: Token
    value: str
    line: int

    def __str__(self) -> str:
        return (
            f'{{"token": "{self.token}", "value": "{_escape(self.value)}", '
            f'"line": {self.line}}},'
        )