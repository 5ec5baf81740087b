"""Parser for the service declarations of a protobuf file.

Only the parts needed to recover HTTP annotations, and the comments attached
to them, are parsed. The input is expected to contain exactly one service
definition.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field

from truss.svcparse.lexer import SvcLexer
from truss.svcparse.tokens import Token


class ParserError(ValueError):
    """Raised when the parser meets input it does not expect."""

    def __init__(self, expected: str, line: int, found: str) -> None:
        super().__init__(
            f"parser expected {expected} in line '{line}', instead found '{found}'"
        )
        self.expected = expected
        self.line = line
        self.found = found

    @property
    def optional(self) -> bool:
        """True if the error only means HTTP annotations are missing."""
        return False


class OptionalParseError(ParserError):
    """Raised when an rpc method lacks HTTP annotations; this is allowed."""

    @property
    def optional(self) -> bool:
        return True


@dataclass
class Field:
    """One 'kind: "value"' entry of an HTTP binding."""

    name: str = ""
    description: str = ""
    kind: str = ""
    value: str = ""


@dataclass
class HTTPBinding:
    """One HTTP binding of an rpc method."""

    description: str = ""
    fields: list[Field] = dc_field(default_factory=list)
    custom_http_pattern: list[Field] = dc_field(default_factory=list)


@dataclass
class Method:
    """An rpc method of a service."""

    name: str = ""
    description: str = ""
    request_type: str = ""
    response_type: str = ""
    http_bindings: list[HTTPBinding] = dc_field(default_factory=list)


@dataclass
class Service:
    """A service and the methods found within it."""

    name: str = ""
    methods: list[Method] = dc_field(default_factory=list)


_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}
_ESCAPE_BODY = r"x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|[abfnrtv\\\"]"
_VALID_BODY = re.compile(rf'(?:[^"\\\n]|\\(?:{_ESCAPE_BODY}))*')
_ESCAPE = re.compile(rf"\\({_ESCAPE_BODY})")


def _decode_escape(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq[0] in "xuU":
        return chr(int(seq[1:], 16))
    if seq[0].isdigit():
        return chr(int(seq, 8))
    return _ESCAPES[seq]


def _unquote(text: str, line: int) -> str:
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise ParserError("a double-quoted string", line, text)
    body = text[1:-1]
    if not _VALID_BODY.fullmatch(body):
        raise ParserError("a valid quoted string", line, text)
    return _ESCAPE.sub(_decode_escape, body)


def _fast_forward_till(lex: SvcLexer, delim: str) -> None:
    """Advance until a token with value delim has been read."""
    while True:
        token, value = lex.get_token_ignore_whitespace()
        if token in (Token.EOF, Token.ILLEGAL):
            raise ParserError(
                f"'{delim}'", lex.line_no, f"token of type {token} and val {value}"
            )
        if value == delim:
            return


def parse_service(lex: SvcLexer) -> Service:
    """Parse one service definition from lex.

    Raises EOFError if the input holds no tokens at all.
    """
    token, value = lex.get_token_ignore_whitespace()
    if token is Token.EOF:
        raise EOFError("unexpected EOF")
    if token is not Token.IDENT and value != "service":
        raise ParserError("'service' identifier", lex.line_no, value)

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.IDENT:
        raise ParserError("a string identifier", lex.line_no, value)
    service = Service(name=value)

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.OPEN_BRACE:
        raise ParserError("'{'", lex.line_no, value)

    while (method := parse_method(lex)) is not None:
        service.methods.append(method)
    return service


def _parse_type_list(lex: SvcLexer, which: str) -> str:
    """Parse the inside of '(...)' after the open paren; return the last ident."""
    token, value = lex.get_token_ignore_whitespace()
    if value == "stream":
        token, value = lex.get_token_ignore_whitespace()
    if token is not Token.IDENT:
        raise ParserError(
            f"a string identifier in {which} argument to method", lex.line_no, value
        )
    name = ""
    while token is not Token.CLOSE_PAREN:
        if token is Token.IDENT:
            name = value
        elif token is not Token.SYMBOL:
            raise ParserError("')' or '.'", lex.line_no, value)
        token, value = lex.get_token_ignore_whitespace()
    return name


def parse_method(lex: SvcLexer) -> Method | None:
    """Parse one rpc method.

    Returns None at the end of the service, or when the method has no HTTP
    options.
    """
    description = ""
    token, value = lex.get_token_ignore_whitespace()
    while token is Token.COMMENT:
        description = value
        token, value = lex.get_token_ignore_whitespace()

    if token is Token.CLOSE_BRACE:
        return None
    if token is not Token.IDENT or value != "rpc":
        raise ParserError("identifier 'rpc'", lex.line_no, value)

    method = Method(description=description)

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.IDENT:
        raise ParserError("a string identifier", lex.line_no, value)
    method.name = value

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.OPEN_PAREN:
        raise ParserError("'('", lex.line_no, value)
    method.request_type = _parse_type_list(lex, "first")

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.IDENT or value != "returns":
        raise ParserError("'returns' keyword", lex.line_no, value)

    token, value = lex.get_token_ignore_whitespace()
    if token is not Token.OPEN_PAREN:
        raise ParserError("'('", lex.line_no, value)
    method.response_type = _parse_type_list(lex, "return")

    token, value = lex.get_token_ignore_whitespace()
    if value == ";":
        return None
    if token is not Token.OPEN_BRACE:
        raise ParserError(
            "'{' after declaration of method signature", lex.line_no, value
        )

    bindings = parse_http_bindings(lex)
    if bindings is None:
        return None
    method.http_bindings = bindings

    token, value = lex.get_token_ignore_comment_and_whitespace()
    if token is not Token.SYMBOL or value != ";":
        raise ParserError(
            "';' after declaration of http options", lex.line_no, value + str(token)
        )

    token, value = lex.get_token_ignore_comment_and_whitespace()
    if token is not Token.CLOSE_BRACE:
        raise ParserError(
            "'}' after declaration of http options marking end of rpc declarations",
            lex.line_no,
            value + str(token),
        )
    return method


def parse_http_bindings(lex: SvcLexer) -> list[HTTPBinding] | None:
    """Parse an 'option' or 'additional_bindings' block.

    Returns None when the rpc body ends without options. Raises
    OptionalParseError when the body holds something other than options.
    """
    bindings: list[HTTPBinding] = []
    binding = HTTPBinding()

    token, value = lex.get_token_ignore_whitespace()
    while True:
        if token is Token.COMMENT:
            binding.description = value
            token, value = lex.get_token_ignore_whitespace()
        elif token in (Token.EOF, Token.ILLEGAL):
            raise ParserError("non-illegal input", lex.line_no, str(token))
        else:
            break

    if value == "option":
        _fast_forward_till(lex, "{")
        binding.fields, binding.custom_http_pattern = parse_binding_fields(lex)
        good_position = lex.position

        token, value = lex.get_token_ignore_whitespace()
        while True:
            if token is Token.CLOSE_BRACE:
                bindings.append(binding)
                return bindings
            if token is Token.COMMENT:
                good_position = lex.position
            elif value == "additional_bindings":
                lex.unget_to_position(good_position)
                bindings.extend(parse_http_bindings(lex) or [])
                good_position = lex.position
            elif token in (Token.EOF, Token.ILLEGAL):
                raise ParserError(
                    "legal token while parsing HttpBindings",
                    lex.line_no,
                    f"({value}) of type {token}",
                )
            else:
                raise ParserError(
                    "close brace or comment while parsing http bindings",
                    lex.line_no,
                    str(token) + value,
                )
            token, value = lex.get_token_ignore_whitespace()

    if value == "additional_bindings":
        _fast_forward_till(lex, "{")
        binding.fields, binding.custom_http_pattern = parse_binding_fields(lex)
        _fast_forward_till(lex, "}")
        bindings.append(binding)
        return bindings

    if value == "}":
        return None

    raise OptionalParseError(
        "'}', 'option' or 'additional_bindings' while parsing options",
        lex.line_no,
        value,
    )


def parse_binding_fields(lex: SvcLexer) -> tuple[list[Field], list[Field]]:
    """Parse the fields of a binding; return (fields, custom pattern fields)."""
    fields: list[Field] = []
    custom: list[Field] = []
    current = Field()
    while True:
        token, value = lex.get_token_ignore_whitespace()
        while True:
            if token is Token.COMMENT:
                current.description = value
                token, value = lex.get_token_ignore_whitespace()
            elif token in (Token.EOF, Token.ILLEGAL):
                raise ParserError(
                    "legal token while parsing binding fields", lex.line_no, value
                )
            else:
                break

        if (token is Token.CLOSE_BRACE and value == "}") or value == "additional_bindings":
            lex.unget_token()
            break

        if value == "custom":
            _fast_forward_till(lex, "{")
            custom, _ = parse_binding_fields(lex)
            _fast_forward_till(lex, "}")
            continue

        current.kind = value
        current.name = value

        token, value = lex.get_token_ignore_whitespace()
        if token is not Token.SYMBOL or value != ":":
            raise ParserError("symbol ':'", lex.line_no, value)

        token, value = lex.get_token_ignore_whitespace()
        if token is not Token.STRING_LITERAL:
            raise ParserError("string literal", lex.line_no, value)

        current.value = _unquote(value, lex.line_no)
        fields.append(current)
        current = Field()

    return fields, custom