"""A parser for the declarations of generated Go source files.

It understands package clauses, type declarations and function signatures,
which is all that is needed to describe messages and services. Function
bodies, constants, variables and imports are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union


class GoSyntaxError(ValueError):
    """Raised when Go source cannot be parsed."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass
class Ident:
    name: str
    line: int = field(default=0, compare=False)


@dataclass
class SelectorExpr:
    x: str
    sel: str
    line: int = field(default=0, compare=False)


@dataclass
class StarExpr:
    x: "Expr"
    line: int = field(default=0, compare=False)


@dataclass
class ArrayType:
    elt: "Expr"
    length: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class MapType:
    key: "Expr"
    value: "Expr"
    line: int = field(default=0, compare=False)


@dataclass
class _Ellipsis:
    elt: "Expr"
    line: int = field(default=0, compare=False)


@dataclass
class _ChanType:
    value: "Expr"
    direction: str = "both"
    line: int = field(default=0, compare=False)


@dataclass
class FieldDecl:
    """A struct field, interface method or function parameter."""

    names: list[str]
    type: "Expr"
    tag: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class FuncType:
    params: list[FieldDecl]
    results: list[FieldDecl]
    line: int = field(default=0, compare=False)


@dataclass
class StructType:
    fields: list[FieldDecl]
    line: int = field(default=0, compare=False)


@dataclass
class InterfaceType:
    methods: list[FieldDecl]
    line: int = field(default=0, compare=False)


Expr = Union[
    Ident, SelectorExpr, StarExpr, ArrayType, MapType, FuncType,
    StructType, InterfaceType, _Ellipsis, _ChanType,
]


@dataclass
class TypeSpec:
    name: str
    type: Expr
    line: int = field(default=0, compare=False)

    def is_exported(self) -> bool:
        """True if the type name starts with an upper-case letter."""
        return bool(self.name) and self.name[0].isupper()


@dataclass
class FuncDecl:
    name: str
    recv: Optional[list[FieldDecl]]
    type: FuncType
    line: int = field(default=0, compare=False)


@dataclass
class GoFile:
    package: str
    type_specs: list[TypeSpec] = field(default_factory=list)
    func_decls: list[FuncDecl] = field(default_factory=list)


_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
}
_SEMI_KEYWORDS = {"break", "continue", "fallthrough", "return"}
_TYPE_KEYWORDS = {"map", "chan", "func", "struct", "interface"}

_TOKEN_RE = re.compile(
    r"""
     (?P<ws>[ \t\r\f\v]+)
    |(?P<nl>\n)
    |(?P<lcomment>//[^\n]*)
    |(?P<bcomment>/\*.*?\*/)
    |(?P<ident>[^\W\d]\w*)
    |(?P<number>0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+
        |(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?i?)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<raw>`[^`]*`)
    |(?P<char>'(?:[^'\\\n]|\\[^\n]+?)')
    |(?P<op>\.\.\.|<<=|>>=|&\^=|&&|\|\||<-|\+\+|--|==|!=|<=|>=|:=|<<|>>|&\^
        |[-+*/%&|^]=|[-+*/%&|^<>=!(){}\[\],;.:~])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class _Tok:
    kind: str
    value: str
    line: int


def _needs_semicolon(tokens: list[_Tok]) -> bool:
    if not tokens:
        return False
    last = tokens[-1]
    if last.kind == "ident":
        return last.value not in _KEYWORDS or last.value in _SEMI_KEYWORDS
    if last.kind in ("number", "string", "raw", "char"):
        return True
    return last.kind == "op" and last.value in (")", "]", "}", "++", "--")


def _tokenize(source: str) -> list[_Tok]:
    tokens: list[_Tok] = []
    line = 1
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise GoSyntaxError(f"unexpected character {source[pos]!r}", line)
        kind = match.lastgroup or ""
        text = match.group()
        pos = match.end()
        if kind == "nl" or (kind == "bcomment" and "\n" in text):
            if _needs_semicolon(tokens):
                tokens.append(_Tok("op", ";", line))
        elif kind not in ("ws", "lcomment", "bcomment"):
            tokens.append(_Tok(kind, text, line))
        line += text.count("\n")
    if _needs_semicolon(tokens):
        tokens.append(_Tok("op", ";", line))
    tokens.append(_Tok("eof", "", line))
    return tokens


class _Parser:
    def __init__(self, tokens: list[_Tok]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self, ahead: int = 0) -> _Tok:
        return self.tokens[min(self.pos + ahead, len(self.tokens) - 1)]

    def next(self) -> _Tok:
        tok = self.peek()
        if tok.kind != "eof":
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.peek()
        return tok.kind in ("op", "ident") and tok.value == value

    def fail(self, expected: str) -> GoSyntaxError:
        tok = self.peek()
        return GoSyntaxError(f"expected {expected}, found {tok.value or 'EOF'!r}", tok.line)

    def expect(self, value: str) -> _Tok:
        if not self.at(value):
            raise self.fail(repr(value))
        return self.next()

    def ident(self) -> _Tok:
        tok = self.peek()
        if tok.kind != "ident" or tok.value in _KEYWORDS:
            raise self.fail("identifier")
        return self.next()

    def skip_semicolons(self) -> None:
        while self.at(";"):
            self.next()

    def parse_file(self) -> GoFile:
        self.skip_semicolons()
        self.expect("package")
        gofile = GoFile(package=self.ident().value)
        while True:
            self.skip_semicolons()
            tok = self.peek()
            if tok.kind == "eof":
                return gofile
            if self.at("type"):
                gofile.type_specs.extend(self.parse_type_decl())
            elif self.at("func"):
                gofile.func_decls.append(self.parse_func_decl())
            elif tok.value in ("import", "const", "var") and tok.kind == "ident":
                self.skip_decl()
            else:
                raise self.fail("declaration")

    def skip_decl(self) -> None:
        depth = 0
        while True:
            tok = self.peek()
            if tok.kind == "eof":
                return
            if tok.kind == "op":
                if tok.value in "([{":
                    depth += 1
                elif tok.value in ")]}":
                    depth -= 1
                elif tok.value == ";" and depth == 0:
                    self.next()
                    return
            self.next()

    def skip_block(self) -> None:
        depth = 0
        while True:
            tok = self.next()
            if tok.kind == "eof":
                raise GoSyntaxError("unterminated block", tok.line)
            if tok.kind == "op" and tok.value == "{":
                depth += 1
            elif tok.kind == "op" and tok.value == "}":
                depth -= 1
                if depth == 0:
                    return

    def parse_type_decl(self) -> list[TypeSpec]:
        self.expect("type")
        if not self.at("("):
            return [self.parse_type_spec()]
        self.next()
        specs = []
        while True:
            self.skip_semicolons()
            if self.at(")"):
                break
            specs.append(self.parse_type_spec())
        self.expect(")")
        return specs

    def parse_type_spec(self) -> TypeSpec:
        name = self.ident()
        if self.at("="):
            self.next()
        return TypeSpec(name.value, self.parse_type(), name.line)

    def parse_func_decl(self) -> FuncDecl:
        line = self.expect("func").line
        recv = self.parse_params() if self.at("(") else None
        name = self.ident().value
        signature = self.parse_signature(line)
        if self.at("{"):
            self.skip_block()
        return FuncDecl(name, recv, signature, line)

    def starts_type(self) -> bool:
        tok = self.peek()
        if tok.kind == "ident":
            return tok.value not in _KEYWORDS or tok.value in _TYPE_KEYWORDS
        return tok.kind == "op" and tok.value in ("*", "[", "<-", "(")

    def collect_until(self, closer: str) -> str:
        parts = []
        depth = 0
        while True:
            tok = self.peek()
            if tok.kind == "eof":
                raise self.fail(repr(closer))
            if tok.kind == "op" and tok.value in "([{":
                depth += 1
            elif tok.kind == "op" and tok.value in ")]}":
                if depth == 0 and tok.value == closer:
                    return "".join(parts)
                depth -= 1
            parts.append(self.next().value)

    def parse_type(self) -> Expr:
        tok = self.peek()
        line = tok.line
        if tok.kind == "op":
            if tok.value == "*":
                self.next()
                return StarExpr(self.parse_type(), line)
            if tok.value == "[":
                self.next()
                length = None if self.at("]") else self.collect_until("]")
                self.expect("]")
                return ArrayType(self.parse_type(), length, line)
            if tok.value == "(":
                self.next()
                inner = self.parse_type()
                self.expect(")")
                return inner
            if tok.value == "...":
                self.next()
                return _Ellipsis(self.parse_type(), line)
            if tok.value == "<-":
                self.next()
                self.expect("chan")
                return _ChanType(self.parse_type(), "recv", line)
        elif tok.kind == "ident":
            if tok.value == "map":
                self.next()
                self.expect("[")
                key = self.parse_type()
                self.expect("]")
                return MapType(key, self.parse_type(), line)
            if tok.value == "chan":
                self.next()
                direction = "both"
                if self.at("<-"):
                    self.next()
                    direction = "send"
                return _ChanType(self.parse_type(), direction, line)
            if tok.value == "func":
                self.next()
                return self.parse_signature(line)
            if tok.value == "struct":
                return self.parse_struct()
            if tok.value == "interface":
                return self.parse_interface()
            if tok.value not in _KEYWORDS:
                self.next()
                if self.at("."):
                    self.next()
                    return SelectorExpr(tok.value, self.ident().value, line)
                return Ident(tok.value, line)
        raise self.fail("type")

    def parse_signature(self, line: int) -> FuncType:
        params = self.parse_params()
        if self.at("("):
            results = self.parse_params()
        elif self.starts_type():
            result_line = self.peek().line
            results = [FieldDecl([], self.parse_type(), None, result_line)]
        else:
            results = []
        return FuncType(params, results, line)

    def parse_params(self) -> list[FieldDecl]:
        self.expect("(")
        entries: list[tuple[Optional[str], Expr, int]] = []
        while not self.at(")"):
            tok, after = self.peek(), self.peek(1)
            named = (
                tok.kind == "ident"
                and tok.value not in _KEYWORDS
                and not (after.kind == "op" and after.value in (".", ",", ")"))
            )
            if named:
                self.next()
                entries.append((tok.value, self.parse_type(), tok.line))
            else:
                entries.append((None, self.parse_type(), tok.line))
            if not self.at(","):
                break
            self.next()
        self.expect(")")

        if all(name is None for name, _, _ in entries):
            return [FieldDecl([], typ, None, line) for _, typ, line in entries]
        decls = []
        pending: list[str] = []
        for name, typ, line in entries:
            if name is None:
                if not isinstance(typ, Ident):
                    raise GoSyntaxError("mixed named and unnamed parameters", line)
                pending.append(typ.name)
            else:
                decls.append(FieldDecl([*pending, name], typ, None, line))
                pending = []
        if pending:
            raise GoSyntaxError("mixed named and unnamed parameters", entries[-1][2])
        return decls

    def parse_struct(self) -> StructType:
        line = self.expect("struct").line
        self.expect("{")
        fields = []
        while True:
            self.skip_semicolons()
            if self.at("}"):
                break
            fields.append(self.parse_struct_field())
            if not self.at("}"):
                self.expect(";")
        self.expect("}")
        return StructType(fields, line)

    def parse_struct_field(self) -> FieldDecl:
        tok, after = self.peek(), self.peek(1)
        named = (
            tok.kind == "ident"
            and tok.value not in _KEYWORDS
            and not (after.kind == "op" and after.value in (";", "}", "."))
            and after.kind not in ("string", "raw")
        )
        names: list[str] = []
        if named:
            names.append(self.next().value)
            while self.at(","):
                self.next()
                names.append(self.ident().value)
        typ = self.parse_type()
        tag = self.next().value if self.peek().kind in ("string", "raw") else None
        return FieldDecl(names, typ, tag, tok.line)

    def parse_interface(self) -> InterfaceType:
        line = self.expect("interface").line
        self.expect("{")
        methods = []
        while True:
            self.skip_semicolons()
            if self.at("}"):
                break
            tok = self.peek()
            if tok.kind == "ident" and self.peek(1).value == "(" and self.peek(1).kind == "op":
                self.next()
                methods.append(
                    FieldDecl([tok.value], self.parse_signature(tok.line), None, tok.line)
                )
            else:
                methods.append(FieldDecl([], self.parse_type(), None, tok.line))
            if not self.at("}"):
                self.expect(";")
        self.expect("}")
        return InterfaceType(methods, line)


def parse_go_file(source: str) -> GoFile:
    """Parse Go source text into its package name, type specs and functions."""
    return _Parser(_tokenize(source)).parse_file()