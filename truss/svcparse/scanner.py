"""Character-level scanning of protobuf service definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Union

Source = Union[str, bytes, IO[str], IO[bytes]]


def read_source(source: Source) -> str:
    """Return the full text of a string, bytes object or readable stream."""
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        return source.decode("utf-8", errors="replace")
    return source


class RuneReader:
    """Reads characters one at a time, tracking the current line number."""

    def __init__(self, contents: str) -> None:
        self.contents = contents
        self.pos = 0
        self.line_no = 1

    def read_rune(self) -> str:
        """Return the next character; raise EOFError at the end of input."""
        if self.pos >= len(self.contents):
            raise EOFError("end of input")
        ch = self.contents[self.pos]
        if ch == "\n":
            self.line_no += 1
        self.pos += 1
        return ch

    def unread_rune(self) -> None:
        """Step back one character."""
        if self.pos == 0:
            raise ValueError("cannot unread at start of input")
        self.pos -= 1
        if self.contents[self.pos] == "\n":
            self.line_no -= 1


def is_ident(ch: str) -> bool:
    """True for letters, decimal digits and underscore."""
    return ch.isalpha() or ch.isdecimal() or ch == "_"


@dataclass
class ScanState:
    """Where the scanner is relative to a service definition."""

    in_definition: bool = False
    in_body: bool = False
    brace_level: int = 0


@dataclass(frozen=True)
class ScanUnit:
    """A group of characters together with the scanner state after it."""

    in_rpc_definition: bool
    in_rpc_body: bool
    brace_level: int
    line_no: int
    value: str

    def __str__(self) -> str:
        clean = self.value.replace("\n", "\\n").replace("\t", "\\t").replace('"', '\\"')
        return (
            f'{{"value": "{clean}", '
            f'"InRpcDefinition": {str(self.in_rpc_definition).lower()}, '
            f'"InRpcBody": {str(self.in_rpc_body).lower()}, '
            f'"BraceLevel": {self.brace_level}, "LineNo": {self.line_no}}},'
        )


def build_scan_unit(reader: RuneReader, state: ScanState) -> ScanUnit:
    """Read the next unit from reader, updating state.

    Raises EOFError if the input ends before a complete unit is read.
    """
    chars: list[str] = []

    def finish() -> ScanUnit:
        return ScanUnit(
            state.in_definition,
            state.in_body,
            state.brace_level,
            reader.line_no,
            "".join(chars),
        )

    ch = reader.read_rune()
    chars.append(ch)

    if ch == "/":
        ch = reader.read_rune()
        if ch == "/":
            chars.append(ch)
            while True:
                ch = reader.read_rune()
                chars.append(ch)
                if ch == "\n":
                    return finish()
        elif ch == "*":
            chars.append(ch)
            while True:
                ch = reader.read_rune()
                if ch == "*":
                    chars.append(ch)
                    if reader.read_rune() == "/":
                        chars.append("/")
                        return finish()
                else:
                    chars.append(ch)
        else:
            reader.unread_rune()
            return finish()
    elif ch == '"':
        while True:
            ch = reader.read_rune()
            chars.append(ch)
            if ch == "\\":
                chars.append(reader.read_rune())
            elif ch == '"':
                return finish()
    elif ch.isspace():
        while True:
            try:
                ch = reader.read_rune()
            except EOFError:
                return finish()
            if not ch.isspace():
                reader.unread_rune()
                break
            chars.append(ch)
    elif is_ident(ch):
        while True:
            try:
                ch = reader.read_rune()
            except EOFError:
                return finish()
            if not is_ident(ch):
                reader.unread_rune()
                if "".join(chars) == "service":
                    state.in_definition = True
                break
            chars.append(ch)
    elif ch == "{":
        state.brace_level += 1
        if state.in_definition:
            state.in_definition = False
            state.in_body = True
    elif ch == "}":
        state.brace_level -= 1
        if state.in_body and state.brace_level == 0:
            state.in_body = False

    return finish()


class SvcScanner:
    """Splits input into units and walks them, tracking service-definition state."""

    def __init__(self, source: Source) -> None:
        reader = RuneReader(read_source(source))
        state = ScanState()
        self.units: list[ScanUnit] = []
        while True:
            try:
                self.units.append(build_scan_unit(reader, state))
            except EOFError:
                break
        self.unit_pos = 0
        self._reset_state()

    def _reset_state(self) -> None:
        self.in_definition = False
        self.in_body = False
        self.brace_level = 0
        self.line_no = 0

    def _take_state(self, unit: ScanUnit) -> None:
        self.in_definition = unit.in_rpc_definition
        self.in_body = unit.in_rpc_body
        self.brace_level = unit.brace_level
        self.line_no = unit.line_no

    def fast_forward(self) -> None:
        """Move to the next 'service' unit unless already inside a definition.

        Raises EOFError if no further service definition exists.
        """
        if self.in_body or self.in_definition:
            return
        while self.read_unit() != "service":
            pass
        self.unit_pos -= 1

    def read_unit(self) -> str:
        """Return the next unit's text; raise EOFError at the end of input."""
        if self.unit_pos >= len(self.units):
            raise EOFError("end of input")
        unit = self.units[self.unit_pos]
        self._take_state(unit)
        self.unit_pos += 1
        return unit.value

    def unread_unit(self) -> None:
        """Step back one unit, restoring the state of the unit before it."""
        if self.unit_pos == 0:
            raise ValueError("cannot unread when scanner is at start of input")
        self.unit_pos -= 1
        if self.unit_pos == 0:
            self._reset_state()
        else:
            self._take_state(self.units[self.unit_pos - 1])

    def unread_to_position(self, position: int) -> None:
        """Unread units until the current position equals position."""
        while self.unit_pos != position:
            self.unread_unit()