"""Data types describing a gRPC service distilled from generated Go code."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class Enum:
    name: str


@dataclass
class FieldType:
    """The type of a message field or of a method's request or response."""

    name: str = ""
    enum: Optional[Enum] = field(default=None, compare=False, repr=False)
    oneof: Optional[list["Field"]] = field(default=None, compare=False, repr=False)
    message: Optional["Message"] = field(default=None, compare=False, repr=False)
    map: Optional["Map"] = None
    star_expr: bool = False
    array_type: bool = False


@dataclass
class Field:
    name: str = ""
    pb_field_name: str = ""
    type: FieldType = field(default_factory=FieldType)


@dataclass
class Message:
    name: str
    fields: list[Field] = field(default_factory=list)


@dataclass
class Map:
    key_type: FieldType = field(default_factory=FieldType)
    value_type: FieldType = field(default_factory=FieldType)


@dataclass
class HTTPParameter:
    """Where one request field is found for an HTTP binding."""

    field: Field
    location: str


@dataclass
class HTTPBinding:
    verb: str = ""
    path: str = ""
    params: list[HTTPParameter] = field(default_factory=list)


@dataclass
class ServiceMethod:
    name: str
    request_type: Optional[FieldType] = None
    response_type: Optional[FieldType] = None
    bindings: list[HTTPBinding] = field(default_factory=list)


@dataclass
class Service:
    name: str
    methods: list[ServiceMethod] = field(default_factory=list)


@dataclass
class Svcdef:
    """Top-level definition of a service and its types."""

    pkg_name: str = ""
    messages: list[Message] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    service: Optional[Service] = None


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class LocationError(ValueError):
    """An error carrying the file and position where it was found."""

    def __init__(self, err: str, path: str, position: str) -> None:
        super().__init__(f"{err} in file {_quote(path)} at line {position}")
        self.err = err
        self.path = path
        self.position = position

    @property
    def location(self) -> str:
        return self.position