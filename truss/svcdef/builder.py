"""Building a service definition from generated Go code and proto files."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Optional, Union

from truss.svcdef.consolidate import consolidate_http
from truss.svcdef.goparse import (
    ArrayType,
    FieldDecl,
    FuncType,
    GoFile,
    GoSyntaxError,
    Ident,
    InterfaceType,
    MapType,
    SelectorExpr,
    StarExpr,
    StructType,
    TypeSpec,
    parse_go_file,
)
from truss.svcdef.model import (
    Enum,
    Field,
    FieldType,
    LocationError,
    Map,
    Message,
    Service,
    ServiceMethod,
    Svcdef,
)
from truss.svcparse.scanner import Source, read_source

log = logging.getLogger(__name__)

TypeMap = dict[str, Union[Message, Enum]]
Oneofs = dict[str, list[Field]]

_TAG_PAIR = re.compile(r' *([^\x00-\x20:"\x7f]+):"((?:[^"\\]|\\.)*)"')
_TAG_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def new(
    go_files: Mapping[str, Source], proto_files: Optional[Mapping[str, Source]] = None
) -> Svcdef:
    """Create a Svcdef from generated Go files and the proto files behind them."""
    sd = Svcdef()
    oneofs: Oneofs = {}
    for path, source in go_files.items():
        try:
            gofile = parse_go_file(read_source(source))
        except GoSyntaxError as err:
            raise ValueError(
                f'cannot parse go file "{path}" to create Svcdef: {err}'
            ) from err
        sd.pkg_name = gofile.package

        oneof_ifaces: set[str] = set()
        for spec in gofile.type_specs:
            if not isinstance(spec.type, InterfaceType):
                continue
            if spec.name.endswith("Server"):
                sd.service = new_service(spec, path)
            elif spec.name.startswith("is"):
                oneof_ifaces.add(spec.name)
            elif not spec.name.endswith("Client"):
                log.warning("Unexpected interface %s found; skipping", spec.name)

        wrappers = _oneof_wrappers(gofile, oneof_ifaces)
        for spec in gofile.type_specs:
            if not (isinstance(spec.type, StructType) and spec.is_exported()):
                continue
            iface = wrappers.get(spec.name)
            if iface is None:
                continue
            wrapper = _build_message(spec, oneofs)
            if not wrapper.fields:
                continue
            first = wrapper.fields[0]
            first.type.message = Message(name=wrapper.name)
            oneofs.setdefault(iface, []).append(first)

        for spec in gofile.type_specs:
            if isinstance(spec.type, Ident):
                if spec.type.name == "int32":
                    sd.enums.append(new_enum(spec))
            elif isinstance(spec.type, StructType):
                if spec.is_exported() and spec.name not in wrappers:
                    sd.messages.append(_build_message(spec, oneofs))

    resolve_types(sd)
    consolidate_http(sd, proto_files)
    return sd


def _oneof_wrappers(gofile: GoFile, ifaces: set[str]) -> dict[str, str]:
    """Map each oneof wrapper struct name to the interface it implements."""
    wrappers: dict[str, str] = {}
    for decl in gofile.func_decls:
        if decl.name not in ifaces or not decl.recv:
            continue
        recv = decl.recv[0].type
        if isinstance(recv, StarExpr) and isinstance(recv.x, Ident):
            wrappers[recv.x.name] = decl.name
    return wrappers


def new_enum(spec: TypeSpec) -> Enum:
    """Return the Enum named by a type spec."""
    return Enum(name=spec.name)


def new_message(spec: TypeSpec) -> Message:
    """Return a Message for a type spec whose type is a struct."""
    return _build_message(spec, {})


def _build_message(spec: TypeSpec, oneofs: Oneofs) -> Message:
    if not isinstance(spec.type, StructType):
        raise ValueError(f"type {spec.name!r} is not a struct")
    message = Message(name=spec.name)
    for decl in spec.type.fields:
        if not decl.names or decl.names[0].startswith("XXX_"):
            continue
        message.fields.append(_build_field(decl, oneofs))
    return message


def new_map(expr: MapType) -> Map:
    """Return a Map for a map type as generated for protobuf map fields.

    The key is always a plain identifier; the value is an identifier, possibly
    behind a pointer.
    """
    if not isinstance(expr, MapType):
        raise ValueError("expected a map type")
    if not isinstance(expr.key, Ident):
        raise ValueError("map key type must be an identifier")
    mp = Map(key_type=FieldType(name=expr.key.name), value_type=FieldType())
    value = expr.value
    while isinstance(value, StarExpr):
        mp.value_type.star_expr = True
        value = value.x
    if isinstance(value, Ident):
        mp.value_type.name = value.name
    return mp


def new_service(spec: TypeSpec, path: str = "") -> Service:
    """Return a Service for a '{NAME}Server' interface type spec."""
    if not isinstance(spec.type, InterfaceType):
        raise ValueError(f"type {spec.name!r} is not an interface")
    service = Service(name=spec.name.removesuffix("Server"))
    for method in spec.type.methods:
        if method.names:
            service.methods.append(new_service_method(method, path))
    return service


def new_service_method(method: FieldDecl, path: str = "") -> ServiceMethod:
    """Return a ServiceMethod for one method of a service interface.

    The second parameter is the request type and the first result the
    response type; both must be pointers.
    """
    position = str(method.line)
    if not isinstance(method.type, FuncType):
        raise LocationError(
            "provided field type is not a function type; cannot proceed", path, position
        )
    params, results = method.type.params, method.type.results
    if len(params) < 2 or not results:
        raise LocationError(
            "method does not take a request and return a response", path, position
        )
    result = ServiceMethod(name=method.names[0] if method.names else "")
    result.request_type = _method_type(params[1], path)
    result.response_type = _method_type(results[0], path)
    return result


def _method_type(decl: FieldDecl, path: str) -> FieldType:
    typ = decl.type
    if not isinstance(typ, StarExpr):
        raise LocationError(
            "cannot create FieldType, type is not a pointer", path, str(decl.line)
        )
    if isinstance(typ.x, SelectorExpr):
        name = typ.x.sel
    elif isinstance(typ.x, Ident):
        name = typ.x.name
    else:
        raise LocationError(
            "cannot create FieldType, pointer target is not an identifier "
            "or a selector",
            path,
            str(typ.line),
        )
    return FieldType(name=name, star_expr=True)


def _unquote_tag_value(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _TAG_ESCAPES.get(m.group(1), m.group(1)), value)


def _struct_tag_get(tag: str, key: str) -> str:
    pos = 0
    while True:
        match = _TAG_PAIR.match(tag, pos)
        if match is None:
            return ""
        if match.group(1) == key:
            return _unquote_tag_value(match.group(2))
        pos = match.end()


def new_field(field: FieldDecl) -> Field:
    """Return a Field for a struct field of a generated message."""
    return _build_field(field, {})


def _build_field(decl: FieldDecl, oneofs: Oneofs) -> Field:
    if not decl.names:
        raise ValueError("cannot create a field without a name")
    result = Field(name=decl.names[0], type=FieldType())
    ftype = result.type

    if decl.tag is not None:
        parts = _struct_tag_get(decl.tag[1:-1], "protobuf").split(",")
        if len(parts) >= 4:
            for part in parts[3:5]:
                if "=" in part:
                    result.pb_field_name = part.split("=", 1)[1]
                    break

    expr = decl.type
    while True:
        if isinstance(expr, Ident):
            ftype.name += expr.name
            if expr.name in oneofs:
                ftype.oneof = oneofs[expr.name]
            return result
        if isinstance(expr, StarExpr):
            ftype.star_expr = True
            expr = expr.x
        elif isinstance(expr, ArrayType):
            # Nested slices such as repeated bytes ([][]byte)
            if ftype.array_type:
                ftype.name = "[]" + ftype.name
            ftype.array_type = True
            expr = expr.elt
        elif isinstance(expr, MapType):
            ftype.map = new_map(expr)
            return result
        else:
            return result


def new_type_map(sd: Svcdef) -> TypeMap:
    """Map the name of every message and enum of sd to its definition."""
    tmap: TypeMap = {m.name: m for m in sd.messages}
    tmap.update((e.name, e) for e in sd.enums)
    return tmap


def resolve_types(sd: Svcdef) -> None:
    """Link field, request and response types to their messages and enums."""
    tmap = new_type_map(sd)
    for message in sd.messages:
        for field in message.fields:
            _set_type(field.type, tmap)
    if sd.service is not None:
        for method in sd.service.methods:
            if method.request_type is not None:
                _set_type(method.request_type, tmap)
            if method.response_type is not None:
                _set_type(method.response_type, tmap)


def _set_type(ftype: FieldType, tmap: TypeMap) -> None:
    if ftype.map is not None and ftype.map.value_type.star_expr:
        ftype = ftype.map.value_type
    entry = tmap.get(ftype.name)
    if isinstance(entry, Enum):
        ftype.enum = entry
    elif isinstance(entry, Message):
        ftype.message = entry