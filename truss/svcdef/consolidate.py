"""Attaching HTTP bindings from proto annotations to a service definition."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Optional

from truss.naming import camel_case
from truss.svcdef.model import Field, HTTPBinding, HTTPParameter, Service, ServiceMethod, Svcdef
from truss.svcparse import parser as svcparse
from truss.svcparse.lexer import SvcLexer
from truss.svcparse.scanner import Source

log = logging.getLogger(__name__)

_STANDARD_VERBS = ("get", "put", "post", "delete", "patch")
_PATH_PARAM = re.compile(r"\{(.*?)\}")
_BRACES = re.compile(r"[{}]")


def consolidate_http(sd: Svcdef, proto_files: Optional[Mapping[str, Source]]) -> None:
    """Add HTTP bindings and their parameters to every method of sd.

    Each binding receives one parameter per field of the method's request
    message, saying whether the field is found in the path, body or query.
    """
    for source in (proto_files or {}).values():
        lex = SvcLexer(source)
        try:
            httpsvc = svcparse.parse_service(lex)
        except svcparse.OptionalParseError:
            log.warning(
                "Parser found rpc method which lacks HTTP annotations; this is "
                "allowed, but will result in HTTP transport not being generated."
            )
            return
        except EOFError:
            continue
        except ValueError as err:
            raise ValueError(
                f"error while parsing http options for the service definition: {err}"
            ) from err
        try:
            assemble_http_params(sd.service, httpsvc)
        except ValueError as err:
            raise ValueError(f"while assembling HTTP parameters: {err}") from err


def _create_binding(
    meth: ServiceMethod, parsed: svcparse.HTTPBinding
) -> HTTPBinding:
    message = meth.request_type.message if meth.request_type is not None else None
    if message is None:
        raise ValueError(
            f"request type of service method {meth.name!r} is not a known message"
        )
    verb, path = get_verb(parsed)
    params = [HTTPParameter(field, param_location(field, parsed)) for field in message.fields]
    return HTTPBinding(verb=verb, path=path, params=params)


def assemble_http_params(svc: Optional[Service], httpsvc: svcparse.Service) -> None:
    """Create the HTTP bindings of svc's methods from the parsed service."""
    methods = svc.methods if svc is not None else []
    for parsed_method in httpsvc.methods:
        wanted = camel_case(parsed_method.name)
        meth = next((m for m in methods if m.name == wanted), None)
        if meth is None:
            raise ValueError(f'cannot find service method named "{parsed_method.name}"')
        for parsed in parsed_method.http_bindings:
            meth.bindings.append(_create_binding(meth, parsed))


def get_verb(binding: svcparse.HTTPBinding) -> tuple[str, str]:
    """Return (verb, path) of a binding, or ("", "") if it has no verb.

    A custom pattern takes precedence over the standard verb fields.
    """
    if binding.custom_http_pattern:
        verb = path = ""
        for field in binding.custom_http_pattern:
            if field.kind == "kind":
                verb = field.value
            elif field.kind == "path":
                path = field.value
        return verb, path
    for field in binding.fields:
        if field.kind in _STANDARD_VERBS:
            return field.kind, field.value
    return "", ""


def param_location(field: Field, binding: svcparse.HTTPBinding) -> str:
    """Return "path", "body" or "query" for field under binding's rules."""
    for param in get_path_params(binding):
        if camel_case(param.split(".")[0]) == field.name:
            return "path"
    for opt in binding.fields:
        if opt.kind != "body":
            continue
        if opt.value in ("*", field.name):
            return "body"
        if camel_case(opt.value.split(".")[0]) == field.name:
            return "body"
    return "query"


def get_path_params(binding: svcparse.HTTPBinding) -> list[str]:
    """Return the names of all '{...}' parameters in the binding's path."""
    _, path = get_verb(binding)
    return [_BRACES.sub("", match.group(0)) for match in _PATH_PARAM.finditer(path)]