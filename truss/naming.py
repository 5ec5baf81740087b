"""Conversion of protobuf identifiers to Go-style CamelCase names."""

from __future__ import annotations


def _is_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def camel_case(name: str) -> str:
    """Return name in the CamelCase form used for generated Go identifiers.

    Underscores followed by a lower-case letter are dropped and that letter is
    upper-cased. A leading underscore becomes 'X'.
    """
    if not name:
        return ""
    out: list[str] = []
    i = 0
    n = len(name)
    if name[0] == "_":
        out.append("X")
        i = 1
    while i < n:
        ch = name[i]
        if ch == "_" and i + 1 < n and _is_lower(name[i + 1]):
            i += 1
            continue
        if _is_digit(ch):
            out.append(ch)
            i += 1
            continue
        if _is_lower(ch):
            ch = ch.upper()
        out.append(ch)
        while i + 1 < n and _is_lower(name[i + 1]):
            i += 1
            out.append(name[i])
        i += 1
    return "".join(out)