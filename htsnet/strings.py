"""String helpers: escape decoding, shell-like argument splitting and %-templates."""

from __future__ import annotations

from collections.abc import Mapping

__all__ = ["unescape", "argsplit", "format_string"]

_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def unescape(text: str) -> str:
    """Decode backslash escapes.

    ``\\b``, ``\\f``, ``\\n``, ``\\r`` and ``\\t`` become their control
    characters; any other escaped character stands for itself.  A lone
    trailing backslash is dropped.
    """
    out: list[str] = []
    chars = iter(text)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        escaped = next(chars, None)
        if escaped is None:
            break
        out.append(_ESCAPES.get(escaped, escaped))
    return "".join(out)


def argsplit(text: str) -> list[str]:
    """Split a command line into arguments.

    Arguments are separated by spaces.  Double quotes group an argument
    containing spaces, and a backslash protects the character after it.
    Each argument is passed through :func:`unescape`.
    """
    args: list[str] = []
    quote = False
    inarg = False
    start: int | None = None
    stop: int | None = None
    length = len(text)
    pos = 0

    while pos < length:
        if start is not None and stop is not None:
            args.append(unescape(text[start:stop]))
            start = stop = None

        ch = text[pos]
        if inarg:
            if ch == "\\":
                pos += 1
            elif ch == '"':
                if quote:
                    inarg = False
                    quote = False
                    stop = pos
            elif ch == " " and not quote:
                inarg = False
                stop = pos
        elif ch != " ":
            if ch == '"':
                quote = True
                pos += 1
            inarg = True
            start = pos
            stop = None
        pos += 1

    if start is not None:
        if stop is None:
            stop = length
        args.append(unescape(text[start:stop]))

    return args


def format_string(text: str, mapping: Mapping[str, str]) -> str:
    """Expand ``%c`` sequences using ``mapping``.

    Each ``%`` followed by a character that is a key of ``mapping`` (other
    than ``%`` itself) is replaced by the mapped value.  Every other
    character, including a ``%`` that is not followed by a known key, is
    copied unchanged.
    """
    out: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch == "%" and pos + 1 < length:
            key = text[pos + 1]
            value = mapping.get(key) if key != "%" else None
            if value is not None:
                out.append(value)
                pos += 2
                continue
        out.append(ch)
        pos += 1
    return "".join(out)