"""
Purpose:
    - Parse ``.properties`` files (line-oriented key/value configuration)

Syntax handled:
    - ``#`` / ``!`` comment lines, blank lines
    - ``key=value``, ``key:value`` and ``key value`` pairs
    - line continuation with an odd number of trailing backslashes
    - ``\\t \\n \\r \\f`` and ``\\uXXXX`` escapes in keys and values
"""

from __future__ import annotations

import re
from typing import Iterator, MutableMapping, Optional, TextIO

from gitconfig.errors.errors import PropertiesParseError

WHITESPACE = " \t\f"
SEPARATORS = "=:"
COMMENT_MARKERS = "#!"
_NEWLINE = re.compile(r"\r\n|\r|\n")
_ESCAPES: dict[str, str] = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def loads(text: str) -> dict[str, str]:
    """Parse properties ``text`` into a new dict."""
    properties: dict[str, str] = {}
    _parse_into(text, properties)
    return properties


def load(
    handle: TextIO, into: Optional[MutableMapping[str, str]] = None
) -> MutableMapping[str, str]:
    """
    Parse the properties read from ``handle``.

    Entries are written into ``into`` as they are parsed, so a caller that
    passes its own mapping keeps everything read before a parse error.
    """
    properties: MutableMapping[str, str] = {} if into is None else into
    _parse_into(handle.read(), properties)
    return properties


def _parse_into(text: str, properties: MutableMapping[str, str]) -> None:
    for line_number, line in _logical_lines(text):
        key, value = _split_entry(line)
        properties[_unescape(key, line_number)] = _unescape(value, line_number)


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """
    Yield (line_number, logical_line) pairs with comments and blank lines
    dropped and continuation lines joined. Escapes other than the
    continuation backslash are left in place.
    """
    natural = _NEWLINE.split(text)
    index = 0
    while index < len(natural):
        start = index
        line = natural[index].lstrip(WHITESPACE)
        index += 1
        if not line or line[0] in COMMENT_MARKERS:
            continue

        while _continues(line):
            line = line[:-1]
            if index >= len(natural):
                break
            line += natural[index].lstrip(WHITESPACE)
            index += 1

        yield start + 1, line


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    key_end = len(line)
    value_start = len(line)
    has_separator = False
    escaped = False

    for pos, char in enumerate(line):
        if not escaped and char in SEPARATORS:
            key_end, value_start, has_separator = pos, pos + 1, True
            break
        if not escaped and char in WHITESPACE:
            key_end, value_start = pos, pos + 1
            break
        escaped = char == "\\" and not escaped

    # skip whitespace around the separator; a single '=' or ':' may follow whitespace
    while value_start < len(line):
        char = line[value_start]
        if char not in WHITESPACE:
            if not has_separator and char in SEPARATORS:
                has_separator = True
            else:
                break
        value_start += 1

    return line[:key_end], line[value_start:]


def _unescape(raw: str, line_number: int) -> str:
    if "\\" not in raw:
        return raw

    out: list[str] = []
    pos = 0
    while pos < len(raw):
        char = raw[pos]
        pos += 1
        if char != "\\":
            out.append(char)
            continue
        if pos >= len(raw):
            # lone trailing backslash is dropped
            break
        char = raw[pos]
        pos += 1
        if char == "u":
            digits = raw[pos : pos + 4]
            if len(digits) != 4 or not set(digits) <= _HEX_DIGITS:
                raise PropertiesParseError(
                    f"Malformed \\uxxxx encoding on line {line_number}: \\u{digits}",
                    line_number=line_number,
                    component="config.properties",
                )
            out.append(chr(int(digits, 16)))
            pos += 4
        else:
            out.append(_ESCAPES.get(char, char))
    return "".join(out)
