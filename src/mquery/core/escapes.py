"""
Decoding of roff escape sequences.

The query engine never interprets escapes, it only needs to know where each
one ends so it can be dropped from the output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class EscapeKind(Enum):
    """Broad classes of roff escapes."""
    SPECIAL = "special"      # \(xx, \[name], \C'name'
    FONT = "font"            # \fB, \f(CW, \f[I]
    STRING = "string"        # \*x, \*(xx, \*[name]
    NUMBER = "number"        # \n, \w and other numeric escapes
    SIZE = "size"            # \s+1, \s(12
    IGNORE = "ignore"        # escapes with no visible output
    NO_SPACE = "no-space"    # \c
    ERROR = "error"          # malformed or unterminated


@dataclass(frozen=True)
class Escape:
    """One decoded escape: ``text[start:end]``."""

    kind: EscapeKind
    start: int
    end: int
    argument: str = ""


EscapeDecoder = Callable[[str, int], Escape]

# Escapes taking a name in the \x, \x(xx or \x[xxx] form
_NAMED = {"f": EscapeKind.FONT, "F": EscapeKind.FONT, "*": EscapeKind.STRING,
          "n": EscapeKind.NUMBER, "g": EscapeKind.NUMBER, "k": EscapeKind.IGNORE,
          "m": EscapeKind.IGNORE, "M": EscapeKind.IGNORE, "V": EscapeKind.IGNORE,
          "Y": EscapeKind.IGNORE, "$": EscapeKind.IGNORE}

# Escapes taking a delimited argument such as \w'text'
_DELIMITED = {"A": EscapeKind.NUMBER, "B": EscapeKind.NUMBER, "b": EscapeKind.IGNORE,
              "C": EscapeKind.SPECIAL, "D": EscapeKind.IGNORE, "h": EscapeKind.IGNORE,
              "H": EscapeKind.IGNORE, "l": EscapeKind.IGNORE, "L": EscapeKind.IGNORE,
              "N": EscapeKind.SPECIAL, "o": EscapeKind.IGNORE, "R": EscapeKind.IGNORE,
              "S": EscapeKind.IGNORE, "v": EscapeKind.IGNORE, "w": EscapeKind.NUMBER,
              "x": EscapeKind.IGNORE, "X": EscapeKind.IGNORE, "Z": EscapeKind.IGNORE}


def _error(start: int, end: int) -> Escape:
    return Escape(EscapeKind.ERROR, start, end)


def _named(text: str, start: int, pos: int, kind: EscapeKind) -> Escape:
    """Decode the name following an escape character at ``pos - 1``."""
    if pos >= len(text):
        return _error(start, pos)

    ch = text[pos]
    if ch == "(":
        if pos + 3 > len(text):
            return _error(start, len(text))
        return Escape(kind, start, pos + 3, text[pos + 1:pos + 3])
    if ch == "[":
        close = text.find("]", pos + 1)
        if close == -1:
            return _error(start, len(text))
        return Escape(kind, start, close + 1, text[pos + 1:close])
    return Escape(kind, start, pos + 1, ch)


def _delimited(text: str, start: int, pos: int, kind: EscapeKind) -> Escape:
    """Decode an argument enclosed by the character at ``pos``."""
    if pos >= len(text):
        return _error(start, pos)

    delim = text[pos]
    close = text.find(delim, pos + 1)
    if close == -1:
        return _error(start, len(text))
    return Escape(kind, start, close + 1, text[pos + 1:close])


def _size(text: str, start: int, pos: int) -> Escape:
    """Decode the argument of ``\\s``."""
    if pos < len(text) and text[pos] in "+-":
        pos += 1
    if pos >= len(text):
        return _error(start, pos)

    ch = text[pos]
    if ch in "([":
        return _named(text, start, pos, EscapeKind.SIZE)
    if ch in "'\"":
        return _delimited(text, start, pos, EscapeKind.SIZE)
    if not ch.isdigit():
        return _error(start, pos)

    end = pos + 1
    # \s10 through \s39 are two-digit sizes
    if ch in "123" and end < len(text) and text[end].isdigit():
        end += 1
    return Escape(EscapeKind.SIZE, start, end, text[pos:end])


def decode_escape(text: str, pos: int) -> Escape:
    """
    Decode the escape sequence whose backslash is at ``text[pos]``.

    Returns an ``Escape`` whose ``end`` is the index just past the sequence.
    Unterminated sequences are reported with ``EscapeKind.ERROR``.
    """
    start = pos
    pos += 1
    if pos >= len(text):
        return _error(start, pos)

    ch = text[pos]
    if ch == "(" or ch == "[":
        return _named(text, start, pos, EscapeKind.SPECIAL)
    if ch in _NAMED:
        return _named(text, start, pos + 1, _NAMED[ch])
    if ch in _DELIMITED:
        return _delimited(text, start, pos + 1, _DELIMITED[ch])
    if ch == "s":
        return _size(text, start, pos + 1)
    if ch == "z":
        # \z takes the next character as zero-width
        if pos + 1 >= len(text):
            return _error(start, pos + 1)
        return Escape(EscapeKind.IGNORE, start, pos + 2, text[pos + 1])
    if ch == "c":
        return Escape(EscapeKind.NO_SPACE, start, pos + 1)
    return Escape(EscapeKind.IGNORE, start, pos + 1, ch)


def strip_escapes(text: str, decoder: Optional[EscapeDecoder] = None) -> str:
    """Remove all escape sequences from ``text``, stopping at a malformed one."""
    decoder = decoder or decode_escape
    parts = []
    pos = 0

    while True:
        backslash = text.find("\\", pos)
        if backslash == -1:
            parts.append(text[pos:])
            break
        parts.append(text[pos:backslash])
        escape = decoder(text, backslash)
        if escape.kind is EscapeKind.ERROR:
            break
        pos = escape.end

    return "".join(parts)
