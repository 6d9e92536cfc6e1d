"""Octal escape conversion.

Grammar files write octal escapes in three ways: ``\\0ddd``, ``\\ddd`` and
``\\o{dddd}``. ``\\o{...}`` needs PCRE 8.34 or later, so it is rewritten to
the equivalent ``\\x{...}``. The other two forms are left alone.
"""

from __future__ import annotations

from typing import Iterator, Tuple, TypeVar

OCTAL_DIGITS = frozenset("01234567")

PatternT = TypeVar("PatternT", str, bytes)


def _is_octal(text: str) -> bool:
    return all(ch in OCTAL_DIGITS for ch in text)


def _segments(pattern: str) -> Iterator[Tuple[int, int, str]]:
    """Yield ``(start, end, output)`` for each unit of ``pattern``.

    ``output`` replaces ``pattern[start:end]``; it differs from it only for
    a converted ``\\o{...}`` escape.
    """
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch != "\\":
            yield i, i + 1, ch
            i += 1
            continue

        # \0ddd
        if pattern[i + 1 : i + 2] == "0" and i + 5 <= n and _is_octal(pattern[i + 2 : i + 5]):
            yield i, i + 5, pattern[i : i + 5]
            i += 5
            continue

        # \ddd
        if i + 4 <= n and _is_octal(pattern[i + 1 : i + 4]):
            yield i, i + 4, pattern[i : i + 4]
            i += 4
            continue

        # \o{dddd}
        if pattern[i + 1 : i + 3] == "o{":
            close = pattern.find("}", i + 3)
            digits = pattern[i + 3 : close] if close != -1 else ""
            if digits and _is_octal(digits):
                yield i, close + 1, f"\\x{{{int(digits, 8):x}}}"
                i = close + 1
            else:
                yield i, i + 3, "\\o{"
                i += 3
            continue

        yield i, i + 1, ch
        i += 1


def _convert(pattern: str) -> str:
    return "".join(out for _, _, out in _segments(pattern))


def _original_offset(pattern: str, offset: int) -> int:
    position = 0
    for start, end, out in _segments(pattern):
        if offset < position + len(out):
            if out != pattern[start:end]:
                # inside a rewritten escape
                return start
            return start + (offset - position)
        position += len(out)
    return len(pattern) + (offset - position)


def convert_octal_escapes(pattern: PatternT) -> PatternT:
    """Rewrite ``\\o{dddd}`` escapes as ``\\x{hex}``, leaving everything else as is.

    Accepts text or bytes and returns the same type. Bytes are scanned one
    byte at a time, so content that is not valid UTF-8 passes through.
    Never raises: malformed ``\\o{`` sequences are copied literally.
    """
    if isinstance(pattern, (bytes, bytearray)):
        # latin-1 maps every byte to one code point and back
        return _convert(bytes(pattern).decode("latin-1")).encode("latin-1")
    return _convert(pattern)


normalize = convert_octal_escapes


def original_offset(pattern: PatternT, offset: int) -> int:
    """Map ``offset`` in ``convert_octal_escapes(pattern)`` back into ``pattern``.

    An offset inside a rewritten ``\\o{...}`` escape maps to the escape's
    backslash. Offsets past the end keep their distance from the end.
    """
    if isinstance(pattern, (bytes, bytearray)):
        return _original_offset(bytes(pattern).decode("latin-1"), offset)
    return _original_offset(pattern, offset)
