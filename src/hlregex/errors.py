"""Exception hierarchy for compiling, matching and decoding regexes."""

from __future__ import annotations

from typing import Optional


class RegexError(Exception):
    """Base class for every error raised by hlregex."""


class BackendUnavailable(RegexError):
    """Raised when the PCRE2 shared library cannot be loaded."""


class CompileFailed(RegexError):
    """Raised when PCRE2 rejects a pattern.

    Attributes:
        pattern: The pattern as the caller wrote it (before escape conversion).
        byte_offset: Offset into the pattern reported by PCRE2, if any.
        backend_message: PCRE2's own description of the problem.
        backend_code: PCRE2 error code, if any.
    """

    def __init__(
        self,
        pattern: str,
        byte_offset: Optional[int],
        backend_message: str,
        backend_code: Optional[int] = None,
    ):
        self.pattern = pattern
        self.byte_offset = byte_offset
        self.backend_message = backend_message
        self.backend_code = backend_code
        where = f" at offset {byte_offset}" if byte_offset is not None else ""
        super().__init__(f"Error compiling regex /{pattern}/{where}\n{backend_message}")


class ExecutionFailed(RegexError):
    """Raised when PCRE2 fails while matching (not the same as "no match")."""

    def __init__(self, backend_code: Optional[int], backend_message: str):
        self.backend_code = backend_code
        self.backend_message = backend_message
        code = f" (code={backend_code})" if backend_code is not None else ""
        super().__init__(f"Match error: {backend_message}{code}")


class InvalidEncoding(RegexError):
    """Raised when a serialized regex cannot be decoded."""
