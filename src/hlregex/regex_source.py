"""The uncompiled regex definition and its serialized forms."""

from __future__ import annotations

import base64
import binascii
import json
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Tuple

from hlregex.errors import InvalidEncoding

if TYPE_CHECKING:
    from hlregex.regex import CompiledRegex

# Field names are read by anything consuming saved grammar/theme files.
PATTERN_FIELD = "reString"
CASE_SENSITIVE_FIELD = "reCaseSensitive"

# Big-endian signed 64-bit length, then the pattern, then one boolean byte.
_LENGTH = struct.Struct(">q")


def encode_to_text(data: bytes) -> str:
    """Box arbitrary bytes into base64 text."""
    return base64.b64encode(data).decode("ascii")


def decode_from_text(text: str) -> bytes:
    """Reverse `encode_to_text`, rejecting anything that is not strict base64."""
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise InvalidEncoding(f"Invalid base64 in {PATTERN_FIELD}: {e}") from e


@dataclass(frozen=True, order=True)
class RegexSource:
    """A pattern plus its case-sensitivity flag.

    ``pattern`` holds raw bytes. They are read as UTF-8 by the engine but are
    never decoded here, so definitions carrying arbitrary binary fragments
    survive every round trip unchanged.
    """

    pattern: bytes
    case_sensitive: bool = True

    def __post_init__(self):
        if isinstance(self.pattern, (bytearray, memoryview)):
            object.__setattr__(self, "pattern", bytes(self.pattern))
        elif not isinstance(self.pattern, bytes):
            raise TypeError(
                f"pattern must be bytes, not {type(self.pattern).__name__}; "
                "use RegexSource.from_text() for text patterns"
            )
        if not isinstance(self.case_sensitive, bool):
            raise TypeError("case_sensitive must be a bool")

    @classmethod
    def from_text(cls, text: str, case_sensitive: bool = True) -> "RegexSource":
        return cls(text.encode("utf-8"), case_sensitive)

    @property
    def text(self) -> str:
        """The pattern for display; undecodable bytes are replaced."""
        return self.pattern.decode("utf-8", "replace")

    def compile(self) -> "CompiledRegex":
        from hlregex.regex import compile_regex

        return compile_regex(self)

    # Structured document

    def to_dict(self) -> Dict[str, Any]:
        return {
            PATTERN_FIELD: encode_to_text(self.pattern),
            CASE_SENSITIVE_FIELD: self.case_sensitive,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RegexSource":
        if not isinstance(data, Mapping):
            raise InvalidEncoding(f"Expected an object, got {type(data).__name__}")
        try:
            text = data[PATTERN_FIELD]
            case_sensitive = data[CASE_SENSITIVE_FIELD]
        except KeyError as e:
            raise InvalidEncoding(f"Missing field {e.args[0]!r}") from None
        if not isinstance(text, str):
            raise InvalidEncoding(f"{PATTERN_FIELD} must be a string")
        if not isinstance(case_sensitive, bool):
            raise InvalidEncoding(f"{CASE_SENSITIVE_FIELD} must be a boolean")
        return cls(decode_from_text(text), case_sensitive)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "RegexSource":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidEncoding(f"Malformed JSON: {e}") from e
        return cls.from_dict(data)

    # Binary

    def to_bytes(self) -> bytes:
        return (
            _LENGTH.pack(len(self.pattern))
            + self.pattern
            + (b"\x01" if self.case_sensitive else b"\x00")
        )

    @classmethod
    def read_from(cls, buffer: bytes, offset: int = 0) -> Tuple["RegexSource", int]:
        """Decode one value starting at ``offset``; return it with the offset just past it."""
        view = memoryview(buffer)
        end_of_length = offset + _LENGTH.size
        if end_of_length > len(view):
            raise InvalidEncoding("Truncated length prefix")
        (length,) = _LENGTH.unpack_from(view, offset)
        if length < 0:
            raise InvalidEncoding(f"Negative pattern length {length}")
        end_of_pattern = end_of_length + length
        if end_of_pattern + 1 > len(view):
            raise InvalidEncoding(
                f"Truncated data: need {end_of_pattern + 1 - offset} bytes, "
                f"have {len(view) - offset}"
            )
        flag = view[end_of_pattern]
        if flag not in (0, 1):
            raise InvalidEncoding(f"Invalid boolean byte 0x{flag:02x}")
        pattern = bytes(view[end_of_length:end_of_pattern])
        return cls(pattern, flag == 1), end_of_pattern + 1

    @classmethod
    def from_bytes(cls, data: bytes) -> "RegexSource":
        source, end = cls.read_from(data)
        if end != len(data):
            raise InvalidEncoding(f"{len(data) - end} trailing bytes after regex")
        return source
