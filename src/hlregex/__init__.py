"""PCRE2-backed regular expressions for syntax highlighting."""

from hlregex.config import EngineConfig, get_config, set_config
from hlregex.errors import (
    BackendUnavailable,
    CompileFailed,
    ExecutionFailed,
    InvalidEncoding,
    RegexError,
)
from hlregex.escapes import convert_octal_escapes, normalize
from hlregex.regex import (
    CompiledRegex,
    RegexCache,
    clear_cache,
    compile_regex,
    compile_regex_cached,
    match_regex,
)
from hlregex.regex_source import RegexSource

__version__ = "0.1.0"

__all__ = [
    "BackendUnavailable",
    "CompileFailed",
    "CompiledRegex",
    "EngineConfig",
    "ExecutionFailed",
    "InvalidEncoding",
    "RegexCache",
    "RegexError",
    "RegexSource",
    "clear_cache",
    "compile_regex",
    "compile_regex_cached",
    "convert_octal_escapes",
    "get_config",
    "match_regex",
    "normalize",
    "set_config",
]
