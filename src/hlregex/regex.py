"""Compiling `RegexSource` values with PCRE2 and matching them against bytes.

A `CompiledRegex` owns the PCRE2 code object and frees it when garbage
collected. It holds no per-match state: every call to `match` allocates its
own match data, so a single instance can be used from several threads.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import List, Optional, Tuple

from loguru import logger

from hlregex.config import EngineConfig, get_config
from hlregex.errors import CompileFailed, ExecutionFailed
from hlregex.escapes import convert_octal_escapes, original_offset
from hlregex.pcre2_cffi import (
    PCRE2_CASELESS,
    PCRE2_ERROR_NOMATCH,
    PCRE2_JIT_COMPLETE,
    PCRE2_NOTEMPTY,
    PCRE2_UNSET,
    PCRE2_UTF,
    Pcre2Library,
    get_library,
)
from hlregex.regex_source import RegexSource

Span = Tuple[int, int]


class CompiledRegex:
    """A pattern compiled by PCRE2. Build these with `compile_regex`."""

    def __init__(
        self,
        source: RegexSource,
        library: Pcre2Library,
        code,
        match_context=None,
        jit: bool = False,
    ):
        self.source = source
        self._library = library
        self._code = code
        self._match_context = match_context
        self.jit = jit
        self.capture_count = library.capture_count(code)

    def __repr__(self) -> str:
        return (
            f"CompiledRegex({self.source.text!r}, "
            f"case_sensitive={self.source.case_sensitive}, jit={self.jit})"
        )

    def _execute(self, subject: bytes) -> Optional[List[Optional[Span]]]:
        if not isinstance(subject, (bytes, bytearray, memoryview)):
            raise TypeError(f"subject must be bytes, not {type(subject).__name__}")
        subject = bytes(subject)
        subj = self._library.buffer(subject)

        lib = self._library.lib
        ffi = self._library.ffi

        match_data = lib.pcre2_match_data_create_from_pattern_8(self._code, ffi.NULL)
        if match_data == ffi.NULL:
            raise MemoryError("pcre2_match_data_create_from_pattern returned NULL")

        try:
            rc = lib.pcre2_match_8(
                self._code,
                subj,
                len(subject),
                0,
                PCRE2_NOTEMPTY,
                match_data,
                self._match_context if self._match_context is not None else ffi.NULL,
            )

            if rc == PCRE2_ERROR_NOMATCH:
                return None
            if rc < 0:
                msg = self._library.error_message(rc)
                logger.debug(f"Match error for /{self.source.text}/: {msg} (code={rc})")
                raise ExecutionFailed(rc, msg)

            ovector = lib.pcre2_get_ovector_pointer_8(match_data)

            # rc is one more than the highest group that was set
            spans: List[Optional[Span]] = []
            for i in range(self.capture_count + 1):
                start = int(ovector[2 * i])
                end = int(ovector[2 * i + 1])
                if i >= rc or start == PCRE2_UNSET or end == PCRE2_UNSET:
                    spans.append(None)
                else:
                    spans.append((start, end))
            return spans

        finally:
            lib.pcre2_match_data_free_8(match_data)

    def match_spans(self, subject: bytes) -> Optional[List[Optional[Span]]]:
        """Like `match`, but return byte offsets; unset groups are None."""
        return self._execute(subject)

    def match(self, subject: bytes) -> Optional[List[bytes]]:
        """Find the first non-empty match in ``subject``.

        Returns None if there is no match, otherwise the matched bytes followed
        by one entry per capture group. Groups that did not take part in the
        match are ``b""``.

        Raises:
            ExecutionFailed: PCRE2 reported an error, e.g. invalid UTF-8 in
                the subject or an exceeded match limit.
        """
        spans = self._execute(subject)
        if spans is None:
            return None
        subject = bytes(subject)
        return [b"" if span is None else subject[span[0] : span[1]] for span in spans]


def compile_regex(
    source: RegexSource, *, config: Optional[EngineConfig] = None
) -> CompiledRegex:
    """Compile ``source`` after converting its octal escapes.

    Raises:
        CompileFailed: PCRE2 rejected the pattern.
        BackendUnavailable: libpcre2-8 could not be loaded.
        ValueError: a configured limit does not fit PCRE2's 32-bit range.
    """
    config = config or get_config()
    library = get_library(config.library_path)
    lib = library.lib
    ffi = library.ffi

    pat_bytes = convert_octal_escapes(source.pattern)
    options = PCRE2_UTF
    if not source.case_sensitive:
        options |= PCRE2_CASELESS

    error_code = ffi.new("int[1]")
    error_offset = ffi.new("PCRE2_SIZE[1]")

    pat = library.buffer(pat_bytes)
    code = lib.pcre2_compile_8(
        pat,
        len(pat_bytes),
        options,
        error_code,
        error_offset,
        ffi.NULL,
    )

    if code == ffi.NULL:
        msg = library.error_message(error_code[0])
        # PCRE2 reports the offset into the converted pattern
        offset = original_offset(source.pattern, int(error_offset[0]))
        logger.debug(f"Compile error for /{source.text}/ at offset {offset}: {msg}")
        raise CompileFailed(source.text, offset, msg, int(error_code[0]))

    code = ffi.gc(code, lib.pcre2_code_free_8)

    jit = False
    if config.use_jit:
        # JIT compile failure is not fatal - the interpreter is used instead
        jit_rc = lib.pcre2_jit_compile_8(code, PCRE2_JIT_COMPLETE)
        jit = jit_rc == 0
        if not jit:
            logger.debug(
                f"JIT unavailable for /{source.text}/: {library.error_message(jit_rc)}"
            )

    match_context = None
    if config.has_limits:
        match_context = library.create_match_context(
            match_limit=config.match_limit,
            depth_limit=config.depth_limit,
            heap_limit=config.heap_limit,
        )

    return CompiledRegex(source, library, code, match_context, jit)


def match_regex(compiled: CompiledRegex, subject: bytes) -> Optional[List[bytes]]:
    """Match ``compiled`` once against ``subject``; see `CompiledRegex.match`."""
    return compiled.match(subject)


class RegexCache:
    """Bounded LRU of compiled regexes keyed by `RegexSource`.

    Compile failures are not cached, so a broken pattern raises every time.
    """

    def __init__(self, maxsize: int = 512):
        self.maxsize = maxsize
        self._entries: "OrderedDict[RegexSource, CompiledRegex]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, source: RegexSource) -> CompiledRegex:
        with self._lock:
            compiled = self._entries.get(source)
            if compiled is not None:
                self._entries.move_to_end(source)
                self.hits += 1
                return compiled
            self.misses += 1

        compiled = compile_regex(source)

        with self._lock:
            self._entries[source] = compiled
            self._entries.move_to_end(source)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
        return compiled

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.debug("Cleared compiled regex cache")


_cache: Optional[RegexCache] = None
_cache_lock = threading.Lock()


def _get_cache() -> RegexCache:
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = RegexCache(get_config().cache_size)
        return _cache


def compile_regex_cached(source: RegexSource) -> CompiledRegex:
    """Compile ``source``, reusing an earlier result for an equal `RegexSource`."""
    return _get_cache().get(source)


def clear_cache() -> None:
    """Drop every cached compiled regex."""
    global _cache
    with _cache_lock:
        cache, _cache = _cache, None
    if cache is not None:
        cache.clear()
