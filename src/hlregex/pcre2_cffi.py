"""PCRE2 bindings using CFFI to call the shared library directly.

Only the 8-bit API is used. Patterns and subjects are raw byte buffers, so
nothing is transcoded on the way in or out.

The library path can be specified via:
1. The ``library_path`` argument
2. Environment variable ``PCRE2_LIBRARY_PATH`` (see `hlregex.config`)
3. The default system library names (``libpcre2-8.so``, ``libpcre2-8.so.0``)
"""

from __future__ import annotations

import ctypes.util
import threading
from typing import Dict, List, Optional

from cffi import FFI
from loguru import logger

from hlregex.config import UINT32_MAX
from hlregex.errors import BackendUnavailable

# CFFI definitions for PCRE2 8-bit API
PCRE2_CDEF = """
typedef unsigned char PCRE2_UCHAR;
typedef const PCRE2_UCHAR *PCRE2_SPTR;
typedef size_t PCRE2_SIZE;
typedef unsigned int uint32_t;

/* Opaque types for the 8-bit API */
typedef struct pcre2_real_code_8          pcre2_code;
typedef struct pcre2_real_match_data_8    pcre2_match_data;
typedef struct pcre2_real_match_context_8 pcre2_match_context;
typedef struct pcre2_real_general_context_8 pcre2_general_context;
typedef struct pcre2_real_compile_context_8 pcre2_compile_context;

/* Compile */
pcre2_code *pcre2_compile_8(PCRE2_SPTR pattern,
                            PCRE2_SIZE length,
                            uint32_t options,
                            int *errorcode,
                            PCRE2_SIZE *erroroffset,
                            pcre2_compile_context *ccontext);

/* Free compiled pattern */
void pcre2_code_free_8(pcre2_code *code);

/* Create match-data sized for this pattern */
pcre2_match_data *pcre2_match_data_create_from_pattern_8(
                            const pcre2_code *code,
                            pcre2_general_context *gcontext);

/* Free match-data */
void pcre2_match_data_free_8(pcre2_match_data *match_data);

/* Match context creation and configuration */
pcre2_match_context *pcre2_match_context_create_8(pcre2_general_context *gcontext);
void pcre2_match_context_free_8(pcre2_match_context *mcontext);
int pcre2_set_match_limit_8(pcre2_match_context *mcontext, uint32_t value);
int pcre2_set_depth_limit_8(pcre2_match_context *mcontext, uint32_t value);
int pcre2_set_heap_limit_8(pcre2_match_context *mcontext, uint32_t value);

/* Run a match */
int pcre2_match_8(const pcre2_code *code,
                  PCRE2_SPTR subject,
                  PCRE2_SIZE length,
                  PCRE2_SIZE startoffset,
                  uint32_t options,
                  pcre2_match_data *match_data,
                  pcre2_match_context *mcontext);

/* Turn an error code into a human-readable message */
int pcre2_get_error_message_8(int errorcode,
                              PCRE2_UCHAR *buffer,
                              PCRE2_SIZE bufflen);

/* Access ovector for captures */
PCRE2_SIZE *pcre2_get_ovector_pointer_8(pcre2_match_data *match_data);

/* JIT compilation */
int pcre2_jit_compile_8(pcre2_code *code, uint32_t options);

/* Pattern info */
int pcre2_pattern_info_8(const pcre2_code *code, uint32_t what, void *where);
"""

# PCRE2 option flags (from pcre2.h)
PCRE2_CASELESS = 0x00000008
PCRE2_UTF = 0x00080000

# Match options
PCRE2_NOTEMPTY = 0x00000004

# JIT options
PCRE2_JIT_COMPLETE = 0x00000001

# Error codes
PCRE2_ERROR_NOMATCH = -1
PCRE2_ERROR_MATCHLIMIT = -47

# Pattern info
PCRE2_INFO_CAPTURECOUNT = 4

# ~(PCRE2_SIZE)0 marks an unset capture group in the ovector
PCRE2_UNSET = (1 << (8 * ctypes.sizeof(ctypes.c_size_t))) - 1

DEFAULT_LIBRARY_NAMES = ("libpcre2-8.so", "libpcre2-8.so.0", "libpcre2-8.dylib")


def candidate_library_paths(library_path: Optional[str] = None) -> List[str]:
    """List the library names to try, most specific first."""
    if library_path:
        return [library_path]
    candidates = list(DEFAULT_LIBRARY_NAMES)
    found = ctypes.util.find_library("pcre2-8")
    if found and found not in candidates:
        candidates.append(found)
    return candidates


class Pcre2Library:
    """A loaded libpcre2-8 together with its FFI instance."""

    def __init__(self, library_path: Optional[str] = None):
        self.ffi = FFI()
        self.ffi.cdef(PCRE2_CDEF)

        errors: List[str] = []
        for candidate in candidate_library_paths(library_path):
            try:
                self.lib = self.ffi.dlopen(candidate)
            except OSError as e:
                errors.append(f"{candidate}: {e}")
                continue
            self.path = candidate
            logger.debug(f"Loaded PCRE2 library from '{candidate}'")
            break
        else:
            raise BackendUnavailable(
                "Failed to load PCRE2 library: " + "; ".join(errors)
            )

    def buffer(self, data: bytes):
        """Copy ``data`` into a C array usable as a PCRE2_SPTR argument.

        The caller must keep the returned array alive for as long as PCRE2
        may read from it.
        """
        return self.ffi.new("PCRE2_UCHAR[]", data)

    def error_message(self, error_code: int) -> str:
        """Get human-readable error message for a PCRE2 error code."""
        buf = self.ffi.new("PCRE2_UCHAR[256]")
        self.lib.pcre2_get_error_message_8(error_code, buf, 256)
        return self.ffi.string(buf).decode("utf-8", "replace")

    def capture_count(self, code) -> int:
        where = self.ffi.new("uint32_t[1]")
        self.lib.pcre2_pattern_info_8(code, PCRE2_INFO_CAPTURECOUNT, where)
        return int(where[0])

    def create_match_context(
        self,
        match_limit: Optional[int] = None,
        depth_limit: Optional[int] = None,
        heap_limit: Optional[int] = None,
    ):
        """Create a match context carrying the given limits, freed with its owner."""
        for name, value in (
            ("match_limit", match_limit),
            ("depth_limit", depth_limit),
            ("heap_limit", heap_limit),
        ):
            if value is not None and not 0 < value <= UINT32_MAX:
                raise ValueError(f"{name} must be between 1 and {UINT32_MAX}, got {value}")

        context = self.lib.pcre2_match_context_create_8(self.ffi.NULL)
        if context == self.ffi.NULL:
            raise MemoryError("pcre2_match_context_create returned NULL")
        if match_limit is not None:
            self.lib.pcre2_set_match_limit_8(context, match_limit)
        if depth_limit is not None:
            self.lib.pcre2_set_depth_limit_8(context, depth_limit)
        if heap_limit is not None:
            self.lib.pcre2_set_heap_limit_8(context, heap_limit)
        return self.ffi.gc(context, self.lib.pcre2_match_context_free_8)


_libraries: Dict[Optional[str], Pcre2Library] = {}
_library_lock = threading.Lock()


def get_library(library_path: Optional[str] = None) -> Pcre2Library:
    """Return the shared PCRE2 library for ``library_path``, loading it on first use.

    None tries the default system library names.
    """
    with _library_lock:
        library = _libraries.get(library_path)
        if library is None:
            library = Pcre2Library(library_path)
            _libraries[library_path] = library
        return library
