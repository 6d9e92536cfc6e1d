"""Engine configuration, read from the environment by default."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_LIBRARY_PATH = "PCRE2_LIBRARY_PATH"
ENV_USE_JIT = "HLREGEX_USE_JIT"
ENV_MATCH_LIMIT = "HLREGEX_MATCH_LIMIT"
ENV_DEPTH_LIMIT = "HLREGEX_DEPTH_LIMIT"
ENV_HEAP_LIMIT = "HLREGEX_HEAP_LIMIT"
ENV_CACHE_SIZE = "HLREGEX_CACHE_SIZE"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# PCRE2 limit setters take uint32_t
UINT32_MAX = 0xFFFFFFFF


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_limit(
    name: str, value: Optional[str], maximum: Optional[int] = UINT32_MAX
) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    if maximum is not None and parsed > maximum:
        raise ValueError(f"{name} must be at most {maximum}, got {parsed}")
    return parsed


@dataclass(frozen=True)
class EngineConfig:
    """Settings for the PCRE2 backend.

    Limits left as None keep PCRE2's built-in defaults.
    """

    library_path: Optional[str] = None
    use_jit: bool = True
    match_limit: Optional[int] = None
    depth_limit: Optional[int] = None
    heap_limit: Optional[int] = None  # KiB, as PCRE2 counts it
    cache_size: int = 512

    @property
    def has_limits(self) -> bool:
        return any(
            limit is not None
            for limit in (self.match_limit, self.depth_limit, self.heap_limit)
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        use_jit = env.get(ENV_USE_JIT)
        cache_size = _parse_limit(ENV_CACHE_SIZE, env.get(ENV_CACHE_SIZE), maximum=None)
        return cls(
            library_path=env.get(ENV_LIBRARY_PATH) or None,
            use_jit=True if use_jit is None else _parse_bool(ENV_USE_JIT, use_jit),
            match_limit=_parse_limit(ENV_MATCH_LIMIT, env.get(ENV_MATCH_LIMIT)),
            depth_limit=_parse_limit(ENV_DEPTH_LIMIT, env.get(ENV_DEPTH_LIMIT)),
            heap_limit=_parse_limit(ENV_HEAP_LIMIT, env.get(ENV_HEAP_LIMIT)),
            cache_size=cls.cache_size if cache_size is None else cache_size,
        )


_config: Optional[EngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> EngineConfig:
    """Return the process-wide configuration, reading the environment on first use."""
    global _config
    with _config_lock:
        if _config is None:
            _config = EngineConfig.from_env()
        return _config


def set_config(config: Optional[EngineConfig]) -> None:
    """Replace the process-wide configuration (None re-reads the environment)."""
    global _config
    with _config_lock:
        _config = config
