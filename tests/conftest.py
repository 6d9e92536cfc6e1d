"""Pytest configuration and fixtures.

Tests that need libpcre2-8 are skipped when it cannot be loaded.
"""
import pytest

from hlregex.config import EngineConfig, set_config
from hlregex.errors import BackendUnavailable
from hlregex.pcre2_cffi import get_library
from hlregex.regex import clear_cache

try:
    get_library()
    _pcre2_available = True
    _pcre2_skip_reason = ""
except BackendUnavailable as e:
    _pcre2_available = False
    _pcre2_skip_reason = f"PCRE2 not available: {e}"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "pcre2: mark test as requiring the PCRE2 shared library"
    )


def pytest_collection_modifyitems(config, items):
    """Skip PCRE2 tests if the library is not available."""
    if _pcre2_available:
        return

    skip = pytest.mark.skip(reason=_pcre2_skip_reason)
    for item in items:
        if "pcre2" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def engine_config():
    """Give every test the default configuration and an empty cache."""
    set_config(EngineConfig())
    clear_cache()
    yield
    set_config(None)
    clear_cache()
