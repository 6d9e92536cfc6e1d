"""Tests for octal escape conversion."""

from hypothesis import given
from hypothesis import strategies as st

from hlregex.escapes import convert_octal_escapes, normalize, original_offset


class TestLeftUnchanged:
    def test_zero_prefixed_octal(self):
        assert convert_octal_escapes("\\0123") == "\\0123"

    def test_three_digit_octal(self):
        assert convert_octal_escapes("\\123") == "\\123"

    def test_plain_text(self):
        assert convert_octal_escapes("ab+c") == "ab+c"

    def test_empty(self):
        assert convert_octal_escapes("") == ""

    def test_other_escapes(self):
        assert convert_octal_escapes("\\d+\\s*\\x{41}\\b") == "\\d+\\s*\\x{41}\\b"

    def test_short_octal_run(self):
        assert convert_octal_escapes("\\12") == "\\12"
        assert convert_octal_escapes("\\1") == "\\1"

    def test_trailing_backslash(self):
        assert convert_octal_escapes("abc\\") == "abc\\"

    def test_zero_prefix_then_short_run(self):
        # \012 is consumed as \ddd, the 9 is copied on its own
        assert convert_octal_escapes("\\0129") == "\\0129"


class TestBraceOctal:
    def test_converted_to_hex(self):
        assert convert_octal_escapes("\\o{17}") == "\\x{f}"

    def test_large_value(self):
        assert convert_octal_escapes("\\o{377}") == "\\x{ff}"
        assert convert_octal_escapes("\\o{20000}") == "\\x{2000}"

    def test_zero(self):
        assert convert_octal_escapes("\\o{0}") == "\\x{0}"

    def test_leading_zeros_dropped(self):
        assert convert_octal_escapes("\\o{0017}") == "\\x{f}"

    def test_surrounding_text_kept(self):
        assert convert_octal_escapes("a\\o{101}b\\o{102}c") == "a\\x{41}b\\x{42}c"

    def test_empty_digits(self):
        assert convert_octal_escapes("\\o{}") == "\\o{}"

    def test_non_octal_digit(self):
        assert convert_octal_escapes("\\o{19}") == "\\o{19}"

    def test_unclosed(self):
        assert convert_octal_escapes("\\o{17") == "\\o{17"

    def test_scan_resumes_after_rejected_brace(self):
        assert convert_octal_escapes("\\o{x\\o{17}}") == "\\o{x\\x{f}}"

    def test_adjacent_escapes(self):
        assert convert_octal_escapes("\\o{7}\\123\\o{10}") == "\\x{7}\\123\\x{8}"

    def test_octal_unit_hides_following_brace(self):
        # \0ddd is one unit, so the "o{1}" after it is plain text
        assert convert_octal_escapes("\\0123o{1}") == "\\0123o{1}"


class TestOriginalOffset:
    def test_identity_without_rewrites(self):
        assert [original_offset("a\\123b", i) for i in range(7)] == list(range(7))

    def test_after_several_rewrites(self):
        pattern = "\\o{101}\\o{101}\\o{101}("
        converted = convert_octal_escapes(pattern)
        assert converted == "\\x{41}\\x{41}\\x{41}("
        # the "(" and the end of the pattern
        assert original_offset(pattern, 18) == 21
        assert original_offset(pattern, len(converted)) == len(pattern)

    def test_inside_rewrite_points_at_escape(self):
        # converted: a\x{41}b
        assert original_offset("a\\o{101}b", 3) == 1
        assert original_offset("a\\o{101}b", 7) == 8

    def test_same_length_rewrite(self):
        assert convert_octal_escapes("\\o{7}(") == "\\x{7}("
        assert original_offset("\\o{7}(", 2) == 0
        assert original_offset("\\o{7}(", 5) == 5

    def test_rejected_brace_is_verbatim(self):
        assert original_offset("\\o{}x", 4) == 4

    def test_bytes(self):
        assert original_offset(b"\xff\\o{17}(", 6) == 7


class TestBytes:
    def test_bytes_in_bytes_out(self):
        assert convert_octal_escapes(b"\\o{17}") == b"\\x{f}"

    def test_invalid_utf8_preserved(self):
        pattern = b"\xff\xfe\\o{101}\x80"
        assert convert_octal_escapes(pattern) == b"\xff\xfe\\x{41}\x80"

    def test_bytearray_accepted(self):
        assert convert_octal_escapes(bytearray(b"\\o{10}")) == b"\\x{8}"

    def test_normalize_alias(self):
        assert normalize is convert_octal_escapes


escape_text = st.text(alphabet="\\o{}0123456789xab", max_size=40)


@given(escape_text)
def test_idempotent(pattern):
    once = convert_octal_escapes(pattern)
    assert convert_octal_escapes(once) == once


@given(st.binary(max_size=60))
def test_bytes_match_text_on_ascii_structure(data):
    converted = convert_octal_escapes(data)
    assert converted == convert_octal_escapes(data.decode("latin-1")).encode("latin-1")


@given(st.text(alphabet="abc()[]*+?.|^$", max_size=40))
def test_text_without_backslashes_unchanged(pattern):
    assert convert_octal_escapes(pattern) == pattern
