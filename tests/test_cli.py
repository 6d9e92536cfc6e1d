"""Tests for the hlregex command line."""

import json

import pytest

from hlregex.cli import EXIT_ERROR, EXIT_NO_MATCH, EXIT_OK, main
from hlregex.regex_source import RegexSource

pytestmark = pytest.mark.usefixtures("engine_config")


def test_normalize(capsys):
    assert main(["normalize", "a\\o{101}"]) == EXIT_OK
    assert capsys.readouterr().out == "a\\x{41}\n"


def test_encode_json(capsys):
    assert main(["encode", "ab", "-i"]) == EXIT_OK
    assert json.loads(capsys.readouterr().out) == {
        "reString": "YWI=",
        "reCaseSensitive": False,
    }


def test_encode_binary(capsys):
    assert main(["encode", "ab", "--format", "binary"]) == EXIT_OK
    assert capsys.readouterr().out.strip() == RegexSource(b"ab").to_bytes().hex()


def test_decode_json(capsys):
    doc = RegexSource(b"x\xff", False).to_json()
    assert main(["decode", doc]) == EXIT_OK
    out = capsys.readouterr().out
    assert "pattern: x\\xff" in out
    assert "case_sensitive: false" in out


def test_decode_binary(capsys):
    data = RegexSource(b"\\d+").to_bytes().hex()
    assert main(["decode", data, "--format", "binary"]) == EXIT_OK
    assert "case_sensitive: true" in capsys.readouterr().out


def test_decode_bad_base64():
    assert main(["decode", '{"reString": "!!", "reCaseSensitive": true}']) == EXIT_ERROR


def test_decode_bad_hex():
    assert main(["decode", "zz", "--format", "binary"]) == EXIT_ERROR


@pytest.mark.pcre2
def test_match(capsys):
    assert main(["match", "(\\w+)=(\\d+)", "width=80"]) == EXIT_OK
    assert capsys.readouterr().out.splitlines() == [
        "match: width=80",
        "group 1: width",
        "group 2: 80",
    ]


@pytest.mark.pcre2
def test_match_ignore_case(capsys):
    assert main(["match", "ABC", "xabcx", "-i"]) == EXIT_OK
    assert capsys.readouterr().out.splitlines() == ["match: abc"]


@pytest.mark.pcre2
def test_no_match(capsys):
    assert main(["match", "z", "abc"]) == EXIT_NO_MATCH
    assert capsys.readouterr().out.strip() == "no match"


@pytest.mark.pcre2
def test_compile_error():
    assert main(["match", "(ab", "ab"]) == EXIT_ERROR
