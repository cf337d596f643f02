import pytest

from notelab_api.domain.exceptions import ParseError
from notelab_api.parsing import detect_language, parse_json_document


@pytest.mark.parametrize(
    ("content", "fallback", "expected"),
    [
        ("<!DOCTYPE html><p>x</p>", "python", "html"),
        ("<HTML><body></body></HTML>", None, "html"),
        ('{"a": 1}', "html", "json"),
        ("[1, 2]", "html", "json"),
        ("def main():\n    pass", "html", "python"),
        ("import os", "html", "python"),
        ("plain words", "markdown", "markdown"),
        ("plain words", None, "html"),
        ("", "", "html"),
    ],
)
def test_detect_language(content: str, fallback, expected: str) -> None:
    assert detect_language(content, fallback) == expected


def test_parse_json_document_accepts_bytes() -> None:
    assert parse_json_document(b'{"projects": []}') == {"projects": []}


@pytest.mark.parametrize("raw", ["", "{", "[1,", b"\xff\xfe"])
def test_parse_json_document_rejects_malformed(raw) -> None:
    with pytest.raises(ParseError):
        parse_json_document(raw)
