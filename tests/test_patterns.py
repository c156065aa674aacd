import pytest

from codeclip.patterns import is_glob, match_any, matches


def test_extension_glob_is_anchored():
    assert matches("*.go", "main.go")
    assert not matches("*.go", "algorithm.gold")
    assert not matches("*.go", "go")


@pytest.mark.parametrize("name, expected", [
    ("deno.json", True),
    ("deno.jsonc", True),
    ("deno.", True),
    ("mydeno.json", False),
    ("deno", False),
    ("deno/x.json", False),
])
def test_prefix_and_suffix_glob(name, expected):
    assert matches("deno.*", name) is expected


def test_literal_patterns_compare_exactly():
    assert matches("Makefile", "Makefile")
    assert not matches("Makefile", "makefile")
    assert not matches("Makefile", "Makefile.am")


def test_unsupported_syntax_is_literal():
    assert not is_glob("*.*")
    assert matches("*.*", "*.*")
    assert not matches("*.*", "a.b")
    assert not matches("file?.txt", "file1.txt")
    assert not matches("[ab].c", "a.c")


def test_match_any():
    assert match_any("*.ino", ["README.md", "blink.ino"])
    assert not match_any("*.ino", [])
