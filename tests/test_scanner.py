from pathlib import Path

import pytest

from codeclip.cli import create_parser
from codeclip.config import ConfigBuilder, FileConfig, parse_config_text
from codeclip.scanner import (
    TreeNode,
    get_language,
    is_likely_binary_file,
    render_tree,
    scan_project,
)

PROJECT = {
    "pyproject.toml": "[project]\nname = 'demo'\n",
    "main.py": "print('hi')\n",
    "pkg/util.py": "def f():\n    return 1\n",
    "pkg/__pycache__/util.cpython-311.pyc": b"\x00\x01",
    "notes/secret.txt": "do not share\n",
    ".gitignore": "notes\n*.log\n",
    "debug.log": "noise\n",
    "logo.dat": b"PNG\x00\x00\x00",
    "codeclip.cfg": "gitignore: true\n",
}


def _scan(root, *argv, file_config=None):
    args = create_parser().parse_args([str(root), *argv])
    config = ConfigBuilder.from_args(args, file_config or FileConfig())
    return scan_project(config)


def _names(result):
    return [f.relative_path.as_posix() for f in result.files]


def test_scan_filters_and_sorts(write_files):
    root = write_files(PROJECT)
    result = _scan(root, "--stdout")
    assert _names(result) == [".gitignore", "main.py", "pkg/util.py", "pyproject.toml"]
    assert result.skipped_count > 0


def test_gitignore_can_be_disabled(write_files):
    root = write_files(PROJECT)
    result = _scan(root, "--stdout", file_config=parse_config_text("gitignore: false"))
    assert "notes/secret.txt" in _names(result)
    assert "debug.log" in _names(result)


def test_extension_filter(write_files):
    root = write_files(PROJECT)
    result = _scan(root, "", ".py")
    assert _names(result) == ["main.py", "pkg/util.py"]


def test_output_file_is_not_scanned(write_files):
    root = write_files({**PROJECT, "context.txt": "previous output\n"})
    result = _scan(root, str(root / "context.txt"))
    assert "context.txt" not in _names(result)


def test_large_files_are_skipped_unless_allowed(write_files):
    root = write_files({"big.py": "x" * 2048, "small.py": "y = 1\n"})
    small_limit = parse_config_text("max_large_files: 1kb")
    assert _names(_scan(root, "--stdout", file_config=small_limit)) == ["small.py"]

    allowed = parse_config_text("max_large_files: 1kb\nread_large_files: true")
    assert _names(_scan(root, "--stdout", file_config=allowed)) == ["big.py", "small.py"]


def test_file_info(write_files):
    root = write_files({"pkg/util.py": "a\nb\n"})
    info = _scan(root, "--stdout").files[0]
    assert info.relative_path == Path("pkg/util.py")
    assert info.line_count == 3
    assert info.char_count == 4
    assert info.language == "python"


def test_files_are_read_with_configured_encoding(write_files):
    root = write_files({"menu.py": "plat = \"caf\u00e9\"\n".encode("latin-1")})
    file_config = parse_config_text("output_encoding: latin-1\n")
    info = _scan(root, "--stdout", file_config=file_config).files[0]
    assert info.content == "plat = \"caf\u00e9\"\n"


def test_tree_hides_ignored_entries_by_default(write_files):
    root = write_files(PROJECT)
    tree = _scan(root, "--stdout", "-no-style").tree
    names = [node.name for node in tree]
    assert "pkg" in names
    assert "notes" not in names
    assert names.index("pkg") < names.index("main.py")


def test_tree_marks_ignored_entries(write_files):
    root = write_files(PROJECT)
    result = _scan(root, "--stdout", "-no-style", "-AIFI")
    rendered = render_tree(result.tree, use_styles=False, mark_ignored=True, visual={})
    assert "debug.log (excluded)" in rendered
    assert "notes" in rendered


def test_render_tree_glyphs():
    nodes = [
        TreeNode("src", Path("src"), True, children=[TreeNode("a.py", Path("src/a.py"), False)]),
        TreeNode("b.py", Path("b.py"), False),
    ]
    assert render_tree(nodes, use_styles=False) == "├── src\n│   └── a.py\n└── b.py"


def test_render_tree_icons():
    nodes = [TreeNode("logo.png", Path("logo.png"), False)]
    visual = {"file": "[F]", ".png": "[IMG]"}
    assert render_tree(nodes, visual=visual) == "└── [IMG] logo.png"
    assert render_tree([TreeNode("x.c", Path("x.c"), False)], visual=visual) == "└── [F] x.c"


def test_binary_sniff(tmp_path):
    binary = tmp_path / "a.bin"
    binary.write_bytes(b"abc\x00def")
    text = tmp_path / "a.txt"
    text.write_text("plain")
    assert is_likely_binary_file(binary)
    assert not is_likely_binary_file(text)
    assert is_likely_binary_file(tmp_path / "missing")


@pytest.mark.parametrize("name, language", [
    ("a.py", "python"),
    ("App.TSX", "tsx"),
    ("Dockerfile", "dockerfile"),
    ("Makefile", "makefile"),
    ("README", "text"),
])
def test_get_language(name, language):
    assert get_language(Path(name)) == language
