import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import replace
from pathlib import Path

import pytest

from codeclip.config import ONE_MB, OutputMode, ScanConfig
from codeclip.formatters import (
    REPLY_INSTRUCTIONS,
    AIFormatter,
    JsonFormatter,
    MarkdownFormatter,
    StandardFormatter,
    XmlFormatter,
    add_line_numbers,
    build_cpymon_payload,
    build_payload,
    calculate_stats,
    classify_complexity,
    estimate_tokens,
)
from codeclip.ignores import IgnoreSet
from codeclip.scanner import FileInfo, ScanResult, TreeNode


def make_file(rel: str, content: str, language: str = "python") -> FileInfo:
    return FileInfo(
        relative_path=Path(rel),
        absolute_path=Path("/project", rel),
        content=content,
        size_bytes=len(content.encode()),
        line_count=content.count("\n") + 1 if content else 0,
        char_count=len(content),
        language=language,
    )


@pytest.fixture
def config(tmp_path):
    return ScanConfig(
        root_dir=tmp_path,
        config_path=Path("codeclip.cfg"),
        output_mode=OutputMode.STDOUT,
        output_file=None,
        encoding="utf-8",
        project_types=("Python",),
        ignore_set=IgnoreSet(),
        extensions=frozenset(),
        use_gitignore=False,
        read_large_files=False,
        max_file_bytes=10 * ONE_MB,
        use_styles=False,
    )


@pytest.fixture
def result(config):
    files = [
        make_file("main.py", "print('hi')\n"),
        make_file("web/app.js", "// web/app.js\nconsole.log(1)\n", "javascript"),
    ]
    tree = [
        TreeNode("web", Path("web"), True, children=[TreeNode("app.js", Path("web/app.js"), False)]),
        TreeNode("main.py", Path("main.py"), False),
    ]
    return ScanResult(config, files, tree, scanned_count=4, skipped_count=0, duration=0.01)


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
    assert estimate_tokens(401) == 101


@pytest.mark.parametrize("files, lines, expected", [
    (5, 100, "small"),
    (21, 100, "medium"),
    (5, 5001, "medium"),
    (51, 100, "large"),
    (5, 15001, "large"),
])
def test_classify_complexity(files, lines, expected):
    assert classify_complexity(files, lines) == expected


def test_calculate_stats(result):
    stats = calculate_stats(result.files)
    assert stats.total_files == 2
    assert stats.total_lines == 5
    assert stats.file_types == {"python": 1, "javascript": 1}
    assert stats.largest_files[0].relative_path == Path("web/app.js")
    assert stats.complexity == "small"


def test_standard_format(result):
    output = StandardFormatter().format(result)
    assert output.startswith("// Directory Structure:\n├── web\n│   └── app.js\n└── main.py\n")
    assert "// main.py\nprint('hi')\n" in output
    # the file already carries its own header
    assert output.count("// web/app.js") == 1


def test_markdown_format_with_line_numbers(result):
    output = MarkdownFormatter(line_numbers=True).format(result)
    assert "## 📄 `main.py`" in output
    assert "```python\n1 | print('hi')\n2 | \n```" in output


def test_add_line_numbers_pads_to_width():
    text = "\n".join(str(i) for i in range(10))
    numbered = add_line_numbers(text).split("\n")
    assert numbered[0] == " 1 | 0"
    assert numbered[-1] == "10 | 9"


def test_xml_format_survives_cdata_terminator(result):
    tricky = make_file("x.py", "s = ']]>'\n")
    output = XmlFormatter().format(replace(result, files=[tricky]))
    root = ET.fromstring(output)
    file_element = root.find("file")
    assert file_element.get("path") == "x.py"
    assert "s = ']]>'" in file_element.text


def test_json_format(result):
    data = json.loads(JsonFormatter().format(result))
    assert data["metadata"]["total_files"] == 2
    assert data["metadata"]["project_types"] == ["Python"]
    assert [f["path"] for f in data["files"]] == ["main.py", "web/app.js"]
    assert "main.py" in data["directory_structure"]


def test_ai_formatter_sections(result, config):
    config = replace(
        config,
        ai_format="markdown",
        optimize_for="claude",
        include_stats=True,
        include_prompts=True,
        include_instructions=True,
    )
    output = AIFormatter().format(replace(result, config=config))
    assert output.startswith("# 🤖 Codebase Context")
    assert "**Project Type:** Python" in output
    assert "**Optimized for:** CLAUDE" in output
    assert "## 📊 Codebase Statistics" in output
    assert "## 🎯 Analysis Instructions" in output
    assert "What does this code do?" in output
    assert "## 📄 `main.py`" in output
    assert "Large Codebase Notice" not in output


def test_large_codebase_notice(result, config):
    big = make_file("big.py", "x" * 400_004)
    output = AIFormatter().format(replace(result, config=replace(config, ai_format="json"), files=[big]))
    assert "Large Codebase Notice" in output


def test_build_payload_plain_standard(result):
    assert build_payload(result) == StandardFormatter().format(result)


def test_build_payload_wraps_when_extras_requested(result, config):
    output = build_payload(replace(result, config=replace(config, include_stats=True)))
    assert output.startswith("# 🤖 Codebase Context")
    assert "// Directory Structure:" in output


def test_build_payload_warns_over_max_tokens(result, config, caplog):
    with caplog.at_level(logging.WARNING):
        build_payload(replace(result, config=replace(config, max_tokens=5)))
    assert "--max-tokens" in caplog.text


def test_cpymon_payload_starts_with_reply_instructions(result):
    output = build_cpymon_payload(result)
    assert output.startswith(REPLY_INSTRUCTIONS)
    assert "------- SEARCH" in output
    assert output.endswith(StandardFormatter().format(result))
