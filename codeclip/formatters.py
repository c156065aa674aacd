"""
Output formatting for scan results.

Formats:
    standard  "// Directory Structure:" block, then "// <path>" headed files
    markdown  headings and fenced code blocks
    xml       <codebase> with CDATA file bodies
    json      metadata + files + directory structure

AIFormatter wraps any of them with a header, statistics, instructions and
suggested prompts for the assistant.
"""

from __future__ import annotations

import json
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List
from xml.sax.saxutils import quoteattr

from codeclip.scanner import FileInfo, ScanResult, render_tree

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
LARGE_CODEBASE_TOKENS = 100_000
STRUCTURE_HEADER = "// Directory Structure:"

REPLY_INSTRUCTIONS = "\n".join([
    "Reply with code using ONE of these two formats:",
    "",
    "FORMAT 1 - Complete File (default):",
    "``` // <filepath>",
    "<complete file contents>",
    "```",
    "",
    "FORMAT 2 - Search & Replace (for targeted edits):",
    "// <filepath>",
    "------- SEARCH",
    "<exact code to find>",
    "=======",
    "<replacement code>",
    "+++++++ REPLACE",
    "",
    "DECISION LOGIC:",
    "- Use Format 1 (complete file) by default for each file",
    "- Use Format 1 if user says 'full' in chat",
    "- Use Format 2 if user says 'sr' for targeted code changes only",
    "- One file per message, no extra text",
    "- Only provide files that need modification",
    "",
])

BASE_INSTRUCTIONS = [
    "Read the entire codebase before providing suggestions",
    "Consider the project structure and existing patterns",
    "Provide specific, actionable recommendations",
]

BASE_PROMPTS = [
    "What is the overall structure of this codebase?",
    "What are the main components and their responsibilities?",
    "Are there any potential improvements or issues?",
]

CONTEXTUAL_PROMPTS: Dict[str, List[str]] = {
    "small": ["What does this code do?"],
    "medium": ["How is this code organized?"],
    "large": ["What is the architecture of this system?"],
}


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass
class CodebaseStats:
    total_files: int
    total_lines: int
    total_chars: int
    estimated_tokens: int
    complexity: str
    file_types: Dict[str, int] = field(default_factory=dict)
    largest_files: List[FileInfo] = field(default_factory=list)


def estimate_tokens(text_or_chars) -> int:
    """Rough estimate: one token per four characters."""
    chars = text_or_chars if isinstance(text_or_chars, int) else len(text_or_chars)
    return math.ceil(chars / CHARS_PER_TOKEN)


def classify_complexity(file_count: int, line_count: int) -> str:
    if file_count > 50 or line_count > 15000:
        return "large"
    if file_count > 20 or line_count > 5000:
        return "medium"
    return "small"


def calculate_stats(files: List[FileInfo]) -> CodebaseStats:
    total_lines = sum(f.line_count for f in files)
    total_chars = sum(f.char_count for f in files)
    return CodebaseStats(
        total_files=len(files),
        total_lines=total_lines,
        total_chars=total_chars,
        estimated_tokens=estimate_tokens(total_chars),
        complexity=classify_complexity(len(files), total_lines),
        file_types=dict(Counter(f.language for f in files).most_common()),
        largest_files=sorted(files, key=lambda f: f.line_count, reverse=True)[:5],
    )


def add_line_numbers(content: str) -> str:
    lines = content.split("\n")
    width = len(str(len(lines)))
    return "\n".join(f"{i:>{width}} | {line}" for i, line in enumerate(lines, 1))


def _structure(result: ScanResult) -> str:
    config = result.config
    return render_tree(
        result.tree,
        use_styles=config.use_styles,
        mark_ignored=config.mark_ignored,
        visual=config.visual,
    )


# =============================================================================
# FORMATTERS
# =============================================================================

class StandardFormatter:
    """Plain concatenation with "// <path>" headers."""

    def format(self, result: ScanResult) -> str:
        sections = [f"{STRUCTURE_HEADER}\n{_structure(result)}\n"]
        sections.extend(self._file_section(f) for f in result.files)
        return "\n\n".join(sections)

    @staticmethod
    def _file_section(f: FileInfo) -> str:
        header = f"// {f.relative_path.as_posix()}"
        for line in f.content.split("\n"):
            stripped = line.strip()
            if not stripped.startswith("//"):
                break
            if stripped == header:
                return f.content
        return f"{header}\n{f.content}"


class MarkdownFormatter:
    """Headings and fenced code blocks."""

    def __init__(self, line_numbers: bool = False):
        self.line_numbers = line_numbers

    def format(self, result: ScanResult) -> str:
        lines = [
            "## 📁 Directory Structure",
            "",
            "```",
            _structure(result),
            "```",
            "",
        ]
        for f in result.files:
            content = add_line_numbers(f.content) if self.line_numbers else f.content
            lines.extend([
                f"## 📄 `{f.relative_path.as_posix()}`",
                "",
                f"```{f.language}",
                content,
                "```",
                "",
            ])
        return "\n".join(lines)


class XmlFormatter:
    """<codebase> document with CDATA bodies."""

    @staticmethod
    def _cdata(text: str) -> str:
        return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"

    def format(self, result: ScanResult) -> str:
        lines = [
            "<codebase>",
            "  <directory-structure>",
            f"    {self._cdata(_structure(result))}",
            "  </directory-structure>",
        ]
        for f in result.files:
            path = quoteattr(f.relative_path.as_posix())
            language = quoteattr(f.language)
            lines.extend([
                f"  <file path={path} language={language}>",
                f"    {self._cdata(f.content)}",
                "  </file>",
            ])
        lines.append("</codebase>")
        return "\n".join(lines)


class JsonFormatter:
    """Metadata, files and directory structure as JSON."""

    def format(self, result: ScanResult) -> str:
        stats = calculate_stats(result.files)
        output = {
            "metadata": {
                "total_files": stats.total_files,
                "total_lines": stats.total_lines,
                "estimated_tokens": stats.estimated_tokens,
                "complexity": stats.complexity,
                "project_types": list(result.config.project_types),
            },
            "files": [
                {
                    "path": f.relative_path.as_posix(),
                    "language": f.language,
                    "lines": f.line_count,
                    "content": f.content,
                }
                for f in result.files
            ],
            "directory_structure": _structure(result),
        }
        return json.dumps(output, indent=2, ensure_ascii=False)


def get_formatter(name: str, line_numbers: bool = False):
    if name == "markdown":
        return MarkdownFormatter(line_numbers)
    if name == "xml":
        return XmlFormatter()
    if name == "json":
        return JsonFormatter()
    return StandardFormatter()


# =============================================================================
# AI WRAPPER
# =============================================================================

class AIFormatter:
    """Adds assistant-oriented context around a formatted payload."""

    def format(self, result: ScanResult) -> str:
        config = result.config
        stats = calculate_stats(result.files)
        body = get_formatter(config.ai_format, config.include_line_numbers).format(result)

        sections = [
            "# 🤖 Codebase Context",
            "",
            f"**Generated:** {datetime.now(timezone.utc).isoformat(timespec='seconds')}",
        ]
        if config.primary_type:
            sections.append(f"**Project Type:** {', '.join(config.project_types)}")
        sections.extend([
            f"**Optimized for:** {config.optimize_for.upper()}",
            "",
            "---",
            "",
        ])

        if config.include_stats:
            sections.extend(self._stats_section(stats))
        if config.include_instructions:
            sections.extend(self._list_section("## 🎯 Analysis Instructions", BASE_INSTRUCTIONS))
        if config.include_prompts:
            prompts = BASE_PROMPTS + CONTEXTUAL_PROMPTS.get(stats.complexity, [])
            sections.extend(self._list_section("## 💡 Suggested Analysis Questions", prompts))

        sections.append(body)

        if stats.estimated_tokens > LARGE_CODEBASE_TOKENS:
            sections.extend([
                "",
                "---",
                "",
                "⚠️ **Large Codebase Notice:** This codebase is substantial. "
                "Consider focusing on specific modules or asking targeted questions.",
                "",
            ])
        return "\n".join(sections)

    @staticmethod
    def _stats_section(stats: CodebaseStats) -> List[str]:
        lines = [
            "## 📊 Codebase Statistics",
            "",
            f"- **Files:** {stats.total_files}",
            f"- **Lines:** {stats.total_lines:,}",
            f"- **Estimated Tokens:** ~{stats.estimated_tokens:,}",
            f"- **Complexity:** {stats.complexity}",
            "",
        ]
        if stats.file_types:
            lines.append("**File Types:**")
            lines.extend(f"- {lang}: {count} files" for lang, count in stats.file_types.items())
            lines.append("")
        if stats.largest_files:
            lines.append("**Largest Files:**")
            lines.extend(
                f"- `{f.relative_path.as_posix()}` ({f.line_count:,} lines)"
                for f in stats.largest_files
            )
            lines.append("")
        lines.extend(["---", ""])
        return lines

    @staticmethod
    def _list_section(title: str, items: List[str]) -> List[str]:
        return [title, "", *(f"- {item}" for item in items), "", "---", ""]


def build_payload(result: ScanResult) -> str:
    """Format a scan result the way its config asks for."""
    config = result.config
    wants_extras = (
        config.include_stats or config.include_prompts or config.include_instructions
    )
    if config.ai_format == "standard" and not wants_extras:
        payload = StandardFormatter().format(result)
    else:
        payload = AIFormatter().format(result)

    if config.max_tokens and estimate_tokens(payload) > config.max_tokens:
        logger.warning(
            f"Output is ~{estimate_tokens(payload):,} tokens, "
            f"above the --max-tokens limit of {config.max_tokens:,}"
        )
    return payload


def build_cpymon_payload(result: ScanResult) -> str:
    """Reply-format instructions followed by the project payload."""
    return f"{REPLY_INSTRUCTIONS}\n{build_payload(result)}"
