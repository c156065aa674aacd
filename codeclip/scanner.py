"""
Project scanning: file discovery, filtering, reading and the directory tree.

Architecture:
    ScanConfig -> ProjectScanner (ignore set, .gitignore, size, binary)
               -> ContentReader -> FileInfo list
               -> TreeBuilder -> render_tree
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import gitignore_parser

from codeclip.config import ScanConfig

logger = logging.getLogger(__name__)

BINARY_SNIFF_BYTES = 8192

LANGUAGE_HINTS: Dict[str, str] = {
    ".py": "python", ".pyi": "python",
    ".js": "javascript", ".mjs": "javascript", ".cjs": "javascript",
    ".ts": "typescript", ".mts": "typescript", ".jsx": "jsx", ".tsx": "tsx",
    ".vue": "vue", ".svelte": "svelte",
    ".java": "java", ".kt": "kotlin", ".kts": "kotlin",
    ".cs": "csharp", ".go": "go", ".rs": "rust",
    ".c": "c", ".h": "c", ".cpp": "cpp", ".cc": "cpp", ".cxx": "cpp", ".hpp": "cpp",
    ".ino": "cpp",
    ".rb": "ruby", ".php": "php", ".swift": "swift", ".scala": "scala",
    ".html": "html", ".htm": "html", ".css": "css", ".scss": "scss",
    ".json": "json", ".jsonc": "jsonc", ".yaml": "yaml", ".yml": "yaml",
    ".toml": "toml", ".xml": "xml", ".ini": "ini", ".cfg": "ini",
    ".sh": "bash", ".bash": "bash", ".zsh": "zsh", ".ps1": "powershell",
    ".sql": "sql", ".md": "markdown", ".rst": "rst",
    ".dockerfile": "dockerfile", ".tf": "terraform",
}

# Tree display glyphs
GLYPH_CHILD = "├──"
GLYPH_LAST = "└──"
GLYPH_PIPE = "│   "
GLYPH_SPACE = "    "


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass
class FileInfo:
    """Information about a processed file."""
    relative_path: Path
    absolute_path: Path
    content: str
    size_bytes: int
    line_count: int
    char_count: int
    language: str


@dataclass
class TreeNode:
    """Node in the directory tree."""
    name: str
    path: Path
    is_dir: bool
    ignored: bool = False
    children: List[TreeNode] = field(default_factory=list)


@dataclass
class ScanResult:
    """Complete scan results."""
    config: ScanConfig
    files: List[FileInfo]
    tree: List[TreeNode]
    scanned_count: int
    skipped_count: int
    duration: float


# =============================================================================
# HELPERS
# =============================================================================

def load_gitignore(root: Path) -> Optional[Callable[[str], bool]]:
    """Load the root .gitignore matcher, if there is one."""
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return None
    try:
        return gitignore_parser.parse_gitignore(str(gitignore), base_dir=str(root))
    except (OSError, ValueError) as e:
        logger.warning(f"Could not parse .gitignore: {e}")
        return None


def is_likely_binary_file(path: Path) -> bool:
    """Null-byte sniff of the first few KB."""
    try:
        with open(path, "rb") as f:
            return b"\x00" in f.read(BINARY_SNIFF_BYTES)
    except OSError:
        return True


def get_language(path: Path) -> str:
    """Language hint for syntax highlighting."""
    name = path.name
    if name == "Dockerfile":
        return "dockerfile"
    if name == "Makefile":
        return "makefile"
    return LANGUAGE_HINTS.get(path.suffix.lower(), "text")


# =============================================================================
# SCANNER
# =============================================================================

class ProjectScanner:
    """Walks the project and decides which files go into the output."""

    def __init__(
        self,
        config: ScanConfig,
        gitignore_matcher: Optional[Callable[[str], bool]] = None,
    ):
        self.config = config
        self.gitignore = gitignore_matcher
        self.self_names = {config.config_path.name}
        if config.output_file is not None:
            self.self_names.add(config.output_file.name)
        self.scanned_count = 0
        self.skipped_count = 0

    def is_ignored(self, path: Path, is_dir: bool) -> Tuple[bool, str]:
        """Ignore-list, .gitignore and self-file checks shared with the tree."""
        name = path.name
        rel = path.relative_to(self.config.root_dir).as_posix()
        ignore_set = self.config.ignore_set

        if is_dir:
            if ignore_set.is_ignored_folder(name, rel):
                return True, f"Ignored folder: {rel}"
        else:
            if name in self.self_names:
                return True, f"Own config/output file: {name}"
            if ignore_set.is_ignored_file(name):
                return True, f"Ignored file or extension: {name}"

        if self.gitignore is not None and self.gitignore(str(path)):
            return True, f"Matched .gitignore: {rel}"
        return False, ""

    def should_include(self, path: Path) -> Tuple[bool, str]:
        """Full file check: ignore rules, extension filter, size, binary."""
        ignored, reason = self.is_ignored(path, is_dir=False)
        if ignored:
            return False, reason

        if self.config.extensions and path.suffix.lower() not in self.config.extensions:
            return False, f"Extension not requested: {path.suffix}"

        try:
            size = path.stat().st_size
        except OSError:
            return False, "Cannot stat file"
        if not self.config.read_large_files and size > self.config.max_file_bytes:
            logger.warning(
                f"Skipping large file: {path.name} "
                f"(size: {size:,} bytes, max: {self.config.max_file_bytes:,} bytes)"
            )
            return False, "Too large"

        if is_likely_binary_file(path):
            return False, "Binary file"
        return True, ""

    def scan(self) -> List[Path]:
        """Return the included file paths, sorted by relative path."""
        root = self.config.root_dir
        paths: List[Path] = []

        for current, dirnames, filenames in os.walk(root):
            current_path = Path(current)
            kept = []
            for dirname in sorted(dirnames):
                dir_path = current_path / dirname
                self.scanned_count += 1
                if dir_path.is_symlink():
                    continue
                ignored, reason = self.is_ignored(dir_path, is_dir=True)
                if ignored:
                    logger.debug(f"Pruned {dir_path}: {reason}")
                    continue
                kept.append(dirname)
            dirnames[:] = kept

            for filename in filenames:
                file_path = current_path / filename
                self.scanned_count += 1
                if file_path.is_symlink():
                    continue
                ok, reason = self.should_include(file_path)
                if ok:
                    paths.append(file_path)
                else:
                    self.skipped_count += 1
                    logger.debug(f"Excluded {file_path}: {reason}")

        paths.sort(key=lambda p: p.relative_to(root).as_posix().lower())
        return paths


# =============================================================================
# CONTENT READER
# =============================================================================

class ContentReader:
    """Reads file contents into FileInfo records."""

    @staticmethod
    def read_files(paths: List[Path], root: Path, encoding: str = "utf-8") -> List[FileInfo]:
        results = []
        for path in paths:
            relative = path.relative_to(root)
            try:
                content = path.read_text(encoding=encoding, errors="ignore")
                size = path.stat().st_size
            except (OSError, LookupError) as e:
                logger.warning(f"Could not read {path}: {e}")
                continue

            logger.debug(f"[+] Processing: {relative.as_posix()}")
            results.append(FileInfo(
                relative_path=relative,
                absolute_path=path,
                content=content,
                size_bytes=size,
                line_count=content.count("\n") + 1 if content else 0,
                char_count=len(content),
                language=get_language(path),
            ))
        return results


# =============================================================================
# TREE
# =============================================================================

class TreeBuilder:
    """Builds the directory tree shown above the file contents."""

    def __init__(self, scanner: ProjectScanner):
        self.scanner = scanner
        self.root = scanner.config.root_dir
        self.include_ignored = scanner.config.include_ignored

    def build(self) -> List[TreeNode]:
        return self._build(self.root)

    def _build(self, current: Path) -> List[TreeNode]:
        nodes: List[TreeNode] = []
        try:
            items = sorted(current.iterdir(), key=lambda p: (p.is_file(), p.name.lower()))
        except OSError as e:
            logger.warning(f"Could not read directory {current}: {e}")
            return nodes

        for item in items:
            if item.is_symlink():
                continue
            is_dir = item.is_dir()
            ignored, _ = self.scanner.is_ignored(item, is_dir)
            if ignored and not self.include_ignored:
                continue

            node = TreeNode(
                name=item.name,
                path=item.relative_to(self.root),
                is_dir=is_dir,
                ignored=ignored,
            )
            if is_dir and not ignored:
                node.children = self._build(item)
            nodes.append(node)
        return nodes


def _icon(node: TreeNode, visual: Mapping[str, str]) -> str:
    if node.is_dir:
        return visual.get("folder", "📁")
    suffix = Path(node.name).suffix.lower()
    return visual.get(suffix) or visual.get("file", "📄")


def render_tree(
    nodes: List[TreeNode],
    use_styles: bool = True,
    mark_ignored: bool = False,
    visual: Optional[Mapping[str, str]] = None,
    prefix: str = "",
) -> str:
    """Render tree nodes with box-drawing glyphs."""
    visual = visual or {}
    lines: List[str] = []

    for i, node in enumerate(nodes):
        is_last = i == len(nodes) - 1
        connector = GLYPH_LAST if is_last else GLYPH_CHILD
        label = f"{_icon(node, visual)} {node.name}" if use_styles else node.name
        if mark_ignored and node.ignored and not node.is_dir:
            label += f" {visual.get('excluded', '(excluded)')}"
        lines.append(f"{prefix}{connector} {label}")

        if node.children:
            child_prefix = prefix + (GLYPH_SPACE if is_last else GLYPH_PIPE)
            lines.append(render_tree(
                node.children, use_styles, mark_ignored, visual, child_prefix
            ))

    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================

def scan_project(config: ScanConfig) -> ScanResult:
    """Scan, read and build the tree for a project."""
    start = time.time()
    matcher = load_gitignore(config.root_dir) if config.use_gitignore else None
    scanner = ProjectScanner(config, matcher)

    paths = scanner.scan()
    files = ContentReader.read_files(paths, config.root_dir, config.encoding)
    tree = TreeBuilder(scanner).build()

    duration = time.time() - start
    logger.info(
        f"Scan complete. Scanned: {scanner.scanned_count}, "
        f"Included: {len(files)}, Skipped: {scanner.skipped_count} "
        f"({duration:.3f}s)"
    )
    return ScanResult(
        config=config,
        files=files,
        tree=tree,
        scanned_count=scanner.scanned_count,
        skipped_count=scanner.skipped_count,
        duration=duration,
    )
