"""
Configuration: the ``codeclip.cfg`` file and the immutable scan config.

Config file format (``key: value`` lines, ``#`` comments)::

    gitignore: true
    auto_detect_project: true
    project_type: Node.js
    output_encoding: utf-8
    read_large_files: false
    max_large_files: 10MB
    files: secrets.txt, notes.md
    folders: fixtures
    ext: .snap, .log
    visual:
       style: true
       folder: 📁
       .png: 🖼️
"""

from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from codeclip.detection import ProjectDetector
from codeclip.ignores import IgnoreOverrides, IgnoreSet, normalize_extension, resolve_ignore_set

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "codeclip.cfg"
DEFAULT_MAX_LARGE_FILES = "10MB"
ONE_MB = 1024 * 1024

DEFAULT_VISUAL: Dict[str, str] = {
    "style": "true",
    "folder": "📁",
    "file": "📄",
    "excluded": "(excluded)",
}


# =============================================================================
# ENUMS AND DATA MODELS
# =============================================================================

class OutputMode(Enum):
    """Output destination modes."""
    CLIPBOARD = auto()
    FILE = auto()
    STDOUT = auto()


@dataclass
class FileConfig:
    """Settings read from (and written back to) the config file."""
    use_gitignore: bool = True
    auto_detect_project: bool = True
    project_type: Optional[str] = None
    output_encoding: str = "utf-8"
    read_large_files: bool = False
    max_large_files: str = DEFAULT_MAX_LARGE_FILES
    ignore_files: List[str] = field(default_factory=list)
    ignore_folders: List[str] = field(default_factory=list)
    ignore_extensions: List[str] = field(default_factory=list)
    visual: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_VISUAL))

    def overrides(self) -> IgnoreOverrides:
        return IgnoreOverrides(
            files=self.ignore_files,
            folders=self.ignore_folders,
            extensions=self.ignore_extensions,
        )

    def add_unique(self, attr: str, value: str) -> bool:
        """Append value to one of the ignore lists; False if already there."""
        items: List[str] = getattr(self, attr)
        if value in items:
            return False
        items.append(value)
        return True


@dataclass(frozen=True)
class ScanConfig:
    """Immutable configuration for one scan."""
    root_dir: Path
    config_path: Path
    output_mode: OutputMode
    output_file: Optional[Path]
    encoding: str

    project_types: Tuple[str, ...]
    ignore_set: IgnoreSet
    extensions: FrozenSet[str]

    use_gitignore: bool
    read_large_files: bool
    max_file_bytes: int

    # Tree display
    include_ignored: bool = False
    mark_ignored: bool = False
    use_styles: bool = True
    visual: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(DEFAULT_VISUAL)))

    # AI formatting
    ai_format: str = "standard"
    optimize_for: str = "generic"
    include_stats: bool = False
    include_prompts: bool = False
    include_instructions: bool = False
    include_line_numbers: bool = False
    max_tokens: Optional[int] = None

    @property
    def primary_type(self) -> Optional[str]:
        return self.project_types[0] if self.project_types else None


# =============================================================================
# CONFIG FILE
# =============================================================================

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(kb|mb|gb)?$", re.IGNORECASE)
_MULTIPLIERS = {"kb": 1024, "mb": ONE_MB, "gb": 1024 ** 3}


def parse_size(size_str: str) -> int:
    """Parse '10MB', '500kb', '1.5GB' to bytes. A bare number means MB."""
    match = _SIZE_RE.match(size_str.strip())
    if not match:
        logger.warning(f"Invalid size string: {size_str}. Using default 10MB.")
        return 10 * ONE_MB

    value = float(match.group(1))
    unit = (match.group(2) or "").lower()
    return int(value * _MULTIPLIERS.get(unit, ONE_MB))


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_config_text(text: str) -> FileConfig:
    """Parse config file text. Unknown keys are ignored."""
    config = FileConfig()
    visual: Dict[str, str] = {}
    in_visual = False

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line == "visual:":
            in_visual = True
            continue

        key, sep, value = line.partition(":")
        if not sep:
            continue
        key, value = key.strip(), value.strip()

        if in_visual:
            # ".png, .jpeg: 🖼️" assigns one icon to several extensions
            for name in _parse_list(key) or [key]:
                visual[name] = value
            continue

        if key == "gitignore":
            config.use_gitignore = _parse_bool(value)
        elif key == "auto_detect_project":
            config.auto_detect_project = _parse_bool(value)
        elif key == "project_type":
            config.project_type = value.strip("\"'") or None
        elif key == "output_encoding":
            config.output_encoding = value or "utf-8"
        elif key == "read_large_files":
            config.read_large_files = _parse_bool(value)
        elif key == "max_large_files":
            config.max_large_files = value or DEFAULT_MAX_LARGE_FILES
        elif key == "files":
            config.ignore_files = _parse_list(value)
        elif key == "folders":
            config.ignore_folders = _parse_list(value)
        elif key == "ext":
            config.ignore_extensions = _parse_list(value)

    if visual:
        config.visual = visual
    return config


def load_config(path: Path) -> FileConfig:
    """Load the config file, falling back to defaults when it is unusable."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.info(f"Config file '{path}' not found or unreadable ({e}). Using defaults.")
        return FileConfig()
    return parse_config_text(text)


def render_config(config: FileConfig) -> str:
    """Render a FileConfig in the config file format."""
    def flag(value: bool) -> str:
        return "true" if value else "false"

    lines = [
        "# codeclip configuration",
        "",
        "# Core Settings",
        f"gitignore: {flag(config.use_gitignore)}",
        f"auto_detect_project: {flag(config.auto_detect_project)}",
    ]
    if config.project_type:
        lines.append(f"project_type: {config.project_type}")
    lines.extend([
        f"output_encoding: {config.output_encoding}",
        f"read_large_files: {flag(config.read_large_files)}",
        f"max_large_files: {config.max_large_files}",
        "",
        "# Ignore Patterns",
        f"files: {', '.join(config.ignore_files)}",
        f"folders: {', '.join(config.ignore_folders)}",
        f"ext: {', '.join(config.ignore_extensions)}",
    ])
    if config.visual:
        lines.extend(["", "# Visual Settings", "visual:"])
        lines.extend(f"   {key}: {value}" for key, value in config.visual.items())
    return "\n".join(lines) + "\n"


def write_config(config: FileConfig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_config(config), encoding="utf-8")


# =============================================================================
# CONFIGURATION BUILDER
# =============================================================================

def prefer_deno(root: Path, project_types: List[str]) -> List[str]:
    """Make Deno the primary type when a deno.json(c) sits at the root."""
    if "Deno" not in project_types or project_types[0] == "Deno":
        return project_types
    if (root / "deno.json").exists() or (root / "deno.jsonc").exists():
        return ["Deno"] + [t for t in project_types if t != "Deno"]
    return project_types


def resolve_project_types(
    root: Path,
    file_config: FileConfig,
    auto_detect: bool = True,
    detector: Optional[ProjectDetector] = None,
) -> List[str]:
    """Detected types when detection is on, else the configured type."""
    if auto_detect and file_config.auto_detect_project:
        detector = detector or ProjectDetector()
        types = prefer_deno(root, detector.detect(root))
        if types:
            logger.info(f"📋 Detected project type(s): {', '.join(types)}")
        else:
            logger.info("🔍 No specific project type detected, using minimal defaults")
        return types
    return [file_config.project_type] if file_config.project_type else []


def parse_extensions(value: Optional[str]) -> FrozenSet[str]:
    """'.js,ts' -> {'.js', '.ts'}; empty means every extension."""
    if not value:
        return frozenset()
    return frozenset(normalize_extension(e) for e in value.split(",") if e.strip())


class ConfigBuilder:
    """Builds ScanConfig from CLI arguments and the config file."""

    @staticmethod
    def from_args(
        args: argparse.Namespace,
        file_config: FileConfig,
        detector: Optional[ProjectDetector] = None,
    ) -> ScanConfig:
        root = Path(args.directory).resolve()

        if args.output_file:
            output_mode = OutputMode.FILE
        elif args.stdout:
            output_mode = OutputMode.STDOUT
        else:
            output_mode = OutputMode.CLIPBOARD

        types = resolve_project_types(
            root, file_config, not args.no_auto_detect, detector
        )
        ignore_set = resolve_ignore_set(types, file_config.overrides())

        return ScanConfig(
            root_dir=root,
            config_path=Path(args.config_file),
            output_mode=output_mode,
            output_file=Path(args.output_file) if args.output_file else None,
            encoding=file_config.output_encoding,
            project_types=tuple(types),
            ignore_set=ignore_set,
            extensions=parse_extensions(args.extensions),
            use_gitignore=file_config.use_gitignore,
            read_large_files=file_config.read_large_files,
            max_file_bytes=parse_size(file_config.max_large_files),
            include_ignored=args.include_ignored or args.mark_ignored,
            mark_ignored=args.mark_ignored,
            use_styles=not args.no_style and file_config.visual.get("style", "true") != "false",
            visual=MappingProxyType(dict(file_config.visual)),
            ai_format=args.ai_format,
            optimize_for=args.optimize_for,
            include_stats=args.include_stats,
            include_prompts=args.include_prompts,
            include_instructions=args.include_instructions,
            include_line_numbers=args.include_line_numbers,
            max_tokens=args.max_tokens,
        )
