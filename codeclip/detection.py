"""
Heuristic project-type detection.

Each ecosystem rule is scored independently against a directory:

    file indicators  -> folder indicators -> content patterns
         (3-5)               (2)                  (1)

The raw score is normalised by the number of declared indicators to give a
confidence, survivors are ranked by confidence (priority breaks near-ties),
and the three best names are returned.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from functools import cmp_to_key
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from codeclip.patterns import is_glob, match_any

logger = logging.getLogger(__name__)


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class ProjectRule:
    """Static detection profile for one ecosystem."""
    name: str
    priority: int
    file_patterns: Tuple[str, ...] = ()
    folder_patterns: Tuple[str, ...] = ()
    content_patterns: Tuple[str, ...] = ()

    @property
    def indicator_count(self) -> int:
        return (
            len(self.file_patterns)
            + len(self.folder_patterns)
            + len(self.content_patterns)
        )


@dataclass
class DetectionCandidate:
    """Scored rule that survived the detection threshold."""
    name: str
    priority: int
    confidence: float
    raw_score: int = 0
    matches: int = 0


@dataclass(frozen=True)
class ManifestCheck:
    """Shared manifest that only counts fully when it declares a dependency."""
    manifest: str
    dependency: str


@dataclass(frozen=True)
class SourceRequirement:
    """Build files that only count next to at least one source file."""
    build_files: FrozenSet[str]
    source_suffixes: Tuple[str, ...]


# =============================================================================
# CONSTANTS
# =============================================================================

class Weights:
    """Score contributed by each kind of matching indicator."""
    GLOB_FILE = 4
    FILE = 3
    MANIFEST_DEPENDENCY = 5
    MANIFEST_UNREADABLE = 3
    FOLDER = 2
    CONTENT = 1
    MIN_SCORE = 2


TIE_DELTA = 0.2
MAX_RESULTS = 3
SCAN_DEPTH = 2
SOURCE_DIRS: FrozenSet[str] = frozenset({
    "src", "lib", "app", "pages", "components", "main",
})


PROJECT_RULES: Tuple[ProjectRule, ...] = (
    ProjectRule(
        name="Next.js",
        priority=10,
        file_patterns=("next.config.js", "next.config.ts", "next.config.mjs"),
        folder_patterns=(".next",),
        content_patterns=("pages/", "app/", "components/"),
    ),
    ProjectRule(
        name="Vue.js",
        priority=9,
        file_patterns=("vue.config.js", "vite.config.js", "nuxt.config.js", "nuxt.config.ts"),
        folder_patterns=(".nuxt", "dist"),
        content_patterns=("*.vue",),
    ),
    ProjectRule(
        name="React",
        priority=8,
        file_patterns=("package.json",),
        content_patterns=("*.jsx", "*.tsx", "components/", "pages/", "app/"),
    ),
    ProjectRule(
        name="Deno",
        priority=10,
        file_patterns=("deno.json", "deno.jsonc", "import_map.json"),
        content_patterns=("deps.ts", "mod.ts", "main.ts"),
    ),
    ProjectRule(
        name="Node.js",
        priority=8,
        file_patterns=("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml"),
        folder_patterns=("node_modules",),
    ),
    ProjectRule(
        name="Python",
        priority=7,
        file_patterns=("requirements.txt", "setup.py", "pyproject.toml", "Pipfile", "poetry.lock"),
        folder_patterns=("__pycache__", "venv", ".venv", "env", ".env"),
        content_patterns=("*.py",),
    ),
    ProjectRule(
        name="Rust",
        priority=7,
        file_patterns=("Cargo.toml", "Cargo.lock"),
        folder_patterns=("target",),
        content_patterns=("*.rs",),
    ),
    ProjectRule(
        name="Go",
        priority=7,
        file_patterns=("go.mod", "go.sum"),
        folder_patterns=("vendor",),
        content_patterns=("*.go",),
    ),
    ProjectRule(
        name="Arduino",
        priority=6,
        file_patterns=("*.ino",),
        folder_patterns=("libraries", "hardware"),
        content_patterns=("*.ino",),
    ),
    ProjectRule(
        name="ESP-IDF",
        priority=8,
        file_patterns=("CMakeLists.txt", "sdkconfig", "idf_component.yml"),
        folder_patterns=("build", "managed_components"),
        content_patterns=("main/", "components/"),
    ),
    ProjectRule(
        name="C/C++",
        priority=5,
        file_patterns=("Makefile", "CMakeLists.txt", "configure.ac"),
        folder_patterns=("build", "obj"),
        content_patterns=("*.c", "*.cpp", "*.cc", "*.cxx", "*.h", "*.hpp"),
    ),
    ProjectRule(
        name="Java",
        priority=6,
        file_patterns=("pom.xml", "build.gradle", "gradle.properties"),
        folder_patterns=("target", "build", ".gradle"),
        content_patterns=("*.java",),
    ),
    ProjectRule(
        name="C#/.NET",
        priority=6,
        file_patterns=("*.csproj", "*.sln", "project.json", "packages.config"),
        folder_patterns=("bin", "obj", "packages"),
        content_patterns=("*.cs",),
    ),
    ProjectRule(
        name="PHP",
        priority=5,
        file_patterns=("composer.json", "composer.lock"),
        folder_patterns=("vendor",),
        content_patterns=("*.php",),
    ),
    ProjectRule(
        name="Ruby",
        priority=5,
        file_patterns=("Gemfile", "Gemfile.lock", "Rakefile"),
        folder_patterns=("vendor/bundle",),
        content_patterns=("*.rb",),
    ),
    ProjectRule(
        name="Swift",
        priority=6,
        file_patterns=("Package.swift", "*.xcodeproj", "*.xcworkspace"),
        folder_patterns=(".build", "DerivedData"),
        content_patterns=("*.swift",),
    ),
    ProjectRule(
        name="Kotlin",
        priority=6,
        file_patterns=("build.gradle.kts", "settings.gradle.kts"),
        folder_patterns=("build", ".gradle"),
        content_patterns=("*.kt", "*.kts"),
    ),
)

MANIFEST_CHECKS: Dict[str, ManifestCheck] = {
    "React": ManifestCheck(manifest="package.json", dependency="react"),
}

SOURCE_REQUIREMENTS: Dict[str, SourceRequirement] = {
    "C/C++": SourceRequirement(
        build_files=frozenset({"Makefile", "CMakeLists.txt", "configure.ac"}),
        source_suffixes=(".c", ".cpp", ".cc", ".cxx", ".c++"),
    ),
}


def get_rule(name: str) -> Optional[ProjectRule]:
    """Look up a detection rule by project type name."""
    for rule in PROJECT_RULES:
        if rule.name == name:
            return rule
    return None


# =============================================================================
# DIRECTORY LISTING
# =============================================================================

def list_top_level_files(root: Path) -> List[str]:
    """Names of the regular files directly inside root."""
    with os.scandir(root) as entries:
        return [entry.name for entry in entries if entry.is_file()]


def collect_entries(
    root: Path, max_depth: int = SCAN_DEPTH
) -> Tuple[List[str], List[str]]:
    """Collect file names and "dir/" names, descending only into source dirs."""
    files: List[str] = []
    dirs: List[str] = []

    def walk(current: Union[str, Path], depth: int) -> None:
        if depth > max_depth:
            return
        with os.scandir(current) as entries:
            for entry in entries:
                if entry.is_file():
                    files.append(entry.name)
                elif entry.is_dir():
                    dirs.append(entry.name + "/")
                    if entry.name in SOURCE_DIRS:
                        walk(entry.path, depth + 1)

    walk(root, 0)
    return files, dirs


class _DirectoryView:
    """Lazily cached listings of one directory, scoped to a single rule."""

    def __init__(self, root: Path):
        self.root = root
        self._top_files: Optional[List[str]] = None
        self._tree: Optional[Tuple[List[str], List[str]]] = None

    @property
    def top_files(self) -> List[str]:
        if self._top_files is None:
            self._top_files = list_top_level_files(self.root)
        return self._top_files

    @property
    def tree(self) -> Tuple[List[str], List[str]]:
        if self._tree is None:
            self._tree = collect_entries(self.root)
        return self._tree


# =============================================================================
# DETECTOR
# =============================================================================

def _compare(a: DetectionCandidate, b: DetectionCandidate) -> int:
    if abs(a.confidence - b.confidence) < TIE_DELTA:
        return b.priority - a.priority
    return -1 if a.confidence > b.confidence else 1


class ProjectDetector:
    """Scores a directory against the project rule table."""

    def __init__(
        self,
        rules: Sequence[ProjectRule] = PROJECT_RULES,
        max_results: int = MAX_RESULTS,
    ):
        self.rules = rules
        self.max_results = max_results

    def detect(self, root: Union[str, Path]) -> List[str]:
        """Return up to ``max_results`` project type names, best first."""
        return [c.name for c in self.score(root)[: self.max_results]]

    def score(self, root: Union[str, Path]) -> List[DetectionCandidate]:
        """Score every rule and return the ranked survivors."""
        root = Path(root)
        candidates: List[DetectionCandidate] = []

        for rule in sorted(self.rules, key=lambda r: r.priority, reverse=True):
            try:
                candidate = self._score_rule(rule, root)
            except (OSError, ValueError) as e:
                logger.debug(f"Detection rule {rule.name} skipped: {e}")
                continue
            if candidate is not None:
                candidates.append(candidate)

        candidates.sort(key=cmp_to_key(_compare))
        return candidates

    def _score_rule(
        self, rule: ProjectRule, root: Path
    ) -> Optional[DetectionCandidate]:
        view = _DirectoryView(root)
        raw = 0
        matched = 0

        for pattern in rule.file_patterns:
            weight = self._file_weight(rule, pattern, view)
            if weight:
                raw += weight
                matched += 1

        for folder in rule.folder_patterns:
            if (root / folder).is_dir():
                raw += Weights.FOLDER
                matched += 1

        if rule.content_patterns:
            files, dirs = view.tree
            for pattern in rule.content_patterns:
                if self._content_matches(pattern, files, dirs):
                    raw += Weights.CONTENT
                    matched += 1

        if matched == 0 or raw < Weights.MIN_SCORE:
            return None

        confidence = raw / rule.indicator_count if rule.indicator_count else 0.0
        logger.debug(
            f"Rule {rule.name}: score={raw} matches={matched} "
            f"confidence={confidence:.2f}"
        )
        return DetectionCandidate(
            name=rule.name,
            priority=rule.priority,
            confidence=confidence,
            raw_score=raw,
            matches=matched,
        )

    def _file_weight(
        self, rule: ProjectRule, pattern: str, view: _DirectoryView
    ) -> int:
        if is_glob(pattern):
            return Weights.GLOB_FILE if match_any(pattern, view.top_files) else 0

        path = view.root / pattern
        if not path.exists():
            return 0

        check = MANIFEST_CHECKS.get(rule.name)
        if check is not None and check.manifest == pattern:
            return self._manifest_weight(path, check.dependency)

        requirement = SOURCE_REQUIREMENTS.get(rule.name)
        if requirement is not None and pattern in requirement.build_files:
            has_sources = any(
                name.lower().endswith(requirement.source_suffixes)
                for name in view.top_files
            )
            return Weights.FILE if has_sources else 0

        return Weights.FILE

    @staticmethod
    def _manifest_weight(path: Path, dependency: str) -> int:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return Weights.MANIFEST_UNREADABLE
        if not isinstance(data, dict):
            return Weights.MANIFEST_UNREADABLE

        for section in ("dependencies", "devDependencies"):
            declared = data.get(section)
            if isinstance(declared, dict) and dependency in declared:
                return Weights.MANIFEST_DEPENDENCY
        return 0

    @staticmethod
    def _content_matches(pattern: str, files: List[str], dirs: List[str]) -> bool:
        if pattern.endswith("/"):
            return pattern in dirs
        if is_glob(pattern):
            return match_any(pattern, files)
        return pattern in files


def detect_project_types(root: Union[str, Path]) -> List[str]:
    """Detect the most likely project types of a directory."""
    return ProjectDetector().detect(root)
