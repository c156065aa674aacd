"""
Ignore-pattern resolution.

The effective ignore set is the union of a common baseline, the defaults
registered for every detected project type and the user's own lists from the
config file. Membership is an exact name or extension match; glob-looking
entries such as ``*.pyc`` only ever match a file literally named that way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, FrozenSet, Iterable, List, Optional


@dataclass(frozen=True)
class IgnorePatterns:
    """Raw ignore lists as registered for a project type."""
    files: FrozenSet[str] = frozenset()
    folders: FrozenSet[str] = frozenset()
    extensions: FrozenSet[str] = frozenset()


def _patterns(files=(), folders=(), extensions=()) -> IgnorePatterns:
    return IgnorePatterns(
        files=frozenset(files),
        folders=frozenset(folders),
        extensions=frozenset(extensions),
    )


COMMON_IGNORE_PATTERNS = _patterns(
    files=[".DS_Store", "Thumbs.db", "desktop.ini", "*.swp", "*.swo", "*~"],
    folders=[".git", ".svn", ".hg", ".idea", ".vscode", "*.tmp", "tmp", "temp"],
    extensions=[".tmp", ".temp", ".bak", ".backup", ".old"],
)

DEFAULT_IGNORE_PATTERNS: Dict[str, IgnorePatterns] = {
    "Next.js": _patterns(
        files=[".env.local", ".env.development.local", ".env.test.local", ".env.production.local"],
        folders=[".next", "out", "dist", "node_modules", ".vercel", ".netlify"],
        extensions=[".log", ".lock"],
    ),
    "Vue.js": _patterns(
        files=[".env.local", ".env.*.local"],
        folders=["dist", "node_modules", ".nuxt", ".output", ".cache", ".temp"],
        extensions=[".log", ".lock"],
    ),
    "React": _patterns(
        files=[".env.local", ".env.development.local", ".env.test.local", ".env.production.local"],
        folders=["build", "dist", "node_modules", ".cache"],
        extensions=[".log", ".lock"],
    ),
    "Deno": _patterns(
        files=["deno.lock", ".env"],
        folders=[".deno", "vendor"],
        extensions=[".log", ".cache"],
    ),
    "Node.js": _patterns(
        files=[".env", ".env.local", ".env.*.local", "npm-debug.log*", "yarn-debug.log*", "yarn-error.log*"],
        folders=["node_modules", "dist", "build", ".nyc_output", "coverage", ".cache"],
        extensions=[".log", ".lock", ".tgz", ".tar.gz"],
    ),
    "Python": _patterns(
        files=[".env", "*.pyc", "*.pyo", "*.pyd", ".Python", "pip-log.txt", "pip-delete-this-directory.txt"],
        folders=["__pycache__", "*.egg-info", "dist", "build", ".pytest_cache", ".coverage",
                 ".mypy_cache", "venv", ".venv", "env", ".env", "ENV", "env.bak", "venv.bak"],
        extensions=[".pyc", ".pyo", ".pyd", ".so", ".egg", ".whl"],
    ),
    "Rust": _patterns(
        files=["Cargo.lock"],
        folders=["target", ".cargo"],
        extensions=[".rlib", ".rmeta", ".crate"],
    ),
    "Go": _patterns(
        files=["go.sum"],
        folders=["vendor", "bin", "pkg"],
        extensions=[".exe", ".test", ".prof"],
    ),
    "Arduino": _patterns(
        files=["*.hex", "*.bin", "*.elf"],
        folders=["build", ".vscode"],
        extensions=[".hex", ".bin", ".elf", ".map", ".lst"],
    ),
    "ESP-IDF": _patterns(
        files=["sdkconfig.old", "*.bin", "*.elf", "*.map"],
        folders=["build", "managed_components", ".espressif"],
        extensions=[".bin", ".elf", ".map", ".hex"],
    ),
    "C/C++": _patterns(
        files=["*.o", "*.obj", "*.exe", "*.dll", "*.so", "*.dylib", "core", "a.out"],
        folders=["build", "bin", "obj", ".vs", "Debug", "Release"],
        extensions=[".o", ".obj", ".exe", ".dll", ".so", ".dylib", ".a", ".lib", ".pdb", ".ilk", ".exp"],
    ),
    "Java": _patterns(
        files=["*.class", "*.jar", "*.war", "*.ear", "hs_err_pid*"],
        folders=["target", "build", ".gradle", ".mvn", "bin"],
        extensions=[".class", ".jar", ".war", ".ear"],
    ),
    "C#/.NET": _patterns(
        files=["*.exe", "*.dll", "*.pdb", "*.cache"],
        folders=["bin", "obj", "packages", ".vs", ".vscode", "TestResults"],
        extensions=[".exe", ".dll", ".pdb", ".cache", ".user", ".suo"],
    ),
    "PHP": _patterns(
        files=[".env", "composer.phar"],
        folders=["vendor", "storage/logs", "bootstrap/cache"],
        extensions=[".log"],
    ),
    "Ruby": _patterns(
        files=[".env", "*.gem", ".bundle"],
        folders=["vendor/bundle", ".bundle", "log", "tmp"],
        extensions=[".gem", ".rbc"],
    ),
    "Swift": _patterns(
        files=["*.xcuserstate", "*.xcuserdatad"],
        folders=[".build", "DerivedData", "xcuserdata", ".swiftpm"],
        extensions=[".xcuserstate", ".xcuserdatad"],
    ),
    "Kotlin": _patterns(
        files=["*.class", "*.jar", "*.war", "*.ear"],
        folders=["build", ".gradle", "bin"],
        extensions=[".class", ".jar", ".war", ".ear"],
    ),
}


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and make sure it has a leading dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext


def name_extensions(name: str) -> List[str]:
    """All trailing dotted suffixes of a name: "a.tar.gz" -> [".gz", ".tar.gz"]."""
    suffixes = PurePath(name).suffixes
    return ["".join(suffixes[i:]).lower() for i in range(len(suffixes) - 1, -1, -1)]


@dataclass(frozen=True)
class IgnoreSet:
    """Effective files, folders and extensions to leave out of the output."""
    files: FrozenSet[str] = field(default_factory=frozenset)
    folders: FrozenSet[str] = field(default_factory=frozenset)
    extensions: FrozenSet[str] = field(default_factory=frozenset)

    def is_ignored_file(self, name: str) -> bool:
        if name in self.files:
            return True
        return any(ext in self.extensions for ext in name_extensions(name))

    def is_ignored_folder(self, name: str, rel_path: Optional[str] = None) -> bool:
        """Match a folder by name, or by its root-relative posix path."""
        if name in self.folders:
            return True
        return rel_path is not None and rel_path in self.folders


@dataclass(frozen=True)
class IgnoreOverrides:
    """User-declared ignore lists, usually from the config file."""
    files: Iterable[str] = ()
    folders: Iterable[str] = ()
    extensions: Iterable[str] = ()


def resolve_ignore_set(
    project_types: Iterable[str],
    overrides: Optional[IgnoreOverrides] = None,
) -> IgnoreSet:
    """Merge the baseline, per-type defaults and user overrides."""
    overrides = overrides or IgnoreOverrides()

    files = set(COMMON_IGNORE_PATTERNS.files)
    folders = set(COMMON_IGNORE_PATTERNS.folders)
    extensions = set(COMMON_IGNORE_PATTERNS.extensions)

    for project_type in project_types:
        defaults = DEFAULT_IGNORE_PATTERNS.get(project_type)
        if defaults is None:
            continue
        files.update(defaults.files)
        folders.update(defaults.folders)
        extensions.update(defaults.extensions)

    files.update(f for f in overrides.files if f)
    folders.update(f.strip("/") for f in overrides.folders if f.strip("/"))
    extensions.update(
        normalize_extension(e) for e in overrides.extensions if e.strip()
    )

    return IgnoreSet(
        files=frozenset(files),
        folders=frozenset(folders),
        extensions=frozenset(extensions),
    )
