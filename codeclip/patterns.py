"""
Glob-like name matching used by project detection.

Only the pattern shapes the detection rules use are supported:

    "main.go"      exact literal
    "*.go"         anchored extension suffix
    "deno.*"       one wildcard, anchored at both ends

Anything else (several wildcards, ``?``, character classes, braces) is
compared literally. Matching never raises.
"""

from __future__ import annotations

WILDCARD = "*"
PATH_SEPARATORS = ("/", "\\")


def is_glob(pattern: str) -> bool:
    """True when the pattern uses the single-wildcard syntax."""
    return pattern.count(WILDCARD) == 1


def matches(pattern: str, name: str) -> bool:
    """Check if a file or folder name matches a detection pattern."""
    if pattern.count(WILDCARD) != 1:
        return name == pattern

    if pattern.startswith("*."):
        # "*.go" must not match "algorithm.gold"
        return name.endswith(pattern[1:])

    prefix, suffix = pattern.split(WILDCARD)
    if len(name) < len(prefix) + len(suffix):
        return False
    if not (name.startswith(prefix) and name.endswith(suffix)):
        return False

    middle = name[len(prefix): len(name) - len(suffix)]
    return not any(sep in middle for sep in PATH_SEPARATORS)


def match_any(pattern: str, names) -> bool:
    """True when any of the names matches the pattern."""
    return any(matches(pattern, name) for name in names)
