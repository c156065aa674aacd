"""Exception types for codeclip."""

from __future__ import annotations

from pathlib import Path


class CodeclipError(Exception):
    """Base exception for codeclip errors."""

    pass


class ClipboardError(CodeclipError):
    """The platform clipboard could not be read or written."""

    pass


class EditError(CodeclipError):
    """Base exception for edits that could not be applied."""

    pass


class InvalidEditError(EditError):
    """The pasted edit is malformed (e.g. an empty search block)."""

    pass


class UnsafePathError(EditError):
    """The declared path resolves outside the project root.

    Raised before anything touches the filesystem. Both paths are kept so the
    caller can report exactly what was blocked.
    """

    def __init__(self, root: Path, target: Path):
        self.root = root
        self.target = target
        super().__init__(f"Path {target} is outside of project root {root}")


class SearchNotFoundError(EditError):
    """The search text of a search/replace edit is not in the target file."""

    PREVIEW_CHARS = 50

    def __init__(self, path: Path, search: str):
        self.path = path
        self.search = search
        super().__init__(f"Search pattern not found in {path}")

    @property
    def preview(self) -> str:
        flat = self.search[: self.PREVIEW_CHARS].replace("\n", " ")
        if len(self.search) > self.PREVIEW_CHARS:
            flat += "..."
        return flat
