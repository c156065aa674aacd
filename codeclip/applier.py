"""
Writes classified edits to disk.

Every write goes through a temporary file in the target directory that is
renamed over the destination, so a failed edit never leaves a half-written
file behind. A search/replace reads the file and then writes it back; an
editor saving the same file in between wins or loses that race.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from codeclip.edits import EditOperation, SearchReplace, WholeFile
from codeclip.errors import SearchNotFoundError

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def write_atomic(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Replace path with content via temp file + rename.

    An existing file keeps its mode; a new one gets 0o666 minus the umask.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class EditApplier:
    """Applies WholeFile and SearchReplace operations to resolved paths."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def apply(self, operation: EditOperation, target: Path) -> None:
        """Apply an edit to an already validated target path.

        Raises SearchNotFoundError, or OSError on read/write failures. The
        target is left untouched in both cases.
        """
        if isinstance(operation, WholeFile):
            self.replace_file(target, operation.content)
        elif isinstance(operation, SearchReplace):
            self.search_replace(target, operation.search, operation.replace)
        else:
            raise TypeError(f"Unsupported edit operation: {operation!r}")

    def replace_file(self, target: Path, content: str) -> None:
        logger.debug(f"Writing {len(content):,} chars to {target}")
        write_atomic(target, content, self.encoding)

    def search_replace(self, target: Path, search: str, replace: str) -> None:
        with open(target, "r", encoding=self.encoding, newline="") as f:
            original = f.read()

        if "\r\n" in original:
            search = search.replace("\n", "\r\n")
            replace = replace.replace("\n", "\r\n")

        if search not in original:
            raise SearchNotFoundError(target, search)

        write_atomic(target, original.replace(search, replace, 1), self.encoding)
