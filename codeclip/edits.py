"""
Classification of pasted assistant replies into file edits.

Two payload shapes are recognised::

    // src/app.ts                 // src/app.ts
    <whole new file content>      ------- SEARCH
                                  <exact text to find>
                                  =======
                                  <replacement>
                                  +++++++ REPLACE

Either may be wrapped in a fence whose opening line carries the path
marker, e.g. ```` ```// src/app.ts ````. Anything else is not an edit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from codeclip.errors import InvalidEditError

PATH_MARKER = "//"
FENCE = "```"
SEARCH_MARKER = "------- SEARCH"
SEPARATOR_MARKER = "======="
REPLACE_MARKER = "+++++++ REPLACE"

MAX_PAYLOAD_CHARS = 10 * 1024 * 1024


@dataclass(frozen=True)
class WholeFile:
    """Replace (or create) a file with new content."""
    path: str
    content: str


@dataclass(frozen=True)
class SearchReplace:
    """Replace the first occurrence of ``search`` in a file."""
    path: str
    search: str
    replace: str


EditOperation = Union[WholeFile, SearchReplace]


def looks_like_path(candidate: str) -> bool:
    """A single printable token with a separator or an extension dot, and not a URL."""
    if not candidate or not candidate.isprintable():
        return False
    if any(ch.isspace() for ch in candidate):
        return False
    if "://" in candidate:
        return False
    return "/" in candidate or "\\" in candidate or "." in candidate


def parse_path_line(line: str) -> Tuple[Optional[str], bool]:
    """Extract the declared path from a header line.

    Returns ``(path, fenced)``; path is None when the line is not a marker.
    """
    line = line.strip()
    fenced = line.startswith(FENCE)
    if fenced:
        line = line[len(FENCE):].strip()

    if not line.startswith(PATH_MARKER):
        return None, fenced

    path = line[len(PATH_MARKER):].strip()
    if not looks_like_path(path):
        return None, fenced
    return path, fenced


def _split_header(text: str) -> Optional[Tuple[str, bool, List[str]]]:
    lines = text.split("\n")
    for index, line in enumerate(lines):
        if not line.strip():
            continue
        path, fenced = parse_path_line(line)
        if path is None:
            return None
        return path, fenced, lines[index + 1:]
    return None


def find_search_replace(text: str) -> Optional[Tuple[str, str]]:
    """Locate the three markers in order and return (search, replace)."""
    begin = text.find(SEARCH_MARKER)
    if begin == -1:
        return None
    separator = text.find(SEPARATOR_MARKER, begin + len(SEARCH_MARKER))
    if separator == -1:
        return None
    end = text.find(REPLACE_MARKER, separator + len(SEPARATOR_MARKER))
    if end == -1:
        return None

    search = text[begin + len(SEARCH_MARKER): separator].strip()
    replace = text[separator + len(SEPARATOR_MARKER): end].strip()
    return search, replace


def _whole_file_content(body: List[str], fenced: bool) -> str:
    if not fenced:
        return "\n".join(body)

    body = list(body)
    while body and not body[-1].strip():
        body.pop()
    if body and body[-1].strip() == FENCE:
        body.pop()
    return "\n".join(body) + "\n" if body else ""


def classify(text: str) -> Optional[EditOperation]:
    """Turn clipboard text into an edit operation.

    Returns None when the text is not an edit payload at all. Raises
    InvalidEditError for a search/replace block with an empty search.
    """
    if not text or len(text) > MAX_PAYLOAD_CHARS:
        return None

    text = text.replace("\r\n", "\n")
    header = _split_header(text)
    if header is None:
        return None
    path, fenced, body = header

    markers = find_search_replace(text)
    if markers is not None:
        search, replace = markers
        if not search:
            raise InvalidEditError(f"Empty search block for {path}")
        return SearchReplace(path=path, search=search, replace=replace)

    return WholeFile(path=path, content=_whole_file_content(body, fenced))
