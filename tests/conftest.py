from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

from codeclip.clipboard import ClipboardBridge
from codeclip.errors import ClipboardError


class FakeClipboard(ClipboardBridge):
    """In-memory clipboard."""

    def __init__(self, text: str = ""):
        self.text = text
        self.reads = 0
        self.writes: List[str] = []
        self.fail_reads = False

    def get_text(self) -> str:
        self.reads += 1
        if self.fail_reads:
            raise ClipboardError("clipboard unavailable")
        return self.text

    def set_text(self, text: str) -> None:
        self.writes.append(text)
        self.text = text


class ScriptedClipboard(FakeClipboard):
    """Returns the scripted texts in order, then calls on_exhausted."""

    def __init__(self, texts: List[str], on_exhausted: Optional[Callable[[], None]] = None):
        super().__init__(texts[0] if texts else "")
        self.texts = list(texts)
        self.on_exhausted = on_exhausted

    def get_text(self) -> str:
        index = self.reads
        self.reads += 1
        if index >= len(self.texts) - 1 and self.on_exhausted is not None:
            self.on_exhausted()
        return self.texts[min(index, len(self.texts) - 1)]


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[Dict[str, Union[str, bytes]]], Path]:
    """Create files under tmp_path; names ending in "/" become directories."""

    def _write(files: Dict[str, Union[str, bytes]]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            if name.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
