import pyperclip
import pytest

from codeclip.clipboard import SystemClipboard
from codeclip.errors import ClipboardError, CodeclipError


def _unavailable(*args):
    raise pyperclip.PyperclipException("could not find a copy/paste mechanism")


def test_read_failure_is_wrapped(monkeypatch):
    monkeypatch.setattr(pyperclip, "paste", _unavailable)
    with pytest.raises(ClipboardError) as exc_info:
        SystemClipboard().get_text()
    assert isinstance(exc_info.value, CodeclipError)
    assert isinstance(exc_info.value.__cause__, pyperclip.PyperclipException)


def test_write_failure_is_wrapped(monkeypatch):
    monkeypatch.setattr(pyperclip, "copy", _unavailable)
    with pytest.raises(ClipboardError):
        SystemClipboard().set_text("x")


def test_empty_clipboard_reads_as_empty_string(monkeypatch):
    monkeypatch.setattr(pyperclip, "paste", lambda: None)
    assert SystemClipboard().get_text() == ""


def test_round_trip_through_pyperclip(monkeypatch):
    store = {}
    monkeypatch.setattr(pyperclip, "copy", lambda text: store.update(text=text))
    monkeypatch.setattr(pyperclip, "paste", lambda: store.get("text", ""))
    clipboard = SystemClipboard()
    clipboard.set_text("// a.py\nx = 1\n")
    assert clipboard.get_text() == "// a.py\nx = 1\n"
