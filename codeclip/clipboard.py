"""Clipboard access, behind a small get/set interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

import pyperclip

from codeclip.errors import ClipboardError


class ClipboardBridge(ABC):
    """Reads and writes the platform clipboard as plain text."""

    @abstractmethod
    def get_text(self) -> str:
        """Return the current clipboard text ("" when empty)."""
        pass

    @abstractmethod
    def set_text(self, text: str) -> None:
        """Replace the clipboard contents with text."""
        pass


class SystemClipboard(ClipboardBridge):
    """Clipboard backed by pyperclip (pbcopy, xclip/xsel/wl-clipboard, win32)."""

    def get_text(self) -> str:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Could not read clipboard: {e}") from e
        return text or ""

    def set_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Could not write clipboard: {e}") from e
