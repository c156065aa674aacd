"""
Clipboard monitor: polls the clipboard and applies pasted edits.

    IDLE --(new, non-blank clipboard text)--> DISPATCHING
    DISPATCHING: classify -> resolve path -> apply -> IDLE

Cancellation goes through a CancellationToken. The sleep between polls waits
on the token, so cancelling wakes the loop immediately instead of after a
full interval.
"""

from __future__ import annotations

import logging
import signal
import threading
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Optional

from codeclip.applier import EditApplier
from codeclip.clipboard import ClipboardBridge
from codeclip.edits import EditOperation, SearchReplace, classify
from codeclip.errors import (
    ClipboardError,
    InvalidEditError,
    SearchNotFoundError,
    UnsafePathError,
)
from codeclip.paths import normalize_root, resolve_safe_path

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000
MIN_INTERVAL_MS = 100


class CancellationToken:
    """Thread-safe stop flag that also wakes sleepers."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)


class MonitorState(Enum):
    IDLE = auto()
    DISPATCHING = auto()


class DispatchOutcome(Enum):
    """What happened to one clipboard change."""
    IGNORED = auto()   # not an edit payload
    INVALID = auto()   # malformed edit, e.g. empty search
    BLOCKED = auto()   # path outside the project root
    APPLIED = auto()
    FAILED = auto()    # search not found or I/O error


@dataclass
class MonitorOptions:
    project_dir: Path
    interval_ms: int = DEFAULT_INTERVAL_MS
    verbose: bool = False
    encoding: str = "utf-8"
    skip_initial: bool = True


class MonitorLoop:
    """Sequential poll -> dispatch -> sleep loop."""

    def __init__(
        self,
        options: MonitorOptions,
        clipboard: ClipboardBridge,
        token: Optional[CancellationToken] = None,
        applier: Optional[EditApplier] = None,
    ):
        self.options = options
        self.clipboard = clipboard
        self.token = token or CancellationToken()
        self.applier = applier or EditApplier(options.encoding)
        self.root = normalize_root(options.project_dir)
        self.state = MonitorState.IDLE
        self.last_seen: Optional[str] = None

    # -------------------------------------------------------------------------
    # Loop control
    # -------------------------------------------------------------------------

    def run(self, install_signal_handlers: bool = True) -> None:
        """Poll until the token is cancelled.

        SIGINT/SIGTERM cancel the token while the loop runs; the previous
        handlers are always restored on exit.
        """
        previous = self._install_signal_handlers() if install_signal_handlers else {}
        logger.info(f"🔍 Monitoring clipboard for project: {self.root}")
        logger.info(f"⏱️  Check interval: {self.options.interval_ms}ms")

        try:
            if self.options.skip_initial:
                self._prime()
            interval = self.options.interval_ms / 1000.0
            while not self.token.cancelled:
                self.poll_once()
                if self.token.wait(interval):
                    break
        except Exception:
            logger.exception("Clipboard monitor stopped unexpectedly")
            raise
        finally:
            self._restore_signal_handlers(previous)
            logger.info("🛑 Clipboard monitor stopped")

    def stop(self) -> None:
        self.token.cancel()

    def _prime(self) -> None:
        try:
            self.last_seen = self.clipboard.get_text()
        except ClipboardError as e:
            logger.debug(f"Initial clipboard read failed: {e}")

    def _install_signal_handlers(self) -> Dict[int, Any]:
        if threading.current_thread() is not threading.main_thread():
            return {}

        def handler(signum, frame):
            self.token.cancel()

        previous: Dict[int, Any] = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handler)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    # -------------------------------------------------------------------------
    # One tick
    # -------------------------------------------------------------------------

    def poll_once(self) -> Optional[DispatchOutcome]:
        """Read the clipboard once and dispatch it if it changed."""
        try:
            text = self.clipboard.get_text()
        except ClipboardError as e:
            if self.options.verbose:
                logger.warning(f"Error checking clipboard: {e}")
            return None

        if text == self.last_seen or not text.strip():
            return None
        self.last_seen = text

        self.state = MonitorState.DISPATCHING
        try:
            return self.dispatch(text)
        finally:
            self.state = MonitorState.IDLE

    def dispatch(self, text: str) -> DispatchOutcome:
        """Classify, validate and apply one clipboard payload."""
        try:
            operation = classify(text)
        except InvalidEditError as e:
            logger.warning(f"❌ {e}")
            return DispatchOutcome.INVALID

        if operation is None:
            logger.debug("Clipboard changed, but it is not an edit payload")
            return DispatchOutcome.IGNORED

        try:
            target = resolve_safe_path(self.root, operation.path)
        except UnsafePathError as e:
            logger.warning("❌ Blocked write attempt outside of project directory:")
            logger.warning(f"   Base: {e.root}")
            logger.warning(f"   Target: {e.target}")
            return DispatchOutcome.BLOCKED

        return self._apply(operation, target)

    def _apply(self, operation: EditOperation, target: Path) -> DispatchOutcome:
        kind = "search-and-replace" if isinstance(operation, SearchReplace) else "file replacement"
        logger.info(f"📝 Processing {kind}: {target}")
        try:
            self.applier.apply(operation, target)
        except SearchNotFoundError as e:
            logger.warning(f"❌ Search pattern not found in {e.path}")
            if self.options.verbose:
                logger.warning(f'   Search pattern: "{e.preview}"')
            return DispatchOutcome.FAILED
        except (OSError, UnicodeError, LookupError, ValueError) as e:
            logger.error(f"❌ Could not update {target}: {e}")
            return DispatchOutcome.FAILED

        if isinstance(operation, SearchReplace):
            logger.info(f"✅ Code section replaced in: {target}")
        else:
            logger.info(f"✅ File updated successfully: {target}")
        return DispatchOutcome.APPLIED
