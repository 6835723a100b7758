"""
OS-level keystroke injection.

Used only after DOM typing failed verification: it bypasses the page's event
model entirely and types into whatever currently has native focus.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from error_handling import FallbackFailedError, NativeKeyboardUnavailableError


class NativeKeyboard(ABC):
    """Capability: inject raw keystrokes into native focus."""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def type_text(self, text: str, interval_ms: int = 25) -> None:
        pass


class PyAutoGuiKeyboard(NativeKeyboard):
    """
    NativeKeyboard backed by pyautogui.

    pyautogui needs a display server; on headless hosts importing it fails,
    which is reported as "unavailable" rather than raised.
    """

    def __init__(self):
        self._module: Optional[Any] = None
        self._load_error: Optional[str] = None
        self._loaded = False

    def _load(self) -> Optional[Any]:
        if self._loaded:
            return self._module
        self._loaded = True
        try:
            import pyautogui
            pyautogui.FAILSAFE = False
            self._module = pyautogui
        except Exception as e:  # ImportError, or display errors raised on import
            self._load_error = f"{type(e).__name__}: {e}"
            self._module = None
        return self._module

    @property
    def load_error(self) -> Optional[str]:
        return self._load_error

    def is_available(self) -> bool:
        return self._load() is not None

    def type_text(self, text: str, interval_ms: int = 25) -> None:
        module = self._load()
        if module is None:
            raise NativeKeyboardUnavailableError(f"pyautogui unavailable ({self._load_error})")
        try:
            for ch in text:
                module.write(ch)
                if interval_ms:
                    time.sleep(interval_ms / 1000.0)
        except Exception as e:  # display connection loss, PyAutoGUIException
            raise FallbackFailedError(f"pyautogui write failed: {type(e).__name__}: {e}") from e


class UnavailableKeyboard(NativeKeyboard):
    """Explicit "no capability" for platforms or runs that must not touch the OS input queue."""

    def is_available(self) -> bool:
        return False

    def type_text(self, text: str, interval_ms: int = 25) -> None:
        raise NativeKeyboardUnavailableError("native keystroke injection disabled")
