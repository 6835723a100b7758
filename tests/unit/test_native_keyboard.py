import sys
import types

import pytest

from error_handling import FallbackFailedError, NativeKeyboardUnavailableError
from handlers.native_keyboard import PyAutoGuiKeyboard, UnavailableKeyboard


def test_unavailable_keyboard():
    keyboard = UnavailableKeyboard()
    assert keyboard.is_available() is False
    with pytest.raises(NativeKeyboardUnavailableError):
        keyboard.type_text("123")


def test_pyautogui_keyboard_writes_each_character(monkeypatch):
    written = []
    fake = types.ModuleType("pyautogui")
    fake.FAILSAFE = True
    fake.write = written.append
    monkeypatch.setitem(sys.modules, "pyautogui", fake)

    keyboard = PyAutoGuiKeyboard()
    assert keyboard.is_available()
    keyboard.type_text("4242", interval_ms=0)

    assert written == ["4", "2", "4", "2"]
    assert fake.FAILSAFE is False


def test_pyautogui_import_failure_reports_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "pyautogui", None)

    keyboard = PyAutoGuiKeyboard()
    assert keyboard.is_available() is False
    assert "pyautogui" in keyboard.load_error
    with pytest.raises(NativeKeyboardUnavailableError):
        keyboard.type_text("1")


def test_pyautogui_write_error_becomes_fallback_failure(monkeypatch):
    def write(ch):
        raise OSError("X display connection lost")

    fake = types.ModuleType("pyautogui")
    fake.write = write
    monkeypatch.setitem(sys.modules, "pyautogui", fake)

    with pytest.raises(FallbackFailedError) as info:
        PyAutoGuiKeyboard().type_text("4242", interval_ms=0)
    assert isinstance(info.value.__cause__, OSError)
