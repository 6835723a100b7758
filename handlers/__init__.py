"""
Handlers for locating widget frames and entering values into them.
"""
from .field_resolver import FieldResolver
from .frame_locator import FrameLocator
from .native_keyboard import NativeKeyboard, PyAutoGuiKeyboard, UnavailableKeyboard
from .resilient_typer import ResilientTyper, is_accepted

__all__ = [
    "FieldResolver",
    "FrameLocator",
    "NativeKeyboard",
    "PyAutoGuiKeyboard",
    "UnavailableKeyboard",
    "ResilientTyper",
    "is_accepted",
]
