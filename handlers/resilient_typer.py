"""
Character-by-character typing with verification and an OS-level fallback.
"""
from typing import Optional

from playwright.sync_api import ElementHandle, Error as PlaywrightError

from error_handling import (
    FallbackFailedError,
    NativeKeyboardUnavailableError,
    VerificationFailedError,
)
from filler_config import TypingConfig
from handlers.native_keyboard import NativeKeyboard
from models import FieldOutcome, TypingReport
from utils.context_guard import BrowsingContext
from utils.event_logger import EventLogger, get_event_logger
from utils.wait_utils import quiet_sleep

_VALUE_JS = "(el) => { const v = (el.value !== undefined) ? el.value : el.textContent; return v || ''; }"


def is_accepted(before: int, after: int, text: str, min_accepted_delta: int) -> bool:
    """
    Decide whether typed text "took".

    Widgets reformat as you type (card numbers gain spaces, expiry gains " / "),
    so an exact comparison is useless. Accept either enough growth, or a final
    value at least half as long as what was typed.
    """
    return (after - before) >= min_accepted_delta or after >= max(2, len(text) // 2)


class ResilientTyper:
    """Types into an element slowly, checks the result, and escalates when needed."""

    def __init__(
        self,
        context: BrowsingContext,
        config: Optional[TypingConfig] = None,
        native_keyboard: Optional[NativeKeyboard] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self.context = context
        self.config = config or TypingConfig()
        self.native_keyboard = native_keyboard
        self.event_logger = event_logger or get_event_logger()
        self.last_report: Optional[TypingReport] = None

    @staticmethod
    def read_length(element: ElementHandle) -> int:
        try:
            return len(element.evaluate(_VALUE_JS) or "")
        except PlaywrightError:
            return 0

    def focus(self, element: ElementHandle) -> None:
        """Scroll into view and click; fall back to focus() when the click is intercepted."""
        try:
            element.scroll_into_view_if_needed(timeout=self.config.click_timeout_ms)
        except PlaywrightError:
            pass  # an element we cannot scroll may still take focus
        try:
            element.click(timeout=self.config.click_timeout_ms)
            return
        except PlaywrightError as e:
            self.event_logger.system_debug(f"Focus click failed, using focus(): {e}")
        element.focus()

    def _type_dom(self, element: ElementHandle, text: str) -> None:
        delay = self.config.keystroke_delay_ms
        for ch in text:
            before = self.read_length(element) if self.config.replay_dropped_keystrokes else None
            element.type(ch)
            quiet_sleep(delay)
            if before is not None and self.read_length(element) == before:
                element.type(ch)
                quiet_sleep(delay)

    def _verify(self, report: TypingReport, text: str, min_accepted_delta: int) -> None:
        if not is_accepted(report.before, report.after, text, min_accepted_delta):
            raise VerificationFailedError(
                f"value length went {report.before} -> {report.after} after typing {len(text)} chars",
                before=report.before,
                after=report.after,
            )

    def _native_fallback(self, element: ElementHandle, text: str, min_accepted_delta: int, report: TypingReport) -> None:
        report.fallback_attempted = True
        keyboard = self.native_keyboard
        if not self.config.native_fallback:
            raise NativeKeyboardUnavailableError("native fallback disabled by configuration")
        if keyboard is None or not keyboard.is_available():
            raise NativeKeyboardUnavailableError("no native keyboard capability on this platform")

        try:
            self.focus(element)
            self.context.page.bring_to_front()
        except PlaywrightError as e:
            raise FallbackFailedError(f"could not re-focus element before native typing: {e}") from e

        try:
            keyboard.type_text(text, self.config.native_interval_ms)
        except (FallbackFailedError, NativeKeyboardUnavailableError):
            raise
        except Exception as e:  # backend errors: Xlib, PyAutoGUIException, OSError
            raise FallbackFailedError(f"native keyboard error: {type(e).__name__}: {e}") from e
        quiet_sleep(self.config.keystroke_delay_ms)
        report.after = self.read_length(element)
        if not is_accepted(report.before, report.after, text, min_accepted_delta):
            raise FallbackFailedError(
                f"native typing left value length {report.before} -> {report.after}"
            )

    def type(self, element: ElementHandle, text: str, min_accepted_delta: int, field_name: str = "field") -> FieldOutcome:
        """
        Type text into element.

        Args:
            element: Input to type into (in the context's current frame)
            text: Characters to enter
            min_accepted_delta: Value growth that counts as success
            field_name: Label used in log events

        Returns:
            SUCCEEDED, FALLBACK_USED when OS-level typing was needed, or FAILED
        """
        report = TypingReport(text_length=len(text))
        self.last_report = report
        report.before = self.read_length(element)

        try:
            self.focus(element)
            self._type_dom(element, text)
            report.after = self.read_length(element)
            self._verify(report, text, min_accepted_delta)
        except VerificationFailedError as e:
            self.event_logger.typing_fallback(field_name, e.before, e.after)
        except PlaywrightError as e:
            report.outcome = FieldOutcome.FAILED
            self.event_logger.typing_failed(field_name, f"element unusable: {e}")
            return report.outcome
        else:
            report.outcome = FieldOutcome.SUCCEEDED
            self.event_logger.typing_verified(field_name, report.before, report.after)
            return report.outcome

        try:
            self._native_fallback(element, text, min_accepted_delta, report)
        except (FallbackFailedError, NativeKeyboardUnavailableError) as e:
            report.outcome = FieldOutcome.FAILED
            self.event_logger.typing_failed(field_name, e.message, before=report.before, after=report.after)
            return report.outcome

        report.outcome = FieldOutcome.FALLBACK_USED
        self.event_logger.typing_verified(field_name, report.before, report.after, fallback=True)
        return report.outcome
