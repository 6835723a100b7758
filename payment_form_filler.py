"""
PaymentFormFiller - fills a hosted card widget embedded as one or more iframes.

Example:
    >>> from payment_form_filler import PaymentFormFiller
    >>> filler = PaymentFormFiller(page)
    >>> result = filler.fill_payment_form("4242 4242 4242 4242", "12/34", "123", "10001")
    >>> result.mode, result.all_succeeded
    (<FillMode.UNIFIED: 'unified'>, True)
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

from dom_snapshot import capture_frame_tree, render_frame_tree
from error_handling import ErrorHandler, RequiredElementTimeoutError, StaleContextError
from filler_config import FieldSpec, FillerConfig, SelectorKind
from handlers.field_resolver import FieldResolver
from handlers.frame_locator import FrameLocator
from handlers.native_keyboard import NativeKeyboard, PyAutoGuiKeyboard
from handlers.resilient_typer import ResilientTyper
from models import (
    FILL_ORDER,
    REQUIRED_FIELDS,
    CardDetails,
    FieldName,
    FieldOutcome,
    FillMode,
    FillResult,
    FrameHandle,
    FrameTreeNode,
    Found,
    Lookup,
    NotFound,
)
from utils.context_guard import BrowsingContext, ContextGuard
from utils.event_logger import EventLogger, set_event_logger
from utils.wait_utils import poll_until, quiet_sleep, wait_for_required

# Postal code shares the unified frame with the card input, so the generic
# class selector would land in the wrong field.
_POSTAL_KINDS = (SelectorKind.STABLE, SelectorKind.SEMANTIC)


class FillState(str, Enum):
    PROBE_UNIFIED = "probe_unified"
    PROBE_SPLIT = "probe_split"
    DONE = "done"


class ModeSelector:
    """
    Decides between the unified and split widget layouts and fills the fields.

    probe_unified -> probe_split -> done. The first layout found wins; when
    neither is found the result carries mode NOT_FOUND and a frame-tree dump.
    """

    def __init__(
        self,
        context: BrowsingContext,
        config: FillerConfig,
        locator: FrameLocator,
        resolver: FieldResolver,
        typer: ResilientTyper,
        event_logger: EventLogger,
        error_handler: ErrorHandler,
    ):
        self.context = context
        self.config = config
        self.locator = locator
        self.resolver = resolver
        self.typer = typer
        self.event_logger = event_logger
        self.error_handler = error_handler
        self.last_handle: Optional[FrameHandle] = None

    def _transition(self, current: FillState, target: FillState, reason: str) -> FillState:
        self.event_logger.mode_transition(current.value, target.value, reason)
        return target

    # ------------------------------------------------------------------ probes

    def _unified_present(self, context: BrowsingContext) -> bool:
        for name in REQUIRED_FIELDS:
            spec = self.config.spec(name)
            if not self.resolver.is_present(context, spec.signature_selectors):
                return False
        return True

    def probe_unified(self) -> Lookup[FrameHandle]:
        return self.locator.locate(
            self._unified_present,
            timeout_s=self.config.frames.unified_timeout_s,
            purpose="unified card widget",
        )

    def locate_split_frame(self, spec: FieldSpec, timeout_s: float) -> Lookup[FrameHandle]:
        """Find the per-field frame whose title is the field's split title."""
        if not spec.split_frame_title:
            return NotFound(f"{spec.name.value} has no split frame title")
        title = spec.split_frame_title
        return self.locator.locate(
            lambda context: self.resolver.is_present(context, spec.candidate_selectors),
            timeout_s=timeout_s,
            accept=lambda descriptor: descriptor.title == title,
            purpose=f"'{title}' frame",
        )

    def probe_split(self) -> Lookup[FrameHandle]:
        return self.locate_split_frame(
            self.config.spec(FieldName.CARD_NUMBER),
            self.config.frames.split_timeout_s,
        )

    # ----------------------------------------------------------------- filling

    def _resolve_in(
        self,
        handle: FrameHandle,
        spec: FieldSpec,
        kinds: Optional[Sequence[SelectorKind]],
    ) -> Optional[Found[ElementHandle]]:
        self.context.enter_handle(handle)
        found = self.resolver.resolve(self.context, spec.candidate_selectors, timeout_s=0, kinds=kinds)
        return found or None

    def _advance(self, element: ElementHandle, field_name: str) -> None:
        flow = self.config.flow
        try:
            element.press(flow.advance_key)
        except PlaywrightError as e:
            self.error_handler.handle_error(e, field_name=field_name, frame_path=self.context.handle.describe())
            self.event_logger.system_debug(f"Could not press {flow.advance_key} to advance: {e}")
        quiet_sleep(flow.settle_delay_ms)

    def fill_field(
        self,
        handle: FrameHandle,
        spec: FieldSpec,
        value: str,
        timeout_s: float,
        kinds: Optional[Sequence[SelectorKind]] = None,
        relocate: Optional[Callable[[], Lookup[FrameHandle]]] = None,
    ) -> Optional[FieldOutcome]:
        """
        Resolve the field inside handle's frame and type value into it.

        Args:
            relocate: Finds the frame again when the widget re-mounted its iframe
                and handle no longer matches anything

        Returns:
            The typing outcome, or None when no usable element showed up
        """
        name = spec.name.value
        current = [handle]

        def attempt() -> Optional[Found[ElementHandle]]:
            try:
                return self._resolve_in(current[0], spec, kinds)
            except StaleContextError as e:
                self.event_logger.frame_stale(current[0].describe(), error=str(e))
                if relocate is None:
                    return None
            lookup = relocate()
            if not lookup:
                return None
            current[0] = lookup.value
            try:
                return self._resolve_in(current[0], spec, kinds)
            except StaleContextError:
                return None

        found = poll_until(attempt, timeout_s, self.config.resolution.poll_interval_ms)
        self.last_handle = current[0]
        if not found:
            return None

        self.event_logger.field_resolved(name, found.detail, frame=current[0].describe())
        outcome = self.typer.type(found.value, value, spec.min_accepted_delta, field_name=name)
        self._advance(found.value, name)
        return outcome

    def _relocate_unified(self) -> Lookup[FrameHandle]:
        return self.locator.locate(self._unified_present, timeout_s=0, purpose="re-mounted card widget")

    def _required_missing(self, name: FieldName, handle: Optional[FrameHandle]) -> FieldOutcome:
        frame = handle.describe() if handle is not None else None
        self.event_logger.field_not_found(name.value, frame=frame)
        return FieldOutcome.FAILED

    def _fill_unified(self, handle: FrameHandle, details: CardDetails) -> Dict[FieldName, FieldOutcome]:
        outcomes: Dict[FieldName, FieldOutcome] = {}
        for name in FILL_ORDER:
            value = details.value_for(name)
            spec = self.config.spec(name)
            if name is FieldName.POSTAL_CODE:
                if not value:
                    self.event_logger.field_skipped(name.value, "no value given")
                    continue
                outcome = self.fill_field(
                    handle,
                    spec,
                    value,
                    self.config.frames.optional_field_timeout_s,
                    kinds=_POSTAL_KINDS,
                    relocate=self._relocate_unified,
                )
                handle = self.last_handle
                if outcome is None:
                    self.event_logger.field_skipped(name.value, "not shown by this widget")
                    continue
            else:
                outcome = self.fill_field(
                    handle, spec, value, self.config.resolution.field_timeout_s, relocate=self._relocate_unified
                )
                handle = self.last_handle
                if outcome is None:
                    outcome = self._required_missing(name, handle)
            outcomes[name] = outcome
        return outcomes

    def _fill_split(self, card_handle: FrameHandle, details: CardDetails) -> Dict[FieldName, FieldOutcome]:
        outcomes: Dict[FieldName, FieldOutcome] = {}
        for name in FILL_ORDER:
            value = details.value_for(name)
            spec = self.config.spec(name)
            optional = name is FieldName.POSTAL_CODE
            if optional and not value:
                self.event_logger.field_skipped(name.value, "no value given")
                continue

            if name is FieldName.CARD_NUMBER:
                handle = card_handle
            else:
                timeout = self.config.frames.optional_field_timeout_s if optional else self.config.frames.split_timeout_s
                lookup = self.locate_split_frame(spec, timeout)
                if not lookup:
                    if optional:
                        self.event_logger.field_skipped(name.value, "no postal code frame")
                        continue
                    outcomes[name] = self._required_missing(name, None)
                    continue
                handle = lookup.value

            field_timeout = self.config.frames.optional_field_timeout_s if optional else self.config.resolution.field_timeout_s
            outcome = self.fill_field(
                handle, spec, value, field_timeout, relocate=lambda: self.locate_split_frame(spec, 0)
            )
            if outcome is None:
                if optional:
                    self.event_logger.field_skipped(name.value, "postal code input not usable")
                    continue
                outcome = self._required_missing(name, handle)
            outcomes[name] = outcome
        return outcomes

    # -------------------------------------------------------------------- run

    def run(self, details: CardDetails) -> FillResult:
        """Probe layouts in order and fill the first one found."""
        mode = FillMode.NOT_FOUND
        outcomes: Dict[FieldName, FieldOutcome] = {}
        state = FillState.PROBE_UNIFIED

        with ContextGuard(self.context):
            while state is not FillState.DONE:
                if state is FillState.PROBE_UNIFIED:
                    lookup = self.probe_unified()
                    if lookup:
                        state = self._transition(state, FillState.DONE, f"unified widget at {lookup.detail}")
                        mode = FillMode.UNIFIED
                        outcomes = self._fill_unified(lookup.value, details)
                    else:
                        state = self._transition(state, FillState.PROBE_SPLIT, lookup.reason)
                else:
                    lookup = self.probe_split()
                    if lookup:
                        state = self._transition(state, FillState.DONE, f"split widget at {lookup.detail}")
                        mode = FillMode.SPLIT
                        outcomes = self._fill_split(lookup.value, details)
                    else:
                        state = self._transition(state, FillState.DONE, lookup.reason)

        return FillResult(mode=mode, outcomes=outcomes)


class PaymentFormFiller:
    """
    Public entry point: fills the card widget and drives the controls around it.

    Args:
        page: Playwright page hosting the widget
        config: FillerConfig (defaults to FillerConfig())
        native_keyboard: OS-level keystroke capability; pyautogui-backed by default
        event_logger: EventLogger; a new one is created and set as global when omitted
        error_handler: ErrorHandler collecting non-fatal errors
    """

    def __init__(
        self,
        page: Page,
        config: Optional[FillerConfig] = None,
        native_keyboard: Optional[NativeKeyboard] = None,
        event_logger: Optional[EventLogger] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.page = page
        self.config = config or FillerConfig()

        if event_logger is None:
            event_logger = EventLogger(debug_mode=self.config.logging.debug_mode)
            set_event_logger(event_logger)
        self.event_logger = event_logger
        self.error_handler = error_handler or ErrorHandler()

        if native_keyboard is None and self.config.typing.native_fallback:
            native_keyboard = PyAutoGuiKeyboard()

        self.context = BrowsingContext(page)
        self.locator = FrameLocator(self.context, self.config.frames, self.event_logger)
        self.resolver = FieldResolver(self.config.resolution)
        self.typer = ResilientTyper(self.context, self.config.typing, native_keyboard, self.event_logger)
        self.mode_selector = ModeSelector(
            self.context,
            self.config,
            self.locator,
            self.resolver,
            self.typer,
            self.event_logger,
            self.error_handler,
        )

    def fill_payment_form(
        self,
        card_number: str,
        expiry_mm_yy: str,
        cvc: str,
        postal_code: Optional[str] = None,
    ) -> FillResult:
        """
        Fill card number, expiry, CVC and (when given and shown) postal code.

        Raises:
            pydantic.ValidationError: when the values themselves are malformed

        Returns:
            FillResult; a widget that cannot be found is mode NOT_FOUND, not an exception
        """
        details = CardDetails(card_number=card_number, expiry=expiry_mm_yy, cvc=cvc, postal_code=postal_code)
        fields = [name.value for name in FILL_ORDER if details.value_for(name)]
        self.event_logger.fill_start(fields)
        start = time.time()

        if self.config.flow.open_card_section:
            self.ensure_card_section_open()

        result = self.mode_selector.run(details)
        if result.mode is FillMode.NOT_FOUND and self.config.logging.dump_frame_tree_on_not_found:
            result.frame_tree = self.dump_frame_tree()

        result.duration_ms = (time.time() - start) * 1000
        self.event_logger.fill_complete(result.mode.value, result.all_succeeded, result.duration_ms)
        return result

    # ------------------------------------------------------------ page controls

    def _first_clickable(self, selector: str) -> Optional[ElementHandle]:
        try:
            for element in self.page.query_selector_all(selector):
                if element.is_visible() and element.is_enabled():
                    return element
        except PlaywrightError:
            return None
        return None

    def _overlay_cleared(self) -> bool:
        try:
            for element in self.page.query_selector_all(self.config.flow.blocking_overlay_selector):
                if element.is_visible():
                    return False
        except PlaywrightError:
            return False
        return True

    def _click(self, element: ElementHandle, label: str) -> None:
        try:
            element.click(timeout=self.config.typing.click_timeout_ms)
        except PlaywrightError as e:
            self.event_logger.system_debug(f"{label} click intercepted, using DOM click: {e}")
            element.evaluate("(el) => el.click()")
        self.event_logger.control_clicked(label)

    def ensure_card_section_open(self) -> bool:
        """
        Reveal card entry when the widget hides it behind a payment-method chooser.

        Returns:
            True if a toggle was clicked
        """
        for selector in self.config.flow.card_section_toggles:
            toggle = self._first_clickable(selector)
            if toggle is None:
                continue
            try:
                self._click(toggle, "card section toggle")
            except PlaywrightError as e:
                self.error_handler.handle_error(e, page=self.page)
                continue
            quiet_sleep(self.config.flow.settle_delay_ms)
            return True
        return False

    def submit_payment(self, timeout_s: Optional[float] = None) -> None:
        """
        Click the pay/submit control once overlays clear.

        Raises:
            RequiredElementTimeoutError: if the control never becomes clickable
        """
        flow = self.config.flow
        interval = self.config.frames.poll_interval_ms
        timeout = flow.submit_timeout_s if timeout_s is None else timeout_s

        if not poll_until(self._overlay_cleared, flow.overlay_timeout_s, interval):
            self.event_logger.system_warning("Blocking overlay still visible, trying submit anyway")

        try:
            button = wait_for_required(
                lambda: self._first_clickable(flow.submit_selector),
                timeout,
                f"submit control '{flow.submit_selector}'",
                interval,
            )
        except RequiredElementTimeoutError as e:
            self.error_handler.handle_error(e, page=self.page)
            self.event_logger.system_error("Submit control never became clickable", error=e)
            raise
        self._click(button, "submit")

    def complete_3ds_if_present(self, timeout_s: Optional[float] = None) -> bool:
        """
        Approve a 3DS challenge if one shows up.

        Returns:
            True if a challenge was approved, False if none appeared
        """
        flow = self.config.flow
        timeout = flow.three_ds_timeout_s if timeout_s is None else timeout_s
        interval = self.config.frames.poll_interval_ms

        if not poll_until(lambda: self._first_clickable(flow.three_ds_frame_selector), timeout, interval):
            self.event_logger.system_debug("No 3DS challenge appeared")
            return False

        lookup = self.locator.locate(
            lambda context: context.query(flow.three_ds_approve_selector) is not None,
            timeout_s=timeout,
            purpose="3DS approve button",
        )
        if not lookup:
            self.event_logger.system_warning("3DS challenge frame found but no approve button")
            return False

        with ContextGuard(self.context):
            try:
                self.context.enter_handle(lookup.value)
                button = self.context.query(flow.three_ds_approve_selector)
                if button is None:
                    return False
                self._click(button, "3DS approve")
            except (StaleContextError, PlaywrightError) as e:
                self.error_handler.handle_error(e, page=self.page, frame_path=lookup.value.describe())
                self.event_logger.system_warning(f"3DS challenge went away before approval: {e}")
                return False
        return True

    def dump_frame_tree(self, max_depth: Optional[int] = None) -> List[FrameTreeNode]:
        """Snapshot and log the page's iframe tree for selector-drift triage."""
        depth = self.config.frames.max_depth if max_depth is None else max_depth
        nodes = capture_frame_tree(self.context, depth)
        self.event_logger.frame_tree(render_frame_tree(nodes))
        return nodes


def fill_payment_form(
    page: Page,
    card_number: str,
    expiry_mm_yy: str,
    cvc: str,
    postal_code: Optional[str] = None,
    config: Optional[FillerConfig] = None,
    native_keyboard: Optional[NativeKeyboard] = None,
    event_logger: Optional[EventLogger] = None,
) -> FillResult:
    """One-shot convenience wrapper around PaymentFormFiller.fill_payment_form()."""
    filler = PaymentFormFiller(page, config=config, native_keyboard=native_keyboard, event_logger=event_logger)
    return filler.fill_payment_form(card_number, expiry_mm_yy, cvc, postal_code)
