"""Browsing-context cursor and the guard that always puts it back at the top document."""
from __future__ import annotations

from typing import List, Optional

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Frame, Page

from error_handling import StaleContextError
from models import FrameDescriptor, FrameHandle

IFRAME_SELECTOR = "iframe"


def describe_iframe(element: ElementHandle, index: int) -> FrameDescriptor:
    """Read a FrameDescriptor off an <iframe> element handle."""
    try:
        return FrameDescriptor(
            index=index,
            name=element.get_attribute("name") or "",
            src=element.get_attribute("src") or "",
            title=element.get_attribute("title") or "",
            visible=bool(element.is_visible()),
        )
    except PlaywrightError as e:
        raise StaleContextError(f"iframe #{index} detached while reading attributes: {e}") from e


class BrowsingContext:
    """
    Explicit cursor over a page's frame tree.

    Playwright frames are addressable objects, but the filler treats "where am I"
    as a single cursor so that every component reads and restores the same state.
    Entering a frame re-resolves its <iframe> element from a descriptor at that
    moment; element handles never outlive one switch.
    """

    def __init__(self, page: Page):
        self.page = page
        self._stack: List[Frame] = []
        self._descriptors: List[FrameDescriptor] = []
        self._current: Frame = page.main_frame

    @property
    def current(self) -> Frame:
        return self._current

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def is_top_level(self) -> bool:
        return not self._stack

    @property
    def handle(self) -> FrameHandle:
        """Handle for the frame the cursor is in right now."""
        return FrameHandle(tuple(self._descriptors))

    def switch_to_default(self) -> None:
        self._stack.clear()
        self._descriptors.clear()
        self._current = self.page.main_frame

    def switch_to_parent(self) -> None:
        if not self._stack:
            return
        self._current = self._stack.pop()
        self._descriptors.pop()

    def iframe_elements(self) -> List[ElementHandle]:
        try:
            return self._current.query_selector_all(IFRAME_SELECTOR)
        except PlaywrightError as e:
            raise StaleContextError(f"frame detached while listing iframes: {e}") from e

    def child_frames(self) -> List[FrameDescriptor]:
        """Descriptors for the iframes directly inside the current frame."""
        descriptors = []
        for index, element in enumerate(self.iframe_elements()):
            try:
                descriptors.append(describe_iframe(element, index))
            except StaleContextError:
                continue
        return descriptors

    def _match(self, descriptor: FrameDescriptor) -> Optional[ElementHandle]:
        elements = self.iframe_elements()
        candidates = []
        for index, element in enumerate(elements):
            try:
                seen = describe_iframe(element, index)
            except StaleContextError:
                continue
            if descriptor.name:
                same = seen.name == descriptor.name
            else:
                same = seen.src == descriptor.src and seen.title == descriptor.title
            if same:
                candidates.append((seen, element))
        if not candidates:
            return None
        for seen, element in candidates:
            if seen.index == descriptor.index:
                return element
        return candidates[0][1]

    def enter(self, descriptor: FrameDescriptor) -> Frame:
        """Switch into a child iframe of the current frame."""
        element = self._match(descriptor)
        if element is None:
            raise StaleContextError(f"iframe {descriptor.label()} is no longer present")
        try:
            frame = element.content_frame()
        except PlaywrightError as e:
            raise StaleContextError(f"iframe {descriptor.label()} detached: {e}") from e
        if frame is None or frame.is_detached():
            raise StaleContextError(f"iframe {descriptor.label()} has no live document")
        self._stack.append(self._current)
        self._descriptors.append(descriptor)
        self._current = frame
        return frame

    def enter_handle(self, handle: FrameHandle) -> Frame:
        """Switch from the top document down a full frame path."""
        self.switch_to_default()
        for descriptor in handle.path:
            self.enter(descriptor)
        return self._current

    def query_all(self, selector: str) -> List[ElementHandle]:
        try:
            return self._current.query_selector_all(selector)
        except PlaywrightError as e:
            raise StaleContextError(f"query '{selector}' failed in {self.handle.describe()}: {e}") from e

    def query(self, selector: str) -> Optional[ElementHandle]:
        elements = self.query_all(selector)
        return elements[0] if elements else None


class ContextGuard:
    """
    Scoped acquisition of the browsing-context cursor.

    Example:
        >>> with ContextGuard(context):
        ...     context.enter_handle(handle)
        ...     context.query("input")
        >>> context.is_top_level
        True
    """

    def __init__(self, context: BrowsingContext):
        self.context = context

    def __enter__(self) -> BrowsingContext:
        return self.context

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.context.switch_to_default()
        return False
