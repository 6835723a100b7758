"""
Breadth-first search over a page's iframe tree.
"""
from collections import deque
from typing import Callable, Iterable, Optional

from playwright.sync_api import Error as PlaywrightError

from error_handling import StaleContextError
from filler_config import FrameSearchConfig
from models import FrameDescriptor, FrameHandle, Found, Lookup, NotFound
from utils.context_guard import BrowsingContext, ContextGuard
from utils.event_logger import EventLogger, get_event_logger
from utils.wait_utils import poll_until

PresencePredicate = Callable[[BrowsingContext], bool]
FrameFilter = Callable[[FrameDescriptor], bool]


class FrameLocator:
    """
    Finds the frame that satisfies a presence predicate.

    Frames are visited level by level, shallowest first, in document order.
    Each candidate is entered by re-resolving its full path from the top
    document, so a frame re-rendered mid-scan is simply skipped.
    """

    def __init__(
        self,
        context: BrowsingContext,
        config: Optional[FrameSearchConfig] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self.context = context
        self.config = config or FrameSearchConfig()
        self.event_logger = event_logger or get_event_logger()

    def _scan_once(
        self,
        presence_predicate: PresencePredicate,
        exclusions: Iterable[str],
        max_depth: int,
        accept: Optional[FrameFilter],
    ) -> Optional[Found[FrameHandle]]:
        queue = deque([FrameHandle(())])
        while queue:
            parent = queue.popleft()
            try:
                self.context.enter_handle(parent)
                children = self.context.child_frames()
            except StaleContextError as e:
                self.event_logger.frame_stale(parent.describe(), str(e))
                continue

            self.event_logger.frame_scan(parent.depth + 1, len(children))
            for descriptor in children:
                if not descriptor.visible or descriptor.matches_any(exclusions):
                    continue
                handle = parent.child(descriptor)
                if accept is None or accept(descriptor):
                    try:
                        self.context.enter_handle(handle)
                        if presence_predicate(self.context):
                            return Found(handle, detail=handle.describe())
                    except (StaleContextError, PlaywrightError) as e:
                        self.event_logger.frame_stale(handle.describe(), str(e))
                        continue
                if handle.depth < max_depth:
                    queue.append(handle)
        return None

    def locate(
        self,
        presence_predicate: PresencePredicate,
        exclusion_signatures: Optional[Iterable[str]] = None,
        max_depth: Optional[int] = None,
        timeout_s: Optional[float] = None,
        accept: Optional[FrameFilter] = None,
        purpose: str = "frame",
    ) -> Lookup[FrameHandle]:
        """
        Locate the first frame, breadth-first, where presence_predicate holds.

        Args:
            presence_predicate: Called with the context positioned inside a candidate frame
            exclusion_signatures: src/title substrings to skip (defaults to configured list)
            max_depth: Deepest iframe level searched (defaults to configured depth)
            timeout_s: Keep re-scanning until this elapses; one pass always runs
            accept: Optional filter on the iframe descriptor, checked before entering
            purpose: Label for log events

        Returns:
            Found(FrameHandle) or NotFound. The context is back at the top document either way.
        """
        exclusions = list(self.config.exclusion_signatures if exclusion_signatures is None else exclusion_signatures)
        depth = self.config.max_depth if max_depth is None else max_depth
        timeout = self.config.unified_timeout_s if timeout_s is None else timeout_s

        with ContextGuard(self.context):
            found = poll_until(
                lambda: self._scan_once(presence_predicate, exclusions, depth, accept),
                timeout,
                self.config.poll_interval_ms,
            )

        if found:
            self.event_logger.frame_found(found.detail, purpose=purpose)
            return found
        self.event_logger.frame_not_found(purpose, timeout)
        return NotFound(f"no {purpose} within depth {depth} after {timeout:.1f}s")
