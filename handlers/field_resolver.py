"""
Resolves a field's input element from an ordered list of candidate selectors.
"""
from typing import Iterable, Optional, Sequence

from playwright.sync_api import ElementHandle, Error as PlaywrightError

from error_handling import StaleContextError
from filler_config import ResolutionConfig, SelectorCandidate, SelectorKind
from models import Found, Lookup, NotFound
from utils.context_guard import BrowsingContext
from utils.wait_utils import poll_until

# True when the topmost element at the centre of el is el itself or inside it.
_NOT_OCCLUDED_JS = """
(el) => {
    const r = el.getBoundingClientRect();
    if (r.width <= 0 || r.height <= 0) return false;
    const x = r.left + r.width / 2;
    const y = r.top + r.height / 2;
    const hit = el.ownerDocument.elementFromPoint(x, y);
    if (!hit) return true;
    return hit === el || el.contains(hit) || hit.contains(el);
}
"""


class FieldResolver:
    """Finds the first usable element among a field's candidate selectors."""

    def __init__(self, config: Optional[ResolutionConfig] = None):
        self.config = config or ResolutionConfig()

    @staticmethod
    def _filter(candidates: Sequence[SelectorCandidate], kinds: Optional[Iterable[SelectorKind]]):
        if kinds is None:
            return list(candidates)
        allowed = set(kinds)
        return [c for c in candidates if c.kind in allowed]

    def is_usable(self, element: ElementHandle) -> bool:
        """Present, visible, enabled, has a box, and not covered by something else."""
        try:
            if not element.is_visible():
                return False
            if not element.is_enabled():
                return False
            box = element.bounding_box()
            if not box or box["width"] <= 0 or box["height"] <= 0:
                return False
            if self.config.check_occlusion:
                return bool(element.evaluate(_NOT_OCCLUDED_JS))
            return True
        except PlaywrightError:
            return False

    def _first_usable(self, context: BrowsingContext, candidates: Sequence[SelectorCandidate]) -> Optional[Found]:
        for candidate in candidates:
            try:
                elements = context.query_all(candidate.selector)
            except StaleContextError:
                return None
            for element in elements:
                if self.is_usable(element):
                    return Found(element, detail=candidate.selector)
        return None

    def resolve(
        self,
        context: BrowsingContext,
        candidates: Sequence[SelectorCandidate],
        timeout_s: Optional[float] = None,
        kinds: Optional[Iterable[SelectorKind]] = None,
    ) -> Lookup[ElementHandle]:
        """
        Resolve an element in the context's current frame.

        Args:
            context: Cursor positioned in the frame to search
            candidates: Selectors in priority order
            timeout_s: How long to keep polling (defaults to the configured field timeout)
            kinds: Restrict which selector kinds are tried

        Returns:
            Found(element) for the highest-priority usable match, or NotFound
        """
        allowed = self._filter(candidates, kinds)
        if not allowed:
            return NotFound("no candidate selectors of the requested kind")

        timeout = self.config.field_timeout_s if timeout_s is None else timeout_s
        found = poll_until(
            lambda: self._first_usable(context, allowed),
            timeout,
            self.config.poll_interval_ms,
        )
        if found:
            return found
        return NotFound(f"none of {len(allowed)} selector(s) matched a usable element within {timeout:.1f}s")

    def is_present(
        self,
        context: BrowsingContext,
        candidates: Sequence[SelectorCandidate],
        kinds: Optional[Iterable[SelectorKind]] = None,
    ) -> bool:
        """Non-waiting check that any candidate matches in the current frame."""
        for candidate in self._filter(candidates, kinds):
            if context.query(candidate.selector) is not None:
                return True
        return False
