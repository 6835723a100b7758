import pytest

from fake_dom import FakeElement
from filler_config import FrameSearchConfig
from handlers.frame_locator import FrameLocator
from models import Found, NotFound
from utils.event_logger import EventType

QUICK = FrameSearchConfig(poll_interval_ms=1, unified_timeout_s=0.05)


def target():
    return FakeElement("input", {"id": "target"})


def has_target(context):
    return context.query("input[id='target']") is not None


def test_finds_nested_frame_and_returns_to_top(page, context, event_logger):
    inner = page.iframe(target(), title="Inner")
    outer = page.iframe(inner, title="Outer")
    page.set_content(outer)

    found = FrameLocator(context, QUICK, event_logger).locate(has_target)

    assert isinstance(found, Found)
    assert [d.title for d in found.value.path] == ["Outer", "Inner"]
    assert context.is_top_level
    assert event_logger.events_of(EventType.FRAME_FOUND)


def test_breadth_first_prefers_shallower_match(page, context, event_logger):
    deep = page.iframe(target(), title="Deep")
    first = page.iframe(deep, title="First")
    second = page.iframe(target(), title="Second")
    page.set_content(first, second)

    found = FrameLocator(context, QUICK, event_logger).locate(has_target)
    assert found.value.describe() == "#1 'Second'"


@pytest.mark.parametrize(
    "attrs",
    [
        {"src": "https://js.stripe.com/v3/controller-123.html"},
        {"src": "https://newassets.hcaptcha.com/captcha/v1/x"},
        {"title": "Express Checkout"},
        {"src": "https://js.stripe.com/v3/express-checkout-inner.html"},
        {"title": "Secure CONTROLLER frame"},
    ],
)
def test_never_returns_excluded_frame(page, context, event_logger, attrs):
    excluded = page.iframe(target(), **attrs)
    page.set_content(excluded)

    result = FrameLocator(context, QUICK, event_logger).locate(has_target)
    assert isinstance(result, NotFound)
    assert context.is_top_level


def test_excluded_subtree_is_not_searched(page, context, event_logger):
    inner = page.iframe(target(), title="Inner")
    excluded = page.iframe(inner, src="https://js.stripe.com/v3/controller.html")
    page.set_content(excluded)

    assert not FrameLocator(context, QUICK, event_logger).locate(has_target)


def test_hidden_frames_are_skipped(page, context, event_logger):
    page.set_content(page.iframe(target(), title="Hidden", visible=False))
    assert not FrameLocator(context, QUICK, event_logger).locate(has_target)


def _chain(page, levels):
    node = page.iframe(target(), title=f"L{levels}")
    for level in range(levels - 1, 0, -1):
        node = page.iframe(node, title=f"L{level}")
    return node


def test_depth_limit(page, context, event_logger):
    locator = FrameLocator(context, QUICK, event_logger)

    page.set_content(_chain(page, 3))
    assert locator.locate(has_target, max_depth=3).value.depth == 3

    page.set_content(_chain(page, 4))
    assert not locator.locate(has_target, max_depth=3)
    assert locator.locate(has_target, max_depth=4)


def test_accept_filter_runs_before_entering(page, context, event_logger):
    page.set_content(page.iframe(target(), title="Wrong"), page.iframe(target(), title="Right"))
    found = FrameLocator(context, QUICK, event_logger).locate(
        has_target, accept=lambda d: d.title == "Right"
    )
    assert found.value.leaf.title == "Right"


def test_stale_frame_is_swallowed_and_retried(page, context, event_logger):
    frame = page.iframe(target(), title="Flaky")
    frame.content.fail_queries = 1
    page.set_content(frame)

    config = FrameSearchConfig(poll_interval_ms=1, unified_timeout_s=1.0)
    found = FrameLocator(context, config, event_logger).locate(has_target)

    assert found.value.leaf.title == "Flaky"
    assert event_logger.events_of(EventType.FRAME_STALE)


def test_detached_frame_is_skipped(page, context, event_logger):
    dead = page.iframe(target(), title="Dead")
    dead.content.detached = True
    alive = page.iframe(target(), title="Alive")
    page.set_content(dead, alive)

    found = FrameLocator(context, QUICK, event_logger).locate(has_target)
    assert found.value.leaf.title == "Alive"


def test_at_least_one_pass_with_zero_timeout(page, context, event_logger):
    page.set_content(page.iframe(target(), title="Now"))
    assert FrameLocator(context, QUICK, event_logger).locate(has_target, timeout_s=0)


def test_predicate_error_still_restores_context(page, context, event_logger):
    page.set_content(page.iframe(target(), title="Boom"))

    def explode(_):
        raise RuntimeError("predicate bug")

    with pytest.raises(RuntimeError):
        FrameLocator(context, QUICK, event_logger).locate(explode)
    assert context.is_top_level
