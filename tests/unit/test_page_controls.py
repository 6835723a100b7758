import pytest

from error_handling import RequiredElementTimeoutError
from fake_dom import FakeElement, unified_widget
from filler_config import FillerConfig, FlowConfig
from handlers.native_keyboard import UnavailableKeyboard
from models import FillMode
from payment_form_filler import PaymentFormFiller
from utils.event_logger import EventType


def _filler(page, config, event_logger):
    return PaymentFormFiller(page, config=config, native_keyboard=UnavailableKeyboard(), event_logger=event_logger)


def test_submit_clicks_pay_button(page, fast_config, event_logger):
    pay = FakeElement("button", {"type": "submit"}, text="Pay $10.00")
    page.set_content(pay)

    _filler(page, fast_config, event_logger).submit_payment()

    assert pay.clicks == 1
    assert event_logger.events_of(EventType.CONTROL_CLICKED)


def test_submit_matches_button_text(page, fast_config, event_logger):
    disabled = FakeElement("button", {"type": "submit"}, enabled=False)
    pay = FakeElement("button", text="Pay now")
    page.set_content(disabled, pay)

    _filler(page, fast_config, event_logger).submit_payment()

    assert disabled.clicks == 0
    assert pay.clicks == 1


def test_submit_uses_dom_click_when_intercepted(page, fast_config, event_logger):
    pay = FakeElement("button", {"type": "submit"}, intercept_clicks=True)
    page.set_content(pay)

    _filler(page, fast_config, event_logger).submit_payment()

    assert pay.dom_clicks == 1


def test_submit_proceeds_when_overlay_never_clears(page, fast_config, event_logger):
    spinner = FakeElement("div", {"class": "spinner"})
    pay = FakeElement("button", {"type": "submit"})
    page.set_content(spinner, pay)

    _filler(page, fast_config, event_logger).submit_payment()

    assert pay.clicks == 1
    assert event_logger.events_of(EventType.SYSTEM_WARNING)


def test_missing_submit_control_is_fatal(page, fast_config, event_logger):
    page.set_content(FakeElement("a", {"href": "/back"}))
    filler = _filler(page, fast_config, event_logger)

    with pytest.raises(RequiredElementTimeoutError) as exc_info:
        filler.submit_payment(timeout_s=0.05)

    assert "submit control" in exc_info.value.context.selector
    summary = filler.error_handler.get_error_summary()
    assert summary["error_counts"] == {"RequiredElementTimeoutError": 1}
    assert summary["recent_errors"][0]["page_url"] == page.url


def test_3ds_challenge_is_approved(page, fast_config, event_logger):
    approve = FakeElement("button", text="Complete authentication")
    challenge = page.iframe(
        page.iframe(approve, title="challenge body"),
        src="https://hooks.stripe.com/3ds2/challenge",
    )
    page.set_content(challenge)
    filler = _filler(page, fast_config, event_logger)

    assert filler.complete_3ds_if_present() is True
    assert approve.clicks == 1
    assert filler.context.is_top_level


def test_3ds_absent_is_not_an_error(page, fast_config, event_logger):
    page.set_content(FakeElement("div"))
    assert _filler(page, fast_config, event_logger).complete_3ds_if_present(timeout_s=0.01) is False


def test_card_section_is_opened_before_probing(page, event_logger):
    tab = FakeElement("button", {"data-testid": "card-tab"}, text="Card")
    page.set_content(tab, unified_widget(page))
    config = FillerConfig.fast().model_copy(update={"flow": FlowConfig(settle_delay_ms=0, open_card_section=True)})

    result = _filler(page, config, event_logger).fill_payment_form("4242424242424242", "1234", "123")

    assert tab.clicks == 1
    assert result.mode is FillMode.UNIFIED


def test_card_section_toggle_absent(page, fast_config, event_logger):
    page.set_content(FakeElement("button", {"aria-label": "Pay with bank"}))
    assert _filler(page, fast_config, event_logger).ensure_card_section_open() is False


def test_dump_frame_tree_includes_hidden_and_nested(page, fast_config, event_logger):
    nested = page.iframe(FakeElement("input"), title="Nested")
    page.set_content(
        page.iframe(nested, title="Outer", src="https://pay.example/outer"),
        page.iframe(title="Hidden", name="metrics", visible=False),
    )

    nodes = _filler(page, fast_config, event_logger).dump_frame_tree()

    assert [n.descriptor.title for n in nodes] == ["Outer", "Hidden"]
    assert nodes[0].children[0].descriptor.title == "Nested"
    assert nodes[1].descriptor.visible is False
    tree_event = event_logger.events_of(EventType.FRAME_TREE)[-1]
    assert "[hidden]" in tree_event.message
    assert "title='Nested'" in tree_event.message
