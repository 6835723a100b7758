"""
Integration tests against real Chromium with iframe-based widget fixtures.

The fixtures use srcdoc iframes so nothing leaves the machine. Synthetic-key
rejection cannot be reproduced here (Playwright's keystrokes are trusted), so
the native fallback is covered by the unit tests instead.
"""
from pathlib import Path

import pytest

from filler_config import FillerConfig
from handlers.native_keyboard import UnavailableKeyboard
from models import FieldName, FillMode
from payment_form_filler import PaymentFormFiller

FIXTURE_DIR = Path(__file__).parent / "payment_widget_fixtures"


@pytest.fixture
def page(browser_context):
    """Create a new page for each test"""
    page = browser_context.new_page()
    yield page
    page.close()


@pytest.fixture
def filler_factory(event_logger):
    def _create(page):
        return PaymentFormFiller(
            page,
            config=FillerConfig.fast(),
            native_keyboard=UnavailableKeyboard(),
            event_logger=event_logger,
        )
    return _create


def _frame_titled(page, title):
    for frame in page.frames:
        if frame.parent_frame is None:
            continue
        if frame.frame_element().get_attribute("title") == title:
            return frame
    raise AssertionError(f"no frame titled {title!r}")


def test_unified_widget_is_filled(page, filler_factory):
    page.goto((FIXTURE_DIR / "unified.html").as_uri())
    filler = filler_factory(page)

    result = filler.fill_payment_form("4242 4242 4242 4242", "12/34", "123", "10001")

    assert result.mode is FillMode.UNIFIED
    assert result.all_succeeded, result
    frame = _frame_titled(page, "Secure payment input frame")
    assert frame.input_value("[data-elements-stable-field-name='cardNumber']") == "4242424242424242"
    assert frame.input_value("[data-elements-stable-field-name='cardExpiry']") == "12/34"
    assert frame.input_value("[data-elements-stable-field-name='cardCvc']") == "123"
    assert frame.input_value("[data-elements-stable-field-name='postalCode']") == "10001"
    assert filler.context.is_top_level

    controller = _frame_titled(page, "Stripe controller")
    assert controller.input_value("input") == ""


def test_split_widget_is_filled(page, filler_factory):
    page.goto((FIXTURE_DIR / "split.html").as_uri())

    result = filler_factory(page).fill_payment_form("4242424242424242", "1234", "987")

    assert result.mode is FillMode.SPLIT
    assert result.all_succeeded, result
    assert FieldName.POSTAL_CODE not in result.outcomes
    assert _frame_titled(page, "Secure card number input").input_value("input") == "4242424242424242"
    assert _frame_titled(page, "Secure expiration date input").input_value("input") == "12/34"
    assert _frame_titled(page, "Secure CVC input").input_value("input") == "987"
    assert _frame_titled(page, "Secure postal code input").input_value("input") == ""


def test_page_without_widget(page, filler_factory):
    page.set_content("<h1>Order summary</h1><iframe title='Help chat' srcdoc='<p>hi</p>'></iframe>")
    filler = filler_factory(page)

    result = filler.fill_payment_form("4242424242424242", "12/34", "123")

    assert result.mode is FillMode.NOT_FOUND
    assert [node.descriptor.title for node in result.frame_tree] == ["Help chat"]
    assert filler.context.is_top_level


def test_submit_after_fill(page, filler_factory):
    page.goto((FIXTURE_DIR / "unified.html").as_uri())
    filler = filler_factory(page)

    assert filler.fill_payment_form("4242424242424242", "12/34", "123")
    filler.submit_payment()

    assert page.title() == "submitted"
