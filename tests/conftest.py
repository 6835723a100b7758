"""
Shared pytest fixtures for all tests.
"""
import pytest

from utils.event_logger import EventLogger, set_event_logger


@pytest.fixture(scope="session")
def browser_context():
    """Shared browser context for integration tests; skipped when no browser can start."""
    from playwright.sync_api import sync_playwright
    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.launch(headless=True)
    except Exception as e:
        playwright.stop()
        pytest.skip(f"chromium could not be launched: {e}")
    context = browser.new_context(viewport={"width": 1280, "height": 800})
    yield context
    browser.close()
    playwright.stop()


@pytest.fixture
def event_logger():
    """Quiet event logger installed as the global one for the test."""
    logger = EventLogger(debug_mode=False)
    set_event_logger(logger)
    return logger
