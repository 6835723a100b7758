"""
Browser providers for the payment filler CLI and integration runs.

The filler itself only needs a Playwright Page; these classes decide where that
page comes from.

Example:
    >>> from browser_provider import BrowserConfig, create_browser_provider
    >>> provider = create_browser_provider(BrowserConfig(headless=True))
    >>> page = provider.get_page()
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from pydantic import BaseModel, Field

from error_handling import ConfigurationError


class BrowserConfig(BaseModel):
    """Configuration for browser providers."""

    provider_type: str = Field(
        default="local",
        description="Browser provider type: 'local', 'remote', 'mock'"
    )
    headless: bool = Field(
        default=False,
        description="Run browser in headless mode"
    )
    viewport_width: int = Field(
        default=1280,
        ge=100,
        description="Browser viewport width"
    )
    viewport_height: int = Field(
        default=800,
        ge=100,
        description="Browser viewport height"
    )
    user_data_dir: Optional[str] = Field(
        default=None,
        description="Reuse a browser profile (cookies, saved sessions) instead of a fresh context"
    )
    channel: Optional[str] = Field(
        default=None,
        description="Browser channel: 'chrome', 'msedge', or None for bundled Chromium"
    )
    remote_cdp_url: Optional[str] = Field(
        default=None,
        description="CDP endpoint URL for a remote browser"
    )
    extra_args: list[str] = Field(
        default_factory=lambda: ["--disable-dev-shm-usage"],
        description="Additional browser launch arguments"
    )


class BrowserProvider(ABC):
    """Hands out a Playwright Page and cleans up after it."""

    def __init__(self, config: BrowserConfig):
        self.config = config
        self._page: Optional[Page] = None
        self._browser: Optional[Any] = None
        self._playwright: Optional[Playwright] = None

    @abstractmethod
    def get_page(self) -> Page:
        pass

    def close(self) -> None:
        """Close browser and stop Playwright; safe to call twice."""
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception:
                pass  # already gone
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception:
                pass
            self._playwright = None
        self._page = None

    def is_ready(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    def __enter__(self) -> BrowserProvider:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _viewport(self) -> dict:
        return {"width": self.config.viewport_width, "height": self.config.viewport_height}


class LocalPlaywrightProvider(BrowserProvider):
    """Launches a local Chromium, with a persistent profile when user_data_dir is set."""

    def get_page(self) -> Page:
        if self.is_ready():
            return self._page

        self._playwright = sync_playwright().start()
        chromium = self._playwright.chromium

        if self.config.user_data_dir:
            context: BrowserContext = chromium.launch_persistent_context(
                user_data_dir=self.config.user_data_dir,
                headless=self.config.headless,
                viewport=self._viewport(),
                args=list(self.config.extra_args),
                channel=self.config.channel,
            )
            self._browser = context
            self._page = context.pages[0] if context.pages else context.new_page()
            return self._page

        browser: Browser = chromium.launch(
            headless=self.config.headless,
            args=list(self.config.extra_args),
            channel=self.config.channel,
        )
        self._browser = browser
        self._page = browser.new_context(viewport=self._viewport()).new_page()
        return self._page


class RemoteBrowserProvider(BrowserProvider):
    """Connects to a remote browser over CDP."""

    def get_page(self) -> Page:
        if self.is_ready():
            return self._page
        if not self.config.remote_cdp_url:
            raise ConfigurationError("remote_cdp_url is required for RemoteBrowserProvider")

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.connect_over_cdp(self.config.remote_cdp_url)

        contexts = self._browser.contexts
        context = contexts[0] if contexts else self._browser.new_context(viewport=self._viewport())
        self._page = context.pages[0] if context.pages else context.new_page()
        return self._page


class MockBrowserProvider(BrowserProvider):
    """
    Returns a page supplied by the caller; no browser is started.

    Example:
        >>> provider = MockBrowserProvider(BrowserConfig(provider_type="mock"), mock_page=fake_page)
    """

    def __init__(self, config: BrowserConfig, mock_page: Optional[Any] = None):
        super().__init__(config)
        self._mock_page = mock_page

    def get_page(self) -> Page:
        if self._mock_page is None:
            raise NotImplementedError(
                "MockBrowserProvider requires a mock_page to be provided. "
                "Use: MockBrowserProvider(config, mock_page=your_mock)"
            )
        return self._mock_page

    def close(self) -> None:
        pass


def create_browser_provider(config: BrowserConfig, mock_page: Optional[Any] = None) -> BrowserProvider:
    """
    Build the provider named by config.provider_type.

    Raises:
        ConfigurationError: for an unknown provider type
    """
    if config.provider_type == "local":
        return LocalPlaywrightProvider(config)
    if config.provider_type == "remote":
        return RemoteBrowserProvider(config)
    if config.provider_type == "mock":
        return MockBrowserProvider(config, mock_page=mock_page)
    raise ConfigurationError(
        f"Unknown provider_type: {config.provider_type}. "
        f"Must be one of: local, remote, mock"
    )
