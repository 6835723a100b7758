import pytest

from fake_dom import FakePage
from filler_config import FillerConfig
from utils.context_guard import BrowsingContext


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def context(page):
    return BrowsingContext(page)


@pytest.fixture
def fast_config():
    return FillerConfig.fast()
