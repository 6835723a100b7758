import pytest

from error_handling import RequiredElementTimeoutError
from utils.wait_utils import poll_until, wait_for_required


def test_condition_runs_once_with_zero_timeout():
    calls = []
    assert poll_until(lambda: calls.append(1), 0) is None
    assert calls == [1]


def test_returns_first_truthy_value():
    values = iter([None, 0, "", "ready", "later"])
    assert poll_until(lambda: next(values), 1.0, interval_ms=0) == "ready"


def test_wait_for_required_raises_on_timeout():
    with pytest.raises(RequiredElementTimeoutError) as exc_info:
        wait_for_required(lambda: None, 0.01, "pay button", interval_ms=1)
    assert exc_info.value.context.selector == "pay button"
    assert "pay button" in str(exc_info.value)


def test_wait_for_required_returns_value():
    assert wait_for_required(lambda: 42, 0.01, "answer") == 42
