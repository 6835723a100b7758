from types import SimpleNamespace

from error_handling import (
    ErrorHandler,
    ErrorSeverity,
    FallbackFailedError,
    RecoveryStrategy,
    RequiredElementTimeoutError,
    StaleContextError,
    VerificationFailedError,
)


def test_recovery_strategies():
    handler = ErrorHandler()
    assert handler.handle_error(VerificationFailedError("short", before=0, after=1)) is RecoveryStrategy.FALLBACK
    assert handler.handle_error(StaleContextError("gone")) is RecoveryStrategy.SKIP
    assert handler.handle_error(RequiredElementTimeoutError("no pay button")) is RecoveryStrategy.ABORT
    assert handler.handle_error(ValueError("unexpected")) is RecoveryStrategy.SKIP


def test_context_captures_page_and_field():
    page = SimpleNamespace(url="https://shop.example/checkout", title=lambda: "Checkout")
    handler = ErrorHandler()
    handler.handle_error(FallbackFailedError("still empty"), page=page, field_name="cardCvc", frame_path="#3 'Secure CVC input'")

    context = handler.errors[0]
    assert context.page_url == "https://shop.example/checkout"
    assert context.page_title == "Checkout"
    assert context.field_name == "cardCvc"
    assert context.to_dict()["frame_path"] == "#3 'Secure CVC input'"


def test_page_state_capture_failure_is_ignored():
    def broken_title():
        raise RuntimeError("page closed")

    handler = ErrorHandler()
    handler.handle_error(StaleContextError("gone"), page=SimpleNamespace(url="about:blank", title=broken_title))
    assert len(handler.errors) == 1


def test_error_attributes_and_overrides():
    error = RequiredElementTimeoutError("timed out", selector="button[type='submit']")
    assert error.severity is ErrorSeverity.CRITICAL
    assert error.context.selector == "button[type='submit']"
    assert error.context.error_type == "RequiredElementTimeoutError"

    failed = VerificationFailedError("short", before=2, after=3)
    assert (failed.before, failed.after) == (2, 3)


def test_summary_and_history_limit():
    handler = ErrorHandler(max_history=2)
    for _ in range(3):
        handler.handle_error(StaleContextError("gone"))
    handler.handle_error(FallbackFailedError("nope"))

    summary = handler.get_error_summary()
    assert summary["total_errors"] == 2
    assert summary["error_counts"] == {"StaleContextError": 1, "FallbackFailedError": 1}

    handler.clear_errors()
    assert handler.get_error_summary()["total_errors"] == 0
