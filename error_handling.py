"""
Structured error handling for the payment frame filler.

Provides custom exception types, error context, and recovery strategies.
There is no "not found" error: a layout or frame that does not apply is
reported as a NotFound value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecoveryStrategy(Enum):
    """Error recovery strategies."""
    RETRY = "retry"
    SKIP = "skip"
    ABORT = "abort"
    FALLBACK = "fallback"


@dataclass
class ErrorContext:
    """
    Context information about an error.

    Captures everything needed to understand and debug an error.
    """

    error_type: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    # Browser state
    page_url: Optional[str] = None
    page_title: Optional[str] = None

    # Fill context
    field_name: Optional[str] = None
    frame_path: Optional[str] = None
    selector: Optional[str] = None

    # Additional metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'error_type': self.error_type,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'page_url': self.page_url,
            'page_title': self.page_title,
            'field_name': self.field_name,
            'frame_path': self.frame_path,
            'selector': self.selector,
            'metadata': self.metadata
        }


class FillerError(Exception):
    """
    Base exception for all filler errors.

    All custom exceptions should inherit from this.
    """

    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    recovery_strategy: RecoveryStrategy = RecoveryStrategy.RETRY

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(
            error_type=self.__class__.__name__,
            message=message
        )

        # Allow overriding context fields
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)


class StaleContextError(FillerError):
    """A frame vanished or was re-rendered between enumeration and use."""
    severity = ErrorSeverity.LOW
    recovery_strategy = RecoveryStrategy.SKIP


class VerificationFailedError(FillerError):
    """Typed characters did not show up in the field's value."""
    severity = ErrorSeverity.MEDIUM
    recovery_strategy = RecoveryStrategy.FALLBACK

    def __init__(self, message: str, before: int = 0, after: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.before = before
        self.after = after


class FallbackFailedError(FillerError):
    """Native keystroke replay also missed the acceptance threshold."""
    severity = ErrorSeverity.HIGH
    recovery_strategy = RecoveryStrategy.SKIP


class NativeKeyboardUnavailableError(FillerError):
    """The platform cannot inject keystrokes into native focus."""
    severity = ErrorSeverity.MEDIUM
    recovery_strategy = RecoveryStrategy.SKIP


class RequiredElementTimeoutError(FillerError):
    """A control the caller cannot proceed without never appeared."""
    severity = ErrorSeverity.CRITICAL
    recovery_strategy = RecoveryStrategy.ABORT


class ConfigurationError(FillerError):
    """Invalid configuration."""
    severity = ErrorSeverity.CRITICAL
    recovery_strategy = RecoveryStrategy.ABORT


@dataclass
class ErrorHandler:
    """
    Records errors raised while filling and maps them to recovery strategies.
    """

    max_history: int = 50

    # Error history
    errors: List[ErrorContext] = field(default_factory=list)

    def handle_error(
        self,
        error: Exception,
        page: Any = None,
        field_name: Optional[str] = None,
        frame_path: Optional[str] = None,
    ) -> RecoveryStrategy:
        """
        Handle an error and determine recovery strategy.

        Args:
            error: The exception that occurred
            page: Playwright page, used to capture url and title
            field_name: Logical field being filled when the error happened
            frame_path: Human-readable frame path for the active frame

        Returns:
            RecoveryStrategy to use
        """
        if isinstance(error, FillerError):
            context = error.context
        else:
            context = ErrorContext(
                error_type=type(error).__name__,
                message=str(error)
            )

        if page is not None:
            try:
                context.page_url = page.url
                context.page_title = page.title()
            except Exception:
                pass  # Don't fail if we can't capture state

        if field_name and not context.field_name:
            context.field_name = field_name
        if frame_path and not context.frame_path:
            context.frame_path = frame_path

        self.errors.append(context)
        if len(self.errors) > self.max_history:
            self.errors.pop(0)

        if isinstance(error, FillerError):
            return error.recovery_strategy
        return RecoveryStrategy.SKIP

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all errors."""
        error_counts = {}
        for error in self.errors:
            error_type = error.error_type
            error_counts[error_type] = error_counts.get(error_type, 0) + 1

        return {
            'total_errors': len(self.errors),
            'error_counts': error_counts,
            'recent_errors': [e.to_dict() for e in self.errors[-5:]]
        }

    def clear_errors(self) -> None:
        """Clear error history."""
        self.errors.clear()
