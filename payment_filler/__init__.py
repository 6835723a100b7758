"""
Public package surface for the payment frame filler.

This module re-exports the primary classes and helpers so consumers can simply:

    from payment_filler import PaymentFormFiller, FillerConfig
"""

# Main entry points
from payment_form_filler import PaymentFormFiller, ModeSelector, FillState, fill_payment_form

# Configuration
from filler_config import (
    FillerConfig,
    FieldSpec,
    SelectorCandidate,
    SelectorKind,
    FrameSearchConfig,
    ResolutionConfig,
    TypingConfig,
    FlowConfig,
    DebugConfig,
    default_field_specs,
)

# Browser provider
from browser_provider import (
    BrowserProvider,
    LocalPlaywrightProvider,
    create_browser_provider,
    BrowserConfig,
)

# Results and values
from models import (
    CardDetails,
    FieldName,
    FieldOutcome,
    FillMode,
    FillResult,
    FrameDescriptor,
    FrameHandle,
    FrameTreeNode,
    Found,
    NotFound,
)

# Errors
from error_handling import (
    FillerError,
    StaleContextError,
    VerificationFailedError,
    FallbackFailedError,
    NativeKeyboardUnavailableError,
    RequiredElementTimeoutError,
    ConfigurationError,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    RecoveryStrategy,
)

# Building blocks
from handlers import FieldResolver, FrameLocator, NativeKeyboard, PyAutoGuiKeyboard, UnavailableKeyboard, ResilientTyper
from utils import BrowsingContext, ContextGuard
from utils.event_logger import EventLogger, EventType, set_event_logger

__version__ = "0.1.0"

__all__ = [
    # Main entry points
    "PaymentFormFiller",
    "ModeSelector",
    "FillState",
    "fill_payment_form",
    # Configuration
    "FillerConfig",
    "FieldSpec",
    "SelectorCandidate",
    "SelectorKind",
    "FrameSearchConfig",
    "ResolutionConfig",
    "TypingConfig",
    "FlowConfig",
    "DebugConfig",
    "default_field_specs",
    # Browser provider
    "BrowserProvider",
    "LocalPlaywrightProvider",
    "create_browser_provider",
    "BrowserConfig",
    # Results and values
    "CardDetails",
    "FieldName",
    "FieldOutcome",
    "FillMode",
    "FillResult",
    "FrameDescriptor",
    "FrameHandle",
    "FrameTreeNode",
    "Found",
    "NotFound",
    # Errors
    "FillerError",
    "StaleContextError",
    "VerificationFailedError",
    "FallbackFailedError",
    "NativeKeyboardUnavailableError",
    "RequiredElementTimeoutError",
    "ConfigurationError",
    "ErrorContext",
    "ErrorHandler",
    "ErrorSeverity",
    "RecoveryStrategy",
    # Building blocks
    "FieldResolver",
    "FrameLocator",
    "NativeKeyboard",
    "PyAutoGuiKeyboard",
    "UnavailableKeyboard",
    "ResilientTyper",
    "BrowsingContext",
    "ContextGuard",
    "EventLogger",
    "EventType",
    "set_event_logger",
]
