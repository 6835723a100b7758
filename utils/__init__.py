"""
Utility modules for the payment frame filler.
"""
from .context_guard import BrowsingContext, ContextGuard
from .event_logger import EventLogger, EventType, get_event_logger, set_event_logger
from .wait_utils import poll_until, quiet_sleep, wait_for_required

__all__ = [
    "BrowsingContext",
    "ContextGuard",
    "EventLogger",
    "EventType",
    "get_event_logger",
    "set_event_logger",
    "poll_until",
    "quiet_sleep",
    "wait_for_required",
]
