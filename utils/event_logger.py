"""
Simple, robust event-driven logging for the payment frame filler.

Design principles:
- Non-blocking: logging errors never break a fill
- Simple: minimal API surface
- Flexible: easy to customize output via callbacks
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Callable
from dataclasses import dataclass, field
from datetime import datetime
import time


class EventType(str, Enum):
    """All event types that can be logged"""
    # Fill lifecycle
    FILL_START = "fill_start"
    FILL_COMPLETE = "fill_complete"
    MODE_TRANSITION = "mode_transition"

    # Frame search
    FRAME_SCAN = "frame_scan"
    FRAME_FOUND = "frame_found"
    FRAME_NOT_FOUND = "frame_not_found"
    FRAME_STALE = "frame_stale"
    FRAME_TREE = "frame_tree"

    # Field resolution
    FIELD_RESOLVED = "field_resolved"
    FIELD_NOT_FOUND = "field_not_found"
    FIELD_SKIPPED = "field_skipped"

    # Typing
    TYPING_VERIFIED = "typing_verified"
    TYPING_FALLBACK = "typing_fallback"
    TYPING_FAILED = "typing_failed"

    # Page-level controls
    CONTROL_CLICKED = "control_clicked"

    # System events
    SYSTEM_INFO = "system_info"
    SYSTEM_WARNING = "system_warning"
    SYSTEM_ERROR = "system_error"
    SYSTEM_DEBUG = "system_debug"


@dataclass
class FillerEvent:
    """Structured event data"""
    event_type: EventType
    message: str
    timestamp: float = field(default_factory=time.time)
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, SUCCESS
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "event_type": self.event_type.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "timestamp_iso": datetime.fromtimestamp(self.timestamp).isoformat(),
            "level": self.level,
            "details": self.details
        }


class EventLogger:
    """
    Simple, robust event logger.

    In debug mode: prints directly to console
    In normal mode: only calls callbacks (no prints)
    """

    def __init__(self, debug_mode: bool = True, max_history: int = 1000):
        self.debug_mode = debug_mode
        self._callbacks: List[Callable[[FillerEvent], None]] = []
        self._event_history: List[FillerEvent] = []
        self._max_history = max_history

    def register_callback(self, callback: Callable[[FillerEvent], None]) -> None:
        """Register a callback for all events"""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[FillerEvent], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def history(self) -> List[FillerEvent]:
        return list(self._event_history)

    def events_of(self, event_type: EventType) -> List[FillerEvent]:
        return [event for event in self._event_history if event.event_type is event_type]

    def clear_history(self) -> None:
        self._event_history.clear()

    def _safe_emit(self, event: FillerEvent) -> None:
        """Safely emit an event - never raises exceptions"""
        try:
            self._event_history.append(event)
            if len(self._event_history) > self._max_history:
                self._event_history.pop(0)
        except Exception:
            pass  # Ignore history errors

        if self.debug_mode:
            try:
                self._print_event(event)
            except Exception:
                pass  # Ignore print errors

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception:
                pass  # Ignore callback errors

    def _print_event(self, event: FillerEvent) -> None:
        """Print event in debug mode"""
        level_emoji = {
            "DEBUG": "🔍",
            "INFO": "ℹ️",
            "WARNING": "⚠️",
            "ERROR": "❌",
            "SUCCESS": "✅"
        }
        emoji = level_emoji.get(event.level, "•")
        print(f"{emoji} {event.message}")

        if event.details:
            for key, value in event.details.items():
                if value is not None and key not in ['timestamp', 'timestamp_iso']:
                    # Only print simple types to avoid errors
                    if isinstance(value, (str, int, float, bool)):
                        print(f"   {key}: {value}")

    def emit(self, event_type: EventType, message: str, level: str = "INFO", **details) -> None:
        """Emit an event - safe wrapper that never raises"""
        try:
            event = FillerEvent(
                event_type=event_type,
                message=message,
                level=level,
                details=details
            )
            self._safe_emit(event)
        except Exception:
            if self.debug_mode:
                try:
                    print(f"⚠️ Event logger error: {message}")
                except Exception:
                    pass

    # Convenience methods
    def fill_start(self, fields: List[str], **details):
        self.emit(EventType.FILL_START, f"Starting payment fill: {', '.join(fields)}", "INFO", **details)

    def fill_complete(self, mode: str, success: bool, duration_ms: float = None, **details):
        status = "completed" if success else "finished with failures"
        msg = f"Payment fill {status} (mode={mode})"
        if duration_ms is not None:
            msg += f" in {duration_ms:.0f}ms"
        level = "SUCCESS" if success else "ERROR"
        self.emit(EventType.FILL_COMPLETE, msg, level, mode=mode, success=success, duration_ms=duration_ms, **details)

    def mode_transition(self, from_state: str, to_state: str, reason: str = None, **details):
        msg = f"State {from_state} → {to_state}"
        if reason:
            msg += f" ({reason})"
        self.emit(EventType.MODE_TRANSITION, msg, "INFO", from_state=from_state, to_state=to_state, reason=reason, **details)

    def frame_scan(self, depth: int, candidates: int, **details):
        self.emit(EventType.FRAME_SCAN, f"Scanning {candidates} frame(s) at depth {depth}", "DEBUG",
                  depth=depth, candidates=candidates, **details)

    def frame_found(self, path: str, **details):
        self.emit(EventType.FRAME_FOUND, f"Found frame: {path}", "SUCCESS", path=path, **details)

    def frame_not_found(self, purpose: str, timeout_s: float = None, **details):
        msg = f"No frame found for {purpose}"
        if timeout_s is not None:
            msg += f" within {timeout_s:.1f}s"
        self.emit(EventType.FRAME_NOT_FOUND, msg, "INFO", purpose=purpose, timeout_s=timeout_s, **details)

    def frame_stale(self, path: str, error: str = None, **details):
        self.emit(EventType.FRAME_STALE, f"Frame went stale: {path}", "DEBUG",
                  path=path, error=error, **details)

    def field_resolved(self, field_name: str, selector: str, **details):
        self.emit(EventType.FIELD_RESOLVED, f"Resolved {field_name} via {selector}", "DEBUG",
                  field_name=field_name, selector=selector, **details)

    def field_not_found(self, field_name: str, **details):
        self.emit(EventType.FIELD_NOT_FOUND, f"No usable input for {field_name}", "WARNING",
                  field_name=field_name, **details)

    def field_skipped(self, field_name: str, reason: str, **details):
        self.emit(EventType.FIELD_SKIPPED, f"Skipping {field_name}: {reason}", "INFO",
                  field_name=field_name, reason=reason, **details)

    def typing_verified(self, field_name: str, before: int, after: int, **details):
        self.emit(EventType.TYPING_VERIFIED, f"Typed {field_name} (len {before} → {after})", "SUCCESS",
                  field_name=field_name, before=before, after=after, **details)

    def typing_fallback(self, field_name: str, before: int, after: int, **details):
        self.emit(EventType.TYPING_FALLBACK,
                  f"DOM typing not verified for {field_name} (len {before} → {after}), using native keystrokes",
                  "WARNING", field_name=field_name, before=before, after=after, **details)

    def typing_failed(self, field_name: str, reason: str, **details):
        self.emit(EventType.TYPING_FAILED, f"Could not type {field_name}: {reason}", "ERROR",
                  field_name=field_name, reason=reason, **details)

    def control_clicked(self, control: str, **details):
        self.emit(EventType.CONTROL_CLICKED, f"Clicked {control}", "INFO", control=control, **details)

    def frame_tree(self, lines: List[str], **details):
        msg = "Frame tree:"
        for line in lines:
            msg += f"\n  {line}"
        self.emit(EventType.FRAME_TREE, msg, "DEBUG", frames=len(lines), **details)

    def system_info(self, message: str, **details):
        self.emit(EventType.SYSTEM_INFO, message, "INFO", **details)

    def system_warning(self, message: str, **details):
        self.emit(EventType.SYSTEM_WARNING, message, "WARNING", **details)

    def system_error(self, message: str, error: Exception = None, **details):
        msg = message
        if error:
            msg += f" - {str(error)}"
        self.emit(EventType.SYSTEM_ERROR, msg, "ERROR", error=str(error) if error else None, **details)

    def system_debug(self, message: str, **details):
        self.emit(EventType.SYSTEM_DEBUG, message, "DEBUG", **details)


# Global instance
_global_event_logger: Optional[EventLogger] = None

def get_event_logger() -> EventLogger:
    """Get the global event logger instance"""
    global _global_event_logger
    if _global_event_logger is None:
        _global_event_logger = EventLogger(debug_mode=True)
    return _global_event_logger

def set_event_logger(logger: EventLogger) -> None:
    """Set the global event logger instance"""
    global _global_event_logger
    _global_event_logger = logger
