"""
Data models for the payment frame filler.
"""
from .payment_models import (
    FieldName,
    FILL_ORDER,
    REQUIRED_FIELDS,
    FillMode,
    FieldOutcome,
    FrameDescriptor,
    FrameHandle,
    Found,
    NotFound,
    Lookup,
    FrameTreeNode,
    TypingReport,
    FillResult,
    CardDetails,
)

__all__ = [
    "FieldName",
    "FILL_ORDER",
    "REQUIRED_FIELDS",
    "FillMode",
    "FieldOutcome",
    "FrameDescriptor",
    "FrameHandle",
    "Found",
    "NotFound",
    "Lookup",
    "FrameTreeNode",
    "TypingReport",
    "FillResult",
    "CardDetails",
]
