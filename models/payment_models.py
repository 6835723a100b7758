"""
Data models for payment widget filling.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, field_validator

T = TypeVar("T")


class FieldName(str, Enum):
    """Logical payment fields, in fill order."""
    CARD_NUMBER = "cardNumber"
    EXPIRY = "cardExpiry"
    CVC = "cardCvc"
    POSTAL_CODE = "postalCode"


FILL_ORDER: Tuple[FieldName, ...] = (
    FieldName.CARD_NUMBER,
    FieldName.EXPIRY,
    FieldName.CVC,
    FieldName.POSTAL_CODE,
)

REQUIRED_FIELDS: Tuple[FieldName, ...] = FILL_ORDER[:3]


class FillMode(str, Enum):
    """Widget layout the fill ended up using."""
    UNIFIED = "unified"
    SPLIT = "split"
    NOT_FOUND = "not_found"


class FieldOutcome(str, Enum):
    """Per-field result of typing."""
    SUCCEEDED = "succeeded"
    FALLBACK_USED = "fallback_used"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not FieldOutcome.FAILED


@dataclass(frozen=True)
class FrameDescriptor:
    """Snapshot of one <iframe> element taken during a single poll."""
    index: int
    name: str = ""
    src: str = ""
    title: str = ""
    visible: bool = True

    @property
    def src_signature(self) -> str:
        return (self.src or "").lower()

    @property
    def title_signature(self) -> str:
        return (self.title or "").lower()

    def matches_any(self, signatures) -> bool:
        """Case-insensitive substring match of src/title against signatures."""
        for signature in signatures or ():
            needle = (signature or "").lower()
            if not needle:
                continue
            if needle in self.src_signature or needle in self.title_signature:
                return True
        return False

    def label(self) -> str:
        if self.title:
            return f"#{self.index} '{self.title}'"
        if self.name:
            return f"#{self.index} name={self.name}"
        return f"#{self.index} src={self.src[:60]}"


@dataclass(frozen=True)
class FrameHandle:
    """Path of descriptors from the top-level document to a frame."""
    path: Tuple[FrameDescriptor, ...]

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def leaf(self) -> FrameDescriptor:
        return self.path[-1]

    def child(self, descriptor: FrameDescriptor) -> "FrameHandle":
        return FrameHandle(self.path + (descriptor,))

    def describe(self) -> str:
        return " > ".join(d.label() for d in self.path) or "<top>"


@dataclass(frozen=True)
class Found(Generic[T]):
    """A lookup that produced a value."""
    value: T
    detail: str = ""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """A lookup that legitimately produced nothing."""
    reason: str = ""

    def __bool__(self) -> bool:
        return False


Lookup = Union[Found[T], NotFound]


@dataclass
class FrameTreeNode:
    """One iframe in a diagnostic frame-tree dump."""
    descriptor: FrameDescriptor
    depth: int
    children: List["FrameTreeNode"] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.descriptor.index,
            "name": self.descriptor.name,
            "title": self.descriptor.title,
            "src": self.descriptor.src,
            "visible": self.descriptor.visible,
            "depth": self.depth,
            "error": self.error,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class TypingReport:
    """Observed value lengths around one typing attempt."""
    text_length: int
    before: int = 0
    after: int = 0
    fallback_attempted: bool = False
    outcome: Optional[FieldOutcome] = None

    @property
    def delta(self) -> int:
        return self.after - self.before


@dataclass
class FillResult:
    """
    Result of one fill_payment_form() call.

    Attributes:
        mode: Layout that was used, or NOT_FOUND
        outcomes: Outcome per attempted field (skipped postal code is absent)
        frame_tree: Frame-tree dump captured when no layout matched
        duration_ms: Wall time of the whole fill
    """
    mode: FillMode
    outcomes: Dict[FieldName, FieldOutcome] = field(default_factory=dict)
    frame_tree: List[FrameTreeNode] = field(default_factory=list)
    duration_ms: float = 0.0

    def __bool__(self) -> bool:
        return self.all_succeeded

    @property
    def all_succeeded(self) -> bool:
        if self.mode is FillMode.NOT_FOUND:
            return False
        return all(outcome.ok for outcome in self.outcomes.values())

    @property
    def failed_fields(self) -> List[FieldName]:
        return [name for name, outcome in self.outcomes.items() if outcome is FieldOutcome.FAILED]

    def fallback_used(self, field_name: FieldName) -> bool:
        """Whether OS-level typing was needed for a field."""
        return self.outcomes.get(field_name) is FieldOutcome.FALLBACK_USED

    def __repr__(self) -> str:
        status = "✅" if self.all_succeeded else "❌"
        fields = ", ".join(f"{name.value}={outcome.value}" for name, outcome in self.outcomes.items())
        return f"FillResult({status}, mode={self.mode.value}, {fields})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "outcomes": {name.value: outcome.value for name, outcome in self.outcomes.items()},
            "all_succeeded": self.all_succeeded,
            "frame_tree": [node.to_dict() for node in self.frame_tree],
            "duration_ms": self.duration_ms,
        }


_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])\s*/?\s*(\d{2})$")


class CardDetails(BaseModel):
    """Field values handed over by the caller."""

    card_number: str
    expiry: str
    cvc: str
    postal_code: Optional[str] = None

    @field_validator("card_number", mode="before")
    @classmethod
    def _strip_card_number(cls, value: str) -> str:
        digits = re.sub(r"[\s-]+", "", str(value or ""))
        if not digits.isdigit():
            raise ValueError("card number must contain only digits, spaces and dashes")
        return digits

    @field_validator("expiry", mode="before")
    @classmethod
    def _normalize_expiry(cls, value: str) -> str:
        text = str(value or "").strip()
        match = _EXPIRY_RE.match(text)
        if not match:
            raise ValueError(f"expiry must look like MM/YY, got '{text}'")
        return f"{match.group(1)}/{match.group(2)}"

    @field_validator("cvc", mode="before")
    @classmethod
    def _check_cvc(cls, value: str) -> str:
        text = str(value or "").strip()
        if not text.isdigit() or not 3 <= len(text) <= 4:
            raise ValueError("cvc must be 3 or 4 digits")
        return text

    @field_validator("postal_code", mode="before")
    @classmethod
    def _blank_postal_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def value_for(self, field_name: FieldName) -> Optional[str]:
        return {
            FieldName.CARD_NUMBER: self.card_number,
            FieldName.EXPIRY: self.expiry,
            FieldName.CVC: self.cvc,
            FieldName.POSTAL_CODE: self.postal_code,
        }[field_name]
