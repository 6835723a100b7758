"""
Configuration models for the payment frame filler.

This module provides structured, type-safe configuration using Pydantic models.
The field specs below are a versioned contract against the third-party widget's
markup: when the widget changes its attributes, this is the list to update.

Example:
    >>> from filler_config import FillerConfig, TypingConfig
    >>> config = FillerConfig(typing=TypingConfig(keystroke_delay_ms=50))
    >>> filler = PaymentFormFiller(page, config=config)
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from models import FieldName


class SelectorKind(str, Enum):
    """How stable a selector is expected to be, most stable first."""
    STABLE = "stable"
    SEMANTIC = "semantic"
    GENERIC = "generic"


_KIND_RANK = {SelectorKind.STABLE: 0, SelectorKind.SEMANTIC: 1, SelectorKind.GENERIC: 2}


class SelectorCandidate(BaseModel):
    """One CSS selector plus its stability class."""

    selector: str
    kind: SelectorKind = SelectorKind.SEMANTIC

    class Config:
        frozen = True

    @property
    def rank(self) -> int:
        return _KIND_RANK[self.kind]


def stable(selector: str) -> SelectorCandidate:
    return SelectorCandidate(selector=selector, kind=SelectorKind.STABLE)


def semantic(selector: str) -> SelectorCandidate:
    return SelectorCandidate(selector=selector, kind=SelectorKind.SEMANTIC)


def generic(selector: str) -> SelectorCandidate:
    return SelectorCandidate(selector=selector, kind=SelectorKind.GENERIC)


class FieldSpec(BaseModel):
    """What a field looks like and what counts as a successful entry."""

    name: FieldName
    candidate_selectors: Tuple[SelectorCandidate, ...] = Field(
        description="Selectors tried in order: stable data attribute, semantic attribute, generic class"
    )
    min_accepted_delta: int = Field(
        default=2,
        ge=1,
        description="Minimum growth of the field value length for typing to count as successful"
    )
    split_frame_title: Optional[str] = Field(
        default=None,
        description="Exact iframe title used by the split layout for this field"
    )

    class Config:
        frozen = True

    @field_validator("candidate_selectors")
    @classmethod
    def _ordered_and_non_empty(cls, value: Tuple[SelectorCandidate, ...]) -> Tuple[SelectorCandidate, ...]:
        if not value:
            raise ValueError("candidate_selectors must not be empty")
        ranks = [candidate.rank for candidate in value]
        if ranks != sorted(ranks):
            raise ValueError("candidate_selectors must be ordered stable -> semantic -> generic")
        return value

    @property
    def signature_selectors(self) -> Tuple[SelectorCandidate, ...]:
        """Candidates specific enough to identify the field on their own."""
        return tuple(c for c in self.candidate_selectors if c.kind is not SelectorKind.GENERIC)


def default_field_specs() -> Dict[FieldName, FieldSpec]:
    """Selector contract for the hosted card widget."""
    return {
        FieldName.CARD_NUMBER: FieldSpec(
            name=FieldName.CARD_NUMBER,
            candidate_selectors=(
                stable("[data-elements-stable-field-name='cardNumber']"),
                semantic("input[name='cardnumber']"),
                semantic("input[autocomplete='cc-number']"),
                generic(".InputElement"),
            ),
            min_accepted_delta=15,
            split_frame_title="Secure card number input",
        ),
        FieldName.EXPIRY: FieldSpec(
            name=FieldName.EXPIRY,
            candidate_selectors=(
                stable("[data-elements-stable-field-name='cardExpiry']"),
                semantic("input[autocomplete='cc-exp']"),
                semantic("input[name='exp-date']"),
                generic(".InputElement"),
            ),
            min_accepted_delta=3,
            split_frame_title="Secure expiration date input",
        ),
        FieldName.CVC: FieldSpec(
            name=FieldName.CVC,
            candidate_selectors=(
                stable("[data-elements-stable-field-name='cardCvc']"),
                semantic("input[autocomplete='cc-csc']"),
                semantic("input[name='cvc']"),
                generic(".InputElement"),
            ),
            min_accepted_delta=2,
            split_frame_title="Secure CVC input",
        ),
        FieldName.POSTAL_CODE: FieldSpec(
            name=FieldName.POSTAL_CODE,
            candidate_selectors=(
                stable("[data-elements-stable-field-name='postalCode']"),
                semantic("input[autocomplete*='postal']"),
                semantic("input[name*='postal']"),
                generic(".InputElement"),
            ),
            min_accepted_delta=2,
            split_frame_title="Secure postal code input",
        ),
    }


class FrameSearchConfig(BaseModel):
    """Frame tree search configuration."""

    exclusion_signatures: List[str] = Field(
        default_factory=lambda: ["express-checkout", "express checkout", "controller", "hcaptcha"],
        description="Case-insensitive substrings of iframe src/title that are never payment frames"
    )
    max_depth: int = Field(
        default=3,
        ge=1,
        description="How many iframe levels below the top document are searched"
    )
    poll_interval_ms: int = Field(
        default=150,
        ge=0,
        description="Back-off between full passes over the frame tree"
    )
    unified_timeout_s: float = Field(
        default=12.0,
        ge=0.0,
        description="How long to look for the single-frame widget"
    )
    split_timeout_s: float = Field(
        default=10.0,
        ge=0.0,
        description="How long to look for the per-field frames"
    )
    optional_field_timeout_s: float = Field(
        default=2.0,
        ge=0.0,
        description="How long to look for optional fields such as postal code"
    )

    class Config:
        frozen = True


class ResolutionConfig(BaseModel):
    """Element resolution inside a frame."""

    field_timeout_s: float = Field(
        default=15.0,
        ge=0.0,
        description="How long to wait for a usable input inside a resolved frame"
    )
    poll_interval_ms: int = Field(
        default=100,
        ge=0,
        description="Delay between selector passes"
    )
    check_occlusion: bool = Field(
        default=True,
        description="Reject elements covered by another element at their centre"
    )

    class Config:
        frozen = True


class TypingConfig(BaseModel):
    """Keystroke injection behaviour."""

    keystroke_delay_ms: int = Field(
        default=35,
        ge=0,
        description="Pause after every DOM keystroke; the widget drops bursts"
    )
    native_interval_ms: int = Field(
        default=25,
        ge=0,
        description="Pause between OS-level keystrokes"
    )
    replay_dropped_keystrokes: bool = Field(
        default=True,
        description="Send a character again once when the value did not change"
    )
    click_timeout_ms: int = Field(
        default=2000,
        ge=0,
        description="Timeout for the focusing click before falling back to focus()"
    )
    native_fallback: bool = Field(
        default=True,
        description="Replay through OS-level keystrokes when DOM typing is not verified"
    )

    class Config:
        frozen = True


class FlowConfig(BaseModel):
    """Sequencing around the fields."""

    settle_delay_ms: int = Field(
        default=120,
        ge=0,
        description="Pause after advancing focus between fields"
    )
    advance_key: str = Field(
        default="Tab",
        description="Key pressed on a filled field to blur it and advance focus"
    )
    open_card_section: bool = Field(
        default=True,
        description="Click the card tab/toggle before probing when one is visible"
    )
    card_section_toggles: List[str] = Field(
        default_factory=lambda: [
            "[data-testid='card-tab'], [data-testid*='card'][role='tab']",
            "button[aria-controls*='card'], button[aria-label*='card']",
        ],
        description="Selectors for controls that reveal card entry"
    )
    submit_selector: str = Field(
        default="button[type='submit'], button:has-text('Pay')",
        description="Pay/submit control on the top-level document"
    )
    blocking_overlay_selector: str = Field(
        default=".loading, .spinner, .overlay, [role='progressbar']",
        description="Elements that block the submit control while visible"
    )
    submit_timeout_s: float = Field(
        default=20.0,
        ge=0.0,
        description="How long the submit control may take to become clickable"
    )
    overlay_timeout_s: float = Field(
        default=10.0,
        ge=0.0,
        description="How long to wait for blocking overlays to clear"
    )
    three_ds_frame_selector: str = Field(
        default="iframe[src*='3ds'], iframe[title*='challenge']",
        description="3DS challenge frame"
    )
    three_ds_approve_selector: str = Field(
        default="button:has-text('Complete authentication'), button:has-text('Authorize')",
        description="Approve button inside the 3DS challenge"
    )
    three_ds_timeout_s: float = Field(
        default=30.0,
        ge=0.0,
        description="How long to wait for a 3DS challenge to show up"
    )

    class Config:
        frozen = True


class DebugConfig(BaseModel):
    """Debugging and logging configuration."""

    debug_mode: bool = Field(
        default=True,
        description="Enable debug mode with verbose logging"
    )
    dump_frame_tree_on_not_found: bool = Field(
        default=True,
        description="Attach a frame-tree dump to results where no layout matched"
    )

    class Config:
        frozen = True


class FillerConfig(BaseModel):
    """
    Main configuration object for PaymentFormFiller.

    Example:
        >>> config = FillerConfig(
        ...     frames=FrameSearchConfig(unified_timeout_s=5),
        ...     typing=TypingConfig(native_fallback=False)
        ... )
    """

    field_specs: Dict[FieldName, FieldSpec] = Field(
        default_factory=default_field_specs,
        description="Selector contract per payment field"
    )
    frames: FrameSearchConfig = Field(
        default_factory=FrameSearchConfig,
        description="Frame tree search configuration"
    )
    resolution: ResolutionConfig = Field(
        default_factory=ResolutionConfig,
        description="Element resolution configuration"
    )
    typing: TypingConfig = Field(
        default_factory=TypingConfig,
        description="Keystroke injection configuration"
    )
    flow: FlowConfig = Field(
        default_factory=FlowConfig,
        description="Field sequencing configuration"
    )
    logging: DebugConfig = Field(
        default_factory=DebugConfig,
        description="Debug and logging configuration"
    )

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _all_fields_specified(self) -> "FillerConfig":
        missing = [name.value for name in FieldName if name not in self.field_specs]
        if missing:
            raise ValueError(f"missing field specs: {', '.join(missing)}")
        for name, spec in self.field_specs.items():
            if spec.name is not name:
                raise ValueError(f"field spec for {name.value} is declared as {spec.name.value}")
        return self

    def spec(self, name: FieldName) -> FieldSpec:
        return self.field_specs[name]

    @classmethod
    def fast(cls) -> FillerConfig:
        """
        Create a configuration with short waits.

        Returns:
            FillerConfig suited to local fixtures and unit tests
        """
        return cls(
            frames=FrameSearchConfig(
                poll_interval_ms=10,
                unified_timeout_s=0.3,
                split_timeout_s=0.3,
                optional_field_timeout_s=0.1,
            ),
            resolution=ResolutionConfig(field_timeout_s=0.3, poll_interval_ms=10),
            typing=TypingConfig(keystroke_delay_ms=0, native_interval_ms=0),
            flow=FlowConfig(
                settle_delay_ms=0,
                open_card_section=False,
                submit_timeout_s=0.3,
                overlay_timeout_s=0.1,
                three_ds_timeout_s=0.1,
            ),
            logging=DebugConfig(debug_mode=False),
        )

    @classmethod
    def debug(cls) -> FillerConfig:
        """
        Create a configuration optimized for debugging.

        Returns:
            FillerConfig with verbose logging and frame dumps
        """
        return cls(logging=DebugConfig(debug_mode=True, dump_frame_tree_on_not_found=True))

    @classmethod
    def production(cls) -> FillerConfig:
        """
        Create a configuration for unattended runs.

        Returns:
            FillerConfig with quiet logging and longer searches
        """
        return cls(
            frames=FrameSearchConfig(unified_timeout_s=20.0, split_timeout_s=15.0),
            logging=DebugConfig(debug_mode=False),
        )
