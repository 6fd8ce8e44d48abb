"""Core data models for Campus Autofill."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WidgetType(str, Enum):
    """Input widget families the fill executor knows how to drive."""
    FILE = "file"
    DATE = "date"
    TEXT = "text"
    CONTENTEDITABLE = "contenteditable"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    UNKNOWN = "unknown"


class OutcomeStatus(str, Enum):
    """Whether a question received a value."""
    FILLED = "filled"
    UNMATCHED = "unmatched"


class UnmatchedReason(str, Enum):
    """Why a question was left unanswered. Reported, never raised."""
    NO_MAPPING = "no-mapping"
    NO_USER_DATA = "no-user-data"
    NO_INPUT_MATCHED = "no-input-matched"
    FILL_ERROR = "fill-error"


class SessionState(str, Enum):
    """Lifecycle of an automation session."""
    STARTING = "starting"
    AWAITING_LOGIN = "awaiting_login"
    FILLING = "filling"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"
    FAILED = "failed"


LIVE_STATES = frozenset({
    SessionState.STARTING,
    SessionState.AWAITING_LOGIN,
    SessionState.FILLING,
    SessionState.AWAITING_CONFIRMATION,
})


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for JSON callers."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class InputAttributes(CamelModel):
    """Machine attributes of a question's primary input element."""
    name: Optional[str] = Field(None, description="name attribute")
    id: Optional[str] = Field(None, description="id attribute")
    placeholder: Optional[str] = Field(None, description="placeholder attribute")
    aria_label: Optional[str] = Field(None, description="aria-label attribute")
    type: Optional[str] = Field(None, description="type attribute, role, or tag name")


@dataclass
class Question:
    """One question on the currently displayed page. Never outlives the page."""
    index: int
    label: str
    composite_label: str
    attributes: InputAttributes
    is_required: bool
    widget_type: WidgetType
    container: Any = field(repr=False, default=None)


class FillOutcome(CamelModel):
    """What happened to one question."""
    status: OutcomeStatus = Field(..., description="filled or unmatched")
    label: str = Field(..., description="Visible question label")
    key: Optional[str] = Field(None, description="Canonical profile key")
    method: Optional[str] = Field(None, description="Widget strategy that assigned the value")
    value: Optional[Any] = Field(None, description="Value written or option chosen")
    reason: Optional[UnmatchedReason] = Field(None, description="Why nothing was written")
    required: bool = Field(False, description="Whether the question is mandatory")
    page_index: int = Field(0, description="Zero-based page the question was on")
    detail: Optional[str] = Field(None, description="Extra context, such as a control error")

    @classmethod
    def filled(cls, question: Question, key: str, method: str, value: Any, page_index: int = 0) -> "FillOutcome":
        return cls(
            status=OutcomeStatus.FILLED,
            label=question.label,
            key=key,
            method=method,
            value=value,
            required=question.is_required,
            page_index=page_index,
        )

    @classmethod
    def unmatched(
        cls,
        question: Question,
        reason: UnmatchedReason,
        key: Optional[str] = None,
        detail: Optional[str] = None,
        page_index: int = 0,
    ) -> "FillOutcome":
        return cls(
            status=OutcomeStatus.UNMATCHED,
            label=question.label,
            key=key,
            reason=reason,
            required=question.is_required,
            page_index=page_index,
            detail=detail,
        )


class Diagnostics(CamelModel):
    """Aggregated outcomes of one automation run."""
    fields_filled: List[FillOutcome] = Field(default_factory=list)
    unmatched_mandatory: List[FillOutcome] = Field(default_factory=list)
    unmatched_optional: List[FillOutcome] = Field(default_factory=list)
    pages_visited: int = Field(0, description="Pages scanned in this run")
    stop_reason: Optional[str] = Field(None, description="Why the page loop ended")
    warnings: List[str] = Field(default_factory=list, description="Navigation problems that did not abort the run")

    def record(self, outcome: FillOutcome) -> None:
        if outcome.status == OutcomeStatus.FILLED:
            self.fields_filled.append(outcome)
        elif outcome.required:
            self.unmatched_mandatory.append(outcome)
        else:
            self.unmatched_optional.append(outcome)


class StartResult(CamelModel):
    """Result of starting or continuing a session."""
    session_id: str = Field(..., description="Session identifier")
    needs_login: bool = Field(False, description="A sign-in wall is waiting for the human")
    state: SessionState = Field(..., description="Session state after the call")
    diagnostics: Optional[Diagnostics] = Field(None, description="Fill results when filling ran")
    snapshot: Optional[str] = Field(None, description="Base64 encoded full-page PNG")


class SubmitResult(CamelModel):
    """Result of a submit request."""
    success: bool = Field(..., description="Whether the form was submitted")
    clicked: bool = Field(False, description="Whether the submit control was activated")
    confirmed: bool = Field(False, description="Whether a submission indicator was observed")
    reason: Optional[str] = Field(None, description="Why submission did not happen")


class CancelResult(CamelModel):
    """Result of a cancel request."""
    cancelled: bool = Field(..., description="Whether a live session was closed")


@dataclass
class Session:
    """One automation run bound to one browser context, user and form."""
    id: str
    user_key: str
    form_url: str
    browser: Any
    state: SessionState = SessionState.STARTING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    last_snapshot: Optional[bytes] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def page(self) -> Any:
        return getattr(self.browser, "page", None)

    @property
    def is_live(self) -> bool:
        return self.state in LIVE_STATES
