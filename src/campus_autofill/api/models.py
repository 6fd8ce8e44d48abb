"""API models for request/response schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from campus_autofill.core.models import CamelModel


class StartRequest(CamelModel):
    """Request to open and fill a form for a user."""
    user_key: str = Field(..., min_length=1, description="Stable user identifier")
    form_url: str = Field(..., min_length=1, description="URL of the form to fill")
    headless: Optional[bool] = Field(None, description="Override the configured headless mode")
    profile: Optional[Dict[str, Any]] = Field(None, description="Inline profile, bypassing the profile store")


class ContinueRequest(CamelModel):
    """Request to resume a session after sign-in."""
    session_id: str = Field(..., min_length=1, description="Session identifier")
    profile: Optional[Dict[str, Any]] = Field(None, description="Inline profile, bypassing the profile store")


class SessionRequest(CamelModel):
    """Request addressing an existing session."""
    session_id: str = Field(..., min_length=1, description="Session identifier")


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="Service version")
    active_sessions: int = Field(0, description="Live automation sessions")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error timestamp")
