"""API routes for Campus Autofill."""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from fastapi import APIRouter, Depends, HTTPException

from campus_autofill import __version__
from campus_autofill.api.models import ContinueRequest, HealthCheck, SessionRequest, StartRequest
from campus_autofill.core.models import CancelResult, StartResult, SubmitResult
from campus_autofill.core.profiles import ProfileStore
from campus_autofill.core.session import SessionManager
from campus_autofill.core.errors import SessionNotFound
from campus_autofill.utils.logging import get_logger

logger = get_logger(__name__)

# Global instances (initialized in main.py)
session_manager: Optional[SessionManager] = None
profile_store: Optional[ProfileStore] = None

autofill_router = APIRouter(prefix="/autofill", tags=["autofill"])
health_router = APIRouter(prefix="/health", tags=["health"])


def get_session_manager() -> SessionManager:
    if session_manager is None:
        raise HTTPException(status_code=503, detail="Session manager not initialized")
    return session_manager


def get_profile_store() -> ProfileStore:
    if profile_store is None:
        raise HTTPException(status_code=503, detail="Profile store not initialized")
    return profile_store


async def _resolve_profile(
    store: ProfileStore,
    user_key: str,
    inline: Optional[Mapping[str, Any]],
) -> Mapping[str, Any]:
    if inline is not None:
        return inline
    return await store.get_profile(user_key)


@autofill_router.post("/start", response_model=StartResult)
async def start_autofill(
    request: StartRequest,
    manager: SessionManager = Depends(get_session_manager),
    store: ProfileStore = Depends(get_profile_store),
):
    """Open the form in the user's browser profile and fill it."""
    profile = await _resolve_profile(store, request.user_key, request.profile)
    logger.info("Autofill start requested", user_key=request.user_key, form_url=request.form_url)
    return await manager.start(request.user_key, request.form_url, profile, headless=request.headless)


@autofill_router.post("/continue", response_model=StartResult)
async def continue_autofill(
    request: ContinueRequest,
    manager: SessionManager = Depends(get_session_manager),
    store: ProfileStore = Depends(get_profile_store),
):
    """Resume a session after the human finished signing in."""
    session = await manager.get(request.session_id)
    if session is None:
        raise SessionNotFound(request.session_id)
    profile = await _resolve_profile(store, session.user_key, request.profile)
    return await manager.continue_session(request.session_id, profile)


@autofill_router.post("/submit", response_model=SubmitResult)
async def submit_autofill(
    request: SessionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Submit a filled form after the human confirmed it."""
    return await manager.submit(request.session_id)


@autofill_router.post("/cancel", response_model=CancelResult)
async def cancel_autofill(
    request: SessionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Close a session without submitting."""
    return await manager.cancel(request.session_id)


@health_router.get("/", response_model=HealthCheck)
async def health_check():
    """Health check endpoint."""
    active = len(await session_manager.active_sessions()) if session_manager else 0
    return HealthCheck(
        status="healthy" if session_manager else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        active_sessions=active,
    )


all_routers = [
    autofill_router,
    health_router,
]
