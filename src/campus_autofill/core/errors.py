"""Exception taxonomy for the autofill engine.

Field-level problems (no mapping, no user data, no matching input) are not
exceptions: they are reported as ``UnmatchedReason`` values in diagnostics.
"""

from typing import Optional


class AutofillError(Exception):
    """Base class for engine errors."""


class SessionNotFound(AutofillError):
    """The session id is unknown, expired, or its page is gone."""

    def __init__(self, session_id: str, message: Optional[str] = None):
        self.session_id = session_id
        super().__init__(message or f"Session not found or has expired: {session_id}")


class PageUnavailable(AutofillError):
    """The page or browser context closed mid-operation. Terminal for the session."""

    def __init__(self, message: str = "Page is no longer available", snapshot: Optional[bytes] = None):
        self.snapshot = snapshot
        super().__init__(message)


class NavigationTimeout(AutofillError):
    """A page failed to load, or a Next click never took effect."""


class FillError(AutofillError):
    """A widget raised while being set. Downgraded to a diagnostic per field."""


class ProfileNotFound(AutofillError):
    """No stored profile exists for the user key."""

    def __init__(self, user_key: str):
        self.user_key = user_key
        super().__init__(f"No profile stored for user: {user_key}")
