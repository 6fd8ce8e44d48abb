"""
Campus Autofill: fills placement and registration forms from a stored profile.

A session opens the form in the user's persistent browser profile, maps every
question onto a canonical profile key, fills it, walks multi-page forms, and
then waits for a human to confirm before submitting.
"""

__version__ = "0.1.0"

from campus_autofill.core.errors import (
    AutofillError,
    NavigationTimeout,
    PageUnavailable,
    ProfileNotFound,
    SessionNotFound,
)
from campus_autofill.core.session import SessionManager, create_session_manager
from campus_autofill.mapping.mapper import FieldMapper, create_field_mapper

__all__ = [
    "AutofillError",
    "NavigationTimeout",
    "PageUnavailable",
    "ProfileNotFound",
    "SessionNotFound",
    "SessionManager",
    "create_session_manager",
    "FieldMapper",
    "create_field_mapper",
]
