"""User profile lookup."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from campus_autofill.config import settings
from campus_autofill.core.errors import ProfileNotFound
from campus_autofill.utils.logging import get_logger

logger = get_logger(__name__)


class ProfileStore(ABC):
    """Source of read-only user profiles keyed by user key."""

    @abstractmethod
    async def get_profile(self, user_key: str) -> Mapping[str, Any]:
        """
        Load a user's profile.

        Raises:
            ProfileNotFound: No profile exists for the user key
        """


class JsonProfileStore(ProfileStore):
    """Profiles stored as ``<directory>/<user_key>.json`` documents."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory or settings.profiles_dir)
        self.logger = logger.bind(component="profile_store")

    def path_for(self, user_key: str) -> Path:
        name = Path(user_key).name
        if not name or name != user_key:
            raise ProfileNotFound(user_key)
        return self.directory / f"{name}.json"

    async def get_profile(self, user_key: str) -> Mapping[str, Any]:
        path = self.path_for(user_key)
        if not path.is_file():
            raise ProfileNotFound(user_key)

        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            self.logger.error("Profile is not valid JSON", user_key=user_key, error=str(e))
            raise ProfileNotFound(user_key) from e

        if not isinstance(document, dict):
            raise ProfileNotFound(user_key)

        self.logger.debug("Profile loaded", user_key=user_key, fields=len(document))
        return MappingProxyType(document)
