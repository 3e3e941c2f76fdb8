"""Credential repository interface.

Records hold only the encrypted form of a user's API key. The relational
store used in production sits behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from practice_api.schemas.settings import GeminiPreferences


@dataclass
class UserCredentials:
    """Per-user provider credentials.

    Attributes:
        user_id: Owning user.
        encrypted_api_key: ``iv:authTag:ciphertext`` or None when not configured.
        preferences: Model preferences used with the key.
    """

    user_id: str
    encrypted_api_key: str | None = None
    preferences: GeminiPreferences = field(default_factory=GeminiPreferences)


class AbstractCredentialRepository(ABC):
    """Storage for :class:`UserCredentials`."""

    @abstractmethod
    def get(self, user_id: str) -> UserCredentials | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, credentials: UserCredentials) -> None:
        """Insert or replace the record for ``credentials.user_id``."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Remove the record. Returns False when nothing was stored."""
        raise NotImplementedError
