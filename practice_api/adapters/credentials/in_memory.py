"""Process-local credential repository (development and tests)."""

from __future__ import annotations

import threading
from dataclasses import replace

from practice_api.adapters.credentials.base import AbstractCredentialRepository, UserCredentials


class InMemoryCredentialRepository(AbstractCredentialRepository):
    """Thread-safe dict-backed repository.

    Records are copied on the way in and out so callers never mutate stored
    state without going through ``save``.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, UserCredentials] = {}

    def get(self, user_id: str) -> UserCredentials | None:
        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return None
            return replace(record, preferences=record.preferences.model_copy(deep=True))

    def save(self, credentials: UserCredentials) -> None:
        with self._lock:
            self._records[credentials.user_id] = replace(
                credentials,
                preferences=credentials.preferences.model_copy(deep=True),
            )

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._records.pop(user_id, None) is not None
