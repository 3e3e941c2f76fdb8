"""Credential storage adapters."""

from practice_api.adapters.credentials.base import AbstractCredentialRepository, UserCredentials
from practice_api.adapters.credentials.in_memory import InMemoryCredentialRepository

__all__ = [
    "AbstractCredentialRepository",
    "InMemoryCredentialRepository",
    "UserCredentials",
]
