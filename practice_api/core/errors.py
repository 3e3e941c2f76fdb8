"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    expected_bytes: int
    actual_bytes: int
    http_status: int
    retry_after: float
    model: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class LLMAppError(AppError):
    """Raised when generative-language provider operations fail."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class ConfigurationError(AppError):
    """Raised when required key material is missing or malformed.

    Not retryable: an operator has to fix the deployment configuration.
    """


class EncryptionError(AppError):
    """Raised when encrypting a secret fails unexpectedly."""


class DecryptionError(AppError):
    """Raised when an encrypted secret is malformed or fails authentication.

    Callers treat the stored credential as unusable and ask the user to
    re-enter it; retrying the same ciphertext never succeeds.
    """
