"""AES-256-GCM envelope for user API keys stored at rest.

Encrypted values are persisted as three lowercase-hex fields joined by
colons, in the fixed order ``iv:authTag:ciphertext``. The authentication tag
makes tampering, truncation and decryption under the wrong key (e.g. after
rotating ``GEMINI_KEY_ENCRYPTION_SECRET``) fail loudly instead of yielding
garbage plaintext.

Generate a key with ``python -m practice_api.tools.generate_key``.
"""

from __future__ import annotations

import logging
import os
import re
import threading

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from practice_api.core.config import settings
from practice_api.core.errors import ConfigurationError, DecryptionError, EncryptionError

logger = logging.getLogger(__name__)

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
ENCRYPTION_KEY_LENGTH = 32
KEY_ENV_VAR = "GEMINI_KEY_ENCRYPTION_SECRET"

_HEX_FIELD = re.compile(r"[0-9a-f]*")

# Parsed key cached against the raw configured value it came from.
_key_cache: tuple[str, bytes] | None = None
_key_lock = threading.Lock()


def _parse_key(secret: str) -> bytes:
    try:
        key = bytes.fromhex(secret)
    except ValueError as exc:
        raise ConfigurationError(
            code="encryption_key_invalid",
            message=f"{KEY_ENV_VAR} must be a hex-encoded string",
            details={"hint": "Generate one with python -m practice_api.tools.generate_key"},
        ) from exc

    if len(key) != ENCRYPTION_KEY_LENGTH:
        raise ConfigurationError(
            code="encryption_key_invalid",
            message=f"Encryption key must be {ENCRYPTION_KEY_LENGTH} bytes",
            details={
                "expected_bytes": ENCRYPTION_KEY_LENGTH,
                "actual_bytes": len(key),
            },
        )
    return key


def get_encryption_key() -> bytes:
    """Return the 32-byte AES key from configuration.

    The parsed key is reused only while the configured value is unchanged,
    so a rotated secret takes effect on the next call.

    Returns:
        Raw key bytes.

    Raises:
        ConfigurationError: If the secret is unset, not hex, or not 32 bytes.
    """

    global _key_cache

    secret = settings.crypto.key_encryption_secret
    if not secret:
        raise ConfigurationError(
            code="encryption_key_missing",
            message=f"{KEY_ENV_VAR} is not set in environment variables",
        )

    with _key_lock:
        if _key_cache is not None and _key_cache[0] == secret:
            return _key_cache[1]
        key = _parse_key(secret)
        _key_cache = (secret, key)
        return key


def encrypt_api_key(api_key: str) -> str:
    """Encrypt an API key using AES-256-GCM.

    Args:
        api_key: Plaintext secret.

    Returns:
        ``iv:authTag:ciphertext``, all lowercase hex.

    Raises:
        ConfigurationError: If the encryption key is missing or invalid.
        EncryptionError: If the cipher fails.
    """

    key = get_encryption_key()
    iv = os.urandom(IV_LENGTH)

    try:
        sealed = AESGCM(key).encrypt(iv, api_key.encode("utf-8"), None)
    except (ValueError, TypeError, OverflowError, UnicodeError) as exc:
        logger.error("crypto.encrypt_failed", extra={"error_type": type(exc).__name__})
        raise EncryptionError(
            code="encryption_failed",
            message=f"Failed to encrypt API key: {exc}",
        ) from exc

    # cryptography appends the tag to the ciphertext
    encrypted, auth_tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
    return f"{iv.hex()}:{auth_tag.hex()}:{encrypted.hex()}"


def _invalid_format(reason: str) -> DecryptionError:
    return DecryptionError(
        code="invalid_encrypted_format",
        message="Failed to decrypt API key: invalid encrypted data format",
        details={"hint": reason},
    )


def decrypt_api_key(encrypted_data: str) -> str:
    """Decrypt a value produced by :func:`encrypt_api_key`.

    Args:
        encrypted_data: ``iv:authTag:ciphertext`` string.

    Returns:
        The original plaintext.

    Raises:
        DecryptionError: If the format is wrong or authentication fails.
        ConfigurationError: If the encryption key is missing or invalid.
    """

    parts = encrypted_data.split(":")
    if len(parts) != 3:
        raise _invalid_format("expected iv:authTag:ciphertext")

    if not all(_HEX_FIELD.fullmatch(part) for part in parts):
        raise _invalid_format("fields must be lowercase hex")

    iv_hex, auth_tag_hex, encrypted_hex = parts
    try:
        iv = bytes.fromhex(iv_hex)
        auth_tag = bytes.fromhex(auth_tag_hex)
        encrypted = bytes.fromhex(encrypted_hex)
    except ValueError as exc:
        raise _invalid_format("fields must have an even number of hex digits") from exc

    if len(iv) != IV_LENGTH or len(auth_tag) != AUTH_TAG_LENGTH:
        raise _invalid_format(f"iv and authTag must be {IV_LENGTH} bytes each")

    key = get_encryption_key()

    try:
        plaintext = AESGCM(key).decrypt(iv, encrypted + auth_tag, None)
    except InvalidTag as exc:
        logger.warning("crypto.decrypt_failed", extra={"reason": "authentication_failed"})
        raise DecryptionError(
            code="decryption_failed",
            message="Failed to decrypt API key: authentication failed",
            details={"hint": "The value was tampered with or encrypted under a different key"},
        ) from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError(
            code="decryption_failed",
            message="Failed to decrypt API key: plaintext is not valid UTF-8",
        ) from exc


def validate_encryption_key() -> None:
    """Fail fast when key material is unusable (used at startup)."""

    get_encryption_key()
    logger.info("crypto.key_validated", extra={"key_bytes": ENCRYPTION_KEY_LENGTH})
