"""Generate a value for GEMINI_KEY_ENCRYPTION_SECRET.

Usage:
    python -m practice_api.tools.generate_key
"""

from __future__ import annotations

import secrets

from practice_api.core.crypto import ENCRYPTION_KEY_LENGTH, KEY_ENV_VAR

_RULE = "=" * 43


def generate_encryption_key() -> str:
    """Return a fresh random 256-bit key, hex encoded."""
    return secrets.token_hex(ENCRYPTION_KEY_LENGTH)


def render_instructions(key: str) -> str:
    return "\n".join(
        [
            "",
            _RULE,
            "Gemini API Key Encryption Secret",
            _RULE,
            "",
            "Add this to your environment variables:",
            "",
            f"{KEY_ENV_VAR}={key}",
            "",
            _RULE,
            "IMPORTANT:",
            "- Keep this secret secure and never commit it to version control",
            "- Use the same key across all environments for the same database",
            "- If you change this key, existing encrypted API keys will be unrecoverable",
            _RULE,
            "",
        ]
    )


def main() -> None:
    print(render_instructions(generate_encryption_key()))


if __name__ == "__main__":
    main()
