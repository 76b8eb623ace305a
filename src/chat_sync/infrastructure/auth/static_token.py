from __future__ import annotations

import jwt

from chat_sync.application.exceptions import ValidationError
from chat_sync.application.ports.auth import SessionCredentials


def subject_from_token(token: str) -> str:
    """Read the user id from a JWT ``sub`` claim.

    The signature is not checked here; the server verifies the token when
    the channel connects.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise ValidationError(f"auth token is not a valid JWT: {exc}") from exc
    subject = claims.get("sub", claims.get("user_id"))
    if subject is None:
        raise ValidationError("auth token has no subject claim")
    return str(subject)


class StaticTokenProvider:
    """Credentials handed over by the login flow, kept for the session."""

    def __init__(self, token: str, user_id: str | None = None) -> None:
        self._token = token
        self._user_id = user_id

    async def get_credentials(self) -> SessionCredentials:
        if self._user_id is None:
            self._user_id = subject_from_token(self._token)
        return SessionCredentials(token=self._token, user_id=self._user_id)
