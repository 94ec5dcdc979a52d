from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Identity carried by a verified bearer token."""

    email: str


class AuthService:
    """Verifies bearer tokens issued by the account service."""

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        if not secret_key:
            raise RuntimeError("AUTH_TOKEN_SECRET is not configured.")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def verify_token(self, token: str) -> AuthContext:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.") from exc
        email = payload.get("email")
        if not email or not isinstance(email, str):
            logger.debug("Rejecting token without an email claim")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")
        return AuthContext(email=email.strip().lower())
