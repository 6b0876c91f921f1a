"""
Credential verification and session tokens.

Passwords go through a ``CredentialVerifier`` so the storage scheme can be
hardened (plaintext → bcrypt) without touching the user directory. The
plaintext scheme is the default and compares by exact string equality.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings


# ── Passwords ───────────────────────────────────────────────────────
class CredentialVerifier(ABC):
    """Turns a plain password into its stored form and checks it back."""

    scheme: str = ""

    @abstractmethod
    def hash(self, plain: str) -> str: ...

    @abstractmethod
    def verify(self, plain: str, stored: str) -> bool: ...


class PlaintextVerifier(CredentialVerifier):
    # FIXME: plaintext storage; move deployments to PASSWORD_SCHEME=bcrypt.
    scheme = "plaintext"

    def hash(self, plain: str) -> str:
        return plain

    def verify(self, plain: str, stored: str) -> bool:
        return plain == stored


class BcryptVerifier(CredentialVerifier):
    scheme = "bcrypt"

    def __init__(self) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def hash(self, plain: str) -> str:
        return self._context.hash(plain)

    def verify(self, plain: str, stored: str) -> bool:
        try:
            return self._context.verify(plain, stored)
        except ValueError:
            # stored value is not a bcrypt hash
            return False


_VERIFIERS: dict[str, type[CredentialVerifier]] = {
    PlaintextVerifier.scheme: PlaintextVerifier,
    BcryptVerifier.scheme: BcryptVerifier,
}


@lru_cache
def get_credential_verifier(scheme: str | None = None) -> CredentialVerifier:
    return _VERIFIERS[scheme or settings.PASSWORD_SCHEME]()


# ── Session tokens ──────────────────────────────────────────────────
def create_access_token(
    subject: str | Any,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {"exp": expire, "sub": str(subject), "type": "access"},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload
