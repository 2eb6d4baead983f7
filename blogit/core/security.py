"""Security helpers for password hashing and session token signing."""
from __future__ import annotations

from dataclasses import dataclass

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from .config import Settings
from .errors import UnauthorizedError


class PasswordHasher:
    """Hash and verify user passwords using bcrypt."""

    def __init__(self, rounds: int = 10) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        return self._context.verify(password, hashed)


@dataclass(frozen=True)
class TokenIdentity:
    """Verified subject of a session token."""

    user_id: str
    username: str


class TokenIssuer:
    """Sign and verify expiring bearer tokens.

    The signing time is embedded in the token by the serializer; a token is
    rejected once it is older than ``max_age_seconds``. There is no
    revocation list.
    """

    def __init__(self, secret_key: str, max_age_seconds: int, salt: str = "blogit-session") -> None:
        self._serializer = URLSafeTimedSerializer(secret_key, salt=salt)
        self.max_age_seconds = max_age_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(settings.secret_key, settings.access_token_expire_minutes * 60)

    def issue(self, user_id: int | str, username: str) -> str:
        return self._serializer.dumps({"sub": str(user_id), "username": username})

    def verify(self, token: str) -> TokenIdentity:
        try:
            payload = self._serializer.loads(token, max_age=self.max_age_seconds)
        except (BadSignature, SignatureExpired) as exc:
            raise UnauthorizedError("Invalid or expired token") from exc

        if not isinstance(payload, dict):
            raise UnauthorizedError("Invalid or expired token")
        subject = payload.get("sub")
        username = payload.get("username")
        if not subject or not isinstance(username, str):
            raise UnauthorizedError("Invalid or expired token")
        return TokenIdentity(user_id=str(subject), username=username)
