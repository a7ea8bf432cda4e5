"""Identity token verification helpers."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from jose import JWTError, jwt

from ..config import Settings, get_settings


class Unauthorized(Exception):
    """Raised when a bearer token cannot be verified."""


@dataclass(frozen=True)
class Identity:
    subject_id: str
    email: Optional[str] = None


def verify_identity_token(token: str, settings: Optional[Settings] = None) -> Identity:
    settings = settings or get_settings()
    secret = settings.identity_secret_value
    if not token or not secret:
        raise Unauthorized("Unauthorized")

    options = {"verify_aud": bool(settings.identity_audience)}
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=settings.identity_algorithms,
            audience=settings.identity_audience,
            issuer=settings.identity_issuer,
            options=options,
        )
    except JWTError as exc:
        raise Unauthorized("Unauthorized") from exc

    subject = payload.get("sub") or payload.get("uid") or payload.get("user_id")
    if not subject:
        raise Unauthorized("Unauthorized")
    return Identity(subject_id=str(subject), email=payload.get("email"))


def create_identity_token(
    subject_id: str,
    *,
    email: Optional[str] = None,
    expires_minutes: int = 60,
    settings: Optional[Settings] = None,
) -> str:
    """Issue a token the verifier accepts; used by local tooling and tests."""

    settings = settings or get_settings()
    payload: Dict[str, Any] = {
        "sub": subject_id,
        "exp": utcnow() + timedelta(minutes=expires_minutes),
    }
    if email:
        payload["email"] = email
    if settings.identity_audience:
        payload["aud"] = settings.identity_audience
    if settings.identity_issuer:
        payload["iss"] = settings.identity_issuer
    algorithm = settings.identity_algorithms[0] if settings.identity_algorithms else "HS256"
    return jwt.encode(payload, settings.identity_secret_value, algorithm=algorithm)


def generate_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
