"""FastAPI dependency helpers."""

from functools import lru_cache
from typing import Iterator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_session, init_db
from .models import User
from .services.assessments import get_or_create_user
from .services.career_ai import CareerAIPipeline, get_career_pipeline
from .utils.security import Identity, Unauthorized, verify_identity_token

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def _ensure_database_initialized() -> None:
    """Initialise the database schema once per process.

    The lifespan hook normally calls :func:`init_db`, but tests and scripts
    that import dependencies directly can reach the session before it runs.
    """

    init_db()


def get_db() -> Iterator[Session]:
    _ensure_database_initialized()
    with get_session() as session:
        yield session


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        return verify_identity_token(credentials.credentials)
    except Unauthorized as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc


def get_current_user(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)) -> User:
    return get_or_create_user(db, identity)


def get_pipeline() -> CareerAIPipeline:
    return get_career_pipeline()
