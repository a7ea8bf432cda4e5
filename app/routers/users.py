"""User endpoints."""

from fastapi import APIRouter, Depends

from ..deps import get_current_user, get_identity
from ..models import User
from ..schemas import UserRead
from ..utils.security import Identity

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_current_user(
    identity: Identity = Depends(get_identity),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    return UserRead(uid=identity.subject_id, email=identity.email or current_user.email)
