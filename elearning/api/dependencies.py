from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from elearning.db.base import get_engine
from elearning.db.schemas import Profile
from elearning.errors import PermissionDeniedError


def get_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope."""
    engine = get_engine()
    with Session(engine) as session:
        yield session


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_session),
) -> Profile:
    # The auth gateway in front of this service sets X-User-Id after verifying the session
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    profile = db.get(Profile, x_user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return profile


def resolve_subject(current_user: Profile, requested_user_id: Optional[str]) -> str:
    """Students act on their own data; admins may ask on behalf of anyone."""
    if requested_user_id is None or requested_user_id == current_user.id:
        return current_user.id
    if current_user.role != "admin":
        raise PermissionDeniedError("Cannot act on behalf of another user")
    return requested_user_id
