from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import models
from ..crud.crud_user import user as crud_user
from ..database import get_db
from ..schemas.user import UserProfileUpdate, UserResponse
from .auth import _set_access_cookie, create_access_token
from .dependencies import get_current_user

router = APIRouter(tags=["auth"])


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: models.User = Depends(get_current_user)):
    """Return details for the authenticated user."""
    return current_user


@router.patch("/profile", response_model=UserResponse)
def update_current_user(
    user_in: UserProfileUpdate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    previous_email = current_user.email
    db_user = crud_user.update_profile(db, current_user, user_in)
    if db_user.email != previous_email:
        # Tokens are keyed by email; hand the browser one for the new address
        _set_access_cookie(
            response,
            create_access_token(data={"sub": db_user.email, "role": db_user.role.value}),
        )
    return db_user
