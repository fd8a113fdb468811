# backend/app/api/auth.py

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import jwt
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional
import logging

from ..database import get_db
from ..models.user import UserRole
from ..schemas.user import UserCreate, UserResponse
from ..crud.crud_user import user as crud_user
from ..utils.auth import verify_password
from ..utils.errors import error_response
from app.core.config import settings, COOKIE_DOMAIN

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _is_secure_cookie() -> bool:
    return (settings.FRONTEND_URL or "").lower().startswith("https")


def _cookie_kwargs() -> dict:
    secure = _is_secure_cookie()
    # SameSite=None is only honoured alongside Secure
    return {
        "httponly": True,
        "secure": secure,
        "samesite": "None" if secure else "Lax",
        "path": "/",
        "domain": COOKIE_DOMAIN,
    }


def _set_access_cookie(response: Response, token: str, minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> None:
    response.set_cookie(key="access_token", value=token, max_age=minutes * 60, **_cookie_kwargs())


def _clear_access_cookie(response: Response) -> None:
    response.set_cookie(key="access_token", value="", max_age=0, expires=0, **_cookie_kwargs())


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    if user_data.role == UserRole.ADMIN:
        raise error_response(
            "Admin accounts cannot be created through registration",
            {"role": "forbidden"},
            status.HTTP_403_FORBIDDEN,
        )
    if crud_user.get_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That email already has an account. Sign in instead.",
        )
    db_user = crud_user.create(db, user_data)
    logger.info("Registered %s user %s", db_user.role.value, db_user.id)
    return db_user


@router.post("/login")
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = crud_user.get_by_email(db, form_data.username)
    if not user or not verify_password(form_data.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")

    access_token = create_access_token(
        data={"sub": user.email, "role": user.role.value},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    payload = {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }
    # Cookie for the browser, JSON body for API clients
    resp = JSONResponse(payload)
    _set_access_cookie(resp, access_token)
    return resp


@router.post("/logout")
def logout():
    resp = JSONResponse({"message": "logged out"})
    _clear_access_cookie(resp)
    return resp
