"""
Authentication API endpoints.

Email/password signup and login issuing bearer session tokens, logout and
the forgot/reset password flow.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from senpai.api.deps import extract_bearer_token, get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import account_service, profile_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=schemas.SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.SignupRequest, db: Session = Depends(get_db)):
    user = account_service.signup(db, payload)
    return profile_service.get_me(db, user)


@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    token, raw_token, user = account_service.login(db, payload.email, payload.password)
    return schemas.LoginResponse(
        access_token=raw_token,
        expires_at=token.expires_at,
        user=schemas.UserPrivate.model_validate(user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    account_service.logout(db, extract_bearer_token(authorization))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=schemas.ProfileResponse)
def me(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return profile_service.get_me(db, user)


@router.post("/forgot-password", response_model=schemas.MessageResponse)
def forgot_password(payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    message = account_service.forgot_password(db, payload.email)
    return {"message": message}


@router.post("/reset-password", response_model=schemas.MessageResponse)
def reset_password(payload: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    account_service.reset_password(db, payload.token, payload.password)
    return {"message": "Password has been reset successfully"}
