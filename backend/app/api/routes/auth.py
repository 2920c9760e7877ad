from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.api.deps import get_current_user
from app.core.security import create_access_token
from app.database import get_db
from app.schemas import Token, UserRead
from app.services.audit import audit_event
from app.services.auth import authenticate_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _request_context(request: Request) -> dict:
    return {
        "request_id": request.headers.get("x-request-id"),
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/token", response_model=Token)
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    try:
        user = authenticate_user(db, form_data.username, form_data.password)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Banco de dados indisponível ou não inicializado. Tente novamente em alguns instantes.",
        )
    if user is None:
        audit_event(
            "auth.login_failed", None, {"email": form_data.username}, db=db, **_request_context(request)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password"
        )
    if not user.active:
        audit_event(
            "auth.login_inactive", user.id, {"email": user.email}, db=db, **_request_context(request)
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    access_token = create_access_token(subject=user.email)
    audit_event(
        "auth.login_success", user.id, {"email": user.email}, db=db, **_request_context(request)
    )
    return Token(access_token=access_token)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: models.User = Depends(get_current_user)):
    return current_user
