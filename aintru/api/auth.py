# aintru/api/auth.py
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from aintru.auth.dependencies import get_current_user
from aintru.database import get_db
from aintru.models.enums import AuthProvider
from aintru.schemas.user import (
    VerifyCredentials, UserCreate, UserLogin, CompleteProfile,
    UserOut, SignupResponse, TokenResponse, ProfileResponse,
)
from aintru.services import auth_service, oauth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/test")
def test():
    return {"success": True, "message": "Auth router is working!"}


@router.post("/verify-credentials")
def verify_credentials(body: VerifyCredentials, db: Session = Depends(get_db)):
    return auth_service.verify_credentials(body, db)


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(body: UserCreate, db: Session = Depends(get_db)):
    user = auth_service.register_user(body, db)
    return {"success": True, "message": "User created successfully", "user": user}


@router.post("/login", response_model=TokenResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    return {"success": True, **auth_service.login(body, db)}


@router.post("/logout")
def logout(_: dict = Depends(get_current_user)):
    # tokens are stateless; the client drops its copy
    return {"success": True, "message": "Logged out successfully"}


@router.post("/refresh-session", response_model=TokenResponse)
def refresh_session(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return {"success": True, **auth_service.refresh_session(current_user["user_id"], db)}


@router.post("/complete-profile", response_model=ProfileResponse)
def complete_profile(body: CompleteProfile, db: Session = Depends(get_db)):
    return {"success": True, "user": auth_service.complete_profile(body, db)}


@router.get("/me", response_model=UserOut)
def me(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return auth_service.me(current_user["user_id"], db)


@router.get("/validate")
def validate(current_user: dict = Depends(get_current_user)):
    return {"valid": True, "user": {"user_id": current_user["user_id"]}}


# ----------------- OAuth -----------------
def _start(provider: AuthProvider) -> RedirectResponse:
    try:
        return RedirectResponse(oauth_service.authorization_url(provider))
    except oauth_service.OAuthError:
        return RedirectResponse(oauth_service.failure_redirect())


@router.get("/google")
def google_login():
    return _start(AuthProvider.GOOGLE)


@router.get("/google/callback")
def google_callback(code: Optional[str] = None, state: Optional[str] = None, db: Session = Depends(get_db)):
    return RedirectResponse(oauth_service.complete_login(db, AuthProvider.GOOGLE, code, state))


@router.get("/github")
def github_login():
    return _start(AuthProvider.GITHUB)


@router.get("/github/callback")
def github_callback(code: Optional[str] = None, state: Optional[str] = None, db: Session = Depends(get_db)):
    return RedirectResponse(oauth_service.complete_login(db, AuthProvider.GITHUB, code, state))
