# aintru/services/oauth_service.py
"""
Google / GitHub sign-in via the OAuth2 authorization-code flow.

  /api/auth/<provider>           -> redirect to the provider consent page
  /api/auth/<provider>/callback  -> exchange code, fetch profile, find-or-create
                                    the user, redirect to the frontend with a JWT
"""
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

from aintru.core import config
from aintru.core.security import create_access_token, create_state_token, verify_state_token
from aintru.models.enums import AuthProvider
from aintru.models.user import User
from aintru.services.auth_service import touch_and_commit

logger = logging.getLogger("aintru.services.oauth_service")

PROVIDERS = {
    AuthProvider.GOOGLE: {
        "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "scope": "openid email profile",
    },
    AuthProvider.GITHUB: {
        "authorize_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
        "scope": "user:email",
    },
}

GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


class OAuthError(Exception):
    pass


def _client(provider: AuthProvider) -> Dict[str, str]:
    if provider == AuthProvider.GOOGLE:
        return {"client_id": config.GOOGLE_CLIENT_ID, "client_secret": config.GOOGLE_CLIENT_SECRET}
    return {"client_id": config.GITHUB_CLIENT_ID, "client_secret": config.GITHUB_CLIENT_SECRET}


def callback_url(provider: AuthProvider) -> str:
    return f"{config.BACKEND_URL}/api/auth/{provider.value}/callback"


def success_redirect(token: str) -> str:
    return f"{config.FRONTEND_URL}/oauth-success?{urlencode({'token': token})}"


def failure_redirect() -> str:
    return f"{config.FRONTEND_URL}/login?error=oauth_failed"


def authorization_url(provider: AuthProvider) -> str:
    client = _client(provider)
    if not client["client_id"]:
        raise OAuthError(f"{provider.value} OAuth is not configured")
    params = {
        "client_id": client["client_id"],
        "redirect_uri": callback_url(provider),
        "scope": PROVIDERS[provider]["scope"],
        "state": create_state_token(provider.value),
    }
    if provider == AuthProvider.GOOGLE:
        params["response_type"] = "code"
    return f"{PROVIDERS[provider]['authorize_url']}?{urlencode(params)}"


def _exchange_code(provider: AuthProvider, code: str) -> str:
    client = _client(provider)
    resp = requests.post(
        PROVIDERS[provider]["token_url"],
        data={
            **client,
            "code": code,
            "redirect_uri": callback_url(provider),
            "grant_type": "authorization_code",
        },
        headers={"Accept": "application/json"},
        timeout=config.LLM_TIMEOUT_S,
    )
    if resp.status_code != 200:
        raise OAuthError(f"token exchange HTTP {resp.status_code}")
    token = resp.json().get("access_token")
    if not token:
        raise OAuthError("token exchange returned no access_token")
    return token


def _get_json(url: str, access_token: str):
    resp = requests.get(
        url,
        headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        timeout=config.LLM_TIMEOUT_S,
    )
    if resp.status_code != 200:
        raise OAuthError(f"GET {url} HTTP {resp.status_code}")
    return resp.json()


def fetch_profile(provider: AuthProvider, access_token: str) -> Dict[str, Optional[str]]:
    """Normalized profile: {id, email, name, avatar}."""
    if provider == AuthProvider.GOOGLE:
        info = _get_json(GOOGLE_USERINFO_URL, access_token)
        if not info.get("email"):
            raise OAuthError("Google profile has no email")
        return {
            "id": str(info.get("sub")),
            "email": info["email"],
            "name": info.get("name") or info["email"],
            "avatar": info.get("picture"),
        }

    info = _get_json(GITHUB_USER_URL, access_token)
    email = info.get("email")
    if not email:
        try:
            emails = _get_json(GITHUB_EMAILS_URL, access_token)
            primary = next((e for e in emails if e.get("primary") and e.get("verified")), None)
            email = primary["email"] if primary else None
        except OAuthError as e:
            logger.info(f"[oauth] GitHub emails unavailable: {e}")
    login_name = info.get("login") or str(info.get("id"))
    return {
        "id": str(info.get("id")),
        "email": email or f"{login_name}@github.com",
        "name": info.get("name") or info.get("login") or "GitHub User",
        "avatar": info.get("avatar_url"),
    }


def find_or_create_user(db: Session, provider: AuthProvider, profile: Dict[str, Optional[str]]) -> User:
    user = (
        db.query(User)
        .filter(User.provider == provider, User.provider_id == profile["id"])
        .first()
    )
    if user:
        return user

    if db.query(User).filter(User.email == profile["email"]).first():
        raise OAuthError(f"email {profile['email']} already registered with another provider")

    user = User(
        email=profile["email"],
        name=profile["name"],
        provider=provider,
        provider_id=profile["id"],
        avatar=profile.get("avatar"),
        is_verified=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"[oauth] created {provider.value} user id={user.id}")
    return user


def complete_login(db: Session, provider: AuthProvider, code: Optional[str], state: Optional[str] = None) -> str:
    """Runs the callback leg and returns the frontend redirect URL."""
    if not code:
        return failure_redirect()
    if not verify_state_token(state, provider.value):
        logger.warning(f"[oauth] {provider.value} callback with missing or invalid state")
        return failure_redirect()
    try:
        access_token = _exchange_code(provider, code)
        profile = fetch_profile(provider, access_token)
        user = find_or_create_user(db, provider, profile)
    except (OAuthError, requests.RequestException, ValueError) as e:
        logger.warning(f"[oauth] {provider.value} login failed: {e}")
        return failure_redirect()

    touch_and_commit(db, user)
    return success_redirect(create_access_token(user.id))
