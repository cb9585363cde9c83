# aintru/services/auth_service.py
import re
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.orm import Session

from aintru.core.security import hash_password, verify_password, create_access_token
from aintru.models.enums import AuthProvider, UserType
from aintru.models.user import User
from aintru.models.waitlist import Waitlist
from aintru.schemas.user import VerifyCredentials, UserCreate, UserLogin, CompleteProfile

PHONE_RE = re.compile(r"^\+?[\d\s\-\(\)]+$")
MIN_PASSWORD_LEN = 8


def _check_phone(phone: str):
    if not PHONE_RE.match(phone):
        raise HTTPException(status_code=400, detail="Invalid phone number format.")


def _touch(user: User):
    user.last_activity = datetime.now(timezone.utc)


def touch_and_commit(db: Session, user: User) -> User:
    _touch(user)
    db.commit()
    db.refresh(user)
    return user


def _email_or_phone_taken(db: Session, email: str, phone: str) -> bool:
    return db.query(User).filter((User.email == email) | (User.phone == phone)).first() is not None


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


def verify_credentials(data: VerifyCredentials, db: Session) -> dict:
    """Waitlist gate: the email must be on the waitlist with the same phone."""
    if not data.name or not data.email or not data.phone:
        raise HTTPException(status_code=400, detail="Name, email and phone are required.")
    _check_phone(data.phone)

    entry = db.query(Waitlist).filter(Waitlist.email == data.email.lower()).first()
    if not entry:
        raise HTTPException(status_code=400, detail="Email not found in waitlist.")
    if entry.phone != data.phone:
        raise HTTPException(status_code=400, detail="Phone number does not match.")

    if _email_or_phone_taken(db, data.email, data.phone):
        return {
            "success": True,
            "is_new_user": False,
            "message": "Account already exists. Please login instead.",
        }

    return {
        "success": True,
        "is_new_user": True,
        "message": "Credentials verified from waitlist. Please complete your profile.",
        "waitlist_data": {"name": entry.name, "email": entry.email, "phone": entry.phone},
    }


def register_user(data: UserCreate, db: Session) -> User:
    if not data.email or not data.phone or not data.name or not data.password:
        raise HTTPException(status_code=400, detail="Email, phone, name and password are required.")
    _check_phone(data.phone)
    if len(data.password) < MIN_PASSWORD_LEN:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters long.")
    if _email_or_phone_taken(db, data.email, data.phone):
        raise HTTPException(status_code=409, detail="Email or phone already in use.")

    user = User(
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=hash_password(data.password),
        provider=AuthProvider.LOCAL,
        user_type=UserType.STUDENT,
        is_verified=True,
    )
    _touch(user)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(data: UserLogin, db: Session) -> User:
    if not data.email or not data.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")

    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_verified:
        raise HTTPException(status_code=401, detail="Please verify your email before logging in.")

    return touch_and_commit(db, user)


def login(data: UserLogin, db: Session) -> dict:
    user = authenticate_user(data, db)
    return {"user": user, "token": create_access_token(user.id)}


def refresh_session(user_id: int, db: Session) -> dict:
    user = get_user(db, user_id)
    touch_and_commit(db, user)
    return {"user": user, "token": create_access_token(user.id)}


def me(user_id: int, db: Session) -> User:
    user = get_user(db, user_id)
    return touch_and_commit(db, user)


def complete_profile(data: CompleteProfile, db: Session) -> User:
    user = db.query(User).filter(User.email == data.email, User.phone == data.phone).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    if data.surname:
        user.surname = data.surname
    if data.education_level:
        user.education_level = data.education_level
    if data.user_type:
        user.user_type = data.user_type
    if data.is_student is not None:
        user.is_student = data.is_student

    return touch_and_commit(db, user)
