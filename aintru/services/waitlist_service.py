# aintru/services/waitlist_service.py
import logging

from fastapi import HTTPException
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aintru.models.enums import WaitlistStatus
from aintru.models.waitlist import Waitlist
from aintru.schemas.waitlist import WaitlistJoin

logger = logging.getLogger("aintru.services.waitlist_service")

_email = TypeAdapter(EmailStr)


def join_waitlist(data: WaitlistJoin, db: Session) -> Waitlist:
    if not data.name or not data.email or not data.phone:
        raise HTTPException(status_code=400, detail="Name, email and phone number are required")

    try:
        email = _email.validate_python(data.email.strip()).lower()
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a valid email")

    if db.query(Waitlist).filter(Waitlist.email == email).first():
        raise HTTPException(status_code=400, detail="You are already on our waitlist!")

    entry = Waitlist(name=data.name.strip(), email=email, phone=data.phone.strip())
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="This email is already on our waitlist!")
    db.refresh(entry)
    logger.info(f"[waitlist] joined id={entry.id}")
    return entry


def waitlist_stats(db: Session) -> dict:
    counts = dict(
        db.query(Waitlist.status, func.count(Waitlist.id)).group_by(Waitlist.status).all()
    )
    return {
        "total": sum(counts.values()),
        "waiting": counts.get(WaitlistStatus.WAITING, 0),
        "contacted": counts.get(WaitlistStatus.CONTACTED, 0),
        "converted": counts.get(WaitlistStatus.CONVERTED, 0),
    }
