# aintru/api/waitlist.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aintru.database import get_db
from aintru.schemas.waitlist import WaitlistJoin, WaitlistJoinResponse, WaitlistStatsResponse
from aintru.services.waitlist_service import join_waitlist, waitlist_stats

router = APIRouter(prefix="/api/waitlist", tags=["Waitlist"])


@router.post("/join", response_model=WaitlistJoinResponse, status_code=201)
def join(body: WaitlistJoin, db: Session = Depends(get_db)):
    entry = join_waitlist(body, db)
    return {"success": True, "message": "Successfully joined waitlist", "data": entry}


@router.get("/stats", response_model=WaitlistStatsResponse)
def stats(db: Session = Depends(get_db)):
    return {"success": True, "data": waitlist_stats(db)}
