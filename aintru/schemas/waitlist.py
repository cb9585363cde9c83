from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class WaitlistJoin(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class WaitlistEntryOut(BaseModel):
    name: str
    email: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WaitlistStats(BaseModel):
    total: int
    waiting: int
    contacted: int
    converted: int


class WaitlistJoinResponse(BaseModel):
    success: bool = True
    message: str
    data: WaitlistEntryOut


class WaitlistStatsResponse(BaseModel):
    success: bool = True
    data: WaitlistStats
