from sqlalchemy import Column, Integer, String, DateTime, Enum, func
from aintru.database import Base
from aintru.models.enums import WaitlistStatus


class Waitlist(Base):
    __tablename__ = "waitlist"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(Enum(WaitlistStatus), nullable=False, default=WaitlistStatus.WAITING)
