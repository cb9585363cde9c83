from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from aintru.database import Base
from aintru.models.types import JSONType


class CandidateProfile(Base):
    __tablename__ = "candidate_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    experience = Column(Integer, nullable=False, default=0)
    skills = Column(JSONType)
    education = Column(JSONType)
    last_role = Column(String)
    resume_text = Column(Text)
    domain = Column(String)
    summary = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
