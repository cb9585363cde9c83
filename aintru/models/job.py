from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, func
from aintru.database import Base
from aintru.models.types import JSONType


class JobInterview(Base):
    __tablename__ = "job_interviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    company = Column(String, nullable=False, default="Target Company")
    role = Column(String, nullable=False, default="Software Developer")
    candidate_profile_id = Column(Integer, ForeignKey("candidate_profiles.id", ondelete="SET NULL"), nullable=True)

    # [{round, name, type, description, duration,
    #   questions: [{question, is_coding_question, code, user_answer, score, feedback,
    #                cross_questions: [{question, user_answer, score, feedback}]}]}]
    rounds = Column(JSONType, nullable=False, default=list)
    total_rounds = Column(Integer, nullable=False, default=0)
    total_duration = Column(Integer, nullable=False, default=0)  # minutes

    video_analysis = Column(JSONType, nullable=False, default=list)
    behavioral_metrics = Column(JSONType)
    is_completed = Column(Boolean, nullable=False, default=False)
    summary = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
