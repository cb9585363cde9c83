from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, func
from aintru.database import Base
from aintru.models.types import JSONType


class ExamInterview(Base):
    __tablename__ = "exam_interviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    exam_type = Column(String, nullable=False)

    # [{question, user_answer, is_correct, answered_at, time_taken_sec}]
    questions = Column(JSONType, nullable=False, default=list)
    current_index = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False)
    time_limit = Column(Integer, nullable=False)  # minutes
    is_completed = Column(Boolean, nullable=False, default=False)
    summary = Column(Text)

    # raw frames + aggregated behavioral insights
    video_analysis = Column(JSONType, nullable=False, default=list)
    behavioral_metrics = Column(JSONType)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
