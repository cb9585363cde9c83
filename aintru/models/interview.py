from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import relationship
from aintru.database import Base
from aintru.models.enums import InterviewMode, InterviewStatus, ReadinessLevel
from aintru.models.types import JSONType


class Interview(Base):
    """Legacy voice/video interview header."""
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    candidate_profile_id = Column(Integer, ForeignKey("candidate_profiles.id", ondelete="SET NULL"), nullable=True)

    company = Column(String, nullable=False)
    role = Column(String, nullable=False)
    experience_level = Column(String, nullable=False, default="")
    mode = Column(Enum(InterviewMode), nullable=False, default=InterviewMode.VOICE)
    status = Column(Enum(InterviewStatus), nullable=False, default=InterviewStatus.SETUP)
    current_round = Column(Integer, nullable=False, default=1)
    total_rounds = Column(Integer, nullable=False, default=1)
    overall_score = Column(Float, nullable=False, default=0.0)  # 0..100
    duration = Column(Integer)  # minutes

    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    sessions = relationship("InterviewSession", back_populates="interview", cascade="all, delete-orphan")
    reports = relationship("InterviewReport", back_populates="interview")


class InterviewSession(Base):
    """One asked question inside a legacy interview."""
    __tablename__ = "interview_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    interview_id = Column(Integer, ForeignKey("interviews.id", ondelete="CASCADE"), index=True, nullable=False)

    round = Column(Integer, nullable=False)
    round_type = Column(String, nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text)
    code_snapshot = Column(Text)
    score = Column(Float, nullable=False, default=0.0)  # 0..10
    feedback = Column(Text)
    duration = Column(Integer)  # seconds
    confidence = Column(Float, nullable=False, default=0.0)  # 0..10
    media_pipe_data = Column(JSONType)
    transcript = Column(Text)

    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    interview = relationship("Interview", back_populates="sessions")


class InterviewReport(Base):
    __tablename__ = "interview_reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    interview_id = Column(Integer, ForeignKey("interviews.id", ondelete="SET NULL"), index=True, nullable=True)

    company = Column(String, nullable=False)
    role = Column(String, nullable=False)

    # {overall, technical, behavioral, communication, confidence, problemSolving}, each 0..10
    scores = Column(JSONType, nullable=False)
    recommendations = Column(JSONType)
    transcript = Column(Text)
    face_analysis = Column(JSONType)
    strengths = Column(JSONType)
    weaknesses = Column(JSONType)
    readiness_score = Column(Float)
    readiness_level = Column(Enum(ReadinessLevel), nullable=False, default=ReadinessLevel.NEEDS_IMPROVEMENT)
    next_steps = Column(JSONType)
    companies_ready = Column(JSONType)
    total_duration = Column(Integer)  # minutes

    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    interview = relationship("Interview", back_populates="reports")
