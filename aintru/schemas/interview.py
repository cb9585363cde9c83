from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from aintru.models.enums import InterviewMode, InterviewStatus, ReadinessLevel


class QuestionRequest(BaseModel):
    company: str = "the company"
    role: str = "the role"
    round: int = 1
    round_type: str = "Technical"
    candidate_profile: Optional[Dict[str, Any]] = None


class VoiceRequest(BaseModel):
    question: str
    context: Optional[str] = None


class AIResponseRequest(BaseModel):
    transcript: str = ""
    current_question: str = ""
    round: int = 1
    round_type: str = "Technical"
    company: str = "the company"
    role: str = "the role"


class MediaPipeData(BaseModel):
    eye_contact: float = 0.0
    stress: float = 0.0
    posture: float = 0.0
    distraction: float = 0.0


class SetupData(BaseModel):
    company: str
    role: str
    experience_level: Optional[str] = ""
    mode: InterviewMode = InterviewMode.VOICE
    candidate_profile_id: Optional[int] = None


class AnsweredQuestion(BaseModel):
    round: int = 1
    round_type: str = "Technical"
    question: str
    answer: Optional[str] = None
    score: float = Field(0.0, ge=0, le=10)
    feedback: Optional[str] = None


class CompleteInterviewRequest(BaseModel):
    setup_data: SetupData
    scores: List[float] = Field(default_factory=list)
    duration: int = 0  # seconds
    media_pipe_data: Optional[MediaPipeData] = None
    transcript: Optional[str] = None
    answers: List[AnsweredQuestion] = Field(default_factory=list)


class InterviewRead(BaseModel):
    id: int
    company: str
    role: str
    experience_level: str
    mode: InterviewMode
    status: InterviewStatus
    total_rounds: int
    overall_score: float
    duration: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InterviewReportRead(BaseModel):
    id: int
    user_id: int
    interview_id: Optional[int] = None
    company: str
    role: str
    scores: Dict[str, Any]
    recommendations: Optional[List[str]] = None
    transcript: Optional[str] = None
    face_analysis: Optional[Dict[str, Any]] = None
    strengths: Optional[List[str]] = None
    weaknesses: Optional[List[str]] = None
    readiness_score: Optional[float] = None
    readiness_level: ReadinessLevel
    next_steps: Optional[List[str]] = None
    companies_ready: Optional[List[str]] = None
    total_duration: Optional[int] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompleteInterviewResponse(BaseModel):
    success: bool = True
    message: str
    report: InterviewReportRead
