from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class FlowRequest(BaseModel):
    company: Optional[str] = None
    role: Optional[str] = None
    experience: Optional[str] = None


class StartJobInterview(FlowRequest):
    candidate_profile_id: Optional[int] = None


class AnswerSubmit(BaseModel):
    round_index: int = Field(..., ge=0)
    question_index: int = Field(..., ge=0)
    answer: Optional[str] = ""
    code: Optional[str] = None
    language: Optional[str] = None
    cross_question_index: Optional[int] = Field(None, ge=0)


class BulkAnswer(BaseModel):
    round_index: int
    question_index: int
    answer: str


class BulkAnswerSubmit(BaseModel):
    answers: List[BulkAnswer]


class VideoFrame(BaseModel):
    face_detected: bool = True
    num_faces: int = Field(1, ge=0)
    emotions: Dict[str, float] = Field(default_factory=dict)


class BehavioralMetrics(BaseModel):
    frames_count: int = 0
    presence_pct: float = 0.0
    multiple_faces_pct: float = 0.0
    avg_emotions: Dict[str, float] = Field(default_factory=dict)


class JobInterviewRead(BaseModel):
    id: int
    user_id: int
    company: str
    role: str
    candidate_profile_id: Optional[int] = None
    rounds: List[Dict[str, Any]] = Field(default_factory=list)
    total_rounds: int
    total_duration: int
    behavioral_metrics: Optional[BehavioralMetrics] = None
    is_completed: bool
    summary: Optional[str] = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobInterviewBrief(BaseModel):
    id: int
    company: str
    role: str
    total_rounds: int
    is_completed: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FlowResponse(BaseModel):
    success: bool = True
    interview_flow: Dict[str, Any]


class JobSessionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    session: JobInterviewRead


class JobSessionList(BaseModel):
    success: bool = True
    sessions: List[JobInterviewBrief]


class FrameAck(BaseModel):
    success: bool = True
    session_id: int


class MetricsResponse(BaseModel):
    success: bool = True
    metrics: BehavioralMetrics
