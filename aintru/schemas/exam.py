from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from aintru.schemas.job import BehavioralMetrics


class StartExam(BaseModel):
    exam_type: Optional[str] = None


class ExamAnswerSubmit(BaseModel):
    question_index: int = Field(..., ge=0)
    answer: str
    time_taken_sec: Optional[float] = Field(None, ge=0)


class ExamInterviewRead(BaseModel):
    id: int
    user_id: int
    exam_type: str
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    current_index: int
    total_questions: int
    time_limit: int
    is_completed: bool
    summary: Optional[str] = None
    behavioral_metrics: Optional[BehavioralMetrics] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExamSessionResponse(BaseModel):
    success: bool = True
    message: str
    session: ExamInterviewRead
