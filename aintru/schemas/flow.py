from pydantic import BaseModel
from typing import Any, Dict, List, Optional, Union


class SuggestionQuery(BaseModel):
    query: Optional[str] = None


class ExamFlowRequest(BaseModel):
    exam_name: Optional[str] = None
    exam_description: Optional[str] = None


class InterviewFlowRequest(BaseModel):
    company: Optional[str] = None
    role: Optional[str] = None
    experience: Optional[Union[str, int, float]] = None
    expected_ctc: Optional[str] = None
    candidate_profile_id: Optional[int] = None


class SuggestionsResponse(BaseModel):
    success: bool = True
    suggestions: List[str]


class ExamFlowResponse(BaseModel):
    success: bool = True
    message: str
    interview_flow: Dict[str, Any]
