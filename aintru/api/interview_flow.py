# aintru/api/interview_flow.py
from fastapi import APIRouter, Depends

from aintru.auth.dependencies import get_current_user
from aintru.schemas.flow import (
    SuggestionQuery, ExamFlowRequest, InterviewFlowRequest, SuggestionsResponse, ExamFlowResponse,
)
from aintru.services import flow_service

router = APIRouter(prefix="/api/interviewFlow", tags=["Interview Flow"])


@router.get("/test")
def test():
    return {"success": True, "message": "Interview flow router is working!"}


@router.post("/company-suggestions", response_model=SuggestionsResponse)
def company_suggestions(body: SuggestionQuery, _: dict = Depends(get_current_user)):
    return {"success": True, "suggestions": flow_service.company_suggestions(body.query)}


@router.post("/role-suggestions", response_model=SuggestionsResponse)
def role_suggestions(body: SuggestionQuery, _: dict = Depends(get_current_user)):
    return {"success": True, "suggestions": flow_service.role_suggestions(body.query)}


@router.post("/generate-exam-flow", response_model=ExamFlowResponse)
def generate_exam_flow(body: ExamFlowRequest, _: dict = Depends(get_current_user)):
    flow = flow_service.generate_exam_flow(body.exam_name, body.exam_description)
    return {"success": True, "message": "Exam interview flow generated successfully", "interview_flow": flow}


@router.post("/generate-interview-flow", response_model=ExamFlowResponse)
def generate_interview_flow(body: InterviewFlowRequest, _: dict = Depends(get_current_user)):
    flow = flow_service.generate_interview_flow(body.company, body.role, body.experience, body.expected_ctc)
    return {"success": True, "message": "Interview flow generated successfully", "interview_flow": flow}
