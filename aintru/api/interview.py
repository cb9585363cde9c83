# aintru/api/interview.py
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from aintru.auth.dependencies import get_current_user
from aintru.database import get_db
from aintru.schemas.interview import (
    QuestionRequest, VoiceRequest, AIResponseRequest,
    CompleteInterviewRequest, CompleteInterviewResponse, InterviewRead, InterviewReportRead,
)
from aintru.services import interview_service

router = APIRouter(prefix="/api/interview", tags=["Voice Interview"])


@router.post("/generate-question")
def generate_question(body: QuestionRequest):
    question = interview_service.generate_question(
        body.company, body.role, body.round, body.round_type, body.candidate_profile
    )
    return {"question": question}


@router.post("/generate-voice-response")
def generate_voice_response(body: VoiceRequest):
    return {"voice_response": interview_service.generate_voice_response(body.question, body.context)}


@router.post("/transcribe")
async def transcribe(audio: Optional[UploadFile] = File(None)):
    if audio is None:
        raise HTTPException(status_code=400, detail="Audio file is required")
    data = await audio.read()
    return {"transcript": interview_service.transcribe(data, audio.content_type)}


@router.post("/ai-response")
def ai_response(body: AIResponseRequest):
    return interview_service.ai_response(
        body.transcript, body.current_question, body.round, body.round_type, body.company, body.role
    )


@router.post("/complete", response_model=CompleteInterviewResponse)
def complete(
    body: CompleteInterviewRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    report = interview_service.complete_interview(db, current_user["user_id"], body)
    return {"success": True, "message": "Interview completed successfully", "report": report}


@router.get("/history/{user_id}")
def history(user_id: int, db: Session = Depends(get_db)):
    interviews = interview_service.get_interview_history(db, user_id)
    return {"interviews": [InterviewRead.model_validate(i) for i in interviews]}


@router.get("/report/{report_id}")
def report(report_id: int, db: Session = Depends(get_db)):
    found = interview_service.get_interview_report(db, report_id)
    return {"report": InterviewReportRead.model_validate(found)}
