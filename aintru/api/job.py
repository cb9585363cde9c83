# aintru/api/job.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aintru.auth.dependencies import get_current_user
from aintru.database import get_db
from aintru.schemas.job import (
    FlowRequest, StartJobInterview, AnswerSubmit, BulkAnswerSubmit, VideoFrame,
    FlowResponse, JobSessionResponse, JobSessionList, FrameAck, MetricsResponse,
)
from aintru.services import job_service
from aintru.services.video_metrics import compute_video_metrics

router = APIRouter(prefix="/api/job", tags=["Job Interview"])


@router.post("/generate-flow", response_model=FlowResponse)
def generate_flow(body: FlowRequest):
    flow = job_service.generate_interview_flow(
        body.company or job_service.DEFAULT_COMPANY,
        body.role or job_service.DEFAULT_ROLE,
        body.experience or job_service.DEFAULT_EXPERIENCE,
    )
    return {"success": True, "interview_flow": flow}


@router.post("/start", response_model=JobSessionResponse, status_code=201)
def start(
    body: StartJobInterview,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    session = job_service.start_job_interview(
        db,
        current_user["user_id"],
        body.company,
        body.role,
        body.experience,
        body.candidate_profile_id,
    )
    return {"success": True, "session": session}


@router.get("/sessions", response_model=JobSessionList)
def my_sessions(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return {"success": True, "sessions": job_service.list_sessions(db, current_user["user_id"])}


@router.get("/{session_id}", response_model=JobSessionResponse)
def get_session(session_id: int, db: Session = Depends(get_db)):
    session = job_service.get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "session": session}


@router.post("/{session_id}/answer", response_model=JobSessionResponse)
def submit_answer(session_id: int, body: AnswerSubmit, db: Session = Depends(get_db)):
    """
    Scores one answer. May append a cross-question to the answered question and,
    once everything is answered, completes the session with a summary.
    """
    session = job_service.submit_answer(
        db,
        session_id,
        body.round_index,
        body.question_index,
        body.answer,
        code_snippet=body.code,
        language=body.language,
        cross_question_index=body.cross_question_index,
    )
    return {"success": True, "message": "Answer submitted", "session": session}


@router.post("/{session_id}/answers", response_model=JobSessionResponse)
def submit_all_answers(session_id: int, body: BulkAnswerSubmit, db: Session = Depends(get_db)):
    session = job_service.submit_all_answers(db, session_id, [a.model_dump() for a in body.answers])
    return {"success": True, "message": "All answers submitted", "session": session}


@router.post("/{session_id}/frame", response_model=FrameAck)
def add_frame(session_id: int, frame: VideoFrame, db: Session = Depends(get_db)):
    session = job_service.add_video_analysis_frame(db, session_id, frame.model_dump())
    return {"success": True, "session_id": session.id}


@router.post("/{session_id}/evaluate", response_model=JobSessionResponse)
def evaluate(session_id: int, db: Session = Depends(get_db), _: dict = Depends(get_current_user)):
    return {"success": True, "session": job_service.evaluate_job_interview(db, session_id)}


@router.post("/{session_id}/summary", response_model=JobSessionResponse)
def summary(session_id: int, db: Session = Depends(get_db), _: dict = Depends(get_current_user)):
    return {"success": True, "session": job_service.generate_summary(db, session_id)}


@router.get("/{session_id}/metrics", response_model=MetricsResponse)
def metrics(session_id: int, db: Session = Depends(get_db)):
    session = job_service.get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "metrics": compute_video_metrics(session.video_analysis or [])}
