# aintru/api/exam.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aintru.auth.dependencies import get_current_user
from aintru.database import get_db
from aintru.schemas.exam import StartExam, ExamAnswerSubmit, ExamSessionResponse
from aintru.schemas.job import VideoFrame, FrameAck, MetricsResponse
from aintru.services import exam_service
from aintru.services.video_metrics import compute_video_metrics

router = APIRouter(prefix="/api/exam", tags=["Exam Interview"])


@router.post("/start", response_model=ExamSessionResponse, status_code=201)
def start(body: StartExam, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    if not body.exam_type or not body.exam_type.strip():
        raise HTTPException(status_code=400, detail="Exam type is required")
    session = exam_service.start_exam_interview(db, current_user["user_id"], body.exam_type.strip())
    return {"success": True, "message": "Exam interview started", "session": session}


@router.post("/{session_id}/answer", response_model=ExamSessionResponse)
def answer(session_id: int, body: ExamAnswerSubmit, db: Session = Depends(get_db)):
    session = exam_service.submit_exam_answer(
        db, session_id, body.question_index, body.answer, body.time_taken_sec
    )
    return {"success": True, "message": "Answer recorded", "session": session}


@router.post("/{session_id}/complete", response_model=ExamSessionResponse)
def complete(session_id: int, db: Session = Depends(get_db)):
    session = exam_service.evaluate_exam(db, session_id)
    return {"success": True, "message": "Exam interview evaluated", "session": session}


@router.post("/{session_id}/summary", response_model=ExamSessionResponse)
def summary(session_id: int, db: Session = Depends(get_db)):
    session = exam_service.generate_summary(db, session_id)
    return {"success": True, "message": "Summary generated", "session": session}


@router.post("/{session_id}/video-frame", response_model=FrameAck)
def video_frame(session_id: int, frame: VideoFrame, db: Session = Depends(get_db)):
    session = exam_service.add_video_analysis_frame(db, session_id, frame.model_dump())
    return {"success": True, "session_id": session.id}


@router.get("/{session_id}/metrics", response_model=MetricsResponse)
def metrics(session_id: int, db: Session = Depends(get_db)):
    session = exam_service.get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "metrics": compute_video_metrics(session.video_analysis or [])}
