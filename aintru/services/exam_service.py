# aintru/services/exam_service.py
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from aintru.core import llm
from aintru.models.exam import ExamInterview
from aintru.services.video_metrics import compute_video_metrics, stamp_frame

logger = logging.getLogger("aintru.services.exam_service")

# exam type -> number of questions, time limit in minutes
EXAM_CONFIG = {
    "CAT": {"questions": 12, "time_minutes": 25},
    "UPSC": {"questions": 8, "time_minutes": 40},
    "GATE": {"questions": 10, "time_minutes": 30},
    "SSC": {"questions": 15, "time_minutes": 20},
    "DEFAULT": {"questions": 10, "time_minutes": 20},
}


def exam_config(exam_type: str) -> dict:
    return EXAM_CONFIG.get((exam_type or "").strip().upper(), EXAM_CONFIG["DEFAULT"])


def generate_questions(exam_type: str, num_questions: int) -> List[str]:
    prompt = (
        f"Generate {num_questions} interview-style questions for the {exam_type} exam.\n"
        "Provide only the questions in plain text list format."
    )
    text = llm.gemini_generate(prompt)
    lines = [ln.strip() for ln in (text or "").split("\n")]
    questions = [ln for ln in lines if ln and not ln.startswith("```")]
    return questions[:num_questions]


def start_exam_interview(db: Session, user_id: int, exam_type: str) -> ExamInterview:
    cfg = exam_config(exam_type)
    questions = generate_questions(exam_type, cfg["questions"])
    if not questions:
        raise HTTPException(status_code=502, detail="No exam questions were generated")

    session = ExamInterview(
        user_id=user_id,
        exam_type=exam_type,
        questions=[
            {"question": q, "user_answer": "", "is_correct": None, "answered_at": None, "time_taken_sec": None}
            for q in questions
        ],
        current_index=0,
        total_questions=cfg["questions"],
        time_limit=cfg["time_minutes"],
        video_analysis=[],
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"[exam] started session id={session.id} type={exam_type} questions={len(questions)}")
    return session


def get_session(db: Session, session_id: int) -> Optional[ExamInterview]:
    return db.query(ExamInterview).filter(ExamInterview.id == session_id).first()


def _get_or_404(db: Session, session_id: int) -> ExamInterview:
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def submit_exam_answer(
    db: Session,
    session_id: int,
    question_index: int,
    answer: str,
    time_taken_sec: Optional[float] = None,
) -> ExamInterview:
    session = _get_or_404(db, session_id)
    if session.is_completed:
        raise HTTPException(status_code=400, detail="Exam already completed")

    questions = copy.deepcopy(session.questions or [])
    if question_index < 0 or question_index >= len(questions):
        raise HTTPException(status_code=400, detail="Invalid question index")

    q = questions[question_index]
    q["user_answer"] = answer
    q["answered_at"] = datetime.now(timezone.utc).isoformat()
    if time_taken_sec is not None:
        q["time_taken_sec"] = time_taken_sec

    session.questions = questions
    flag_modified(session, "questions")
    session.current_index = max(session.current_index or 0, question_index + 1)
    db.commit()
    db.refresh(session)
    return session


def _qna_text(session: ExamInterview) -> str:
    return "\n\n".join(
        f"Q{idx}: {q.get('question')}\nAnswer: {q.get('user_answer') or 'Not answered'}"
        for idx, q in enumerate(session.questions or [], start=1)
    )


def _complete(db: Session, session: ExamInterview, summary: str) -> ExamInterview:
    session.summary = summary
    session.is_completed = True
    session.behavioral_metrics = compute_video_metrics(session.video_analysis or [])
    db.commit()
    db.refresh(session)
    return session


def evaluate_exam(db: Session, session_id: int) -> ExamInterview:
    session = _get_or_404(db, session_id)
    prompt = f"""Evaluate the following {session.exam_type} interview answers.
For each question, say whether the answer is correct or not, and provide short feedback.

{_qna_text(session)}"""
    return _complete(db, session, llm.gemini_generate(prompt))


def generate_summary(db: Session, session_id: int) -> ExamInterview:
    session = _get_or_404(db, session_id)
    prompt = f"""Based on this {session.exam_type} interview, write a summary of performance.
Highlight strengths, weaknesses, and areas for improvement. Keep it concise and structured.

{_qna_text(session)}"""
    return _complete(db, session, llm.gemini_generate(prompt))


def add_video_analysis_frame(db: Session, session_id: int, frame: Dict[str, Any]) -> ExamInterview:
    session = _get_or_404(db, session_id)
    frames = list(session.video_analysis or [])
    frames.append(stamp_frame(frame))
    session.video_analysis = frames
    flag_modified(session, "video_analysis")
    session.behavioral_metrics = compute_video_metrics(frames)
    db.commit()
    db.refresh(session)
    return session
