# aintru/services/interview_service.py
"""
Legacy voice interview: one question at a time through the OpenAI chat model,
Deepgram for speech-to-text, and a final report once the candidate is done.
Every model call has a canned fallback so the voice UI never stalls.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from aintru.core import llm, speech
from aintru.models.enums import InterviewStatus, ReadinessLevel
from aintru.models.interview import Interview, InterviewSession, InterviewReport
from aintru.schemas.interview import CompleteInterviewRequest

logger = logging.getLogger("aintru.services.interview_service")

FALLBACK_QUESTION = "Tell me about a challenging project you worked on and how you overcame obstacles."


def generate_question(company: str, role: str, round_no: int, round_type: str,
                      candidate_profile: Optional[Dict[str, Any]] = None) -> str:
    background = (candidate_profile or {}).get("summary") or "Software engineer with relevant experience"
    prompt = f"""You're a senior interviewer at {company} conducting a {round_type} round for the {role} position.

Candidate background: {background}

Generate a challenging but appropriate question for round {round_no} ({round_type} round).

Return only the question text, no additional formatting or explanation."""

    return llm.safe_ai_call(
        lambda: llm.openai_chat(prompt, max_tokens=200),
        lambda: FALLBACK_QUESTION,
        "Question generation AI unavailable",
    )


def generate_voice_response(question: str, context: Optional[str] = None) -> str:
    prompt = f"""As an AI interviewer, speak this question naturally: "{question}"

Context: {context or "Interview round"}

Return only the spoken text, no additional formatting."""

    return llm.safe_ai_call(
        lambda: llm.openai_chat(prompt, max_tokens=150, temperature=0.8),
        lambda: question,
        "Voice response generation failed",
    )


def transcribe(audio: bytes, mimetype: Optional[str] = None) -> str:
    if not audio:
        raise HTTPException(status_code=400, detail="Audio file is required")
    return speech.transcribe_audio(audio, mimetype or "audio/wav")


# =========================================================
# Answer evaluation
# =========================================================
AI_RESPONSE_ON_ERROR = {
    "score": 7,
    "feedback": "Good answer, shows relevant experience",
    "nextQuestion": None,
    "roundComplete": True,
    "aiResponse": "Thank you for that answer. Let's move to the next question.",
}

AI_RESPONSE_ON_PARSE_FAILURE = {
    "score": 7,
    "feedback": "Good answer",
    "nextQuestion": None,
    "roundComplete": True,
    "aiResponse": "Thank you for your answer.",
}


def ai_response(transcript: str, current_question: str, round_no: int, round_type: str,
                company: str, role: str) -> dict:
    prompt = f"""You're a senior interviewer at {company} evaluating a candidate for the {role} position.

Current question: {current_question}
Candidate's answer: {transcript}
Round type: {round_type} (round {round_no})

Evaluate the answer and decide:
1. If the answer is complete and satisfactory, provide a score (1-10) and move to the next question
2. If the answer needs more detail, ask a follow-up question
3. If the round is complete, indicate round completion

Return a JSON response with this structure:
{{
  "score": number,
  "feedback": "string",
  "nextQuestion": "string | null",
  "roundComplete": boolean,
  "aiResponse": "string"
}}"""

    try:
        raw = llm.clean_response(llm.openai_chat(prompt, max_tokens=300))
    except llm.LLMError as e:
        logger.error(f"[interview] AI response generation failed: {e}")
        return dict(AI_RESPONSE_ON_ERROR)

    data = llm.parse_json_or(raw, None)
    if not isinstance(data, dict):
        logger.warning("[interview] AI response was not JSON, using fallback")
        return dict(AI_RESPONSE_ON_PARSE_FAILURE)
    return data


# =========================================================
# Completion + report
# =========================================================
def readiness_for(score: float) -> ReadinessLevel:
    if score >= 8:
        return ReadinessLevel.READY
    if score >= 6:
        return ReadinessLevel.NEEDS_IMPROVEMENT
    return ReadinessLevel.NOT_READY


def _fallback_feedback(overall: float, eye_contact: float) -> dict:
    return {
        "overallScore": overall,
        "technicalScore": overall,
        "behavioralScore": overall,
        "communicationScore": overall,
        "confidenceScore": eye_contact or 5,
        "strengths": ["Good technical knowledge", "Clear communication"],
        "weaknesses": ["Could improve confidence", "Need more specific examples"],
        "recommendations": ["Practice more behavioral questions", "Work on confidence"],
        "readinessLevel": readiness_for(overall).value,
        "nextSteps": ["Practice more interviews", "Review technical concepts"],
        "companiesReady": ["Startups", "Mid-size companies"],
    }


def _num(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _str_list(value: Any, default: List[str]) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return default


def _readiness(value: Any, overall: float) -> ReadinessLevel:
    try:
        return ReadinessLevel(value)
    except ValueError:
        return readiness_for(overall)


def complete_interview(db: Session, user_id: int, payload: CompleteInterviewRequest) -> InterviewReport:
    setup = payload.setup_data
    scores = payload.scores or []
    overall = sum(scores) / len(scores) if scores else 0.0
    mp = payload.media_pipe_data
    eye_contact = mp.eye_contact if mp else 0.0

    prompt = f"""Generate a comprehensive interview performance report for a candidate who interviewed for {setup.role} at {setup.company}.

Round scores (0-10): {scores}
Average score: {overall:.2f}
Interview duration: {payload.duration // 60} minutes
Eye contact: {eye_contact}, stress: {mp.stress if mp else 0}, posture: {mp.posture if mp else 0}

Return JSON only with this structure:
{{
  "overallScore": number, "technicalScore": number, "behavioralScore": number,
  "communicationScore": number, "confidenceScore": number,
  "strengths": [string], "weaknesses": [string], "recommendations": [string],
  "readinessLevel": "Not Ready | Needs Improvement | Ready | Well Prepared | Excellent",
  "nextSteps": [string], "companiesReady": [string]
}}"""

    fallback = _fallback_feedback(overall, eye_contact)
    raw = llm.safe_ai_call(
        lambda: llm.openai_chat(prompt, max_tokens=500),
        lambda: "",
        "Feedback generation failed",
    )
    feedback = llm.parse_json_or(raw, None) if raw else fallback
    if not isinstance(feedback, dict):
        logger.warning("[interview] feedback was not JSON, using fallback")
        feedback = fallback

    fb_overall = _num(feedback.get("overallScore"), overall)
    now = datetime.now(timezone.utc)

    interview = Interview(
        user_id=user_id,
        candidate_profile_id=setup.candidate_profile_id,
        company=setup.company,
        role=setup.role,
        experience_level=setup.experience_level or "",
        mode=setup.mode,
        status=InterviewStatus.COMPLETED,
        current_round=len(scores) or 1,
        total_rounds=len(scores) or 1,
        overall_score=round(overall * 10, 2),
        duration=payload.duration // 60,
        completed_at=now,
    )
    db.add(interview)
    db.flush()

    for ans in payload.answers:
        db.add(InterviewSession(
            user_id=user_id,
            interview_id=interview.id,
            round=ans.round,
            round_type=ans.round_type,
            question=ans.question,
            answer=ans.answer,
            score=ans.score,
            feedback=ans.feedback,
            confidence=eye_contact,
            media_pipe_data=mp.model_dump() if mp else None,
            completed_at=now,
        ))

    report = InterviewReport(
        user_id=user_id,
        interview_id=interview.id,
        company=setup.company,
        role=setup.role,
        scores={
            "overall": fb_overall,
            "technical": _num(feedback.get("technicalScore"), overall),
            "behavioral": _num(feedback.get("behavioralScore"), overall),
            "communication": _num(feedback.get("communicationScore"), overall),
            "confidence": _num(feedback.get("confidenceScore"), 5),
            "problemSolving": overall,
        },
        recommendations=_str_list(feedback.get("recommendations"), fallback["recommendations"]),
        transcript=payload.transcript,
        face_analysis={
            "averageEyeContact": eye_contact,
            "averageStress": mp.stress if mp else 0,
            "averagePosture": mp.posture if mp else 0,
            "averageDistraction": mp.distraction if mp else 0,
            "confidenceTrend": [eye_contact],
        },
        strengths=_str_list(feedback.get("strengths"), fallback["strengths"]),
        weaknesses=_str_list(feedback.get("weaknesses"), fallback["weaknesses"]),
        readiness_score=fb_overall,
        readiness_level=_readiness(feedback.get("readinessLevel"), overall),
        next_steps=_str_list(feedback.get("nextSteps"), fallback["nextSteps"]),
        companies_ready=_str_list(feedback.get("companiesReady"), fallback["companiesReady"]),
        total_duration=payload.duration // 60,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info(f"[interview] completed interview id={interview.id} report id={report.id} user={user_id}")
    return report


def get_interview_history(db: Session, user_id: int) -> List[Interview]:
    return (
        db.query(Interview)
        .filter(Interview.user_id == user_id)
        .order_by(Interview.created_at.desc(), Interview.id.desc())
        .all()
    )


def get_interview_report(db: Session, report_id: int) -> InterviewReport:
    report = db.query(InterviewReport).filter(InterviewReport.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report
