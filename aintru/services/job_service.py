# aintru/services/job_service.py
import re
import copy
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from aintru.core import llm
from aintru.models.job import JobInterview
from aintru.services.video_metrics import compute_video_metrics, stamp_frame, behavior_paragraph

logger = logging.getLogger("aintru.services.job_service")

# ----------------- Knobs -----------------
MAX_CROSS_QUESTIONS = 3
CROSS_QUESTION_SCORE_THRESHOLD = 7
DEFAULT_ROUND_DURATION = 30
DEFAULT_SCORE = 5

DEFAULT_COMPANY = "Target Company"
DEFAULT_ROLE = "Software Developer"
DEFAULT_EXPERIENCE = "Fresher"


# =========================================================
# Flow generation
# =========================================================
def _fallback_flow(company: str, role: str) -> dict:
    return {
        "company": company,
        "role": role,
        "rounds": [
            {
                "round": 1,
                "name": "Technical Questions",
                "type": "technical",
                "description": "Short technical Q&A",
                "duration": 30,
                "questions": [
                    f"What is an algorithm you frequently use for {role}?",
                    "Explain time vs space complexity with an example.",
                    "What data structures would you choose for caching?",
                ],
            },
            {
                "round": 2,
                "name": "Coding Round",
                "type": "coding",
                "description": "Solve a coding problem with discussion.",
                "duration": 45,
                "questions": [
                    "Implement a function to reverse a linked list.",
                    "Find the missing number in an array of size n-1 with numbers from 1..n.",
                    "Given a string, find the longest palindromic substring.",
                ],
            },
            {
                "round": 3,
                "name": "Behavioral / HR",
                "type": "hr",
                "description": "Behavioral questions and fitment",
                "duration": 20,
                "questions": [
                    "Tell me about a time you faced conflict in a team and how you resolved it.",
                    "What are your long-term career goals?",
                    "Why do you want to join this company?",
                ],
            },
        ],
    }


def generate_interview_flow(
    company: str = DEFAULT_COMPANY,
    role: str = DEFAULT_ROLE,
    experience: str = DEFAULT_EXPERIENCE,
) -> dict:
    """
    Ask the model for a job interview flow (rounds + round-wise questions).

    Returned JSON shape:
      {"company": ..., "role": ..., "rounds": [
          {"round": 1, "name": ..., "type": ..., "description": ...,
           "duration": 30, "questions": ["q1", "q2"]}, ...]}
    Falls back to a fixed three-round flow when the reply cannot be parsed.
    """
    prompt = f"""You are asked to design a realistic interview process for hiring a {role} at {company}.
Return a JSON object ONLY (no extra explanation) with the following structure:
{{
  "company": "<company name>",
  "role": "<role>",
  "rounds": [
    {{
      "round": 1,
      "name": "<round name>",
      "type": "<round type - e.g., technical, coding, hr, system-design>",
      "description": "<short description>",
      "duration": <minutes - integer>,
      "questions": ["question 1", "question 2"]
    }}
  ]
}}
Design between 3 and 6 rounds depending on role. For each round include 3-6 questions appropriate to the round type. Keep JSON concise. Experience level: {experience}."""

    text = llm.gemini_generate(prompt)
    try:
        flow = llm.slice_json(text)
        if not isinstance(flow, dict) or not isinstance(flow.get("rounds", []), list):
            raise ValueError("flow is not an object with a rounds list")
        return flow
    except ValueError as e:
        logger.warning(f"[job] Failed to parse flow JSON, using fallback: {e}")
        return _fallback_flow(company, role)


def _to_minutes(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_ROUND_DURATION
    if isinstance(value, (int, float)):
        return int(value)
    m = re.search(r"\d+", str(value or ""))
    return int(m.group(0)) if m else DEFAULT_ROUND_DURATION


def _question_text(q: Any) -> str:
    if isinstance(q, dict):
        return str(q.get("question") or q.get("text") or "").strip()
    return str(q).strip()


def _normalize_rounds(raw_rounds: List[dict]) -> List[dict]:
    rounds = []
    for idx, r in enumerate(raw_rounds or []):
        if not isinstance(r, dict):
            continue
        rtype = r.get("type") or "general"
        is_coding = "coding" in str(rtype).lower()
        raw_questions = r.get("questions")
        if not isinstance(raw_questions, list):
            raw_questions = []
        questions = []
        for q in raw_questions:
            text = _question_text(q)
            if not text:
                continue
            questions.append({
                "question": text,
                "is_coding_question": is_coding,
                "code": {"language": "", "content": ""} if is_coding else None,
                "user_answer": "",
                "score": None,
                "feedback": "",
                "cross_questions": [],
            })
        rounds.append({
            "round": r.get("round") if r.get("round") is not None else idx + 1,
            "name": r.get("name") or f"Round {idx + 1}",
            "type": rtype,
            "description": r.get("description") or "",
            "duration": _to_minutes(r.get("duration")),
            "questions": questions,
        })
    return rounds


def start_job_interview(
    db: Session,
    user_id: int,
    company: Optional[str] = None,
    role: Optional[str] = None,
    experience: Optional[str] = None,
    candidate_profile_id: Optional[int] = None,
) -> JobInterview:
    company = company or DEFAULT_COMPANY
    role = role or DEFAULT_ROLE
    experience = experience or DEFAULT_EXPERIENCE

    flow = generate_interview_flow(company, role, experience)
    rounds = _normalize_rounds(flow.get("rounds") or [])

    session = JobInterview(
        user_id=user_id,
        company=flow.get("company") or company,
        role=flow.get("role") or role,
        candidate_profile_id=candidate_profile_id,
        rounds=rounds,
        total_rounds=len(rounds),
        total_duration=sum(r["duration"] or 0 for r in rounds),
        video_analysis=[],
        summary="",
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"[job] started session id={session.id} user={user_id} rounds={len(rounds)}")
    return session


# =========================================================
# Lookups
# =========================================================
def get_session(db: Session, session_id: int) -> Optional[JobInterview]:
    return db.query(JobInterview).filter(JobInterview.id == session_id).first()


def _get_or_404(db: Session, session_id: int) -> JobInterview:
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def list_sessions(db: Session, user_id: int) -> List[JobInterview]:
    return (
        db.query(JobInterview)
        .filter(JobInterview.user_id == user_id)
        .order_by(JobInterview.created_at.desc(), JobInterview.id.desc())
        .all()
    )


def _save_rounds(db: Session, session: JobInterview, rounds: List[dict]):
    session.rounds = rounds
    flag_modified(session, "rounds")


# =========================================================
# Answers
# =========================================================
def _coerce_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        num = float(str(value).strip())
    except ValueError:
        return None
    return int(num) if num.is_integer() else num


def _evaluate_answer(question: dict, user_answer: str, code_snippet: Optional[str]) -> dict:
    kind = "coding" if question.get("is_coding_question") else "theory"
    code_part = f"\nCode:\n{code_snippet}" if code_snippet else ""
    prompt = f"""Question: {question.get("question")}
Answer: {user_answer or "(none)"}{code_part}
Evaluate this {kind} answer objectively.
Give JSON only: {{ "score": <0-10>, "feedback": "<one-line>" }}"""

    text = llm.gemini_generate(prompt)
    try:
        obj = llm.slice_json(text)
        score = _coerce_score(obj.get("score")) if isinstance(obj, dict) else None
        if score is None:
            raise ValueError("score missing or not numeric")
        return {"score": score, "feedback": str(obj.get("feedback") or "")}
    except ValueError as e:
        logger.warning(f"[job] evaluation parse failed: {e}")
        return {"score": DEFAULT_SCORE, "feedback": "Could not parse evaluation."}


def _is_unsatisfactory(evaluation: dict) -> bool:
    score = evaluation.get("score")
    if isinstance(score, (int, float)) and score < CROSS_QUESTION_SCORE_THRESHOLD:
        return True
    return "unsatisfactory" in (evaluation.get("feedback") or "").lower()


def _count_cross_questions(rounds: List[dict]) -> int:
    return sum(len(q.get("cross_questions") or []) for r in rounds for q in r.get("questions") or [])


def _ask_cross_question(question: dict, user_answer: str, code_snippet: Optional[str]) -> Optional[str]:
    code_part = f"Code:\n{code_snippet}\n" if code_snippet else ""
    prompt = f"""The candidate gave an unsatisfactory answer to:
Question: {question.get("question")}
Answer: {user_answer}
{code_part}Generate ONE short follow-up cross-question to test understanding."""
    try:
        text = llm.clean_response(llm.gemini_generate(prompt))
    except llm.LLMError as e:
        logger.warning(f"[job] cross-question generation skipped: {e}")
        return None
    return text or None


def all_answered(rounds: List[dict]) -> bool:
    for r in rounds:
        for q in r.get("questions") or []:
            if not (q.get("user_answer") or "").strip():
                return False
            for cq in q.get("cross_questions") or []:
                if not (cq.get("user_answer") or "").strip():
                    return False
    return True


def submit_answer(
    db: Session,
    interview_id: int,
    round_index: int,
    question_index: int,
    user_answer: Optional[str],
    code_snippet: Optional[str] = None,
    language: Optional[str] = None,
    cross_question_index: Optional[int] = None,
) -> JobInterview:
    """
    Record one answer, score it, and possibly queue a follow-up.

    - Coding questions answered with code only are not sent to the model.
    - A score below CROSS_QUESTION_SCORE_THRESHOLD (or "unsatisfactory" feedback)
      on a main question adds one cross-question, up to MAX_CROSS_QUESTIONS per session.
    - Once every question and cross-question has an answer, the session is
      completed and summarized.
    """
    interview = _get_or_404(db, interview_id)
    rounds = copy.deepcopy(interview.rounds or [])

    if round_index < 0 or round_index >= len(rounds):
        raise HTTPException(status_code=400, detail="Invalid round index")
    questions = rounds[round_index].get("questions") or []
    if question_index < 0 or question_index >= len(questions):
        raise HTTPException(status_code=400, detail="Invalid question index")
    question = questions[question_index]
    user_answer = user_answer or ""

    if cross_question_index is not None:
        cross = question.get("cross_questions") or []
        if cross_question_index < 0 or cross_question_index >= len(cross):
            raise HTTPException(status_code=400, detail="Invalid cross-question index")
        target = cross[cross_question_index]
        evaluation = _evaluate_answer(
            {"question": target.get("question"), "is_coding_question": question.get("is_coding_question")},
            user_answer,
            code_snippet,
        )
        target["user_answer"] = user_answer
        target["score"] = evaluation["score"]
        target["feedback"] = evaluation["feedback"]
    else:
        evaluation = {"score": DEFAULT_SCORE, "feedback": "Answer recorded."}
        if user_answer or not question.get("is_coding_question"):
            evaluation = _evaluate_answer(question, user_answer, code_snippet)

        if user_answer:
            question["user_answer"] = user_answer
        elif code_snippet:
            # code-only submissions still count as answered
            question["user_answer"] = f"[code submitted in {language or 'unknown'}]"
        if code_snippet:
            question["code"] = {"language": language or "", "content": code_snippet}
        question["score"] = evaluation["score"]
        question["feedback"] = evaluation["feedback"]

        if _is_unsatisfactory(evaluation) and _count_cross_questions(rounds) < MAX_CROSS_QUESTIONS:
            follow_up = _ask_cross_question(question, user_answer, code_snippet)
            if follow_up:
                question.setdefault("cross_questions", []).append({
                    "question": follow_up,
                    "user_answer": "",
                    "score": None,
                    "feedback": "",
                })

    _save_rounds(db, interview, rounds)
    db.commit()
    db.refresh(interview)

    if all_answered(interview.rounds or []) and not interview.is_completed:
        logger.info(f"[job] session id={interview.id} fully answered; generating summary")
        return generate_summary(db, interview.id)
    return interview


def submit_all_answers(db: Session, session_id: int, answers: List[dict]) -> JobInterview:
    session = _get_or_404(db, session_id)
    rounds = copy.deepcopy(session.rounds or [])

    for item in answers or []:
        ri, qi = item.get("round_index"), item.get("question_index")
        if not isinstance(ri, int) or not isinstance(qi, int):
            continue
        if 0 <= ri < len(rounds) and 0 <= qi < len(rounds[ri].get("questions") or []):
            rounds[ri]["questions"][qi]["user_answer"] = item.get("answer") or ""

    _save_rounds(db, session, rounds)
    db.commit()
    db.refresh(session)
    return session


# =========================================================
# Video frames
# =========================================================
def add_video_analysis_frame(db: Session, session_id: int, frame: Dict[str, Any]) -> JobInterview:
    session = _get_or_404(db, session_id)
    frames = list(session.video_analysis or [])
    frames.append(stamp_frame(frame))
    session.video_analysis = frames
    flag_modified(session, "video_analysis")
    session.behavioral_metrics = compute_video_metrics(frames)
    db.commit()
    db.refresh(session)
    return session


# =========================================================
# Evaluation & summary
# =========================================================
def _qna_pairs(rounds: List[dict], with_scores: bool = False) -> List[dict]:
    pairs = []
    for r in rounds:
        for q in r.get("questions") or []:
            item = {
                "question": q.get("question"),
                "answer": q.get("user_answer") or "Not answered",
                "isCoding": bool(q.get("is_coding_question")),
            }
            if with_scores:
                item["score"] = q.get("score")
            pairs.append(item)
            for cq in q.get("cross_questions") or []:
                item = {
                    "question": cq.get("question"),
                    "answer": cq.get("user_answer") or "Not answered",
                    "parentQuestion": q.get("question"),
                    "isCoding": bool(q.get("is_coding_question")),
                }
                if with_scores:
                    item["score"] = cq.get("score")
                pairs.append(item)
    return pairs


def _finish(db: Session, session: JobInterview, summary: str) -> JobInterview:
    session.summary = summary
    session.is_completed = True
    session.behavioral_metrics = compute_video_metrics(session.video_analysis or [])
    db.commit()
    db.refresh(session)
    return session


def evaluate_job_interview(db: Session, session_id: int) -> JobInterview:
    """
    Score every main and cross question in one model call, apply the scores
    positionally, then ask for an overall written summary.
    """
    session = _get_or_404(db, session_id)
    rounds = copy.deepcopy(session.rounds or [])
    pairs = _qna_pairs(rounds)

    qna_text = "\n\n".join(
        f"Q{i}: {p['question']}\nAnswer: {p['answer']}\nType: {'Coding' if p['isCoding'] else 'Non-Coding'}"
        for i, p in enumerate(pairs, start=1)
    )
    behavior = behavior_paragraph(session.behavioral_metrics, "During the interview, video analysis showed:")

    prompt = f"""You are an interviewer evaluating answers for a {session.role} role at {session.company}.

For each question:
- If the type is Coding, evaluate the code logic, efficiency, and correctness.
- Otherwise, evaluate conceptual clarity, reasoning, and communication.

For each main and follow-up (cross) question, provide:
  - "qIndex" matching the question number,
  - "score" out of 10,
  - "verdict" (good / ok / poor),
  - "feedback" (short comment).
{behavior}

{qna_text}

Return your evaluation strictly as a JSON array like:
[
  {{ "qIndex": 1, "score": 8, "verdict": "good", "feedback": "...", "isCoding": true }}
]"""

    text = llm.gemini_generate(prompt)
    try:
        evaluations = llm.slice_json(text, "[", "]")
        if not isinstance(evaluations, list):
            raise ValueError("evaluations is not a list")
    except ValueError as e:
        logger.warning(f"[job] Failed to parse evaluations, saving raw text as summary: {e}")
        return _finish(db, session, text)

    def _apply(target: dict, ev: Any):
        if isinstance(ev, dict):
            score = ev.get("score")
            target["score"] = score if isinstance(score, (int, float)) and not isinstance(score, bool) else None
            target["feedback"] = ev.get("feedback") or ""

    counter = 0
    for r in rounds:
        for q in r.get("questions") or []:
            if counter < len(evaluations):
                _apply(q, evaluations[counter])
            counter += 1
            for cq in q.get("cross_questions") or []:
                if counter < len(evaluations):
                    _apply(cq, evaluations[counter])
                counter += 1
    _save_rounds(db, session, rounds)

    summary_prompt = f"""Based on the evaluations, write a structured performance summary for the candidate interviewing for {session.role} at {session.company}.
Include:
- Overall coding performance (if applicable)
- Conceptual and communication strengths
- Weaknesses
- Suggestions for improvement
- Mention if cross questions revealed deeper insights.

Evaluations:
{json.dumps(evaluations, indent=2)}
"""
    summary = llm.gemini_generate(summary_prompt)
    return _finish(db, session, summary)


def generate_summary(db: Session, session_id: int) -> JobInterview:
    session = _get_or_404(db, session_id)
    pairs = _qna_pairs(session.rounds or [], with_scores=True)
    behavior = behavior_paragraph(session.behavioral_metrics, "Video analysis insights:")

    prompt = f"""You are an AI interviewer summarizing the candidate's performance for the {session.role} role at {session.company}.

For each question:
- If "isCoding" is true, assess the coding logic, efficiency, correctness, and problem-solving approach.
- If "isCoding" is false, focus on conceptual understanding, communication, and clarity.
- Mention insights revealed by follow-up/cross questions when relevant.

Then, write a final structured summary including:
1. Strengths (coding + conceptual)
2. Weaknesses / areas to improve
3. Observed behavioral & non-verbal traits
4. Overall impression / hiring suggestion

Candidate's Question-Answer data:
{json.dumps(pairs, indent=2)}
{behavior}"""

    summary = llm.gemini_generate(prompt)
    return _finish(db, session, summary)
