import json

import pytest
from fastapi import HTTPException

from aintru.core import llm
from aintru.models.job import JobInterview
from aintru.services import job_service


FLOW = json.dumps({
    "company": "Acme",
    "role": "Backend Engineer",
    "rounds": [
        {"round": 1, "name": "Tech", "type": "technical", "description": "basics",
         "duration": 30, "questions": ["What is REST?", "Explain indexes."]},
        {"name": "Code", "type": "Coding", "duration": "45 mins", "questions": ["Reverse a linked list."]},
    ],
})


def _question(text, coding=False, answer="", cross=None):
    return {
        "question": text,
        "is_coding_question": coding,
        "code": {"language": "", "content": ""} if coding else None,
        "user_answer": answer,
        "score": None,
        "feedback": "",
        "cross_questions": cross or [],
    }


def _session(db, user, questions):
    s = JobInterview(
        user_id=user.id,
        company="Acme",
        role="Backend Engineer",
        rounds=[{"round": 1, "name": "Tech", "type": "technical", "description": "",
                 "duration": 30, "questions": questions}],
        total_rounds=1,
        total_duration=30,
        video_analysis=[],
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def test_generate_flow_parses_embedded_json(gemini):
    gemini.queue(f"Here you go:\n```json\n{FLOW}\n```")
    flow = job_service.generate_interview_flow("Acme", "Backend Engineer", "2 years")
    assert [r["name"] for r in flow["rounds"]] == ["Tech", "Code"]
    assert "Acme" in gemini.prompts[0] and "2 years" in gemini.prompts[0]


def test_generate_flow_falls_back(gemini):
    gemini.queue("I cannot help with that.")
    flow = job_service.generate_interview_flow("Acme", "Data Engineer")
    assert [r["type"] for r in flow["rounds"]] == ["technical", "coding", "hr"]
    assert all(len(r["questions"]) == 3 for r in flow["rounds"])
    assert "Data Engineer" in flow["rounds"][0]["questions"][0]


def test_start_normalizes_rounds(db, user, gemini):
    gemini.queue(FLOW)
    s = job_service.start_job_interview(db, user.id, "Acme", "Backend Engineer", None)

    assert s.total_rounds == 2
    assert s.total_duration == 75
    tech, code = s.rounds
    assert tech["questions"][0] == _question("What is REST?")
    assert code["round"] == 2
    assert code["description"] == ""
    assert code["questions"][0]["is_coding_question"] is True
    assert code["questions"][0]["code"] == {"language": "", "content": ""}
    assert s.is_completed is False


def test_good_answer_is_scored_without_follow_up(db, user, gemini):
    s = _session(db, user, [_question("What is REST?"), _question("Explain indexes.")])
    gemini.queue('{"score": 8, "feedback": "clear"}')

    s = job_service.submit_answer(db, s.id, 0, 0, "Stateless resources over HTTP")

    q = s.rounds[0]["questions"][0]
    assert q["user_answer"] == "Stateless resources over HTTP"
    assert q["score"] == 8
    assert q["feedback"] == "clear"
    assert q["cross_questions"] == []
    assert len(gemini.prompts) == 1


def test_low_score_adds_cross_question(db, user, gemini):
    s = _session(db, user, [_question("What is REST?")])
    gemini.queue('{"score": 4, "feedback": "vague"}', "What does stateless mean here?")

    s = job_service.submit_answer(db, s.id, 0, 0, "It is an API thing")

    q = s.rounds[0]["questions"][0]
    assert q["cross_questions"] == [
        {"question": "What does stateless mean here?", "user_answer": "", "score": None, "feedback": ""}
    ]
    # pending follow-up keeps the session open
    assert s.is_completed is False


def test_unsatisfactory_feedback_triggers_follow_up(db, user, gemini):
    s = _session(db, user, [_question("Q1"), _question("Q2")])
    gemini.queue('{"score": 9, "feedback": "Unsatisfactory depth"}', "Go deeper?")
    s = job_service.submit_answer(db, s.id, 0, 0, "answer")
    assert len(s.rounds[0]["questions"][0]["cross_questions"]) == 1


def test_cross_questions_are_capped_per_session(db, user, gemini):
    s = _session(db, user, [_question(f"Q{i}") for i in range(5)])
    for i in range(3):
        gemini.queue('{"score": 2, "feedback": "weak"}', f"follow-up {i}")
    gemini.queue('{"score": 2, "feedback": "weak"}', '{"score": 2, "feedback": "weak"}')

    for i in range(5):
        s = job_service.submit_answer(db, s.id, 0, i, f"answer {i}")

    counts = [len(q["cross_questions"]) for q in s.rounds[0]["questions"]]
    assert counts == [1, 1, 1, 0, 0]
    assert sum(counts) == job_service.MAX_CROSS_QUESTIONS


def test_unparseable_evaluation_uses_default(db, user, gemini):
    s = _session(db, user, [_question("Q1"), _question("Q2")])
    gemini.queue("great answer!", "follow-up?")
    s = job_service.submit_answer(db, s.id, 0, 0, "answer")
    q = s.rounds[0]["questions"][0]
    assert q["score"] == 5
    assert q["feedback"] == "Could not parse evaluation."


def test_code_only_answer_skips_evaluation(db, user, gemini):
    s = _session(db, user, [_question("Reverse a list", coding=True), _question("Q2")])
    gemini.queue("Why is your solution O(n)?")

    s = job_service.submit_answer(db, s.id, 0, 0, "", code_snippet="def rev(xs): return xs[::-1]", language="python")

    q = s.rounds[0]["questions"][0]
    assert q["score"] == 5
    assert q["feedback"] == "Answer recorded."
    assert q["code"] == {"language": "python", "content": "def rev(xs): return xs[::-1]"}
    assert q["user_answer"] == "[code submitted in python]"
    # only the follow-up was requested
    assert len(gemini.prompts) == 1
    assert "Code:" in gemini.prompts[0]


def test_answering_cross_question_then_completing(db, user, gemini):
    s = _session(db, user, [_question("What is REST?")])
    gemini.queue('{"score": 5, "feedback": "thin"}', "Define idempotent.")
    s = job_service.submit_answer(db, s.id, 0, 0, "APIs")
    assert s.is_completed is False

    gemini.queue('{"score": 3, "feedback": "wrong"}', "Final summary text")
    s = job_service.submit_answer(db, s.id, 0, 0, "Same result twice", cross_question_index=0)

    q = s.rounds[0]["questions"][0]
    assert q["cross_questions"][0]["user_answer"] == "Same result twice"
    assert q["cross_questions"][0]["score"] == 3
    # a follow-up answer never spawns another follow-up
    assert len(q["cross_questions"]) == 1
    assert s.is_completed is True
    assert s.summary == "Final summary text"
    assert s.behavioral_metrics["frames_count"] == 0


def test_submit_answer_errors(db, user, gemini):
    with pytest.raises(HTTPException) as exc:
        job_service.submit_answer(db, 999, 0, 0, "x")
    assert exc.value.status_code == 404

    s = _session(db, user, [_question("Q1")])
    for ri, qi in [(1, 0), (0, 3)]:
        with pytest.raises(HTTPException) as exc:
            job_service.submit_answer(db, s.id, ri, qi, "x")
        assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        job_service.submit_answer(db, s.id, 0, 0, "x", cross_question_index=0)
    assert exc.value.status_code == 400
    assert gemini.prompts == []


def test_llm_outage_propagates(db, user, gemini):
    s = _session(db, user, [_question("Q1")])
    gemini.queue(llm.LLMError("down"))
    with pytest.raises(llm.LLMError):
        job_service.submit_answer(db, s.id, 0, 0, "x")


def test_submit_all_answers_ignores_out_of_range(db, user):
    s = _session(db, user, [_question("Q1"), _question("Q2")])
    s = job_service.submit_all_answers(db, s.id, [
        {"round_index": 0, "question_index": 1, "answer": "second"},
        {"round_index": 3, "question_index": 0, "answer": "nowhere"},
    ])
    assert [q["user_answer"] for q in s.rounds[0]["questions"]] == ["", "second"]


def test_video_frames_update_metrics(db, user):
    s = _session(db, user, [_question("Q1")])
    job_service.add_video_analysis_frame(db, s.id, {"face_detected": True, "num_faces": 1, "emotions": {"happy": 1.0}})
    s = job_service.add_video_analysis_frame(db, s.id, {"face_detected": False, "num_faces": 0, "emotions": {"happy": 0.0}})

    assert len(s.video_analysis) == 2
    assert "timestamp" in s.video_analysis[0]
    assert s.behavioral_metrics == {
        "frames_count": 2, "presence_pct": 50.0, "multiple_faces_pct": 0.0, "avg_emotions": {"happy": 0.5},
    }


def test_evaluate_applies_scores_positionally(db, user, gemini):
    cross = [{"question": "Why?", "user_answer": "because", "score": None, "feedback": ""}]
    s = _session(db, user, [_question("Q1", answer="a1", cross=cross), _question("Q2", coding=True, answer="a2")])
    job_service.add_video_analysis_frame(db, s.id, {"face_detected": True, "num_faces": 1, "emotions": {}})
    gemini.queue(
        'Evaluation:\n[{"qIndex": 1, "score": 6, "feedback": "ok"},'
        ' {"qIndex": 2, "score": "n/a", "feedback": "unclear"},'
        ' {"qIndex": 3, "score": 9, "feedback": "great"}]',
        "Strong coder.",
    )

    s = job_service.evaluate_job_interview(db, s.id)

    q1, q2 = s.rounds[0]["questions"]
    assert (q1["score"], q1["feedback"]) == (6, "ok")
    assert (q1["cross_questions"][0]["score"], q1["cross_questions"][0]["feedback"]) == (None, "unclear")
    assert (q2["score"], q2["feedback"]) == (9, "great")
    assert s.summary == "Strong coder."
    assert s.is_completed is True

    prompt = gemini.prompts[0]
    assert "Q2: Why?" in prompt
    assert "Type: Coding" in prompt
    assert "Face presence: 100.0%" in prompt


def test_evaluate_keeps_raw_text_when_unparseable(db, user, gemini):
    s = _session(db, user, [_question("Q1", answer="a1")])
    gemini.queue("The candidate did fine overall.")
    s = job_service.evaluate_job_interview(db, s.id)
    assert s.summary == "The candidate did fine overall."
    assert s.is_completed is True
    assert len(gemini.prompts) == 1


def test_generate_summary_prompt_includes_scores(db, user, gemini):
    q = _question("Q1", answer="a1")
    q["score"] = 7
    s = _session(db, user, [q])
    gemini.queue("Summary")
    s = job_service.generate_summary(db, s.id)
    assert s.summary == "Summary"
    assert '"score": 7' in gemini.prompts[0]


def test_list_sessions_only_returns_own(db, user):
    _session(db, user, [_question("Q1")])
    _session(db, user, [_question("Q2")])
    assert len(job_service.list_sessions(db, user.id)) == 2
    assert job_service.list_sessions(db, user.id + 1) == []


def test_normalize_ignores_non_list_questions():
    rounds = job_service._normalize_rounds([
        {"name": "Tech", "type": "technical", "questions": "What is REST?"},
        {"name": "HR", "type": "hr", "questions": [{"question": "Why us?"}, "  "]},
    ])
    assert rounds[0]["questions"] == []
    assert [q["question"] for q in rounds[1]["questions"]] == ["Why us?"]
