import json

from aintru.core import config, llm
from aintru.services import flow_service


def test_router_check_is_public(client):
    r = client.get("/api/interviewFlow/test")
    assert r.json() == {"success": True, "message": "Interview flow router is working!"}


def test_suggestions_require_token(client, openai):
    r = client.post("/api/interviewFlow/company-suggestions", json={"query": "goo"})
    assert r.status_code == 401


def test_short_query_returns_nothing(client, openai, auth_headers):
    r = client.post("/api/interviewFlow/company-suggestions", json={"query": "g"}, headers=auth_headers)
    assert r.json() == {"success": True, "suggestions": []}
    assert openai.prompts == []


def test_company_suggestions_from_model(client, openai, auth_headers, monkeypatch):
    seen = {}

    def fake(prompt, model=None, **kwargs):
        seen["model"] = model
        return '```json\n["Stripe", "Square"]\n```'

    monkeypatch.setattr(llm, "openai_chat", fake)
    r = client.post("/api/interviewFlow/company-suggestions", json={"query": "pay"}, headers=auth_headers)
    assert r.json()["suggestions"] == ["Stripe", "Square"]
    assert seen["model"] == config.OPENAI_SETUP_MODEL


def test_suggestions_fall_back_to_filtered_list(openai):
    openai.queue("Sure! Here are some companies.", llm.LLMError("down"))
    assert flow_service.company_suggestions("oo") == ["Google"]
    assert flow_service.role_suggestions("data") == ["Data Scientist", "Database Administrator"]


def test_unknown_exam_returns_suggestions(client, openai, auth_headers):
    r = client.post("/api/interviewFlow/generate-exam-flow", json={"exam_name": "Medicine"}, headers=auth_headers)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Exam not found"
    assert body["suggestions"] == ["Medical"]
    assert openai.prompts == []


def test_exam_name_required(client, auth_headers):
    r = client.post("/api/interviewFlow/generate-exam-flow", json={"exam_name": "  "}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Exam name is required"


def test_exam_flow_total_duration_is_computed(openai):
    openai.queue(json.dumps({
        "examName": "GRE",
        "rounds": [{"round": 1, "duration": "60 mins"}, {"round": 2, "duration": "x"}],
    }))
    flow = flow_service.generate_exam_flow("GRE")
    assert flow["totalDuration"] == 90


def test_exam_flow_keeps_model_total(openai):
    openai.queue(json.dumps({"examName": "GRE", "rounds": [], "totalDuration": 150}))
    assert flow_service.generate_exam_flow("GRE")["totalDuration"] == 150


def test_exam_flow_fallbacks(client, openai, auth_headers):
    openai.queue(llm.LLMError("down"))
    r = client.post("/api/interviewFlow/generate-exam-flow", json={"exam_name": "GATE 2025"}, headers=auth_headers)
    flow = r.json()["interview_flow"]
    assert flow["examName"] == "GATE 2025"
    assert flow["totalDuration"] == 105
    assert len(flow["rounds"]) == 3

    openai.queue("no json here")
    flow = flow_service.generate_exam_flow("IELTS", "Academic module")
    assert flow["description"] == "Academic module"
    assert flow["totalDuration"] == 90
    # fallback templates are copied, never shared
    assert flow_service.GENERIC_EXAM_FLOW["description"] == "General exam preparation interview"


def test_interview_flow_template(client, auth_headers):
    r = client.post("/api/interviewFlow/generate-interview-flow", json={
        "company": " Acme ", "role": "SRE", "experience": 3,
    }, headers=auth_headers)
    flow = r.json()["interview_flow"]
    assert flow["company"] == "Acme"
    assert flow["experienceLevel"] == "3"
    assert flow["expectedCTC"] == "Not specified"
    assert flow["totalDuration"] == 95
    assert [rnd["type"] for rnd in flow["rounds"]] == ["Technical", "Behavioral", "HR"]


def test_interview_flow_requires_fields(client, auth_headers):
    r = client.post("/api/interviewFlow/generate-interview-flow", json={"company": "Acme"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Company, role, and experience are required"
