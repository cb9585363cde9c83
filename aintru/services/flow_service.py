# aintru/services/flow_service.py
import re
import copy
import logging
from typing import Any, List, Optional

from fastapi import HTTPException

from aintru.core import config, llm

logger = logging.getLogger("aintru.services.flow_service")

MIN_QUERY_LEN = 2

FALLBACK_COMPANIES = [
    "Google", "Microsoft", "Amazon", "Apple", "Meta",
    "Netflix", "Uber", "Airbnb", "Stripe", "Shopify",
]

FALLBACK_ROLES = [
    "Software Engineer", "Frontend Developer", "Backend Developer", "Full Stack Developer",
    "Data Scientist", "Product Manager", "DevOps Engineer", "QA Engineer",
    "UI/UX Designer", "Mobile Developer", "System Administrator", "Database Administrator",
    "Network Engineer", "Security Engineer", "Cloud Engineer", "Machine Learning Engineer",
]

KNOWN_EXAMS = [
    "GATE", "CAT", "UPSC", "GRE", "TOEFL", "IELTS", "GMAT", "SAT", "ACT", "JEE",
    "NEET", "CLAT", "AILET", "XAT", "SNAP", "NMAT", "IIFT", "SSC", "Banking", "Railway",
    "Defense", "Teaching", "Medical", "Engineering", "MBA", "PhD", "Research", "Academic",
    "Scholarship",
]


# =========================================================
# Suggestions
# =========================================================
def _filter(candidates: List[str], query: str) -> List[str]:
    q = (query or "").lower()
    return [c for c in candidates if q in c.lower()]


def _suggest(query: Optional[str], prompt: str, fallback: List[str], label: str) -> List[str]:
    if not query or len(query.strip()) < MIN_QUERY_LEN:
        return []

    try:
        raw = llm.openai_chat(prompt, model=config.OPENAI_SETUP_MODEL)
    except llm.LLMError as e:
        logger.error(f"[flow] {label} suggestions failed: {e}")
        return _filter(fallback, query)

    suggestions = llm.parse_json_or(raw, None)
    if not isinstance(suggestions, list):
        logger.warning(f"[flow] {label} suggestions were not a JSON array, using fallback")
        return _filter(fallback, query)
    return [str(s) for s in suggestions]


def company_suggestions(query: Optional[str]) -> List[str]:
    prompt = f"""Given the search query "{query}", suggest 5-10 relevant companies that might be hiring.
Return only a JSON array of company names, like:
["Company Name 1", "Company Name 2", "Company Name 3"]

Focus on companies that are well-known and likely to have job openings."""
    return _suggest(query, prompt, FALLBACK_COMPANIES, "company")


def role_suggestions(query: Optional[str]) -> List[str]:
    prompt = f"""Given the search query "{query}", suggest 10-15 relevant job roles/titles that might be available.
Return only a JSON array of role names."""
    return _suggest(query, prompt, FALLBACK_ROLES, "role")


# =========================================================
# Exam flow
# =========================================================
def _round(no, name, rtype, duration, description, qtype, focus):
    return {
        "round": no,
        "name": name,
        "type": rtype,
        "duration": duration,
        "description": description,
        "questionType": qtype,
        "focusAreas": focus,
    }


FALLBACK_EXAM_FLOWS = {
    "gate": {
        "description": "Graduate Aptitude Test in Engineering preparation",
        "rounds": [
            _round(1, "Technical Subject Assessment", "Technical", "60 mins",
                   "Core engineering subject knowledge and problem-solving", "technical",
                   ["Mathematics", "Engineering Mathematics", "Core Subject", "Problem Solving"]),
            _round(2, "Aptitude & Reasoning", "Aptitude", "30 mins",
                   "Verbal ability, numerical ability, and logical reasoning", "aptitude",
                   ["Verbal Ability", "Numerical Ability", "Logical Reasoning", "Data Interpretation"]),
            _round(3, "General Awareness", "General", "15 mins",
                   "Current affairs and general knowledge", "general",
                   ["Current Events", "Science & Technology", "History", "Geography"]),
        ],
        "totalDuration": 105,
        "difficulty": "Hard",
        "preparationTips": [
            "Master core engineering subjects thoroughly",
            "Practice previous year GATE papers",
            "Focus on time management during preparation",
            "Join study groups for peer learning",
            "Take regular mock tests",
        ],
    },
    "cat": {
        "description": "Common Admission Test for MBA preparation",
        "rounds": [
            _round(1, "Quantitative Ability", "Quantitative", "40 mins",
                   "Mathematical problem solving and data interpretation", "quantitative",
                   ["Arithmetic", "Algebra", "Geometry", "Data Interpretation"]),
            _round(2, "Verbal Ability & Reading Comprehension", "Verbal", "40 mins",
                   "English language skills and reading comprehension", "verbal",
                   ["Reading Comprehension", "Grammar", "Vocabulary", "Para Jumbles"]),
            _round(3, "Logical Reasoning & Data Interpretation", "Logical", "40 mins",
                   "Logical reasoning and data analysis", "logical",
                   ["Logical Reasoning", "Data Sufficiency", "Puzzles", "Arrangements"]),
        ],
        "totalDuration": 120,
        "difficulty": "Hard",
        "preparationTips": [
            "Practice mental math and shortcuts",
            "Read newspapers daily for vocabulary",
            "Solve puzzles and brain teasers",
            "Take sectional and full-length mock tests",
            "Focus on accuracy over speed initially",
        ],
    },
    "upsc": {
        "description": "Union Public Service Commission examination preparation",
        "rounds": [
            _round(1, "Preliminary Examination", "Objective", "60 mins",
                   "General Studies and CSAT preparation", "objective",
                   ["History", "Geography", "Polity", "Economics", "Science & Technology"]),
            _round(2, "Mains Examination", "Descriptive", "90 mins",
                   "Essay writing and detailed answer preparation", "descriptive",
                   ["Essay Writing", "Answer Writing", "Current Affairs", "Optional Subject"]),
            _round(3, "Personality Test", "Interview", "45 mins",
                   "Personality assessment and current affairs discussion", "interview",
                   ["Personality", "Current Affairs", "Hobbies", "Academic Background"]),
        ],
        "totalDuration": 195,
        "difficulty": "Very Hard",
        "preparationTips": [
            "Read NCERT books thoroughly",
            "Stay updated with current affairs daily",
            "Practice answer writing regularly",
            "Develop a balanced personality",
            "Join test series for regular assessment",
        ],
    },
}

GENERIC_EXAM_FLOW = {
    "description": "General exam preparation interview",
    "rounds": [
        _round(1, "Subject Knowledge", "Academic", "45 mins",
               "Core subject knowledge assessment", "academic",
               ["Core subjects", "Problem solving", "Conceptual understanding"]),
        _round(2, "General Aptitude", "Aptitude", "30 mins",
               "General aptitude and reasoning skills", "aptitude",
               ["Logical reasoning", "Numerical ability", "Verbal ability"]),
        _round(3, "Current Affairs", "General", "15 mins",
               "Current events and general awareness", "general",
               ["Current events", "General knowledge", "Recent developments"]),
    ],
    "totalDuration": 90,
    "difficulty": "Medium",
    "preparationTips": [
        "Master the core subjects thoroughly",
        "Practice previous year questions",
        "Stay updated with current affairs",
        "Take regular mock tests",
        "Focus on time management",
    ],
}


def is_known_exam(name: str) -> bool:
    n = name.lower()
    return any(e.lower() in n or n in e.lower() for e in KNOWN_EXAMS)


def exam_suggestions(name: str, limit: int = 5) -> List[str]:
    prefix = name.lower()[:3]
    return [e for e in KNOWN_EXAMS if prefix in e.lower()][:limit]


def fallback_exam_flow(exam_name: str, description: str = "") -> dict:
    lower = exam_name.lower()
    for key, flow in FALLBACK_EXAM_FLOWS.items():
        if key in lower:
            return {"examName": exam_name, **copy.deepcopy(flow)}
    flow = copy.deepcopy(GENERIC_EXAM_FLOW)
    if description:
        flow["description"] = description
    return {"examName": exam_name, **flow}


def total_minutes(rounds: List[Any]) -> int:
    """Sum "N mins" style durations; rounds without a number count as 30."""
    total = 0
    for r in rounds:
        duration = r.get("duration") if isinstance(r, dict) else None
        m = re.search(r"\d+", str(duration if duration is not None else "30 mins"))
        total += int(m.group(0)) if m else 30
    return total


def generate_exam_flow(exam_name: Optional[str], exam_description: Optional[str] = None) -> dict:
    if not exam_name or not exam_name.strip():
        raise HTTPException(status_code=400, detail="Exam name is required")

    name = exam_name.strip()
    description = (exam_description or "").strip()

    if not is_known_exam(name):
        logger.info(f"[flow] unknown exam requested: {name}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Exam not found",
                "message": "The exam you entered was not recognized. Please check the spelling "
                           "and try again with the correct exam name.",
                "suggestions": exam_suggestions(name),
            },
        )

    context = f"Additional context: {description}" if description else ""
    prompt = f"""Generate a comprehensive interview flow for the exam: "{name}".
{context}

Create a realistic interview process that would be used for this exam preparation. Include:
1. Different rounds/types of interviews
2. Duration for each round
3. Description of what each round covers
4. Question types and focus areas

Return a JSON object with this structure:
{{
  "examName": "{name}",
  "description": "Brief description of the exam",
  "rounds": [
    {{
      "round": 1,
      "name": "Round Name",
      "type": "Technical/Behavioral/Academic/etc",
      "duration": "X mins",
      "description": "What this round covers",
      "questionType": "technical/behavioral/academic/etc",
      "focusAreas": ["Area 1", "Area 2", "Area 3"]
    }}
  ],
  "totalDuration": 120,
  "difficulty": "Easy/Medium/Hard",
  "preparationTips": ["Tip 1", "Tip 2", "Tip 3"]
}}

Make it realistic and specific to the exam type."""

    try:
        raw = llm.openai_chat(prompt, model=config.OPENAI_SETUP_MODEL, max_tokens=1000)
    except llm.LLMError as e:
        logger.error(f"[flow] exam flow generation failed, using fallback: {e}")
        return fallback_exam_flow(name, description)

    flow = llm.parse_json_or(raw, None)
    if not isinstance(flow, dict) or not isinstance(flow.get("rounds"), list):
        logger.warning("[flow] exam flow reply had no rounds list, using fallback")
        return fallback_exam_flow(name, description)

    if not flow.get("totalDuration"):
        flow["totalDuration"] = total_minutes(flow["rounds"])
    return flow


# =========================================================
# Job interview flow template
# =========================================================
def generate_interview_flow(company: Optional[str], role: Optional[str], experience: Any,
                            expected_ctc: Optional[str] = None) -> dict:
    if not company or not role or experience in (None, ""):
        raise HTTPException(status_code=400, detail="Company, role, and experience are required")

    return {
        "company": company.strip(),
        "role": role.strip(),
        "experienceLevel": str(experience),
        "expectedCTC": expected_ctc or "Not specified",
        "rounds": [
            {"round": 1, "name": "Technical Assessment", "type": "Technical", "duration": "45 mins",
             "questionType": "technical", "description": "Technical skills and problem-solving assessment"},
            {"round": 2, "name": "Behavioral Interview", "type": "Behavioral", "duration": "30 mins",
             "questionType": "behavioral", "description": "Behavioral and situational questions"},
            {"round": 3, "name": "HR Discussion", "type": "HR", "duration": "20 mins",
             "questionType": "hr", "description": "Final HR and culture fit discussion"},
        ],
        "totalDuration": 95,
        "difficulty": "Medium",
    }
