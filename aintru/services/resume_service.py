# aintru/services/resume_service.py
import io
import os
import logging
import tempfile
import html
import subprocess
from typing import Any, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from aintru.core import config, llm
from aintru.models.candidate_profile import CandidateProfile
from aintru.models.job import JobInterview

logger = logging.getLogger("aintru.services.resume_service")

ALLOWED_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}

RESUME_PROMPT_CHARS = 3000

PLACEHOLDER_PROFILE = {
    "name": "Candidate",
    "email": "",
    "phone": "",
    "experienceYears": 1,
    "education": [{"degree": "Bachelor's Degree", "institution": "University", "year": 2023}],
    "skills": ["Problem Solving", "Communication", "Teamwork"],
    "tools": ["Microsoft Office", "Git"],
    "projects": [{
        "name": "Sample Project",
        "description": "A project demonstrating key skills",
        "technologies": ["JavaScript", "React"],
        "duration": "3 months",
    }],
    "domain": "Technology",
    "summary": "Motivated professional with strong problem-solving skills.",
}


# ----------------- Text extraction -----------------
def extract_text_from_pdf_bytes(data: bytes) -> str:
    try:
        import fitz  # PyMuPDF
        with fitz.open(stream=data, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to parse PDF file. Please ensure it's a valid PDF. ({e})")


def _check_size(data: bytes):
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")


def extract_resume_text(data: bytes, content_type: Optional[str]) -> str:
    if content_type not in ALLOWED_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Please upload PDF, DOC, DOCX, or TXT files only.",
        )
    _check_size(data)
    if content_type == "application/pdf":
        return extract_text_from_pdf_bytes(data)
    return data.decode("utf-8", errors="ignore")


# ----------------- Parsing -----------------
def _years(value: Any) -> int:
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return 0


def parse_resume(db: Session, user_id: int, data: bytes, content_type: Optional[str]) -> Tuple[dict, CandidateProfile]:
    """
    Extract the resume text, let the model turn it into a profile JSON and
    store it as a CandidateProfile for the user.
    A reply that is not JSON yields a generic placeholder profile.
    """
    text = extract_resume_text(data, content_type)
    if not text.strip():
        raise HTTPException(status_code=400, detail="No text content found in the uploaded file.")

    prompt = f"""Parse this resume and extract the following information in JSON format:
{{
  "name": "Full name",
  "email": "Email address",
  "phone": "Phone number",
  "experienceYears": number,
  "education": [{{"degree": "Degree name", "institution": "Institution name", "year": graduation year}}],
  "skills": ["skill1", "skill2", "skill3"],
  "tools": ["tool1", "tool2", "tool3"],
  "projects": [{{"name": "Project name", "description": "Project description", "technologies": ["tech1", "tech2"], "duration": "Duration"}}],
  "domain": "Primary domain/field",
  "summary": "Professional summary"
}}

Resume text:
{text[:RESUME_PROMPT_CHARS]}"""

    raw = llm.openai_chat(prompt, model=config.OPENAI_SETUP_MODEL)
    profile = llm.parse_json_or(raw, None)
    if not isinstance(profile, dict):
        logger.warning(f"[resume] profile reply was not JSON, using placeholder. raw={raw[:200]!r}")
        profile = dict(PLACEHOLDER_PROFILE)

    skills = profile.get("skills") if isinstance(profile.get("skills"), list) else []
    education = profile.get("education") if isinstance(profile.get("education"), list) else []
    row = CandidateProfile(
        user_id=user_id,
        name=str(profile.get("name") or "Candidate"),
        email=profile.get("email") or None,
        phone=profile.get("phone") or None,
        experience=_years(profile.get("experienceYears")),
        skills=skills,
        education=education,
        last_role=profile.get("lastRole"),
        resume_text=text,
        domain=profile.get("domain"),
        summary=profile.get("summary"),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"[resume] stored candidate profile id={row.id} user={user_id}")
    return profile, row


# ----------------- Improvement -----------------
def _interview_summaries(db: Session, user_id: int) -> str:
    sessions = (
        db.query(JobInterview)
        .filter(JobInterview.user_id == user_id, JobInterview.is_completed.is_(True))
        .all()
    )
    return "\n\n".join(
        f"Company: {s.company}\nRole: {s.role}\nSummary: {s.summary}"
        for s in sessions if s.summary
    )


def compile_latex(latex_code: str) -> bytes:
    with tempfile.TemporaryDirectory(prefix="aintru_resume_") as tmp:
        tex_path = os.path.join(tmp, "resume.tex")
        with open(tex_path, "w", encoding="utf-8") as f:
            f.write(latex_code)

        cmd = ["pdflatex", "-interaction=nonstopmode", "-halt-on-error", f"-output-directory={tmp}", tex_path]
        try:
            # second pass resolves references
            for _ in range(2):
                subprocess.run(cmd, cwd=tmp, capture_output=True, check=True, timeout=120)
        except FileNotFoundError:
            raise HTTPException(status_code=500, detail="pdflatex is not installed on the server")
        except subprocess.CalledProcessError as e:
            out = (e.stdout or b"").decode("utf-8", errors="ignore")[-500:]
            logger.error(f"[resume] pdflatex failed: {out}")
            raise HTTPException(status_code=500, detail="LaTeX compilation failed")
        except subprocess.TimeoutExpired:
            raise HTTPException(status_code=500, detail="LaTeX compilation timed out")

        with open(os.path.join(tmp, "resume.pdf"), "rb") as f:
            return f.read()


def _is_heading(line: str) -> bool:
    return len(line) < 40 and line.replace(" ", "").isalpha() and line.upper() == line


RESUME_CSS = """
* {font-family: sans-serif;}
h2 {font-size: 12pt; margin: 8pt 0 3pt 0; border-bottom: 0.5pt solid #cccccc;}
p {font-size: 10pt; margin: 0 0 3pt 0;}
p.bullet {margin-left: 20pt;}
"""


def _resume_html(text: str) -> str:
    parts = []
    for line in (l.strip() for l in text.split("\n")):
        if not line:
            continue
        if _is_heading(line):
            parts.append(f"<h2>{html.escape(line)}</h2>")
        elif line.startswith("- "):
            parts.append(f'<p class="bullet">• {html.escape(line[2:])}</p>')
        else:
            parts.append(f"<p>{html.escape(line)}</p>")
    return "\n".join(parts)


def render_text_pdf(text: str) -> bytes:
    """
    Lay out a plain-text resume on A4 pages: upper-case headings, "-" bullets.
    Goes through the Story HTML layout so glyphs outside the base fonts
    (dashes, curly quotes, non-Latin scripts) get fallback fonts.
    """
    import fitz  # PyMuPDF

    buf = io.BytesIO()
    writer = fitz.DocumentWriter(buf)
    story = fitz.Story(html=_resume_html(text), user_css=RESUME_CSS)
    mediabox = fitz.paper_rect("a4")
    where = mediabox + (50, 50, -50, -50)

    more = True
    while more:
        device = writer.begin_page(mediabox)
        more, _ = story.place(where)
        story.draw(device)
        writer.end_page()
    writer.close()
    return buf.getvalue()


def improve_resume_from_pdf(db: Session, user_id: int, pdf_bytes: bytes, mode: str = "latex") -> Tuple[bytes, Optional[str]]:
    """Returns (pdf_bytes, latex_code); latex_code is None in direct mode."""
    if mode not in ("latex", "direct"):
        raise HTTPException(status_code=400, detail='mode must be "latex" or "direct"')
    _check_size(pdf_bytes)

    resume_text = extract_text_from_pdf_bytes(pdf_bytes).strip()
    if not resume_text:
        raise HTTPException(
            status_code=400,
            detail="Unable to extract text from PDF. Make sure the PDF contains selectable text (not only images).",
        )
    summaries = _interview_summaries(db, user_id)

    if mode == "latex":
        prompt = f"""You are an expert resume writer. Convert and improve the following resume into a clean LaTeX resume.
Rules:
- Use the resume content provided.
- Incorporate strengths and achievements emphasized by interview feedback (below).
- Output ONLY LaTeX code (no explanation).
- Use sections: Summary, Skills, Experience, Projects, Education, Certifications (include fields if present).
- Keep layout printable and ATS-friendly. Do not include images.
- When not sure of dates, keep placeholders like "<Year>".
----
Resume text:
{resume_text}
----
Interview summaries (user):
{summaries or "No interview summaries available."}
----
Return the complete LaTeX code only."""
        latex_code = llm.clean_response(llm.gemini_generate(prompt))
        if latex_code.lower().startswith("latex\n"):
            latex_code = latex_code[6:]
        return compile_latex(latex_code), latex_code

    prompt = f"""You are an expert resume writer. Improve and rewrite the following resume to be ATS-friendly and aligned with user's interview strengths.

Guidelines:
- Output a structured plain text resume with headings exactly: SUMMARY, SKILLS, EXPERIENCE, PROJECTS, EDUCATION, CERTIFICATIONS
- Use bullet style using "-" lines under headings.
- Avoid LaTeX or HTML. Output only plain text content.
Resume:
{resume_text}
Interview summaries:
{summaries or "No summaries available."}
Return only the improved plain text resume."""
    improved = llm.clean_response(llm.gemini_generate(prompt))
    return render_text_pdf(improved), None
