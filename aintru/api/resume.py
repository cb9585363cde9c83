# aintru/api/resume.py
import base64
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from aintru.auth.dependencies import get_current_user
from aintru.database import get_db
from aintru.services import resume_service

router = APIRouter(prefix="/api/resume", tags=["Resume"])


@router.post("/parse-resume")
async def parse_resume(
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    if resume is None:
        raise HTTPException(status_code=400, detail="No resume file uploaded")
    data = await resume.read()
    profile, row = resume_service.parse_resume(db, current_user["user_id"], data, resume.content_type)
    return {
        "success": True,
        "profile": profile,
        "candidate_profile_id": row.id,
        "message": "Resume parsed successfully",
    }


@router.post("/improve")
async def improve_resume(
    request: Request,
    mode: str = Query("latex", description='"latex" or "direct"'),
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Rewrites the uploaded PDF resume using the user's completed interview
    summaries. Streams the PDF, or returns base64 JSON for Accept: application/json.
    """
    mode = mode.lower()
    if mode not in ("latex", "direct"):
        raise HTTPException(status_code=400, detail='mode must be "latex" or "direct"')
    if resume is None:
        raise HTTPException(status_code=400, detail="Resume PDF file is required (field name: resume)")

    pdf_bytes, latex_code = resume_service.improve_resume_from_pdf(
        db, current_user["user_id"], await resume.read(), mode
    )

    if "application/json" in request.headers.get("accept", ""):
        return {
            "success": True,
            "latex_code": latex_code,
            "pdf_base64": base64.b64encode(pdf_bytes).decode("ascii"),
        }
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="improved_resume.pdf"'},
    )
