import time
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from aintru.core import config
from aintru.core.llm import LLMError, services_status
from aintru.database import Base, engine
import aintru.models  # registers every table on Base.metadata

# Create tables after models are imported
Base.metadata.create_all(bind=engine)

from aintru.api import auth, waitlist, job, exam, interview, interview_flow, resume  # routers AFTER create_all

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("aintru")

STARTED_AT = time.time()

app = FastAPI(title="Aintru Interview API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------- Error envelopes -----------------
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        body = {"success": False, "error": "Route not found"}
    elif isinstance(exc.detail, dict):
        body = {"success": False, **exc.detail}
    else:
        body = {"success": False, "error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(LLMError)
async def llm_error(request: Request, exc: LLMError):
    logger.error(f"[llm] {request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": "AI service unavailable"})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"[app] unhandled error on {request.method} {request.url.path}")
    body = {"success": False, "error": "Internal server error"}
    if config.ENVIRONMENT == "development":
        body["message"] = str(exc)
    return JSONResponse(status_code=500, content=body)


# ----------------- Health -----------------
@app.get("/", tags=["Health"])
async def root():
    return {"message": "Aintru backend is running!"}


@app.get("/health", tags=["Health"])
def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"[health] database check failed: {e}")
        database = "disconnected"

    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.time() - STARTED_AT, 3),
        "environment": config.ENVIRONMENT,
        "database": database,
        "services": services_status(),
    }


# Routers
app.include_router(auth.router)            # /api/auth
app.include_router(waitlist.router)        # /api/waitlist
app.include_router(job.router)             # /api/job
app.include_router(exam.router)            # /api/exam
app.include_router(interview.router)       # /api/interview
app.include_router(interview_flow.router)  # /api/interviewFlow
app.include_router(resume.router)          # /api/resume

logger.info(f"[startup] environment={config.ENVIRONMENT} services={services_status()}")
