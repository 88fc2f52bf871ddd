"""
WorkSkill AI - Main Application

FastAPI backend with:
- MongoDB for all documents (accounts, profiles, resumes, skills, analyses)
- Gemini for resume parsing and exam generation
- Python ML service for skill gap analysis and course recommendations
- JWT authentication via HttpOnly cookie

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import WorkSkillError
from app.core.logging_config import setup_logging
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.services.ml_service_client import close_ml_client

settings = get_settings()

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="WorkSkill AI",
    description="""
    Skill tracking and career growth backend.

    ## Features
    - **Authentication**: JWT in an HttpOnly cookie
    - **Profile**: Profile management, resume upload with AI parsing
    - **Skills**: Tracked skills, AI-generated exams, verification
    - **Skill Gap**: Job role analysis via the ML service
    - **Recommendations**: Courses and learning pathway for missing skills
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (credentials needed for the auth cookie, so no wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(WorkSkillError)
async def workskill_error_handler(request: Request, exc: WorkSkillError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.on_event("shutdown")
async def shutdown_event():
    close_ml_client()


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "WorkSkill AI"}


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "geminiConfigured": bool(settings.gemini_api_key),
        "examKeys": len(settings.exam_api_keys),
    }
