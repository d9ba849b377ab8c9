"""
Resit Portal - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps portal errors to JSON error responses
5. Registers all API route handlers and the health check

Layout:
- routes/: API endpoint handlers, one module per role area
- services/: grading rules and the resit workflows
- repository.py: data access handed to every workflow
- models/: SQLAlchemy ORM models
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resit_portal import __version__
from resit_portal.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from resit_portal.errors import PortalError
from resit_portal.routes import student, instructor, faculty, notifications, dashboard
from resit_portal.database import DATABASE_URL, create_tables

setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

app = FastAPI(
    title="Resit Portal",
    description=(
        "Grade uploads, resit exam eligibility and registration, resit scheduling "
        "and notifications for students, instructors and faculty secretaries."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# ──────────────────────────────────────────────────────────────
# CORS Middleware
#
# In production, restrict origins to the actual frontend domain.
# ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Generate a unique request ID for every HTTP request.

    The ID is stored in a context variable (so every log entry carries
    it), returned in the X-Request-ID response header, and logged with
    the request start and completion.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    level = "ERROR" if exc.status_code >= 500 else "WARNING"
    log_with_context(logger, level,
        f"{type(exc).__name__}: {exc.message}",
        extra_data={"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(student.router, tags=["Student"])
app.include_router(instructor.router, tags=["Instructor"])
app.include_router(faculty.router, tags=["Faculty"])
app.include_router(notifications.router, tags=["Notifications"])
app.include_router(dashboard.router, tags=["Dashboard"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for Docker health checks and monitoring."""
    return {"status": "healthy", "service": "resit-portal-backend", "version": __version__}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Resit Portal",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "dashboard": "GET /api/dashboard",
            "notifications": "GET /api/notifications",
            "notify": "POST /api/notify",
            "my_grades": "GET /api/student/my-grades",
            "declare_resit": "POST /api/student/declare-resit",
            "my_resit_exams": "GET /api/student/my-resit-exams",
            "eligible_resits": "GET /api/student/eligible-resits",
            "submit_grade": "POST /api/instructor/submit-grade",
            "upload_grades_file": "POST /api/instructor/upload-grades-file",
            "resit_details": "POST /api/instructor/resit-details",
            "export_resit": "GET /api/instructor/export-resit/{course_id}",
            "upload_schedule": "POST /api/faculty/upload-schedule",
            "update_resit_info": "PATCH /api/faculty/update-resit-info",
            "all_resit_exams": "GET /api/faculty/all-resit-exams"
        }
    }
