"""
Academic Records Service - FastAPI Application Entry Point.

This module:
1. Sets up structured JSON logging
2. Builds the RecordStore and seeds it from the student data CSV
   (falling back to a fixed seed set if the file cannot be loaded)
3. Implements request ID middleware (X-Request-ID header)
4. Maps validation, HTTP and unexpected errors to {"message": ...} bodies
5. Registers the student and dashboard routers

Layout:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: record store, analytics, CSV ingestion
- schemas.py: pydantic request/response schemas
- logging_config.py: structured logging configuration
- database.py: in-memory engine and the store dependency
"""

import time
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from app.routes import students, dashboard
from app.services.record_store import RecordStore
from app.services.ingestion import seed_store

SERVICE_NAME = "academic-records-backend"
VERSION = "1.0.0"

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")


def _validation_message(request: Request) -> str:
    if request.url.path.rstrip("/").endswith("/subjects"):
        return "Invalid subject data"
    return "Invalid student data"


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """
    Build the FastAPI application around a RecordStore.

    Args:
        store: Store to serve. When omitted a new in-memory store is built
            and seeded from STUDENT_DATA_PATH.
    """
    if store is None:
        store = RecordStore()
        seed_store(store)

    app = FastAPI(
        title="Academic Records Service",
        description=(
            "Student academic records (programme, CGPA, credits, subject grades) "
            "with dashboard analytics: Dean's List, probation and good-standing "
            "segmentation per intake."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    # ──────────────────────────────────────────────────────────
    # Request ID Middleware
    #
    # Stores a UUID per request in a context variable (picked up by
    # every log entry), returns it as X-Request-ID and logs latency.
    # ──────────────────────────────────────────────────────────
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
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

    # ──────────────────────────────────────────────────────────
    # Error handlers: every error body is {"message": ...}
    # ──────────────────────────────────────────────────────────
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(request)
        log_with_context(logger, "WARNING",
            f"{message}: {request.method} {request.url.path}",
            extra_data={"errors": len(exc.errors())})
        return JSONResponse(
            status_code=400,
            content={"message": message, "errors": jsonable_encoder(exc.errors())}
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log_with_context(logger, "ERROR",
            f"Unhandled error: {request.method} {request.url.path}",
            extra_data={"error_type": type(exc).__name__, "error": str(exc)},
            exc_info=True)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    app.include_router(students.router, tags=["Students"])
    app.include_router(dashboard.router, tags=["Dashboard"])

    @app.get("/health", tags=["Health"])
    def health_check():
        """Liveness check; also reports how many students are loaded."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": VERSION,
            "students": app.state.store.count_students()
        }

    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint with API information."""
        return {
            "service": "Academic Records Service",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "students": "GET /api/students?semester=",
                "students_all": "GET /api/students/all",
                "student_detail": "GET /api/students/{id}",
                "create_student": "POST /api/students",
                "update_student": "PATCH /api/students/{id}",
                "delete_student": "DELETE /api/students/{id}",
                "create_subject": "POST /api/students/{id}/subjects",
                "semesters": "GET /api/semesters",
                "metrics": "GET /api/dashboard/metrics?semester=",
                "performance": "GET /api/dashboard/performance?semester="
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
