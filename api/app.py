"""Main FastAPI application with modularized routes."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.database import init_db
from api.routes import auth, categories, purchases, questions, results, sections, submissions, tests, uploads
from api.services.cleanup_service import schedule_cleanup
from core.logging_setup import setup_console_logging

setup_console_logging()

app = FastAPI(title="Oral Exam API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database and schedule cleanup tasks on startup."""
    init_db()
    schedule_cleanup()


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Include routers
app.include_router(auth.router)
app.include_router(categories.router)
app.include_router(tests.router)
app.include_router(sections.router)
app.include_router(questions.router)
app.include_router(purchases.router)
app.include_router(submissions.router)
app.include_router(uploads.router)
app.include_router(results.router)
