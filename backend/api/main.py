"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.errors import register_error_handlers
from api.routes import bookmarks, places, users
from db import init_db
from services.tour_api import default_latency_recorder
from settings import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create app
app = FastAPI(
    title="My Trip API",
    description="Korean tourist attractions and bookmarks",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(places.router, tags=["places"])
app.include_router(bookmarks.router, prefix="/bookmarks", tags=["bookmarks"])
app.include_router(users.router, prefix="/users", tags=["users"])


@app.on_event("startup")
def startup_event():
    """Initialize database tables on startup."""
    init_db()
    if not settings.TOUR_API_KEY:
        logging.getLogger(__name__).warning("TOUR_API_KEY not set; place endpoints will fail")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "My Trip API"}


@app.get("/health")
async def health():
    """Health check endpoint with recent tour API latency."""
    return {"status": "healthy", "tour_api": default_latency_recorder.stats()}
