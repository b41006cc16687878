"""
Opener Coach - FastAPI Backend
REST API for opener matching, outcome classification, recommendations and
call session tracking.

Run: uvicorn opener_coach.api.app:app --reload --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opener_coach import config
from opener_coach.agents.openers import OPENERS
from opener_coach.api.routers import analytics, matching, openers, sessions
from opener_coach.api.services import get_services
from opener_coach.db import models
from opener_coach.db.init_db import init_db
from opener_coach.errors import ConfigurationError, SessionError
from opener_coach.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=config.LOG_LEVEL, fmt=config.LOG_FORMAT, log_file=config.LOG_FILE)
    init_db()
    yield


app = FastAPI(
    title="Opener Coach",
    description="Call opener matching, outcome tracking and recommendations for sales agents.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── ROUTERS ─────────────────────────────────────────────────
app.include_router(openers.router)
app.include_router(matching.router)
app.include_router(analytics.router)
app.include_router(sessions.router)


# ─── ERROR MAPPING ───────────────────────────────────────────

@app.exception_handler(SessionError)
def session_error_handler(request: Request, exc: SessionError):
    status = 404 if exc.code == SessionError.UNKNOWN_OPENER else 409
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=422, content={"error": str(exc)})


# ─── HEALTH ──────────────────────────────────────────────────

@app.get("/api/health")
def health():
    try:
        services = get_services()
        return {
            "status": "healthy",
            "openers": len(OPENERS),
            "sessions_stored": models.count_call_sessions(),
            "statistics_generation": services.analyzer.get_snapshot().generation,
            "active_session": services.sessions.get_current_session() is not None,
        }
    except Exception as e:
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": str(e)})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
