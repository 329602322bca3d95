# /app/main.py

# --- Core FastAPI Imports ---
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

# --- Application-specific Router Imports ---
from .routers import (
    prompts_router,
    history_router,
    settings_router,
    runs_router,
)

# --- Startup Helpers ---
from .core.logging_config import setup_logging
from .db.database import init_db
from .services import run_service

logger = setup_logging()


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Runs once when the application starts up.
    init_db()
    logger.info("Prompt workbench ready")
    yield
    # Runs once on shutdown: stop any running batch so its history is written.
    await run_service.get_orchestrator().shutdown()


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Prompt Workbench API",
    description="Fan one prompt pair out into parallel streamed completions and keep the results.",
    version="1.0.0",
    lifespan=lifespan
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Router Inclusion ---
app.include_router(prompts_router.router, prefix="/api/prompts", tags=["Prompts"])
app.include_router(history_router.router, prefix="/api/history", tags=["History"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["Settings"])
app.include_router(runs_router.router, prefix="/api/runs", tags=["Runs"])


# --- Health Check Endpoint ---
@app.get("/api/health", tags=["Health Check"])
async def health_check():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "ok"}
