import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.engagement_engine.core.config import get_settings
from services.engagement_engine.core.logging_config import setup_logging
from src.routers import intake as intake_router
from src.routers import workflow as workflow_router

settings = get_settings()
setup_logging(settings.log_level, settings.log_json)
logger = logging.getLogger(__name__)

app = FastAPI(title="Engagement Readiness Engine - Main API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers ---
app.include_router(intake_router.router, prefix="/api/v1", tags=["intake"])
app.include_router(workflow_router.router, prefix="/api/v1", tags=["workflow"])


@app.get("/health", tags=["Health Check"])
async def health():
    """Liveness probe; the engine itself is loaded lazily on first request."""
    return {"status": "ok", "message": "Engagement Readiness Engine is running."}


if __name__ == "__main__":
    import uvicorn
    # Prefer `uvicorn main:app --reload` from the project root.
    logger.info("Starting development server")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
