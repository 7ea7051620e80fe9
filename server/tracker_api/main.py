"""Devotion Tracker API - FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_api_settings
from .routes import entries, stats

settings = get_api_settings()

app = FastAPI(
    title="Devotion Tracker API",
    description="Journal, gratitude, habit and mood tracking with streaks, summaries and trends",
    version="1.0.0",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(entries.router)
app.include_router(stats.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for the API."""
    return {"status": "healthy", "service": "tracker-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.tracker_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
