"""
FastAPI application for Content Discovery Service
"""
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from .application.services import DiscoveryService
from .config import settings
from .dependencies import get_discovery_service, get_search_params
from .exceptions import DiscoveryError
from .infrastructure.database.connection import db
from .schemas import (
    RecommendationsResponse,
    SearchPage,
    SearchParams,
    TrendingResponse,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Content Discovery Service...")
    await db.connect()
    logger.info(f"Content Discovery Service started successfully on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Content Discovery Service...")
    await db.disconnect()
    logger.info("Content Discovery Service shut down successfully")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Search and browse notes, roadmaps and study rooms through one query surface",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DiscoveryError)
async def discovery_exception_handler(request: Request, exc: DiscoveryError):
    return JSONResponse(
        status_code=exc.status,
        content={"code": exc.code, "message": exc.message},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# =============================================================================
# Search APIs
# =============================================================================

@app.get("/api/v1/discovery/search", response_model=SearchPage, tags=["Discovery"])
async def search_content(
    params: SearchParams = Depends(get_search_params),
    service: DiscoveryService = Depends(get_discovery_service),
):
    """
    Search notes, roadmaps and study rooms at once

    - **q**: Text matched against titles (case-insensitive)
    - **topics** / **difficulty** / **content_type**: Repeatable filters
    - **page** / **limit**: Applied to every source independently
    """
    return await service.search_content(params)


@app.get("/api/v1/discovery/notes", response_model=SearchPage, tags=["Discovery"])
async def get_notes(
    params: SearchParams = Depends(get_search_params),
    service: DiscoveryService = Depends(get_discovery_service),
):
    """Get public notes"""
    return await service.get_notes(params)


@app.get("/api/v1/discovery/roadmaps", response_model=SearchPage, tags=["Discovery"])
async def get_roadmaps(
    params: SearchParams = Depends(get_search_params),
    service: DiscoveryService = Depends(get_discovery_service),
):
    """Get public roadmaps"""
    return await service.get_roadmaps(params)


@app.get("/api/v1/discovery/study-rooms", response_model=SearchPage, tags=["Discovery"])
async def get_study_rooms(
    params: SearchParams = Depends(get_search_params),
    service: DiscoveryService = Depends(get_discovery_service),
):
    """Get public study rooms (difficulty filter does not apply)"""
    return await service.get_study_rooms(params)


# =============================================================================
# Trending & Recommendations
# =============================================================================

@app.get("/api/v1/discovery/trending", response_model=TrendingResponse, tags=["Discovery"])
async def get_trending(service: DiscoveryService = Depends(get_discovery_service)):
    """Most viewed notes and roadmaps"""
    return TrendingResponse(items=await service.get_trending())


@app.get("/api/v1/discovery/recommendations", response_model=RecommendationsResponse, tags=["Discovery"])
async def get_recommendations(service: DiscoveryService = Depends(get_discovery_service)):
    """Recommended notes and roadmaps with the reason for each"""
    return RecommendationsResponse(items=await service.get_user_recommendations())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "content_discovery_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
