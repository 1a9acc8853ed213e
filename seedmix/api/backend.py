"""
FastAPI Backend for SeedMix

REST endpoints for seed-track search, playlist generation, playlist history
and export to the caller's streaming-provider account. The caller is
identified by the provider access token in the `Authorization` header.
"""

import os
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import Field
from structlog.contextvars import bind_contextvars

from ..agents.audio_profile import AudioProfileEstimator
from ..agents.playlist_narrator import PlaylistNarrator
from ..agents.strategy_advisor import StrategyAdvisor
from ..models.config_models import SystemConfig
from ..models.errors import (
    GenerationError,
    PlaylistAccessError,
    PlaylistNotFoundError,
    ProviderError,
)
from ..models.playlist_models import (
    CamelModel,
    GenerationAlgorithm,
    PlaylistFilters,
    StoredPlaylist,
    Track,
)
from ..services.playlist_export_service import PlaylistExportService
from ..services.playlist_generation_service import PlaylistGenerationService
from ..services.playlist_store import PlaylistStore
from ..services.recommendation_orchestrator import RecommendationOrchestrator
from .client_factory import APIClientFactory
from .logging_middleware import LoggingMiddleware

logger = structlog.get_logger(__name__)

API_VERSION = "1.0.0"

# Global service instances, created in lifespan
system_config: Optional[SystemConfig] = None
client_factory: Optional[APIClientFactory] = None
playlist_store: Optional[PlaylistStore] = None
generation_service: Optional[PlaylistGenerationService] = None
export_service: Optional[PlaylistExportService] = None


def build_services(config: SystemConfig) -> None:
    """Create the shared services from configuration."""
    global system_config, client_factory, playlist_store, generation_service, export_service

    system_config = config
    client_factory = APIClientFactory(config)

    llm_client = client_factory.create_llm_client()
    llm_limiter = client_factory.create_gemini_rate_limiter()

    orchestrator = RecommendationOrchestrator(
        config=config.generation,
        estimator=AudioProfileEstimator(timeout=config.provider_timeout_seconds),
        advisor=StrategyAdvisor(llm_client, rate_limiter=llm_limiter, timeout=config.llm_timeout_seconds),
        provider_timeout=config.provider_timeout_seconds,
        market=config.market
    )
    narrator = PlaylistNarrator(llm_client, rate_limiter=llm_limiter, timeout=config.llm_timeout_seconds)

    playlist_store = PlaylistStore(config.store_directory)
    generation_service = PlaylistGenerationService(orchestrator, narrator, playlist_store)
    export_service = PlaylistExportService(playlist_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    global system_config, client_factory, playlist_store, generation_service, export_service

    from ..utils.logging_config import setup_logging
    setup_logging(
        log_dir=os.getenv("LOG_DIR", "logs"),
        log_level=os.getenv("LOG_LEVEL", "INFO")
    )

    logger.info("Initializing SeedMix services")
    build_services(SystemConfig.from_env())
    logger.info(
        "SeedMix services initialized",
        llm_configured=bool(system_config.gemini_api_key),
        store_dir=system_config.store_directory
    )

    yield

    logger.info("Shutting down SeedMix services")
    if playlist_store:
        playlist_store.close()
    system_config = None
    client_factory = None
    playlist_store = None
    generation_service = None
    export_service = None


app = FastAPI(
    title="SeedMix API",
    description="Seed-track playlist generation with AI-assisted discovery",
    version=API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])


# Request/Response Models
class GeneratePlaylistRequest(CamelModel):
    """Request model for playlist generation."""
    seed_tracks: List[Track] = Field(..., min_length=3, max_length=5, description="3-5 seed tracks")
    filters: Optional[PlaylistFilters] = Field(None, description="Optional target and release-year overrides")


class GeneratePlaylistResponse(CamelModel):
    playlist_id: str
    playlist: StoredPlaylist


class AudioFeaturesRequest(CamelModel):
    track_ids: List[str] = Field(..., min_length=1, max_length=50)


class TrackWithFeatures(CamelModel):
    track: Track
    audio_features: Optional[Dict[str, Any]] = None


class AudioFeaturesResponse(CamelModel):
    tracks: List[TrackWithFeatures]


class TrackSearchResponse(CamelModel):
    tracks: List[Track]


class PlaylistSummary(CamelModel):
    """Playlist history entry."""
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    track_count: int
    algorithm: GenerationAlgorithm
    used_fallback: bool
    provider_playlist_id: Optional[str] = None

    @classmethod
    def from_stored(cls, playlist: StoredPlaylist) -> "PlaylistSummary":
        return cls(
            id=playlist.id,
            name=playlist.name,
            description=playlist.description,
            created_at=playlist.created_at,
            track_count=len(playlist.result.generated_tracks),
            algorithm=playlist.result.algorithm,
            used_fallback=playlist.result.used_fallback,
            provider_playlist_id=playlist.provider_playlist_id
        )


class PlaylistListResponse(CamelModel):
    playlists: List[PlaylistSummary]


class ExportResponse(CamelModel):
    provider_playlist_id: str
    url: Optional[str] = None
    tracks_added: int


class HealthResponse(CamelModel):
    """Health check response model."""
    status: str
    timestamp: float
    version: str
    components: Dict[str, str]
    stats: Dict[str, Any] = Field(default_factory=dict)


# Dependencies
def get_client_factory() -> APIClientFactory:
    if client_factory is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return client_factory


def get_generation_service() -> PlaylistGenerationService:
    if generation_service is None:
        raise HTTPException(status_code=503, detail="Generation service not available")
    return generation_service


def get_export_service() -> PlaylistExportService:
    if export_service is None:
        raise HTTPException(status_code=503, detail="Export service not available")
    return export_service


def get_playlist_store() -> PlaylistStore:
    if playlist_store is None:
        raise HTTPException(status_code=503, detail="Playlist store not available")
    return playlist_store


def get_access_token(authorization: Optional[str] = Header(None)) -> str:
    """Extract the provider access token from a Bearer Authorization header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Authorization must be a Bearer token")
    return token.strip()


async def get_provider(
    access_token: str = Depends(get_access_token),
    factory: APIClientFactory = Depends(get_client_factory)
) -> AsyncIterator[Any]:
    """Per-request SpotifyClient bound to the caller's token."""
    async with factory.create_spotify_client(access_token) as client:
        yield client


async def get_current_user_id(provider=Depends(get_provider)) -> str:
    """Resolve the caller's provider user id; a rejected token is a 401."""
    try:
        user = await provider.get_current_user()
    except ProviderError as e:
        if e.status in (401, 403):
            raise HTTPException(status_code=401, detail="Invalid or expired access token")
        raise

    user_id = user.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Could not resolve the current user")
    bind_contextvars(user_id=user_id)
    return user_id


# Exception handlers
@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error("Playlist generation failed", reason=exc.reason, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=502,
        content={"error": "Playlist generation failed", "details": exc.reason}
    )


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error("Provider request failed", endpoint=exc.endpoint, status=exc.status, error=str(exc))
    return JSONResponse(
        status_code=502,
        content={"error": "Music provider request failed", "details": str(exc)}
    )


@app.exception_handler(PlaylistNotFoundError)
async def not_found_handler(request: Request, exc: PlaylistNotFoundError):
    return JSONResponse(status_code=404, content={"error": "Playlist not found", "details": str(exc)})


@app.exception_handler(PlaylistAccessError)
async def access_error_handler(request: Request, exc: PlaylistAccessError):
    return JSONResponse(status_code=403, content={"error": "Forbidden", "details": str(exc)})


def _component_stats() -> Dict[str, Any]:
    stats: Dict[str, Any] = {}
    if client_factory:
        stats["rate_limiters"] = client_factory.get_rate_limiter_stats()
    if playlist_store:
        stats["playlist_store"] = playlist_store.get_stats()
    return stats


# API Endpoints
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    llm_configured = bool(system_config and system_config.gemini_api_key)
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=API_VERSION,
        components={
            "generation_service": "active" if generation_service else "inactive",
            "playlist_store": "active" if playlist_store else "inactive",
            "llm": "configured" if llm_configured else "fallback-only",
        },
        stats=_component_stats()
    )


@app.get("/tracks/search", response_model=TrackSearchResponse)
async def search_tracks(
    q: str = Query("", description="Search text"),
    limit: int = Query(20, ge=1, le=50),
    provider=Depends(get_provider)
):
    """Search the provider catalog for seed tracks."""
    if not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    tracks = await provider.search_tracks(q.strip(), limit=limit, offset=0)
    return TrackSearchResponse(tracks=tracks)


@app.post("/tracks/audio-features", response_model=AudioFeaturesResponse)
async def get_audio_features(
    request: AudioFeaturesRequest,
    provider=Depends(get_provider)
):
    """Look up tracks joined with their audio features (null when unavailable)."""
    tracks = await provider.get_tracks(request.track_ids)
    try:
        features = await provider.get_audio_features([track.id for track in tracks])
    except ProviderError as e:
        logger.warning("Audio features unavailable", external_call="get_audio_features", error=str(e))
        features = []
    # Provider may return fewer entries than requested; missing ones are null
    features = list(features) + [None] * (len(tracks) - len(features))

    return AudioFeaturesResponse(tracks=[
        TrackWithFeatures(track=track, audio_features=asdict(feature) if feature else None)
        for track, feature in zip(tracks, features)
    ])


@app.post("/playlists/generate", response_model=GeneratePlaylistResponse, status_code=201)
async def generate_playlist(
    request: GeneratePlaylistRequest,
    provider=Depends(get_provider),
    user_id: str = Depends(get_current_user_id),
    service: PlaylistGenerationService = Depends(get_generation_service)
):
    """Generate, narrate and store a playlist from 3-5 seed tracks."""
    try:
        playlist = await service.generate_playlist(provider, user_id, request.seed_tracks, request.filters)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GeneratePlaylistResponse(playlist_id=playlist.id, playlist=playlist)


@app.get("/playlists", response_model=PlaylistListResponse)
async def list_playlists(
    user_id: str = Depends(get_current_user_id),
    store: PlaylistStore = Depends(get_playlist_store)
):
    """List the caller's playlists, newest first."""
    return PlaylistListResponse(
        playlists=[PlaylistSummary.from_stored(p) for p in store.list_for_user(user_id)]
    )


@app.get("/playlists/{playlist_id}", response_model=StoredPlaylist)
async def get_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    store: PlaylistStore = Depends(get_playlist_store)
):
    return store.get_owned(playlist_id, user_id)


@app.delete("/playlists/{playlist_id}", status_code=204)
async def delete_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    store: PlaylistStore = Depends(get_playlist_store)
):
    """Delete one of the caller's playlists."""
    store.delete(playlist_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/playlists/{playlist_id}/export", response_model=ExportResponse)
async def export_playlist(
    playlist_id: str,
    provider=Depends(get_provider),
    user_id: str = Depends(get_current_user_id),
    service: PlaylistExportService = Depends(get_export_service)
):
    """Push a stored playlist to the caller's provider account as a private playlist."""
    try:
        exported = await service.export_playlist(provider, playlist_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ExportResponse(**exported)
