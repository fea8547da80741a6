"""FastAPI main application."""

import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import settings
from ..config.world_settings import (
    MIN_MAP_DIMENSION,
    ClimateSettings,
    ConfigurationError,
    IslandSettings,
    TerrainSettings,
    WorldGenerationParams,
    WorldType,
)
from ..core.pipeline import GeneratedWorld, WorldGenerator
from ..export.json_export import province_to_dict, region_to_dict, strategic_point_to_dict
from ..utils.log_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="World Map Generator API",
    description="Seamless planetary world maps with provinces and regions",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class MapGenerationRequest(BaseModel):
    """Request to generate a new map."""

    seed: Optional[int] = Field(None, ge=0, lt=2**64, description="Seed for reproducible generation")
    width: int = Field(1024, ge=MIN_MAP_DIMENSION, description="Map width in pixels")
    height: int = Field(512, ge=MIN_MAP_DIMENSION, description="Map height in pixels")
    world_type: WorldType = Field(WorldType.EARTH_LIKE, description="World layout")
    climate: ClimateSettings = Field(default_factory=ClimateSettings)
    islands: IslandSettings = Field(default_factory=IslandSettings)
    terrain: TerrainSettings = Field(default_factory=TerrainSettings)
    target_region_size: int = Field(8, ge=1, description="Provinces per region")
    map_name: Optional[str] = Field(None, description="Custom map name")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    progress_percent: int
    message: str
    map_id: Optional[str] = None
    error_message: Optional[str] = None


class MapSummary(BaseModel):
    """Summary information about a generated map."""

    id: str
    name: str
    seed: int
    width: int
    height: int
    world_type: str
    land_ratio: float
    provinces_count: int
    regions_count: int
    created_at: datetime
    generation_time_seconds: float


class ProvinceInfo(BaseModel):
    id: int
    name: str
    color: str
    center: List[float]
    area: int
    type: str
    coastal: bool
    biomes: Dict[str, float]


class RegionInfo(BaseModel):
    id: int
    name: str
    color: str
    province_ids: List[int]


class StrategicPointInfo(BaseModel):
    kind: str
    province_id: int


class _StoredMap:
    """A generated world kept in memory with its metadata."""

    def __init__(self, map_id: str, name: str, world: GeneratedWorld, seconds: float):
        self.id = map_id
        self.name = name
        self.world = world
        self.created_at = datetime.now(timezone.utc)
        self.generation_time_seconds = seconds

    def summary(self) -> MapSummary:
        params = self.world.params
        return MapSummary(
            id=self.id,
            name=self.name,
            seed=params.seed,
            width=params.width,
            height=params.height,
            world_type=params.world_type.value,
            land_ratio=round(self.world.heightmap.land_ratio(), 4),
            provinces_count=len(self.world.provinces),
            regions_count=len(self.world.regions),
            created_at=self.created_at,
            generation_time_seconds=round(self.generation_time_seconds, 3),
        )


# In-process stores; generated worlds are not persisted
jobs: Dict[str, JobResponse] = {}
maps: Dict[str, _StoredMap] = {}
_job_slots = threading.BoundedSemaphore(max(1, settings.max_concurrent_jobs))


def _get_map(map_id: str) -> _StoredMap:
    stored = maps.get(map_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Map not found")
    return stored


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "World Map Generator API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    running = sum(1 for job in jobs.values() if job.status == "running")
    return {"status": "healthy", "maps": len(maps), "running_jobs": running}


@app.post("/maps/generate", response_model=JobResponse)
async def generate_map(request: MapGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start map generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    logger.info("Map generation requested", request=request.model_dump(mode="json"))

    if request.width > settings.max_map_width or request.height > settings.max_map_height:
        raise HTTPException(
            status_code=422,
            detail=f"Map size limited to {settings.max_map_width}x{settings.max_map_height}",
        )

    seed = request.seed if request.seed is not None else uuid.uuid4().int % 2**32
    try:
        params = WorldGenerationParams.from_mapping(
            {
                "seed": seed,
                "width": request.width,
                "height": request.height,
                "world_type": request.world_type,
                "climate": request.climate.model_dump(),
                "islands": request.islands.model_dump(),
                "terrain": request.terrain.model_dump(),
                "target_region_size": request.target_region_size,
            }
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    job_id = str(uuid.uuid4())
    job = JobResponse(
        job_id=job_id,
        status="pending",
        progress_percent=0,
        message="Map generation job started",
    )
    jobs[job_id] = job

    background_tasks.add_task(run_map_generation, job_id, params, request.map_name)
    return job


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of a map generation job."""
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.status == "failed":
        raise HTTPException(status_code=500, detail=job.error_message or "Map generation failed")
    return job


@app.get("/maps", response_model=List[MapSummary])
async def list_maps():
    """List all generated maps, newest first."""
    stored = sorted(maps.values(), key=lambda m: m.created_at, reverse=True)
    return [m.summary() for m in stored]


@app.get("/maps/{map_id}", response_model=MapSummary)
async def get_map(map_id: str):
    """Get map details."""
    return _get_map(map_id).summary()


@app.get("/maps/{map_id}/provinces", response_model=List[ProvinceInfo])
async def get_map_provinces(map_id: str):
    """Get all provinces of a map."""
    world = _get_map(map_id).world
    return [province_to_dict(p) for p in world.provinces]


@app.get("/maps/{map_id}/regions", response_model=List[RegionInfo])
async def get_map_regions(map_id: str):
    """Get all regions of a map."""
    world = _get_map(map_id).world
    return [region_to_dict(r) for r in world.regions]


@app.get("/maps/{map_id}/strategic-points", response_model=List[StrategicPointInfo])
async def get_map_strategic_points(map_id: str):
    """Get ports, estuaries and passes of a map."""
    world = _get_map(map_id).world
    return [strategic_point_to_dict(p) for p in world.strategic_points]


# Background task functions
def run_map_generation(job_id: str, params: WorldGenerationParams, map_name: Optional[str] = None):
    """
    Background task to generate a map.

    Runs in the worker thread pool; the number of concurrent generations is
    capped by max_concurrent_jobs.
    """
    job = jobs[job_id]
    logger.info("Starting map generation", job_id=job_id, seed=params.seed)

    with _job_slots:
        job.status = "running"
        job.progress_percent = 10
        job.message = "Job running"
        start = time.perf_counter()
        try:
            world = WorldGenerator(params).run()
        except Exception as e:
            logger.error("Map generation failed", job_id=job_id, error=str(e))
            job.status = "failed"
            job.message = "Job failed"
            job.error_message = str(e)
            return
        seconds = time.perf_counter() - start

    map_id = str(uuid.uuid4())
    name = map_name or f"{params.world_type.value} {params.seed}"
    maps[map_id] = _StoredMap(map_id, name, world, seconds)

    job.status = "completed"
    job.progress_percent = 100
    job.message = "Job completed"
    job.map_id = map_id
    logger.info("Map generation completed", job_id=job_id, map_id=map_id, seconds=round(seconds, 3))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
