"""
Render endpoints.

Submit scenes with materialized assets for rendering and poll the job.
"""

from fastapi import APIRouter, Depends, Path, status

from api_gateway.dependencies import Services, get_services
from shared.errors import JobNotFoundError
from shared.logging import get_logger
from shared.models.scene import RenderRequest

logger = get_logger("api_gateway.render")

router = APIRouter()


@router.post("/render", status_code=status.HTTP_202_ACCEPTED)
async def start_render(
    request: RenderRequest,
    services: Services = Depends(get_services)
):
    """
    Start rendering a video.

    Returns:
        Job reference with the status URL to poll
    """
    job = services.render.start_render(request)

    logger.info(
        "Render requested",
        extra={
            "job_id": job.id,
            "storyboard_id": request.storyboard_id,
            "scene_count": job.scene_count,
            "total_duration_seconds": job.total_duration_seconds,
        }
    )

    return {
        "job_id": job.id,
        "status": "queued",
        "storyboard_id": job.storyboard_id,
        "scene_count": job.scene_count,
        "total_duration_seconds": job.total_duration_seconds,
        "status_url": f"/api/v1/render/{job.id}",
    }


@router.get("/render/{job_id}")
async def get_render_job(
    job_id: str = Path(...),
    services: Services = Depends(get_services)
):
    job = services.render.get_job(job_id)
    if job is None:
        raise JobNotFoundError(f"Render job {job_id} not found", job_id=job_id)
    return job.model_dump(mode="json")
