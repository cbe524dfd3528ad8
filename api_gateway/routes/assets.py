"""
Asset generation endpoints.

Submit storyboard scenes for visual and voiceover generation and poll the job.
"""

from fastapi import APIRouter, Depends, Path, status

from api_gateway.dependencies import Services, get_services
from shared.errors import JobNotFoundError
from shared.logging import get_logger
from shared.models.scene import AssetGenerationRequest

logger = get_logger("api_gateway.assets")

router = APIRouter()


@router.post("/assets/generate", status_code=status.HTTP_202_ACCEPTED)
async def generate_assets(
    request: AssetGenerationRequest,
    services: Services = Depends(get_services)
):
    """
    Start asset generation for every scene of a storyboard.

    Returns:
        Job reference with the status URL to poll
    """
    job_id = services.assets.start_generation(request)

    logger.info(
        "Asset generation requested",
        extra={
            "job_id": job_id,
            "storyboard_id": request.storyboard_id,
            "scene_count": len(request.scenes),
        }
    )

    return {
        "job_id": job_id,
        "status": "queued",
        "storyboard_id": request.storyboard_id,
        "scene_count": len(request.scenes),
        "status_url": f"/api/v1/assets/generate/{job_id}",
    }


@router.get("/assets/generate/{job_id}")
async def get_asset_job(
    job_id: str = Path(...),
    services: Services = Depends(get_services)
):
    job = services.assets.get_job(job_id)
    if job is None:
        raise JobNotFoundError(f"Asset generation job {job_id} not found", job_id=job_id)
    return job.model_dump(mode="json")
