"""
Storyboard endpoints.

Submit a topic for storyboard generation and poll the job.
"""

from fastapi import APIRouter, Depends, Path, status

from api_gateway.dependencies import Services, get_services
from modules.storyboard.generator import storyboard_id_for
from shared.errors import JobNotFoundError
from shared.logging import get_logger
from shared.models.scene import StoryboardGenerationRequest

logger = get_logger("api_gateway.storyboard")

router = APIRouter()


@router.post("/storyboard/generate", status_code=status.HTTP_202_ACCEPTED)
async def generate_storyboard(
    request: StoryboardGenerationRequest,
    services: Services = Depends(get_services)
):
    """
    Start storyboard generation for a topic.

    Returns:
        Job reference with the status URL to poll
    """
    job_id = services.storyboard.start_generation(request)
    storyboard_id = storyboard_id_for(request.topic_id)

    logger.info(
        "Storyboard generation requested",
        extra={"job_id": job_id, "topic_id": request.topic_id, "storyboard_id": storyboard_id}
    )

    return {
        "job_id": job_id,
        "status": "queued",
        "storyboard_id": storyboard_id,
        "status_url": f"/api/v1/storyboard/generate/{job_id}",
    }


@router.get("/storyboard/generate/{job_id}")
async def get_storyboard_job(
    job_id: str = Path(...),
    services: Services = Depends(get_services)
):
    job = services.storyboard.get_job(job_id)
    if job is None:
        raise JobNotFoundError(f"Storyboard job {job_id} not found", job_id=job_id)
    return job.model_dump(mode="json")
