"""
Render orchestration.

Drives one render job through bundling -> rendering -> completed/failed
against the compositor, forwarding render progress into the job registry.
"""

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Optional

from modules.render.compositor import Compositor
from shared.background import BackgroundRunner
from shared.job_registry import JobRegistry
from shared.logging import get_logger, set_job_id
from shared.models.job import RenderJob, utc_now
from shared.models.scene import RenderRequest

logger = get_logger("render")


class RenderService:
    """Render job orchestrator with a memoized compositor bundle."""

    def __init__(
        self,
        registry: JobRegistry[RenderJob],
        compositor: Compositor,
        runner: BackgroundRunner,
        output_dir: str,
        base_url: str,
        composition_id: str = "KatboxVideo"
    ):
        self.registry = registry
        self.compositor = compositor
        self.runner = runner
        self.output_dir = Path(output_dir).resolve()
        self.base_url = base_url.rstrip("/")
        self.composition_id = composition_id
        self._bundle_location: Optional[str] = None
        self._bundle_lock = asyncio.Lock()

    @property
    def bundle_ready(self) -> bool:
        return self._bundle_location is not None

    async def ensure_bundle(self) -> str:
        """
        Build the compositor bundle once per process and reuse it.

        Concurrent callers wait on the same build. A failed build is not
        cached, so a later job may try again.
        """
        if self._bundle_location is not None:
            return self._bundle_location

        async with self._bundle_lock:
            if self._bundle_location is None:
                await asyncio.to_thread(self.output_dir.mkdir, parents=True, exist_ok=True)
                self._bundle_location = await self.compositor.bundle()
        return self._bundle_location

    def start_render(self, request: RenderRequest) -> RenderJob:
        """
        Create a render job and start rendering in the background.

        Returns:
            The queued job
        """
        job = self.registry.create(
            storyboard_id=request.storyboard_id,
            scene_count=len(request.scenes),
            total_duration_seconds=request.total_duration_seconds,
        )
        self.runner.spawn(self.run_render(job.id, request), job_id=job.id, name=f"render-{job.id}")
        return job

    def get_job(self, job_id: str) -> Optional[RenderJob]:
        return self.registry.get(job_id)

    def cleanup_old_jobs(self, max_age: timedelta) -> int:
        return self.registry.sweep(max_age)

    def download_url(self, job_id: str) -> str:
        return f"{self.base_url}/output/{job_id}.mp4"

    async def run_render(self, job_id: str, request: RenderRequest) -> None:
        """
        Render one job. Never raises: every failure ends up on the job.

        Args:
            job_id: Render job ID
            request: Scenes and branding to render
        """
        set_job_id(job_id)
        try:
            self.registry.update(job_id, status="bundling")
            logger.info(
                "Starting render",
                extra={"job_id": job_id, "storyboard_id": request.storyboard_id}
            )

            bundle_location = await self.ensure_bundle()

            self.registry.update(job_id, status="rendering", started_at=utc_now())

            output_path = str(self.output_dir / f"{job_id}.mp4")
            input_props = {
                "scenes": [scene.model_dump(mode="json") for scene in request.scenes],
                "branding": request.branding.model_dump(mode="json"),
            }

            def on_progress(fraction: float) -> None:
                self.registry.update(job_id, progress=round(fraction * 100))

            await self.compositor.render(
                bundle_location,
                self.composition_id,
                input_props,
                output_path,
                on_progress,
            )

            download_url = self.download_url(job_id)
            self.registry.update(
                job_id,
                status="completed",
                completed_at=utc_now(),
                output_path=output_path,
                download_url=download_url,
                progress=100,
            )
            logger.info(
                "Render completed",
                extra={"job_id": job_id, "output_path": output_path, "download_url": download_url}
            )

        except Exception as e:
            error_message = str(e) or e.__class__.__name__
            logger.error("Render failed", exc_info=e, extra={"job_id": job_id, "error": error_message})
            self.registry.update(
                job_id,
                status="failed",
                error=error_message,
                completed_at=utc_now(),
            )
