"""
Asset generation pipeline.

Turns a storyboard into per-scene media. Scenes run strictly one after
another to respect provider rate limits; inside a scene the visual and the
voiceover run concurrently and both are awaited even if one fails. A failed
branch only marks its own sub-status, so the rest of the storyboard keeps
going and successful scenes are kept.
"""

import asyncio
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel

from modules.provider_client.client import KieAiClient
from shared.background import BackgroundRunner
from shared.job_registry import JobRegistry
from shared.logging import get_logger, set_job_id
from shared.models.job import AssetGenerationJob, utc_now
from shared.models.provider import PhotoInput, VideoInput, VoiceoverInput
from shared.models.scene import (
    AssetGenerationRequest,
    AssetSceneInput,
    AssetSceneStatus,
)
from shared.storage import AssetStore

logger = get_logger("asset_pipeline")

MOTION_GRAPHICS_STYLE = "branded"


class VoiceSettings(BaseModel):
    voice: str = "Rachel"
    stability: float = 0.5
    similarity_boost: float = 0.75
    speed: float = 1.0


class AssetGenerator:
    """Manages asset generation jobs and orchestrates provider calls per scene."""

    def __init__(
        self,
        registry: JobRegistry[AssetGenerationJob],
        provider: KieAiClient,
        asset_store: AssetStore,
        runner: BackgroundRunner,
        voice: Optional[VoiceSettings] = None
    ):
        self.registry = registry
        self.provider = provider
        self.asset_store = asset_store
        self.runner = runner
        self.voice = voice or VoiceSettings()

    def start_generation(self, request: AssetGenerationRequest) -> str:
        """
        Create an asset generation job and start processing it in the background.

        Args:
            request: Storyboard id and scene definitions

        Returns:
            Job ID for polling
        """
        job = self.registry.create(
            storyboard_id=request.storyboard_id,
            scenes=[
                AssetSceneStatus(
                    scene_number=scene.scene_number,
                    visual_type=scene.visual_type,
                )
                for scene in request.scenes
            ],
        )

        logger.info(
            "Asset generation job created",
            extra={
                "job_id": job.id,
                "storyboard_id": request.storyboard_id,
                "scene_count": len(request.scenes),
            }
        )

        self.runner.spawn(self.process_job(job.id, request), job_id=job.id, name=f"assets-{job.id}")
        return job.id

    def get_job(self, job_id: str) -> Optional[AssetGenerationJob]:
        return self.registry.get(job_id)

    def cleanup_old_jobs(self, max_age: timedelta) -> int:
        return self.registry.sweep(max_age)

    async def process_job(self, job_id: str, request: AssetGenerationRequest) -> None:
        """
        Generate all scenes of a job and aggregate the outcome.

        Args:
            job_id: Job ID
            request: Original generation request
        """
        set_job_id(job_id)
        job = self.registry.get(job_id)
        if job is None:
            logger.error("Job not found in process_job", extra={"job_id": job_id})
            return

        self.registry.update(job_id, status="generating", started_at=utc_now())
        logger.info(
            "Starting asset generation",
            extra={
                "job_id": job_id,
                "storyboard_id": request.storyboard_id,
                "scene_count": len(request.scenes),
            }
        )

        try:
            failed_scenes = 0
            for scene_input, scene_status in zip(request.scenes, job.scenes):
                if not await self.process_scene(job_id, scene_input, scene_status):
                    failed_scenes += 1
        except Exception as e:
            logger.error("Asset generation aborted", exc_info=e, extra={"job_id": job_id})
            self.registry.update(
                job_id,
                status="failed",
                error=f"Asset generation aborted: {str(e)}",
                completed_at=utc_now(),
            )
            return

        total = len(request.scenes)
        if failed_scenes == 0:
            self.registry.update(job_id, status="completed", completed_at=utc_now())
            logger.info(
                "Asset generation completed successfully",
                extra={"job_id": job_id, "storyboard_id": request.storyboard_id}
            )
        else:
            self.registry.update(
                job_id,
                status="failed",
                error=f"{failed_scenes} of {total} scenes failed",
                completed_at=utc_now(),
            )
            logger.error(
                "Asset generation completed with failures",
                extra={
                    "job_id": job_id,
                    "storyboard_id": request.storyboard_id,
                    "failed_scenes": failed_scenes,
                    "total_scenes": total,
                }
            )

    async def process_scene(
        self,
        job_id: str,
        scene_input: AssetSceneInput,
        scene_status: AssetSceneStatus
    ) -> bool:
        """
        Run visual and voiceover generation for one scene.

        Both branches are awaited to completion; a failure in one never
        cancels the other.

        Returns:
            True if both branches succeeded
        """
        logger.info(
            "Processing scene",
            extra={
                "job_id": job_id,
                "scene_number": scene_input.scene_number,
                "visual_type": scene_input.visual_type,
            }
        )

        visual_result, voiceover_result = await asyncio.gather(
            self.generate_visual(job_id, scene_input, scene_status),
            self.generate_voiceover(job_id, scene_input, scene_status),
            return_exceptions=True,
        )

        if isinstance(visual_result, BaseException):
            logger.error(
                "Visual generation failed",
                extra={
                    "job_id": job_id,
                    "scene_number": scene_input.scene_number,
                    "error": str(visual_result),
                }
            )
            scene_status.visual_status = "failed"
            scene_status.add_error(f"Visual: {visual_result}")

        if isinstance(voiceover_result, BaseException):
            logger.error(
                "Voiceover generation failed",
                extra={
                    "job_id": job_id,
                    "scene_number": scene_input.scene_number,
                    "error": str(voiceover_result),
                }
            )
            scene_status.voiceover_status = "failed"
            scene_status.add_error(f"Voiceover: {voiceover_result}")

        return not scene_status.has_failure

    async def generate_visual(
        self,
        job_id: str,
        scene_input: AssetSceneInput,
        scene_status: AssetSceneStatus
    ) -> None:
        """Generate the visual asset for a scene according to its visual type."""
        scene_status.visual_status = "generating"
        scene_id = self._scene_id(job_id, scene_input)

        if scene_input.visual_type == "ai-video":
            logger.info(
                "Generating AI video",
                extra={"job_id": job_id, "scene_number": scene_input.scene_number}
            )
            result_urls = await self.provider.generate_video(
                VideoInput(prompt=scene_input.ai_prompt, aspect_ratio="9:16", duration="5", sound=False)
            )
            persisted = await self.asset_store.persist(result_urls[0], f"{scene_id}-video.mp4")
            scene_status.video_url = persisted.public_url

        elif scene_input.visual_type == "ai-photo":
            logger.info(
                "Generating AI photo",
                extra={"job_id": job_id, "scene_number": scene_input.scene_number}
            )
            result_urls = await self.provider.generate_photo(
                PhotoInput(prompt=scene_input.ai_prompt, aspect_ratio="9:16", resolution="1K")
            )
            persisted = await self.asset_store.persist(result_urls[0], f"{scene_id}-photo.jpg")
            scene_status.photo_url = persisted.public_url

        else:
            # motion-graphics are rendered by the compositor from this config
            scene_status.motion_config = {
                "text": scene_input.onscreen_text or scene_input.visual_description,
                "duration": scene_input.duration_seconds,
                "style": MOTION_GRAPHICS_STYLE,
            }

        scene_status.visual_status = "done"
        logger.info(
            "Visual generated",
            extra={
                "job_id": job_id,
                "scene_number": scene_input.scene_number,
                "visual_type": scene_input.visual_type,
            }
        )

    async def generate_voiceover(
        self,
        job_id: str,
        scene_input: AssetSceneInput,
        scene_status: AssetSceneStatus
    ) -> None:
        """Generate and persist the narration audio for a scene."""
        scene_status.voiceover_status = "generating"
        scene_id = self._scene_id(job_id, scene_input)

        logger.info(
            "Generating voiceover",
            extra={"job_id": job_id, "scene_number": scene_input.scene_number}
        )

        result_urls = await self.provider.generate_voiceover(
            VoiceoverInput(
                text=scene_input.narration_text,
                voice=self.voice.voice,
                stability=self.voice.stability,
                similarity_boost=self.voice.similarity_boost,
                speed=self.voice.speed,
            )
        )
        persisted = await self.asset_store.persist(result_urls[0], f"{scene_id}-voiceover.mp3")

        scene_status.voiceover_url = persisted.public_url
        scene_status.voiceover_status = "done"

        logger.info(
            "Voiceover generated",
            extra={
                "job_id": job_id,
                "scene_number": scene_input.scene_number,
                "voiceover_url": scene_status.voiceover_url,
            }
        )

    @staticmethod
    def _scene_id(job_id: str, scene_input: AssetSceneInput) -> str:
        return f"{job_id}-scene{scene_input.scene_number}"
