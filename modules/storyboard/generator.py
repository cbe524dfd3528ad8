"""
Storyboard generation.

Calls the LLM for a scene-by-scene storyboard, parses the JSON response and
normalizes scene durations to the fixed video length.
"""

import json
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from modules.storyboard.normalizer import (
    DEFAULT_BOUNDS,
    DEFAULT_TARGET_SECONDS,
    normalize_durations,
)
from modules.storyboard.prompts import build_system_prompt, build_user_prompt
from shared.background import BackgroundRunner
from shared.errors import StoryboardError
from shared.job_registry import JobRegistry
from shared.logging import get_logger, set_job_id
from shared.models.job import StoryboardGenerationJob, utc_now
from shared.models.scene import StoryboardGenerationRequest, StoryboardScene

logger = get_logger("storyboard")


def storyboard_id_for(topic_id: str) -> str:
    return f"SB-{topic_id}"


def parse_storyboard_response(content: Optional[str]) -> List[Dict[str, Any]]:
    """
    Extract the raw scene list from the LLM's JSON answer.

    Raises:
        StoryboardError: If the content is not JSON or has no scenes array
    """
    if not content:
        raise StoryboardError("LLM returned an empty response")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise StoryboardError("Failed to parse LLM JSON response") from e

    scenes = payload.get("scenes") if isinstance(payload, dict) else None
    if not isinstance(scenes, list):
        raise StoryboardError("LLM response missing scenes array")
    return scenes


class StoryboardGenerator:
    """Manages storyboard generation jobs."""

    def __init__(
        self,
        registry: JobRegistry[StoryboardGenerationJob],
        llm_client: Optional[AsyncOpenAI],
        runner: BackgroundRunner,
        model: str = "gpt-4o",
        target_seconds: int = DEFAULT_TARGET_SECONDS,
        bounds: Tuple[int, int] = DEFAULT_BOUNDS,
        temperature: float = 0.7
    ):
        """
        Initialize storyboard generator.

        Args:
            registry: Storyboard job registry
            llm_client: OpenAI client, or None when no API key is configured
            runner: Background runner for job tasks
            model: Chat completion model
            target_seconds: Required total video length
            bounds: Inclusive (min, max) scene duration
            temperature: Sampling temperature
        """
        self.registry = registry
        self.llm_client = llm_client
        self.runner = runner
        self.model = model
        self.target_seconds = target_seconds
        self.bounds = bounds
        self.temperature = temperature

        if llm_client is None:
            logger.warning("OPENAI_API_KEY not set - storyboard generation will fail")

    def start_generation(self, request: StoryboardGenerationRequest) -> str:
        """
        Create a storyboard job and start processing it in the background.

        Returns:
            Job ID for polling
        """
        job = self.registry.create(
            topic_id=request.topic_id,
            topic_title=request.topic_title,
            storyboard_id=storyboard_id_for(request.topic_id),
        )

        logger.info(
            "Storyboard generation job created",
            extra={"job_id": job.id, "topic_id": request.topic_id, "storyboard_id": job.storyboard_id}
        )

        self.runner.spawn(self.process_job(job.id, request), job_id=job.id, name=f"storyboard-{job.id}")
        return job.id

    def get_job(self, job_id: str) -> Optional[StoryboardGenerationJob]:
        return self.registry.get(job_id)

    def cleanup_old_jobs(self, max_age: timedelta) -> int:
        return self.registry.sweep(max_age)

    async def process_job(self, job_id: str, request: StoryboardGenerationRequest) -> None:
        set_job_id(job_id)
        if self.registry.get(job_id) is None:
            logger.error("Job not found in process_job", extra={"job_id": job_id})
            return

        self.registry.update(job_id, status="generating", started_at=utc_now())
        logger.info(
            "Starting storyboard generation",
            extra={"job_id": job_id, "topic_id": request.topic_id, "topic_title": request.topic_title}
        )

        try:
            scenes = await self.generate_storyboard(request)
        except Exception as e:
            self.registry.update(job_id, status="failed", error=str(e), completed_at=utc_now())
            logger.error(
                "Storyboard generation failed",
                exc_info=e,
                extra={"job_id": job_id, "topic_id": request.topic_id}
            )
            return

        self.registry.update(job_id, status="completed", scenes=scenes, completed_at=utc_now())
        logger.info(
            "Storyboard generation completed successfully",
            extra={"job_id": job_id, "topic_id": request.topic_id, "scene_count": len(scenes)}
        )

    async def generate_storyboard(self, request: StoryboardGenerationRequest) -> List[StoryboardScene]:
        """
        Ask the LLM for a storyboard and normalize its durations.

        Raises:
            StoryboardError: Missing client, unusable LLM output
            ValidationError: A scene is malformed
        """
        if self.llm_client is None:
            raise StoryboardError("OPENAI_API_KEY environment variable is not set")

        min_seconds, max_seconds = self.bounds
        logger.info("Calling OpenAI API", extra={"topic_id": request.topic_id, "model": self.model})

        response = await self.llm_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": build_system_prompt(self.target_seconds, min_seconds, max_seconds)},
                {"role": "user", "content": build_user_prompt(request, self.target_seconds)},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
        )

        if not response.choices:
            raise StoryboardError("LLM returned no choices")
        content = response.choices[0].message.content

        logger.info(
            "OpenAI API response received",
            extra={"topic_id": request.topic_id, "response_length": len(content or "")}
        )

        raw_scenes = parse_storyboard_response(content)
        return normalize_durations(raw_scenes, self.target_seconds, self.bounds)
