"""
FastAPI dependencies.

Service construction at startup and per-request service lookup.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from fastapi import Request
from openai import AsyncOpenAI

from modules.asset_pipeline import AssetGenerator
from modules.provider_client import KieAiClient
from modules.render import Compositor, RemotionCompositor, RenderService
from modules.storyboard import StoryboardGenerator
from shared.background import BackgroundRunner
from shared.config import Settings
from shared.job_registry import JobRegistry
from shared.logging import get_logger
from shared.models.job import AssetGenerationJob, RenderJob, StoryboardGenerationJob
from shared.polling import PollConfig
from shared.storage import AssetStore

logger = get_logger("api_gateway.dependencies")


@dataclass
class Services:
    """Everything the routes and the sweep worker need, built once per process."""

    settings: Settings
    runner: BackgroundRunner
    storyboard_jobs: JobRegistry[StoryboardGenerationJob]
    asset_jobs: JobRegistry[AssetGenerationJob]
    render_jobs: JobRegistry[RenderJob]
    storyboard: StoryboardGenerator
    assets: AssetGenerator
    render: RenderService
    provider: KieAiClient
    http_client: httpx.AsyncClient
    llm_client: Optional[AsyncOpenAI] = None

    @property
    def registries(self) -> Dict[str, JobRegistry]:
        return {
            registry.name: registry
            for registry in (self.storyboard_jobs, self.asset_jobs, self.render_jobs)
        }

    async def aclose(self) -> None:
        """Stop background jobs and release HTTP clients."""
        await self.runner.shutdown()
        await self.provider.aclose()
        await self.http_client.aclose()
        if self.llm_client is not None:
            await self.llm_client.close()


def build_services(
    settings: Settings,
    compositor: Optional[Compositor] = None,
    provider: Optional[KieAiClient] = None,
    llm_client: Optional[AsyncOpenAI] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> Services:
    """
    Wire registries, clients and generators from settings.

    Args:
        settings: Application settings
        compositor: Compositor override (Remotion CLI otherwise)
        provider: Provider client override
        llm_client: LLM client override (built from OPENAI_API_KEY otherwise)
        http_client: HTTP client used for asset downloads

    Returns:
        Services container
    """
    runner = BackgroundRunner()
    http_client = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(120.0, connect=10.0),
        follow_redirects=True,
    )

    if provider is None:
        provider = KieAiClient(
            api_key=settings.kie_ai_api_key,
            base_url=settings.kie_ai_base_url,
            poll_config=PollConfig(
                initial_interval=settings.poll_initial_interval,
                max_interval=settings.poll_max_interval,
                backoff_multiplier=settings.poll_backoff_multiplier,
                max_attempts=settings.poll_max_attempts,
            ),
        )

    if llm_client is None and settings.openai_api_key:
        llm_client = AsyncOpenAI(api_key=settings.openai_api_key)

    if compositor is None:
        compositor = RemotionCompositor(
            entry_point=settings.remotion_entry_point,
            bundle_dir=f"{settings.output_dir}/.bundle",
        )

    storyboard_jobs = JobRegistry(StoryboardGenerationJob)
    asset_jobs = JobRegistry(AssetGenerationJob)
    render_jobs = JobRegistry(RenderJob)

    storyboard = StoryboardGenerator(
        registry=storyboard_jobs,
        llm_client=llm_client,
        runner=runner,
        model=settings.openai_model,
        target_seconds=settings.storyboard_target_seconds,
        bounds=(settings.scene_min_seconds, settings.scene_max_seconds),
    )
    assets = AssetGenerator(
        registry=asset_jobs,
        provider=provider,
        asset_store=AssetStore(settings.assets_dir, settings.render_base_url, http_client),
        runner=runner,
    )
    render = RenderService(
        registry=render_jobs,
        compositor=compositor,
        runner=runner,
        output_dir=settings.output_dir,
        base_url=settings.render_base_url,
        composition_id=settings.composition_id,
    )

    logger.info(
        "Services initialized",
        extra={
            "environment": settings.environment,
            "llm_configured": llm_client is not None,
            "provider_configured": bool(settings.kie_ai_api_key),
        }
    )

    return Services(
        settings=settings,
        runner=runner,
        storyboard_jobs=storyboard_jobs,
        asset_jobs=asset_jobs,
        render_jobs=render_jobs,
        storyboard=storyboard,
        assets=assets,
        render=render,
        provider=provider,
        http_client=http_client,
        llm_client=llm_client,
    )


def get_services(request: Request) -> Services:
    """Return the services built by the application lifespan."""
    return request.app.state.services
