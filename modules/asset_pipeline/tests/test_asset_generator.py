"""
Tests for the asset generation pipeline.

The provider client and asset store are replaced with AsyncMocks; the
background runner is real so jobs run exactly as they do in the server.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError
from modules.asset_pipeline import AssetGenerator, VoiceSettings
from shared.background import BackgroundRunner
from shared.errors import ProviderTaskFailedError, StorageError
from shared.job_registry import JobRegistry
from shared.models.job import AssetGenerationJob
from shared.models.scene import AssetGenerationRequest
from shared.storage import PersistedAsset

BASE_URL = "http://localhost:3000"


def scene(scene_number, visual_type="ai-photo", **overrides):
    data = {
        "scene_number": scene_number,
        "duration_seconds": 5,
        "visual_type": visual_type,
        "visual_description": f"Scene {scene_number} visual",
        "narration_text": f"Narration for scene {scene_number}",
        "onscreen_text": f"TEXT {scene_number}",
        "ai_prompt": f"Prompt for scene {scene_number}",
    }
    data.update(overrides)
    return data


@pytest.fixture
def provider():
    provider = MagicMock()
    provider.generate_video = AsyncMock(return_value=["https://tempfile.kie.ai/v.mp4"])
    provider.generate_photo = AsyncMock(return_value=["https://tempfile.kie.ai/p.png"])
    provider.generate_voiceover = AsyncMock(return_value=["https://tempfile.kie.ai/a.mp3"])
    return provider


@pytest.fixture
def asset_store():
    async def persist(url, filename):
        return PersistedAsset(path=f"/srv/assets/{filename}", public_url=f"{BASE_URL}/assets/{filename}")

    store = MagicMock()
    store.persist = AsyncMock(side_effect=persist)
    return store


@pytest.fixture
def runner():
    return BackgroundRunner()


@pytest.fixture
def generator(provider, asset_store, runner):
    return AssetGenerator(JobRegistry(AssetGenerationJob), provider, asset_store, runner)


@pytest.mark.asyncio
async def test_start_generation_returns_queued_job(generator, runner):
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1), scene(2)])

    job_id = generator.start_generation(request)
    job = generator.get_job(job_id)

    assert job.status == "queued"
    assert job.storyboard_id == "SB-1"
    assert [s.scene_number for s in job.scenes] == [1, 2]
    assert all(s.visual_status == "pending" and s.voiceover_status == "pending" for s in job.scenes)

    await runner.wait_idle()


@pytest.mark.asyncio
async def test_all_visual_types_complete(generator, runner, provider):
    request = AssetGenerationRequest(
        storyboard_id="SB-1",
        scenes=[
            scene(1, "ai-video"),
            scene(2, "ai-photo"),
            scene(3, "motion-graphics", onscreen_text=None, duration_seconds=4),
        ],
    )

    job_id = generator.start_generation(request)
    await runner.wait_idle()
    job = generator.get_job(job_id)

    assert job.status == "completed"
    assert job.error is None
    assert job.started_at is not None
    assert job.completed_at is not None

    video, photo, motion = job.scenes
    assert video.video_url == f"{BASE_URL}/assets/{job_id}-scene1-video.mp4"
    assert photo.photo_url == f"{BASE_URL}/assets/{job_id}-scene2-photo.jpg"
    assert motion.motion_config == {"text": "Scene 3 visual", "duration": 4, "style": "branded"}
    for status in job.scenes:
        assert status.visual_status == "done"
        assert status.voiceover_status == "done"
        assert status.voiceover_url == f"{BASE_URL}/assets/{job_id}-scene{status.scene_number}-voiceover.mp3"

    provider.generate_video.assert_awaited_once()
    provider.generate_photo.assert_awaited_once()
    assert provider.generate_voiceover.await_count == 3


@pytest.mark.asyncio
async def test_one_failed_scene_does_not_stop_the_others(generator, runner, provider):
    provider.generate_photo = AsyncMock(
        side_effect=[
            ["https://tempfile.kie.ai/1.png"],
            ProviderTaskFailedError("Task t2 (photo-generation) failed: content policy"),
            ["https://tempfile.kie.ai/3.png"],
        ]
    )
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1), scene(2), scene(3)])

    job_id = generator.start_generation(request)
    await runner.wait_idle()
    job = generator.get_job(job_id)

    assert job.status == "failed"
    assert job.error == "1 of 3 scenes failed"

    first, second, third = job.scenes
    assert first.visual_status == "done" and first.photo_url
    assert third.visual_status == "done" and third.photo_url
    assert second.visual_status == "failed"
    assert second.photo_url is None
    assert second.error == "Visual: Task t2 (photo-generation) failed: content policy"
    # the voiceover branch of the failed scene still ran to completion
    assert second.voiceover_status == "done"
    assert second.voiceover_url is not None


@pytest.mark.asyncio
async def test_both_branches_failing_counts_scene_once(generator, runner, provider, asset_store):
    provider.generate_video = AsyncMock(side_effect=ProviderTaskFailedError("video boom"))
    provider.generate_voiceover = AsyncMock(side_effect=StorageError("voice boom"))
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1, "ai-video"), scene(2, "motion-graphics")])

    job_id = generator.start_generation(request)
    await runner.wait_idle()
    job = generator.get_job(job_id)

    assert job.status == "failed"
    assert job.error == "2 of 2 scenes failed"
    first = job.scenes[0]
    assert first.visual_status == "failed"
    assert first.voiceover_status == "failed"
    assert first.error == "Visual: video boom; Voiceover: voice boom"


@pytest.mark.asyncio
async def test_persist_failure_is_scene_level(generator, runner, asset_store):
    async def persist(url, filename):
        if filename.endswith("-photo.jpg"):
            raise StorageError(f"Failed to download asset from {url}: 403 Forbidden")
        return PersistedAsset(path=filename, public_url=f"{BASE_URL}/assets/{filename}")

    asset_store.persist = AsyncMock(side_effect=persist)
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1), scene(2, "motion-graphics")])

    job_id = generator.start_generation(request)
    await runner.wait_idle()
    job = generator.get_job(job_id)

    assert job.error == "1 of 2 scenes failed"
    assert job.scenes[0].visual_status == "failed"
    assert "403 Forbidden" in job.scenes[0].error
    assert job.scenes[1].visual_status == "done"


@pytest.mark.asyncio
async def test_scenes_run_sequentially(generator, runner, provider):
    active = 0
    max_active = 0

    async def slow_photo(_input):
        nonlocal active, max_active
        active += 1
        max_active = max(max_active, active)
        await asyncio.sleep(0.01)
        active -= 1
        return ["https://tempfile.kie.ai/p.png"]

    provider.generate_photo = AsyncMock(side_effect=slow_photo)
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(n) for n in range(1, 5)])

    generator.start_generation(request)
    await runner.wait_idle()

    assert provider.generate_photo.await_count == 4
    assert max_active == 1


@pytest.mark.asyncio
async def test_voiceover_uses_voice_settings(provider, asset_store, runner):
    generator = AssetGenerator(
        JobRegistry(AssetGenerationJob),
        provider,
        asset_store,
        runner,
        voice=VoiceSettings(voice="Adam", speed=1.1),
    )
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1, "motion-graphics")])

    generator.start_generation(request)
    await runner.wait_idle()

    voice_input = provider.generate_voiceover.await_args.args[0]
    assert voice_input.text == "Narration for scene 1"
    assert voice_input.voice == "Adam"
    assert voice_input.speed == 1.1
    assert voice_input.stability == 0.5


@pytest.mark.asyncio
async def test_process_job_for_swept_job_is_noop(generator):
    request = AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1)])

    await generator.process_job("missing", request)

    assert generator.get_job("missing") is None


def test_duplicate_scene_numbers_are_rejected():
    with pytest.raises(PydanticValidationError, match="Duplicate scene_number: 2"):
        AssetGenerationRequest(storyboard_id="SB-1", scenes=[scene(1), scene(2), scene(2, "ai-video")])
