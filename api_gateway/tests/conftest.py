"""
Pytest configuration and fixtures for API Gateway tests.

Services are built with fake collaborators: a scripted provider, a fake LLM,
an in-memory compositor and an httpx.MockTransport for asset downloads.
"""

import json
import time
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from api_gateway.dependencies import build_services
from api_gateway.main import create_app
from modules.render.compositor import Compositor
from shared.config import Settings

TERMINAL = ("completed", "failed")


class FileCompositor(Compositor):
    """Compositor that writes a placeholder video file."""

    def __init__(self):
        self.bundle_calls = 0

    async def bundle(self) -> str:
        self.bundle_calls += 1
        return "/tmp/bundle"

    async def render(self, bundle_location, composition_id, input_props, output_path, on_progress=None):
        if on_progress is not None:
            on_progress(0.5)
            on_progress(1.0)
        Path(output_path).write_bytes(b"fake-mp4")
        return output_path


def storyboard_scenes(durations):
    return [
        {
            "scene_number": n,
            "duration_seconds": d,
            "visual_description": f"Scene {n}",
            "visual_type": "ai-photo" if n % 2 else "motion-graphics",
            "narration_text": f"Narration {n}",
            "onscreen_text": f"TEXT {n}",
            "ai_prompt": f"Prompt {n}",
        }
        for n, d in enumerate(durations, start=1)
    ]


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        environment="test",
        log_level="DEBUG",
        render_base_url="http://testserver",
        assets_dir=str(tmp_path / "assets"),
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def mock_provider():
    provider = MagicMock()
    provider.generate_video = AsyncMock(return_value=["https://tempfile.kie.ai/v.mp4"])
    provider.generate_photo = AsyncMock(return_value=["https://tempfile.kie.ai/p.png"])
    provider.generate_voiceover = AsyncMock(return_value=["https://tempfile.kie.ai/a.mp3"])
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def mock_llm():
    content = json.dumps({"scenes": storyboard_scenes([10, 10, 10, 10, 13, 5])})
    llm = MagicMock()
    llm.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    )
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def compositor():
    return FileCompositor()


@pytest.fixture
def services(test_settings, mock_provider, mock_llm, compositor):
    def download(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=f"bytes of {request.url.path}".encode())

    return build_services(
        test_settings,
        compositor=compositor,
        provider=mock_provider,
        llm_client=mock_llm,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(download)),
    )


@pytest.fixture
def client(test_settings, services):
    """Test client with the lifespan running."""
    app = create_app(test_settings, services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def wait_for_job():
    """Poll a status URL until the job reaches a terminal status."""

    def wait(client, status_url, timeout=5.0):
        deadline = time.monotonic() + timeout
        while True:
            response = client.get(status_url)
            assert response.status_code == 200
            body = response.json()
            if body["status"] in TERMINAL or time.monotonic() > deadline:
                return body
            time.sleep(0.01)

    return wait
