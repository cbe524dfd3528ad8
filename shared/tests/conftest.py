"""
Pytest configuration and fixtures.
"""

import pytest


@pytest.fixture
def sleep_recorder():
    """Awaitable sleep stub that records requested intervals instead of waiting."""
    calls = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    fake_sleep.calls = calls
    return fake_sleep


@pytest.fixture
def raw_scene():
    """Factory for raw scene dicts as they come back from the LLM."""

    def make(scene_number: int = 1, duration_seconds=5, **overrides):
        scene = {
            "scene_number": scene_number,
            "duration_seconds": duration_seconds,
            "visual_description": "Close-up of a savings jar filling with coins",
            "visual_type": "ai-photo",
            "narration_text": "Alam mo ba na kaya mong mag-ipon kahit maliit ang sahod?",
            "onscreen_text": "IPON TIPS",
            "ai_prompt": "A glass jar filling with coins, warm light, vertical 9:16",
        }
        scene.update(overrides)
        return scene

    return make
