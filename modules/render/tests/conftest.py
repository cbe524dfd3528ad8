"""
Pytest configuration and fixtures for render tests.
"""

import asyncio

import pytest
from modules.render.compositor import Compositor
from shared.models.scene import RenderRequest


class FakeCompositor(Compositor):
    """In-memory compositor that records calls and reports scripted progress."""

    def __init__(self, progress=(0.25, 0.5, 1.0), bundle_error=None, render_error=None):
        self.progress = progress
        self.bundle_error = bundle_error
        self.render_error = render_error
        self.bundle_calls = 0
        self.render_calls = []

    async def bundle(self) -> str:
        self.bundle_calls += 1
        await asyncio.sleep(0)
        if self.bundle_error is not None:
            raise self.bundle_error
        return "/tmp/remotion-bundle"

    async def render(self, bundle_location, composition_id, input_props, output_path, on_progress=None):
        self.render_calls.append(
            {
                "bundle_location": bundle_location,
                "composition_id": composition_id,
                "input_props": input_props,
                "output_path": output_path,
            }
        )
        for fraction in self.progress:
            if on_progress is not None:
                on_progress(fraction)
            await asyncio.sleep(0)
        if self.render_error is not None:
            raise self.render_error
        return output_path


@pytest.fixture
def fake_compositor():
    return FakeCompositor()


@pytest.fixture
def render_request():
    def scene(n, duration, visual_type, assets):
        return {
            "scene_number": n,
            "duration_seconds": duration,
            "visual_type": visual_type,
            "visual_description": f"Scene {n}",
            "narration_text": f"Narration {n}",
            "onscreen_text": f"TEXT {n}",
            "assets": assets,
        }

    return RenderRequest(
        storyboard_id="SB-T-042",
        topic_id="T-042",
        scenes=[
            scene(1, 5, "motion-graphics", {
                "voiceover_url": "http://localhost:3000/assets/a1.mp3",
                "motion_config": {"text": "HOOK", "duration": 5, "style": "branded"},
            }),
            scene(2, 25, "ai-photo", {
                "photo_url": "http://localhost:3000/assets/p2.jpg",
                "voiceover_url": "http://localhost:3000/assets/a2.mp3",
            }),
            scene(3, 30.5, "ai-video", {
                "video_url": "http://localhost:3000/assets/v3.mp4",
                "voiceover_url": "http://localhost:3000/assets/a3.mp3",
            }),
        ],
        branding={
            "logo_url": "http://localhost:3000/assets/logo.png",
            "primary_color": "#FF6B35",
            "secondary_color": "#004E89",
            "font_family": "Montserrat",
        },
    )


@pytest.fixture
def compositor_cls():
    return FakeCompositor
