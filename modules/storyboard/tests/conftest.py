"""
Pytest configuration and fixtures for storyboard tests.
"""

import pytest


@pytest.fixture
def make_scenes():
    """Build raw LLM scene dicts from a list of durations."""

    def make(durations, visual_type="ai-photo"):
        return [
            {
                "scene_number": index,
                "duration_seconds": duration,
                "visual_description": f"Scene {index} visual",
                "visual_type": visual_type,
                "narration_text": f"Scene {index} narration, sobrang sarap!",
                "onscreen_text": f"SCENE {index}",
                "ai_prompt": f"Scene {index} prompt, vertical 9:16",
            }
            for index, duration in enumerate(durations, start=1)
        ]

    return make
