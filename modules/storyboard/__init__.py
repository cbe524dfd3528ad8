"""
Storyboard Module.

LLM storyboard generation and scene duration normalization.
"""

from modules.storyboard.generator import StoryboardGenerator, parse_storyboard_response
from modules.storyboard.normalizer import normalize_durations

__all__ = [
    "StoryboardGenerator",
    "parse_storyboard_response",
    "normalize_durations",
]
