"""
Data models for the video generation pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .job import (
    Job,
    RenderJob,
    AssetGenerationJob,
    StoryboardGenerationJob,
    TERMINAL_STATUSES,
)
from .scene import (
    VisualType,
    VISUAL_TYPES,
    AssetStatus,
    StoryboardScene,
    AssetSceneInput,
    AssetGenerationRequest,
    AssetSceneStatus,
    StoryboardGenerationRequest,
    SceneAssets,
    RenderScene,
    Branding,
    RenderRequest,
)
from .provider import (
    TaskState,
    ProviderModels,
    ProviderTask,
    VideoInput,
    PhotoInput,
    VoiceoverInput,
)

__all__ = [
    # Job models
    "Job",
    "RenderJob",
    "AssetGenerationJob",
    "StoryboardGenerationJob",
    "TERMINAL_STATUSES",
    # Scene models
    "VisualType",
    "VISUAL_TYPES",
    "AssetStatus",
    "StoryboardScene",
    "AssetSceneInput",
    "AssetGenerationRequest",
    "AssetSceneStatus",
    "StoryboardGenerationRequest",
    "SceneAssets",
    "RenderScene",
    "Branding",
    "RenderRequest",
    # Provider models
    "TaskState",
    "ProviderModels",
    "ProviderTask",
    "VideoInput",
    "PhotoInput",
    "VoiceoverInput",
]
