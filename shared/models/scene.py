"""
Scene models.

Storyboard scenes, per-scene asset generation state and render requests.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

VisualType = Literal["ai-video", "ai-photo", "motion-graphics"]
VISUAL_TYPES = ("ai-video", "ai-photo", "motion-graphics")

AssetStatus = Literal["pending", "generating", "done", "failed"]
TERMINAL_ASSET_STATUSES = ("done", "failed")

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class StoryboardScene(BaseModel):
    """One scene of a generated storyboard."""

    scene_number: int
    duration_seconds: float
    visual_description: str
    visual_type: VisualType
    narration_text: str
    onscreen_text: str
    ai_prompt: str


class AssetSceneInput(BaseModel):
    """Scene definition submitted for asset generation."""

    scene_number: int = Field(..., gt=0)
    duration_seconds: float = Field(..., gt=0)
    visual_type: VisualType
    visual_description: str = Field(..., min_length=1)
    narration_text: str = Field(..., min_length=1)
    onscreen_text: Optional[str] = None
    ai_prompt: str = Field(..., min_length=1)


class AssetGenerationRequest(BaseModel):
    storyboard_id: str = Field(..., min_length=1)
    scenes: List[AssetSceneInput] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_unique_scene_numbers(self) -> "AssetGenerationRequest":
        """Asset filenames are keyed by scene number."""
        seen = set()
        for scene in self.scenes:
            if scene.scene_number in seen:
                raise ValueError(f"Duplicate scene_number: {scene.scene_number}")
            seen.add(scene.scene_number)
        return self


class AssetSceneStatus(BaseModel):
    """
    Per-scene asset generation status.

    Visual and voiceover progress independently:
    pending -> generating -> done | failed.
    """

    scene_number: int
    visual_type: VisualType
    visual_status: AssetStatus = "pending"
    voiceover_status: AssetStatus = "pending"
    video_url: Optional[str] = None
    photo_url: Optional[str] = None
    voiceover_url: Optional[str] = None
    motion_config: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return (
            self.visual_status in TERMINAL_ASSET_STATUSES
            and self.voiceover_status in TERMINAL_ASSET_STATUSES
        )

    @property
    def has_failure(self) -> bool:
        return self.visual_status == "failed" or self.voiceover_status == "failed"

    def add_error(self, text: str) -> None:
        self.error = f"{self.error}; {text}" if self.error else text


class StoryboardGenerationRequest(BaseModel):
    topic_id: str = Field(..., min_length=1)
    topic_title: str = Field(..., min_length=1)
    topic_summary: str = Field(..., min_length=1)
    content_pillar: str = Field(..., min_length=1)


class SceneAssets(BaseModel):
    video_url: Optional[str] = None
    photo_url: Optional[str] = None
    voiceover_url: str = Field(..., min_length=1)
    motion_config: Optional[Dict[str, Any]] = None


class RenderScene(BaseModel):
    """Scene with materialized assets, as handed to the compositor."""

    scene_number: int = Field(..., gt=0)
    duration_seconds: float = Field(..., gt=0)
    visual_type: VisualType
    visual_description: str = Field(..., min_length=1)
    narration_text: str = Field(..., min_length=1)
    onscreen_text: Optional[str] = None
    assets: SceneAssets


class Branding(BaseModel):
    logo_url: str = Field(..., min_length=1)
    primary_color: str = Field(..., pattern=HEX_COLOR_PATTERN)
    secondary_color: str = Field(..., pattern=HEX_COLOR_PATTERN)
    font_family: str = Field(..., min_length=1)


class RenderRequest(BaseModel):
    storyboard_id: str = Field(..., min_length=1)
    topic_id: str = Field(..., min_length=1)
    scenes: List[RenderScene] = Field(..., min_length=1)
    branding: Branding

    @property
    def total_duration_seconds(self) -> float:
        return sum(scene.duration_seconds for scene in self.scenes)
