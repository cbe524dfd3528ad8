"""
Validation utilities.

Validation for storyboard scenes coming back from the LLM. Raw JSON is
checked field by field before anything is normalized, so one malformed
scene rejects the whole storyboard.
"""

from numbers import Real
from typing import Any, List, Mapping, Sequence

from shared.errors import ValidationError
from shared.models.scene import VISUAL_TYPES, StoryboardScene

REQUIRED_NUMBER_FIELDS = ("scene_number", "duration_seconds")
REQUIRED_TEXT_FIELDS = (
    "visual_description",
    "visual_type",
    "narration_text",
    "onscreen_text",
    "ai_prompt",
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is never a valid duration
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_scene(scene: Any) -> StoryboardScene:
    """
    Validate one raw scene object.

    Args:
        scene: Scene as parsed from JSON

    Returns:
        StoryboardScene model

    Raises:
        ValidationError: If a field is missing, mistyped or out of range
    """
    if not isinstance(scene, Mapping):
        raise ValidationError("Scene ? is missing required fields")

    label = scene.get("scene_number")
    if not _is_number(label):
        label = "?"

    for field in REQUIRED_NUMBER_FIELDS:
        if not _is_number(scene.get(field)):
            raise ValidationError(f"Scene {label} is missing required fields")
    for field in REQUIRED_TEXT_FIELDS:
        if not isinstance(scene.get(field), str):
            raise ValidationError(f"Scene {label} is missing required fields")

    if scene["visual_type"] not in VISUAL_TYPES:
        raise ValidationError(
            f"Scene {label} has invalid visual_type: {scene['visual_type']}"
        )

    if scene["duration_seconds"] <= 0:
        raise ValidationError(
            f"Scene {label} has non-positive duration: {scene['duration_seconds']}"
        )

    return StoryboardScene(
        scene_number=int(scene["scene_number"]),
        duration_seconds=scene["duration_seconds"],
        visual_description=scene["visual_description"],
        visual_type=scene["visual_type"],
        narration_text=scene["narration_text"],
        onscreen_text=scene["onscreen_text"],
        ai_prompt=scene["ai_prompt"],
    )


def validate_scenes(scenes: Sequence[Any]) -> List[StoryboardScene]:
    """
    Validate every scene; any violation fails the whole set.

    Args:
        scenes: Raw scene objects, or StoryboardScene models

    Returns:
        List of StoryboardScene models in input order

    Raises:
        ValidationError: If the set is empty or any scene is invalid
    """
    if not isinstance(scenes, Sequence) or isinstance(scenes, (str, bytes)):
        raise ValidationError("Scenes must be a list")
    if len(scenes) == 0:
        raise ValidationError("Storyboard has no scenes")

    validated = []
    for scene in scenes:
        if isinstance(scene, StoryboardScene):
            scene = scene.model_dump()
        validated.append(validate_scene(scene))
    return validated


def validate_bounds(bounds: Sequence[float]) -> None:
    """
    Validate a (min, max) per-scene duration bound.

    Raises:
        ValidationError: If the bound is malformed
    """
    if len(bounds) != 2:
        raise ValidationError("Duration bounds must be a (min, max) pair")
    low, high = bounds
    if low > high:
        raise ValidationError(f"Invalid duration bounds: min {low} exceeds max {high}")
