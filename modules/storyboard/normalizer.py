"""
Scene duration normalization.

Repairs LLM-proposed scene durations so they sum exactly to the target
video length. A small discrepancy is absorbed by the last scene, which keeps
the storyboard's pacing; a larger one rescales every scene proportionally,
which keeps relative pacing.
"""

import math
from typing import Any, List, Sequence, Tuple

from shared.logging import get_logger
from shared.models.scene import StoryboardScene
from shared.validation import validate_bounds, validate_scenes

logger = get_logger("storyboard.normalizer")

DEFAULT_TARGET_SECONDS = 60
DEFAULT_BOUNDS = (3, 15)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def total_duration(scenes: Sequence[StoryboardScene]) -> float:
    return sum(scene.duration_seconds for scene in scenes)


def normalize_durations(
    scenes: Sequence[Any],
    target_total: float = DEFAULT_TARGET_SECONDS,
    bounds: Tuple[float, float] = DEFAULT_BOUNDS
) -> List[StoryboardScene]:
    """
    Make scene durations sum exactly to `target_total`.

    Steps, in priority order:
    1. Validate every scene; one bad scene fails the whole set.
    2. Already on target: return as is.
    3. Apply the whole difference to the last scene if it stays within bounds.
    4. Otherwise rescale every scene to round(d / total * target) and put the
       rounding residual on the last scene, even if that pushes it out of
       bounds.

    Args:
        scenes: Raw scene objects from the LLM, or StoryboardScene models
        target_total: Required total duration in seconds
        bounds: Inclusive (min, max) duration per scene

    Returns:
        New list of StoryboardScene models; the input is not mutated

    Raises:
        ValidationError: If any scene is invalid or the set is empty
    """
    validate_bounds(bounds)
    normalized = validate_scenes(scenes)
    min_seconds, max_seconds = bounds

    current_total = total_duration(normalized)
    difference = target_total - current_total

    if difference == 0:
        logger.info(
            "Storyboard already matches target duration",
            extra={"scene_count": len(normalized), "target": target_total}
        )
        return normalized

    logger.warning(
        "Adjusting duration to hit target",
        extra={"total_duration": current_total, "target": target_total, "difference": difference}
    )

    last = normalized[-1]
    adjusted_last = last.duration_seconds + difference
    if min_seconds <= adjusted_last <= max_seconds:
        normalized[-1] = last.model_copy(update={"duration_seconds": adjusted_last})
        logger.info(
            "Adjusted last scene duration",
            extra={"old_duration": last.duration_seconds, "new_duration": adjusted_last}
        )
        return normalized

    logger.info(
        "Redistributing duration proportionally across all scenes",
        extra={"scene_count": len(normalized)}
    )

    normalized = [
        scene.model_copy(update={
            "duration_seconds": round_half_up(scene.duration_seconds / current_total * target_total)
        })
        for scene in normalized
    ]

    residual = target_total - total_duration(normalized)
    if residual:
        last = normalized[-1]
        normalized[-1] = last.model_copy(
            update={"duration_seconds": last.duration_seconds + residual}
        )

    final_last = normalized[-1].duration_seconds
    if not min_seconds <= final_last <= max_seconds:
        logger.warning(
            "Last scene outside duration bounds after redistribution",
            extra={"duration": final_last, "min": min_seconds, "max": max_seconds}
        )

    logger.info(
        "Duration redistribution complete",
        extra={"final_total": total_duration(normalized)}
    )
    return normalized
