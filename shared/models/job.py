"""
Job models.

One model per job kind, sharing a common header. Each kind declares the
rank of its statuses so the registry can refuse backwards transitions.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from shared.models.scene import AssetSceneStatus, StoryboardScene

TERMINAL_STATUSES = ("completed", "failed")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """Common job header."""

    STATUS_RANK: ClassVar[Dict[str, int]] = {
        "queued": 0,
        "completed": 1,
        "failed": 1,
    }
    KIND: ClassVar[str] = "job"

    id: str
    status: str = "queued"
    created_at: datetime = Field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def can_transition(cls, current: str, new: str) -> bool:
        """
        Check whether a status change keeps the lifecycle monotonic.

        Same-status updates are allowed (e.g. progress while rendering).
        Terminal statuses never change, not even to the other terminal.
        """
        if current == new:
            return True
        if current in TERMINAL_STATUSES:
            return False
        if new not in cls.STATUS_RANK:
            return False
        return cls.STATUS_RANK[new] > cls.STATUS_RANK[current]


class RenderJob(Job):
    STATUS_RANK: ClassVar[Dict[str, int]] = {
        "queued": 0,
        "bundling": 1,
        "rendering": 2,
        "completed": 3,
        "failed": 3,
    }
    KIND: ClassVar[str] = "render"

    status: Literal["queued", "bundling", "rendering", "completed", "failed"] = "queued"
    storyboard_id: str
    progress: int = 0
    scene_count: int = 0
    total_duration_seconds: float = 0
    output_path: Optional[str] = None
    download_url: Optional[str] = None


class AssetGenerationJob(Job):
    STATUS_RANK: ClassVar[Dict[str, int]] = {
        "queued": 0,
        "generating": 1,
        "completed": 2,
        "failed": 2,
    }
    KIND: ClassVar[str] = "asset-generation"

    status: Literal["queued", "generating", "completed", "failed"] = "queued"
    storyboard_id: str
    scenes: List[AssetSceneStatus] = Field(default_factory=list)


class StoryboardGenerationJob(Job):
    STATUS_RANK: ClassVar[Dict[str, int]] = {
        "queued": 0,
        "generating": 1,
        "completed": 2,
        "failed": 2,
    }
    KIND: ClassVar[str] = "storyboard-generation"

    status: Literal["queued", "generating", "completed", "failed"] = "queued"
    topic_id: str
    topic_title: str
    storyboard_id: str
    scenes: List[StoryboardScene] = Field(default_factory=list)
