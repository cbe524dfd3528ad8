"""
Provider task models (Kie AI unified API).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# waiting, queuing, queued, generating, success or fail; anything but the
# last two means the task is still running
TaskState = str


class ProviderModels:
    """Model ids on the unified task API."""

    VIDEO = "kling-2.6/text-to-video"
    PHOTO = "flux-2/pro-text-to-image"
    VOICEOVER = "elevenlabs/text-to-speech-turbo-2-5"


class CreateTaskRequest(BaseModel):
    model: str
    input: Dict[str, Any]
    callBackUrl: Optional[str] = None


class ProviderTask(BaseModel):
    """Snapshot of one remote task, discarded once its URLs are extracted."""

    task_id: str
    model: Optional[str] = None
    state: TaskState
    result_urls: List[str] = Field(default_factory=list)
    fail_code: Optional[Union[str, int]] = None
    fail_message: Optional[str] = None
    progress: Optional[float] = None


class VideoInput(BaseModel):
    prompt: str
    aspect_ratio: str = "9:16"
    duration: str = "5"
    sound: bool = False


class PhotoInput(BaseModel):
    prompt: str
    aspect_ratio: str = "9:16"
    resolution: str = "1K"


class VoiceoverInput(BaseModel):
    text: str
    voice: str = "Rachel"
    stability: Optional[float] = Field(default=None, ge=0, le=1)
    similarity_boost: Optional[float] = Field(default=None, ge=0, le=1)
    speed: Optional[float] = Field(default=None, ge=0.5, le=2.0)
    language_code: Optional[str] = None
