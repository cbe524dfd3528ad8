"""
Error handling.

Custom exception classes for consistent error handling across the pipeline.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        """
        Initialize pipeline error.

        Args:
            message: Error message
            job_id: Optional job ID associated with the error
            code: Optional error code for categorization
        """
        self.message = message
        self.job_id = job_id
        self.code = code
        super().__init__(self.message)


class ConfigError(PipelineError):
    """Configuration errors (missing env vars, invalid settings)."""
    pass


class ValidationError(PipelineError):
    """Input validation errors."""
    pass


class JobNotFoundError(PipelineError):
    """Lookup of an unknown or swept job."""
    pass


class GenerationError(PipelineError):
    """AI generation failures (storyboard, video, photo, voiceover)."""
    pass


class ProviderRequestError(GenerationError):
    """Transport or envelope failure talking to the generation provider."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        job_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        self.status_code = status_code
        super().__init__(message, job_id, code)


class ProviderTaskFailedError(GenerationError):
    """Provider reported a terminal failure for a task. Never retried."""
    pass


class PollTimeoutError(GenerationError):
    """Attempt budget exhausted while a task was still pending."""

    def __init__(
        self,
        message: str,
        attempts: int,
        elapsed_seconds: float,
        job_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        """
        Initialize poll timeout error.

        Args:
            message: Error message
            attempts: Number of check() invocations made
            elapsed_seconds: Wall time spent polling
            job_id: Optional job ID associated with the error
            code: Optional error code for categorization
        """
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        super().__init__(message, job_id, code)


class StoryboardError(GenerationError):
    """LLM output could not be turned into a storyboard."""
    pass


class StorageError(PipelineError):
    """Asset persistence failures."""
    pass


class CompositionError(PipelineError):
    """Video composition failures."""
    pass


__all__ = [
    "PipelineError",
    "ConfigError",
    "ValidationError",
    "JobNotFoundError",
    "GenerationError",
    "ProviderRequestError",
    "ProviderTaskFailedError",
    "PollTimeoutError",
    "StoryboardError",
    "StorageError",
    "CompositionError",
]
