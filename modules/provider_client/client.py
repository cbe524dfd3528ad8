"""
Kie AI HTTP client.

Task-based generation API: create a task, poll it with exponential backoff
and extract the result URLs. The same machinery backs video, photo and
voiceover generation; only the model id, input payload and polling label
differ.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.errors import ProviderRequestError
from shared.logging import get_logger
from shared.models.provider import (
    CreateTaskRequest,
    PhotoInput,
    ProviderModels,
    ProviderTask,
    VideoInput,
    VoiceoverInput,
)
from shared.polling import PollConfig, PollResult, poll_until_done

logger = get_logger("provider_client")

DEFAULT_BASE_URL = "https://api.kie.ai/api/v1"
REQUEST_TIMEOUT = httpx.Timeout(60.0, connect=10.0)
SUCCESS_CODE = 200


class KieAiClient:
    """Client for the Kie AI unified task API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        poll_config: Optional[PollConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep=None,
    ):
        """
        Initialize client.

        Args:
            api_key: Bearer token for the provider
            base_url: API base URL
            poll_config: Backoff settings for task polling (labels are filled per task)
            http_client: Optional client; one is created and owned otherwise
            sleep: Optional sleep override passed to the poller
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_config = poll_config or PollConfig()
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

        if not api_key:
            logger.warning("KIE_AI_API_KEY not set - asset generation will not work")

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def create_task(self, model: str, input: Dict[str, Any]) -> str:
        """
        Create a generation task. Not retried.

        Args:
            model: Provider model id
            input: Model-specific input parameters

        Returns:
            Provider task id

        Raises:
            ProviderRequestError: On transport failure, non-2xx status or error envelope
        """
        request = CreateTaskRequest(model=model, input=input)
        logger.info("Creating Kie AI task", extra={"model": model})

        try:
            response = await self._client.post(
                f"{self.base_url}/jobs/createTask",
                json=request.model_dump(exclude_none=True),
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise ProviderRequestError(f"Kie AI createTask request failed: {str(e)}") from e

        if not response.is_success:
            logger.error(
                "Kie AI createTask request failed",
                extra={"status": response.status_code, "error": response.text}
            )
            raise ProviderRequestError(
                f"Kie AI createTask failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                status_code=response.status_code
            )

        data = self._json(response, "createTask")
        if data.get("code") != SUCCESS_CODE:
            logger.error(
                "Kie AI createTask returned error code",
                extra={"code": data.get("code"), "provider_message": data.get("msg")}
            )
            raise ProviderRequestError(
                f"Kie AI createTask error: {data.get('msg')} (code: {data.get('code')})",
                code=str(data.get("code"))
            )

        task_id = (data.get("data") or {}).get("taskId")
        if not task_id:
            raise ProviderRequestError("Kie AI createTask response missing taskId")

        logger.info("Kie AI task created", extra={"task_id": task_id, "model": model})
        return task_id

    async def get_task_detail(self, task_id: str) -> ProviderTask:
        """
        Fetch task state and, on success, its result URLs.

        Raises:
            ProviderRequestError: On transport failure, non-2xx status or error envelope
        """
        try:
            response = await self._client.get(
                f"{self.base_url}/jobs/recordInfo",
                params={"taskId": task_id},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise ProviderRequestError(f"Kie AI recordInfo request failed: {str(e)}") from e

        if not response.is_success:
            logger.error(
                "Kie AI recordInfo request failed",
                extra={"task_id": task_id, "status": response.status_code, "error": response.text}
            )
            raise ProviderRequestError(
                f"Kie AI recordInfo failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                status_code=response.status_code
            )

        data = self._json(response, "recordInfo")
        if data.get("code") != SUCCESS_CODE:
            logger.error(
                "Kie AI recordInfo returned error code",
                extra={"code": data.get("code"), "provider_message": data.get("message")}
            )
            raise ProviderRequestError(
                f"Kie AI recordInfo error: {data.get('message')} (code: {data.get('code')})",
                code=str(data.get("code"))
            )

        detail = data.get("data") or {}
        try:
            return ProviderTask(
                task_id=detail.get("taskId") or task_id,
                model=detail.get("model"),
                state=detail.get("state"),
                result_urls=self._result_urls(detail.get("resultJson")),
                fail_code=detail.get("failCode"),
                fail_message=detail.get("failMsg"),
                progress=detail.get("progress"),
            )
        except PydanticValidationError as e:
            raise ProviderRequestError(
                f"Kie AI recordInfo returned malformed task detail (state={detail.get('state')!r})"
            ) from e

    async def wait_for_task(self, task_id: str, job_type: str) -> List[str]:
        """
        Poll a task until it succeeds, fails or the attempt budget runs out.

        Returns:
            Result URLs of the finished task

        Raises:
            ProviderTaskFailedError: Provider reported `fail`
            PollTimeoutError: Task still pending after max_attempts
            ProviderRequestError: A status request failed
        """

        async def check() -> PollResult[List[str]]:
            task = await self.get_task_detail(task_id)
            logger.info(
                "Kie AI task status",
                extra={"task_id": task_id, "state": task.state, "progress": task.progress}
            )

            if task.state == "success":
                if not task.result_urls:
                    return PollResult.failure("Task succeeded without result URLs")
                return PollResult.success(task.result_urls)
            if task.state == "fail":
                return PollResult.failure(task.fail_message or "Generation failed")
            return PollResult.pending()

        config = self.poll_config.model_copy(update={"job_id": task_id, "job_type": job_type})
        if self._sleep is not None:
            return await poll_until_done(check, config, sleep=self._sleep)
        return await poll_until_done(check, config)

    async def submit(self, model: str, input: Dict[str, Any], job_type: str) -> List[str]:
        """Create a task and wait for its result URLs."""
        task_id = await self.create_task(model, input)
        return await self.wait_for_task(task_id, job_type)

    async def generate_video(self, input: VideoInput) -> List[str]:
        """Generate a video using kling-2.6/text-to-video."""
        return await self.submit(
            ProviderModels.VIDEO, input.model_dump(exclude_none=True), "video-generation"
        )

    async def generate_photo(self, input: PhotoInput) -> List[str]:
        """Generate a photo using flux-2/pro-text-to-image."""
        return await self.submit(
            ProviderModels.PHOTO, input.model_dump(exclude_none=True), "photo-generation"
        )

    async def generate_voiceover(self, input: VoiceoverInput) -> List[str]:
        """Generate a voiceover using elevenlabs/text-to-speech-turbo-2-5."""
        return await self.submit(
            ProviderModels.VOICEOVER, input.model_dump(exclude_none=True), "voiceover-generation"
        )

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderRequestError(f"Kie AI {operation} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ProviderRequestError(f"Kie AI {operation} returned unexpected payload")
        return data

    @staticmethod
    def _result_urls(result_json: Optional[str]) -> List[str]:
        # resultJson arrives as a JSON-encoded string and is empty until success
        if not result_json:
            return []
        try:
            parsed = json.loads(result_json) if isinstance(result_json, str) else result_json
        except json.JSONDecodeError as e:
            raise ProviderRequestError("Kie AI resultJson is not valid JSON") from e
        urls = parsed.get("resultUrls") if isinstance(parsed, dict) else None
        return [url for url in (urls or []) if isinstance(url, str)]
