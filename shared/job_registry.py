"""
In-memory job registry.

Create/read/update/sweep store for job records of one kind. Each job kind
gets its own instance so correlation fields stay kind-specific.
"""

import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, Generic, List, Optional, Type, TypeVar

from shared.logging import get_logger
from shared.models.job import Job, utc_now

logger = get_logger("job_registry")

JobT = TypeVar("JobT", bound=Job)


class JobRegistry(Generic[JobT]):
    """Job store with monotonic status updates and age-based sweeping."""

    def __init__(self, job_cls: Type[JobT], name: Optional[str] = None):
        """
        Initialize registry.

        Args:
            job_cls: Job model class this registry stores
            name: Label used in log lines (defaults to the job kind)
        """
        self.job_cls = job_cls
        self.name = name or job_cls.KIND
        self._jobs: Dict[str, JobT] = {}
        self._lock = threading.Lock()

    def create(self, **fields) -> JobT:
        """
        Create a queued job with a fresh id.

        Args:
            **fields: Kind-specific correlation fields and payload

        Returns:
            The stored job
        """
        job_id = str(uuid.uuid4())
        job = self.job_cls(id=job_id, status="queued", created_at=utc_now(), **fields)

        with self._lock:
            self._jobs[job_id] = job

        logger.info("Job created", extra={"job_id": job_id, "kind": self.name})
        return job

    def get(self, job_id: str) -> Optional[JobT]:
        with self._lock:
            return self._jobs.get(job_id)

    def update(self, job_id: str, **fields) -> Optional[JobT]:
        """
        Merge fields into an existing job.

        Unknown ids are a no-op (update never creates). A status change that
        would move the job backwards, or out of a terminal status, is dropped
        with a warning; the remaining fields are still applied unless the job
        is already terminal.

        Args:
            job_id: Job ID
            **fields: Fields to overwrite

        Returns:
            Updated job, or None if the id is unknown
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning(
                    "Attempted to update non-existent job",
                    extra={"job_id": job_id, "kind": self.name}
                )
                return None

            new_status = fields.pop("status", None)
            if new_status is not None and not job.can_transition(job.status, new_status):
                logger.warning(
                    "Rejected non-monotonic status change",
                    extra={
                        "job_id": job_id,
                        "kind": self.name,
                        "current_status": job.status,
                        "requested_status": new_status,
                    }
                )
                if job.is_terminal:
                    return job
                new_status = None

            for key, value in fields.items():
                setattr(job, key, value)
            if new_status is not None:
                job.status = new_status

            return job

    def list(self) -> List[JobT]:
        with self._lock:
            return list(self._jobs.values())

    def sweep(self, max_age: timedelta, now: Optional[datetime] = None) -> int:
        """
        Delete every job created strictly before `now - max_age`.

        Status is not considered.

        Args:
            max_age: Maximum job age to keep
            now: Reference time (defaults to current UTC time)

        Returns:
            Number of jobs removed
        """
        cutoff = (now or utc_now()) - max_age

        with self._lock:
            expired = [job_id for job_id, job in self._jobs.items() if job.created_at < cutoff]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info(
                "Swept old jobs",
                extra={"kind": self.name, "count": len(expired)}
            )
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs
