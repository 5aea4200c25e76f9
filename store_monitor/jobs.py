# store_monitor/jobs.py
"""
Job records and the in-memory job registry.

Two levels of locking:
- `JobRegistry._lock` guards the id counter and the id -> Job map. It is held
  only while allocating/inserting or looking up, never while processing.
- `Job._lock` guards one job's status, errors and results. The job's own
  processor thread writes them, status readers take snapshots.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import JobNotFoundError
from .logger import JobLogger, now_iso


class JobStatus(str, Enum):
    ONGOING = "ongoing"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Visit:
    store_id: str
    image_urls: Tuple[str, ...]
    visit_time: str


@dataclass(frozen=True)
class JobError:
    store_id: str
    message: str


@dataclass(frozen=True)
class ImageResult:
    store_id: str
    image_url: str
    perimeter: int


@dataclass(frozen=True)
class JobSnapshot:
    job_id: int
    status: JobStatus
    errors: Tuple[JobError, ...]
    results: Tuple[ImageResult, ...]
    visit_count: int
    created_at: str
    logs: Tuple[Dict[str, Any], ...]


class Job:
    def __init__(self, job_id: int, visits: Iterable[Visit], log_dir: Optional[str] = None):
        self.job_id = job_id
        self.visits: Tuple[Visit, ...] = tuple(visits)
        self.created_at = now_iso()
        self.logger = JobLogger(job_id, log_dir)
        self._status = JobStatus.ONGOING
        self._errors: List[JobError] = []
        self._results: List[ImageResult] = []
        self._lock = threading.Lock()

    def record_error(self, store_id: str, message: str) -> None:
        """Mark the job failed and append an error. Failed is sticky."""
        with self._lock:
            self._status = JobStatus.FAILED
            self._errors.append(JobError(store_id=store_id, message=message))

    def record_result(self, result: ImageResult) -> None:
        with self._lock:
            self._results.append(result)

    def finish(self) -> JobStatus:
        """Move an ongoing job to completed. A failed job stays failed."""
        with self._lock:
            if self._status is JobStatus.ONGOING:
                self._status = JobStatus.COMPLETED
            return self._status

    def status_report(self) -> Tuple[JobStatus, Tuple[JobError, ...]]:
        """Status plus errors, the errors only when the job has failed."""
        with self._lock:
            if self._status is JobStatus.FAILED:
                return self._status, tuple(self._errors)
            return self._status, ()

    def snapshot(self) -> JobSnapshot:
        with self._lock:
            status = self._status
            errors = tuple(self._errors)
            results = tuple(self._results)
        return JobSnapshot(
            job_id=self.job_id,
            status=status,
            errors=errors,
            results=results,
            visit_count=len(self.visits),
            created_at=self.created_at,
            logs=tuple(self.logger.entries),
        )


class JobRegistry:
    def __init__(self, log_dir: Optional[str] = None):
        self._jobs: Dict[int, Job] = {}
        self._last_id = 0
        self._lock = threading.Lock()
        self._log_dir = log_dir

    def create_job(self, visits: Iterable[Visit]) -> Job:
        visits = tuple(visits)
        with self._lock:
            self._last_id += 1
            job = Job(self._last_id, visits, self._log_dir)
            self._jobs[job.job_id] = job
        return job

    def get_job(self, job_id: int) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self) -> List[Job]:
        with self._lock:
            return [self._jobs[k] for k in sorted(self._jobs)]
