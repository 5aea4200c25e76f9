# store_monitor/status.py
from dataclasses import dataclass
from typing import Tuple

from .errors import JobNotFoundError
from .jobs import JobError, JobRegistry, JobStatus


@dataclass(frozen=True)
class StatusReport:
    job_id: int
    status: JobStatus
    errors: Tuple[JobError, ...]


def parse_job_id(raw: str) -> int:
    """Strict integer parse of the jobid query value. Bad input is a miss."""
    try:
        return int(raw.strip())
    except ValueError:
        raise JobNotFoundError(raw)


class StatusReporter:
    def __init__(self, registry: JobRegistry):
        self.registry = registry

    def get_status(self, job_id: int) -> StatusReport:
        job = self.registry.get_job(job_id)
        status, errors = job.status_report()
        return StatusReport(job_id=job.job_id, status=status, errors=errors)
