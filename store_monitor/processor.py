# store_monitor/processor.py
import random
import threading
import time
from typing import Callable, Optional, Tuple

from .errors import ImageFetchError
from .images import ImageFetcher
from .jobs import ImageResult, Job, JobStatus
from .store_directory import StoreDirectory

INVALID_STORE_MESSAGE = "Invalid store_id"
DOWNLOAD_FAILED_PREFIX = "Failed to download image: "


class JobProcessor:
    """
    Walks a job's visits and images in order and records the outcome on the job.

    Processing errors never escape `process`: an unknown store or a failed
    image marks the job failed and processing moves on to the next item.
    """

    def __init__(
        self,
        directory: StoreDirectory,
        fetcher: ImageFetcher,
        delay_range_ms: Tuple[int, int] = (100, 400),
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.directory = directory
        self.fetcher = fetcher
        self.delay_range_ms = delay_range_ms
        self._sleep = sleep

    def spawn(self, job: Job) -> threading.Thread:
        """Start processing on its own daemon thread. Callers do not join it."""
        t = threading.Thread(target=self.process, args=(job,), name=f"job-{job.job_id}", daemon=True)
        t.start()
        return t

    def process(self, job: Job) -> JobStatus:
        logger = job.logger
        logger.log("job_start", True, f"Processing {len(job.visits)} visit(s)")
        current_store: Optional[str] = None
        try:
            for visit in job.visits:
                current_store = visit.store_id
                self._process_visit(job, visit)
        except Exception as e:
            job.record_error(current_store or "", f"Unexpected error: {e}")
            logger.log("job_exception", False, f"{e}")

        status = job.finish()
        logger.log("job_finished", status is JobStatus.COMPLETED, f"Job {status.value}")
        return status

    def _process_visit(self, job: Job, visit) -> None:
        logger = job.logger
        if self.directory.lookup(visit.store_id) is None:
            job.record_error(visit.store_id, INVALID_STORE_MESSAGE)
            logger.log("invalid_store", False, f"Unknown store_id {visit.store_id}")
            return

        for url in visit.image_urls:
            try:
                dims = self.fetcher.fetch_dimensions(url)
            except ImageFetchError as e:
                job.record_error(visit.store_id, f"{DOWNLOAD_FAILED_PREFIX}{e}")
                logger.log("image_failed", False, f"{url}: {e}", extra={"store_id": visit.store_id, "image_url": url})
                continue
            except Exception as e:
                # any other failure is recorded against this image only
                job.record_error(visit.store_id, f"Unexpected error: {e}")
                logger.log("image_exception", False, f"{url}: {e}", extra={"store_id": visit.store_id, "image_url": url})
                continue

            perimeter = dims.perimeter
            self._simulate_work()
            job.record_result(ImageResult(store_id=visit.store_id, image_url=url, perimeter=perimeter))
            logger.log(
                "image_processed",
                True,
                f"Store ID: {visit.store_id}, Image URL: {url}, Perimeter: {perimeter}",
                extra={"store_id": visit.store_id, "image_url": url, "perimeter": perimeter},
            )

    def _simulate_work(self) -> None:
        low, high = self.delay_range_ms
        if high <= 0:
            return
        self._sleep(random.uniform(low, high) / 1000.0)
