# store_monitor/logger.py
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_job_log = logging.getLogger("store_monitor.jobs")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def now_iso():
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


class JobLogger:
    """
    Ordered, structured log for one job.

    Entries are kept in memory for the job detail endpoint, forwarded to the
    `store_monitor.jobs` logger and, when `log_dir` is given, appended to
    `<log_dir>/<job_id>.log.jsonl`.
    """

    def __init__(self, job_id: int, log_dir: Optional[str] = None):
        self.job_id = job_id
        self.path = Path(log_dir) / f"{job_id}.log.jsonl" if log_dir else None
        self._entries: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    @property
    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    def log(self, step: str, success: bool, message: str, extra: dict = None):
        entry = {
            "timestamp": now_iso(),
            "step": step,
            "success": success,
            "message": message,
            "extra": extra or {}
        }
        with self._lock:
            self._entries.append(entry)
            if self.path is not None:
                try:
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                    with open(self.path, "a", encoding="utf-8") as f:
                        f.write(json.dumps(entry, ensure_ascii=False) + "\n")
                except OSError as e:
                    _job_log.warning("job=%s could not write %s: %s", self.job_id, self.path, e)
        level = logging.INFO if success else logging.WARNING
        _job_log.log(level, "job=%s step=%s %s", self.job_id, step, message)
        return entry
