# store_monitor/config.py
"""
Environment driven settings, read once per process.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


def _get_str_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> Optional[float]:
    raw_value = _get_str_env(name, None)
    if raw_value is None:
        return None
    try:
        value = float(raw_value)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    store_master_path: str = "StoreMasterAssignment.csv"
    job_log_dir: Optional[str] = None
    delay_min_ms: int = 100
    delay_max_ms: int = 400
    # None means requests waits forever, same as the original service
    fetch_timeout_seconds: Optional[float] = None
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def delay_range_ms(self) -> Tuple[int, int]:
        return self.delay_min_ms, self.delay_max_ms


def load_settings() -> Settings:
    delay_min = max(0, _get_int_env("PROCESSING_DELAY_MIN_MS", 100))
    delay_max = max(delay_min, _get_int_env("PROCESSING_DELAY_MAX_MS", 400))
    return Settings(
        store_master_path=_get_str_env("STORE_MASTER_PATH", "StoreMasterAssignment.csv"),
        job_log_dir=_get_str_env("JOB_LOG_DIR", None),
        delay_min_ms=delay_min,
        delay_max_ms=delay_max,
        fetch_timeout_seconds=_get_optional_float_env("IMAGE_FETCH_TIMEOUT_SECONDS"),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
        host=_get_str_env("HOST", "0.0.0.0"),
        port=_get_int_env("PORT", 8080),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings for the running process."""
    return load_settings()
