# store_monitor/errors.py


class StoreMonitorError(Exception):
    pass


class StoreDirectoryError(StoreMonitorError):
    """Store master file is missing or malformed. Fatal at startup."""


class ImageFetchError(StoreMonitorError):
    """Image could not be downloaded or decoded. str(exc) is the cause."""


class JobNotFoundError(StoreMonitorError):
    def __init__(self, job_id):
        super().__init__(f"job {job_id} not found")
        self.job_id = job_id
