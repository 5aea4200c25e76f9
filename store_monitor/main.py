# store_monitor/main.py
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import JobNotFoundError
from .images import ImageFetcher
from .jobs import JobRegistry, JobSnapshot, Visit
from .logger import configure_logging
from .models import (
    ImageResultOut,
    JobDetail,
    JobErrorOut,
    JobList,
    JobStatusResponse,
    JobSummary,
    LogEntry,
    SubmitRequest,
    SubmitResponse,
)
from .processor import JobProcessor
from .status import StatusReporter, parse_job_id
from .store_directory import StoreDirectory, load_store_directory

log = logging.getLogger(__name__)


def create_app(
    directory: Optional[StoreDirectory] = None,
    fetcher: Optional[ImageFetcher] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API. Collaborators that are not passed in are built from
    settings; the store master file is then loaded on startup and a load
    failure aborts startup.
    """
    settings = settings or get_settings()
    fetcher = fetcher or ImageFetcher(timeout=settings.fetch_timeout_seconds)

    def _build_processor(d: StoreDirectory) -> JobProcessor:
        return JobProcessor(d, fetcher, delay_range_ms=settings.delay_range_ms)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        configure_logging(settings.log_level)
        if application.state.processor is None:
            loaded = load_store_directory(settings.store_master_path)
            log.info("Loaded %d stores from %s", len(loaded), settings.store_master_path)
            application.state.directory = loaded
            application.state.processor = _build_processor(loaded)
        yield

    app = FastAPI(title="Store Visit Monitor", lifespan=lifespan)
    registry = JobRegistry(log_dir=settings.job_log_dir)
    app.state.registry = registry
    app.state.reporter = StatusReporter(registry)
    app.state.directory = directory
    app.state.processor = _build_processor(directory) if directory is not None else None

    @app.post("/api/submit/", status_code=201, response_model=SubmitResponse)
    async def submit_job(request: Request):
        body = await request.body()
        try:
            payload = json.loads(body)
            req = SubmitRequest.model_validate(payload)
        except (ValueError, ValidationError):
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        if req.count != len(req.visits):
            raise HTTPException(status_code=400, detail="Count does not match the number of visits")

        visits = [
            Visit(store_id=v.store_id, image_urls=tuple(v.image_url), visit_time=v.visit_time)
            for v in req.visits
        ]
        job = registry.create_job(visits)
        request.app.state.processor.spawn(job)
        log.info("Job %s submitted with %d visit(s)", job.job_id, len(visits))
        return SubmitResponse(job_id=job.job_id)

    @app.get("/api/status", response_model=JobStatusResponse, response_model_exclude_none=True)
    async def get_job_status(jobid: Optional[str] = None):
        if not jobid:
            raise HTTPException(status_code=400, detail="Missing jobid parameter")
        try:
            report = app.state.reporter.get_status(parse_job_id(jobid))
        except JobNotFoundError:
            raise HTTPException(status_code=400, detail="Job not found")

        response = JobStatusResponse(status=report.status.value, job_id=str(report.job_id))
        if report.errors:
            response.error = [JobErrorOut(store_id=e.store_id, error=e.message) for e in report.errors]
        return response

    @app.get("/api/jobs", response_model=JobList)
    async def list_jobs():
        """All jobs with basic info."""
        summaries = []
        for job in registry.list_jobs():
            snap = job.snapshot()
            summaries.append(JobSummary(
                job_id=snap.job_id,
                status=snap.status.value,
                visits=snap.visit_count,
                error_count=len(snap.errors),
                created_at=snap.created_at,
            ))
        return JobList(jobs=summaries)

    @app.get("/api/jobs/{job_id}", response_model=JobDetail)
    async def get_job(job_id: int):
        try:
            job = registry.get_job(job_id)
        except JobNotFoundError:
            raise HTTPException(status_code=404, detail="Job not found")
        return _job_detail(job.snapshot())

    @app.get("/health")
    async def healthcheck():
        d = app.state.directory
        return {"status": "ok", "stores": len(d) if d is not None else 0}

    return app


def _job_detail(snap: JobSnapshot) -> JobDetail:
    return JobDetail(
        job_id=snap.job_id,
        status=snap.status.value,
        created_at=snap.created_at,
        visits=snap.visit_count,
        errors=[JobErrorOut(store_id=e.store_id, error=e.message) for e in snap.errors],
        results=[ImageResultOut(store_id=r.store_id, image_url=r.image_url, perimeter=r.perimeter) for r in snap.results],
        logs=[LogEntry(**entry) for entry in snap.logs],
    )


app = create_app()


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
