# store_monitor/models.py
from pydantic import BaseModel, Field, StrictInt
from typing import List, Optional, Dict, Any


class VisitIn(BaseModel):
    store_id: str = ""
    image_url: List[str] = Field(default_factory=list)
    visit_time: str = ""


class SubmitRequest(BaseModel):
    count: StrictInt = 0
    visits: List[VisitIn] = Field(default_factory=list)


class SubmitResponse(BaseModel):
    job_id: int


class JobErrorOut(BaseModel):
    store_id: str
    error: str


class JobStatusResponse(BaseModel):
    status: str  # ongoing, failed, completed
    job_id: str
    error: Optional[List[JobErrorOut]] = None


class ImageResultOut(BaseModel):
    store_id: str
    image_url: str
    perimeter: int


class LogEntry(BaseModel):
    timestamp: str
    step: str
    success: bool
    message: str
    extra: Optional[Dict[str, Any]] = None


class JobDetail(BaseModel):
    job_id: int
    status: str
    created_at: str
    visits: int
    errors: List[JobErrorOut] = []
    results: List[ImageResultOut] = []
    logs: List[LogEntry] = []


class JobSummary(BaseModel):
    job_id: int
    status: str
    visits: int
    error_count: int
    created_at: str


class JobList(BaseModel):
    jobs: List[JobSummary] = []
