"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool

from ..utils.timezone_utils import utc_now


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str
    detail: Optional[Union[str, List[Any]]] = None
    timestamp: datetime = Field(default_factory=utc_now)
    path: Optional[str] = None


class SubmitJobRequest(BaseModel):
    """Text hashing submission. Fields are validated by the job service."""
    text: Optional[Any] = Field(None, description="Text to hash")
    algorithm: Optional[Any] = Field(None, description="sha256 or bcrypt")


class SubmitJobResponse(BaseModel):
    jobId: str
    status: str = "queued"


class BatchJobsRequest(BaseModel):
    jobIds: List[str] = Field(..., description="Job IDs to look up")


class StatsResponse(BaseModel):
    activeWorkers: int
    queueLength: int
    scalerStatus: str


class ScalingConfig(BaseModel):
    enabled: StrictBool


class MessageResponse(BaseModel):
    message: str
