"""Job submission and status endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ...core.exceptions import AdmissionError, BackpressureError
from ..dependencies import JobServiceDep
from ..schemas import BatchJobsRequest, SubmitJobRequest, SubmitJobResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/text", status_code=202, response_model=SubmitJobResponse)
async def submit_text_job(
    request: SubmitJobRequest,
    job_service: JobServiceDep,
) -> SubmitJobResponse:
    """
    Queue a text hashing job.

    Returns 400 for invalid submissions and 429 when the queue is full.
    """
    try:
        job_id = await job_service.submit(request.text, request.algorithm)
        return SubmitJobResponse(jobId=job_id)
    except BackpressureError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except AdmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating job: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/batch")
async def get_jobs_batch(
    request: BatchJobsRequest,
    job_service: JobServiceDep,
) -> List[Dict[str, Any]]:
    """Look up several jobs at once; unknown IDs report status ``unknown``."""
    try:
        return await job_service.get_jobs(request.jobIds)
    except Exception as e:
        logger.error(f"Error fetching batch jobs: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{job_id}")
async def get_job(job_id: str, job_service: JobServiceDep) -> Dict[str, Any]:
    """Get the status-specific view of one job."""
    try:
        job = await job_service.get_job(job_id)
    except Exception as e:
        logger.error(f"Error fetching job {job_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
