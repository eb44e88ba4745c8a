"""Dependency injection setup for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ..jobs.service import JobService


async def get_job_service(request: Request) -> JobService:
    """Get job service instance from app state."""
    if not hasattr(request.app.state, 'job_service'):
        raise HTTPException(
            status_code=503,
            detail="Job service not available"
        )
    return request.app.state.job_service


# Type alias for cleaner dependency injection
JobServiceDep = Annotated[JobService, Depends(get_job_service)]
