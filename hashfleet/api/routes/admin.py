"""Fleet administration and observability endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from ..dependencies import JobServiceDep
from ..schemas import MessageResponse, ScalingConfig, StatsResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(job_service: JobServiceDep) -> StatsResponse:
    try:
        return StatsResponse(**await job_service.get_stats())
    except Exception as e:
        logger.error(f"Error fetching stats: {e}")
        raise HTTPException(status_code=500, detail="Error fetching stats")


@router.delete("/queue", response_model=MessageResponse)
async def clear_queue(job_service: JobServiceDep) -> MessageResponse:
    """Drop every pending queue entry. Job records are kept."""
    try:
        await job_service.clear_queue()
        return MessageResponse(message="Queue cleared")
    except Exception as e:
        logger.error(f"Error clearing queue: {e}")
        raise HTTPException(status_code=500, detail="Error clearing queue")


@router.get("/admin/scaling", response_model=ScalingConfig)
async def get_scaling(job_service: JobServiceDep) -> ScalingConfig:
    try:
        return ScalingConfig(enabled=await job_service.get_autoscaling())
    except Exception as e:
        logger.error(f"Error fetching scaling config: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/admin/scaling", response_model=ScalingConfig)
async def update_scaling(config: ScalingConfig, job_service: JobServiceDep) -> ScalingConfig:
    try:
        enabled = await job_service.set_autoscaling(config.enabled)
        return ScalingConfig(enabled=enabled)
    except Exception as e:
        logger.error(f"Error updating scaling config: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/health")
async def health():
    return {"ok": True}
