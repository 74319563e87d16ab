from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from availsync.services.availability_sync import availability_sync

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


class JobStatus(BaseModel):
    running: bool
    cancelling: bool = False
    last_started: Optional[datetime] = None
    last_finished: Optional[datetime] = None
    last_result: Optional[str] = None
    last_processed: int = 0


def _status() -> JobStatus:
    return JobStatus(
        running=availability_sync.running,
        cancelling=availability_sync.running and availability_sync.cancel_requested,
        last_started=availability_sync.last_started,
        last_finished=availability_sync.last_finished,
        last_result=availability_sync.last_result,
        last_processed=availability_sync.last_processed,
    )


@router.get("/availability-sync", response_model=JobStatus)
async def get_availability_sync():
    """Status of the availability sync job"""
    return _status()


@router.post("/availability-sync/run", status_code=202)
async def run_availability_sync(background_tasks: BackgroundTasks):
    """Start a sync run in the background"""
    if availability_sync.running:
        raise HTTPException(status_code=409, detail="Availability sync is already running")
    background_tasks.add_task(availability_sync.run)
    return {"status": "Availability sync started in background"}


@router.post("/availability-sync/cancel")
async def cancel_availability_sync():
    """Stop a running sync after the item in flight"""
    return {"cancelled": availability_sync.cancel()}
