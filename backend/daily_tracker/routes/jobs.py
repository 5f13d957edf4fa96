"""
Daily Tracker Backend — Job Application Routes
================================================

    GET    /api/jobs          caller's jobs, newest first
    POST   /api/jobs          create (status defaults to "applied")
    PUT    /api/jobs/{id}     partial update
    DELETE /api/jobs/{id}     204
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from daily_tracker.routes.dependencies import require_user_id, resource_service
from daily_tracker.schemas.common import ErrorResponse
from daily_tracker.schemas.records import JobCreate, JobRecord, JobUpdate, ResourceKind
from daily_tracker.services.resource_service import ResourceService

router = APIRouter(
    prefix="/api/jobs",
    tags=["Jobs"],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)

get_jobs = resource_service(ResourceKind.JOB)


@router.get("", response_model=List[JobRecord])
async def list_jobs(
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_jobs),
):
    return await service.list_for_user(user_id)


@router.post("", response_model=JobRecord)
async def create_job(
    payload: JobCreate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_jobs),
):
    return await service.create(user_id, payload)


@router.put("/{job_id}", response_model=JobRecord)
async def update_job(
    job_id: str,
    payload: JobUpdate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_jobs),
):
    return await service.update(user_id, job_id, payload)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_job(
    job_id: str,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_jobs),
):
    await service.delete(user_id, job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
