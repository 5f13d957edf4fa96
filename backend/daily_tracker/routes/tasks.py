"""
Daily Tracker Backend — Task Routes
=====================================

    GET          /api/tasks          caller's tasks, newest first
    POST         /api/tasks          create; 400 if the URL repeats one of the
                                     caller's tasks (case-insensitive, one
                                     trailing slash ignored)
    PUT | PATCH  /api/tasks/{id}     partial update (both verbs behave alike)
    DELETE       /api/tasks/{id}     204
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from daily_tracker.routes.dependencies import require_user_id, resource_service
from daily_tracker.schemas.common import ErrorResponse
from daily_tracker.schemas.records import ResourceKind, TaskCreate, TaskRecord, TaskUpdate
from daily_tracker.services.resource_service import ResourceService

router = APIRouter(
    prefix="/api/tasks",
    tags=["Tasks"],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)

get_tasks = resource_service(ResourceKind.TASK)


@router.get("", response_model=List[TaskRecord])
async def list_tasks(
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_tasks),
):
    return await service.list_for_user(user_id)


@router.post("", response_model=TaskRecord)
async def create_task(
    payload: TaskCreate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_tasks),
):
    return await service.create(user_id, payload)


@router.api_route("/{task_id}", methods=["PUT", "PATCH"], response_model=TaskRecord)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_tasks),
):
    return await service.update(user_id, task_id, payload)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_task(
    task_id: str,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_tasks),
):
    await service.delete(user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
