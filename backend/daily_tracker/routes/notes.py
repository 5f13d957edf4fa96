"""
Daily Tracker Backend — Note Routes
=====================================

    GET    /api/notes          caller's notes, newest first
    POST   /api/notes          create (title and content default to "")
    PATCH  /api/notes/{id}     partial update
    DELETE /api/notes/{id}     204
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from daily_tracker.routes.dependencies import require_user_id, resource_service
from daily_tracker.schemas.common import ErrorResponse
from daily_tracker.schemas.records import NoteCreate, NoteRecord, NoteUpdate, ResourceKind
from daily_tracker.services.resource_service import ResourceService

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)

get_notes = resource_service(ResourceKind.NOTE)


@router.get("", response_model=List[NoteRecord])
async def list_notes(
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_notes),
):
    return await service.list_for_user(user_id)


@router.post("", response_model=NoteRecord)
async def create_note(
    payload: NoteCreate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_notes),
):
    return await service.create(user_id, payload)


@router.patch("/{note_id}", response_model=NoteRecord)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_notes),
):
    return await service.update(user_id, note_id, payload)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_note(
    note_id: str,
    user_id: str = Depends(require_user_id),
    service: ResourceService = Depends(get_notes),
):
    await service.delete(user_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
