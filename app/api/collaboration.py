"""
Collaboration APIs: invite by email, remove, and save shared tasks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_collaboration_service
from app.models.collaboration import (
    InviteRequest,
    RemoveCollaboratorRequest,
    UpdateSharedTasksRequest,
)
from app.services.collaboration_service import CollaborationService

router = APIRouter()


@router.post("/invite", response_model=dict, summary="Invite a collaborator by email")
async def invite_collaborator(
    body: InviteRequest,
    service: Annotated[CollaborationService, Depends(get_collaboration_service)],
) -> dict:
    await service.invite(
        body.inviter_uid,
        body.invitee_email,
        invitee_name_hint=body.invitee_name,
        invitee_avatar_hint=body.invitee_avatar,
    )
    return {"success": True}


@router.post("/remove", response_model=dict, summary="Remove a collaborator")
async def remove_collaborator(
    body: RemoveCollaboratorRequest,
    service: Annotated[CollaborationService, Depends(get_collaboration_service)],
) -> dict:
    await service.remove(body.user_uid, body.collaborator_email)
    return {"success": True}


@router.post("/update-tasks", response_model=dict, summary="Save tasks shared with a collaborator")
async def update_shared_tasks(
    body: UpdateSharedTasksRequest,
    service: Annotated[CollaborationService, Depends(get_collaboration_service)],
) -> dict:
    result = await service.update_shared_tasks(
        body.user_uid, body.collaborator_email, body.shared_tasks
    )
    # matched is False when the user has no link to this collaborator
    return {"success": True, "matched": result.matched}
