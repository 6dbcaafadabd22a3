"""
User document APIs.

POST /users: create or refresh the caller's document after sign-in.
GET /users/{uid}: full document.
PUT /users/{uid}: bulk save of top-level fields (tasks, habits, goals, ...).
PUT /users/{uid}/namaz and /settings: full replacement of one section.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder

from app.api.deps import get_user_service
from app.models.user import IdentityUpsertRequest, NamazUpdateRequest, SettingsUpdateRequest
from app.services.user_service import UserService

router = APIRouter()


@router.post("", response_model=dict, summary="Create or update user on login")
async def upsert_user(
    body: IdentityUpsertRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> dict:
    outcome = await service.upsert_identity(
        body.uid,
        body.email,
        display_name=body.display_name,
        avatar_url=body.avatar_url,
        auth_provider=body.auth_provider,
    )
    flag = "created" if outcome.created else "updated"
    return {"success": True, flag: True, "result": outcome.result.to_response()}


@router.get("/{uid}", response_model=dict, summary="Get user document")
async def get_user(
    uid: str,
    service: Annotated[UserService, Depends(get_user_service)],
) -> dict:
    return jsonable_encoder(await service.get_by_id(uid))


@router.put("/{uid}", response_model=dict, summary="Save top-level user fields")
async def update_user(
    uid: str,
    update: Annotated[Dict[str, Any], Body()],
    service: Annotated[UserService, Depends(get_user_service)],
) -> dict:
    result = await service.replace_fields(uid, update)
    return {"success": True, "result": result.to_response()}


@router.put("/{uid}/namaz", response_model=dict, summary="Save namaz tracker records")
async def update_namaz(
    uid: str,
    body: NamazUpdateRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> dict:
    result = await service.replace_namaz(uid, body.namaz)
    return {"success": True, "result": result.to_response()}


@router.put("/{uid}/settings", response_model=dict, summary="Save user settings")
async def update_settings(
    uid: str,
    body: SettingsUpdateRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> dict:
    result = await service.replace_settings(uid, body.settings)
    return {"success": True, "result": result.to_response()}
