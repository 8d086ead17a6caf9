from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from schoolfund.auth import AuthUser
from schoolfund.dependencies import get_current_user, get_update_service
from schoolfund.schemas import MessageResponse, UpdateCreate, UpdateUpdate
from schoolfund.updates import UpdateService
from shared.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

router = APIRouter()


@router.post("", status_code=201)
def create_update(
    payload: UpdateCreate,
    user: AuthUser = Depends(get_current_user),
    updates: UpdateService = Depends(get_update_service),
):
    return updates.create_update(payload, user)


@router.get("")
def list_updates(
    school_id: Optional[str] = Query(None, alias="schoolId"),
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    updates: UpdateService = Depends(get_update_service),
):
    return updates.list_updates(
        school_id=school_id, campaign_id=campaign_id, page=page, limit=limit
    )


@router.get("/{update_id}")
def get_update(
    update_id: str,
    updates: UpdateService = Depends(get_update_service),
):
    return updates.get_update(update_id)


@router.put("/{update_id}")
def update_update(
    update_id: str,
    payload: UpdateUpdate,
    user: AuthUser = Depends(get_current_user),
    updates: UpdateService = Depends(get_update_service),
):
    return updates.update_update(update_id, payload, user)


@router.delete("/{update_id}", response_model=MessageResponse)
def delete_update(
    update_id: str,
    user: AuthUser = Depends(get_current_user),
    updates: UpdateService = Depends(get_update_service),
):
    updates.delete_update(update_id, user)
    return MessageResponse(message="Update deleted successfully", id=update_id)
