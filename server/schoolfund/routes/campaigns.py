from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from schoolfund.auth import AuthUser
from schoolfund.campaigns import CampaignService
from schoolfund.dependencies import get_campaign_service, get_current_user
from schoolfund.schemas import (
    CampaignCreate,
    CampaignUpdate,
    ImpactReportRequest,
    MessageResponse,
)
from shared.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from shared.types import CampaignStatus

router = APIRouter()


@router.post("", status_code=201)
def create_campaign(
    payload: CampaignCreate,
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.create_campaign(payload, user)


@router.get("")
def list_campaigns(
    status: CampaignStatus = Query(CampaignStatus.ACTIVE),
    category: Optional[str] = Query(None),
    featured: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.list_campaigns(
        status=status.value,
        category=category,
        featured=featured,
        page=page,
        limit=limit,
    )


@router.get("/school")
def list_own_campaigns(
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.list_school_campaigns(user.uid)


@router.get("/school/{school_id}")
def list_school_campaigns(
    school_id: str,
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.list_school_campaigns(school_id)


@router.get("/{campaign_id}")
def get_campaign(
    campaign_id: str,
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.get_campaign(campaign_id)


@router.put("/{campaign_id}")
def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.update_campaign(campaign_id, payload, user)


@router.put("/{campaign_id}/impact-report")
def attach_impact_report(
    campaign_id: str,
    payload: ImpactReportRequest,
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.attach_impact_report(campaign_id, payload, user)


@router.delete("/{campaign_id}", response_model=MessageResponse)
def delete_campaign(
    campaign_id: str,
    user: AuthUser = Depends(get_current_user),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    campaigns.delete_campaign(campaign_id, user)
    return MessageResponse(message="Campaign deleted successfully", id=campaign_id)
