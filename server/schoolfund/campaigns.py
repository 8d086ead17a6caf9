"""
Campaign documents, plus the school-derived fields (location, organizer)
that are filled in on every read.
"""

from __future__ import annotations

import logging
from typing import Optional

from schoolfund.auth import AuthUser
from schoolfund.errors import ForbiddenError, NotFoundError, ValidationError
from schoolfund.pagination import page_offset, paginate
from schoolfund.schemas import CampaignCreate, CampaignUpdate, ImpactReportRequest
from schoolfund.store import DocumentStore, Filter, where
from schoolfund.uploads import FileUploadService
from shared.constants import DEFAULT_PAGE_LIMIT
from shared.firebase_constants import CAMPAIGNS_COLLECTION, SCHOOLS_COLLECTION
from shared.types import CampaignStatus
from shared.utils import utc_now_iso

logger = logging.getLogger(__name__)

ANONYMOUS_ORGANIZER = "Anonymous"


def progress_percentage(amount_raised, goal) -> float:
    try:
        goal = float(goal or 0)
        raised = float(amount_raised or 0)
    except (TypeError, ValueError):
        return 0.0
    if goal <= 0:
        return 0.0
    return round(raised / goal * 100, 1)


class CampaignService:
    def __init__(self, store: DocumentStore, uploads: Optional[FileUploadService] = None):
        self.store = store
        self.uploads = uploads
        self._schools: dict[str, Optional[dict]] = {}

    def _school(self, school_id: str) -> Optional[dict]:
        # One lookup per school per service instance (i.e. per request).
        if school_id not in self._schools:
            self._schools[school_id] = (
                self.store.get(SCHOOLS_COLLECTION, school_id) if school_id else None
            )
        return self._schools[school_id]

    def populate(self, campaign_id: str, data: dict) -> dict:
        campaign = {"id": campaign_id, **data}
        school = self._school(data.get("schoolId", ""))
        if school is not None:
            campaign["location"] = {
                "city": school.get("city") or "",
                "country": school.get("country") or "",
            }
            campaign["organizer"] = {
                "name": school.get("contactName") or ANONYMOUS_ORGANIZER,
                "profileImage": school.get("profileImage"),
            }
        elif not campaign.get("organizer"):
            campaign["organizer"] = {"name": ANONYMOUS_ORGANIZER, "profileImage": None}
        campaign["progressPercentage"] = progress_percentage(
            data.get("amountRaised"), data.get("goal")
        )
        return campaign

    def create_campaign(self, payload: CampaignCreate, user: AuthUser) -> dict:
        now = utc_now_iso()
        data = {
            **payload.to_document(),
            "schoolId": user.uid,
            "amountRaised": 0,
            "featured": False,
            "status": CampaignStatus.ACTIVE.value,
            "createdAt": now,
            "updatedAt": now,
        }
        campaign_id = self.store.add(CAMPAIGNS_COLLECTION, data)
        logger.info("Created campaign %s for school %s", campaign_id, user.uid)
        return {"id": campaign_id, **data}

    def list_campaigns(
        self,
        *,
        status: str = CampaignStatus.ACTIVE.value,
        category: Optional[str] = None,
        featured: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> dict:
        filters: list[Filter] = [where("status", status)]
        if category:
            filters.append(where("category", category))
        if featured:
            filters.append(where("featured", True))

        total = self.store.count(CAMPAIGNS_COLLECTION, filters)
        docs = self.store.query(
            CAMPAIGNS_COLLECTION,
            filters,
            limit=limit,
            offset=page_offset(page, limit),
        )
        return {
            "campaigns": [self.populate(doc_id, data) for doc_id, data in docs],
            "pagination": paginate(total, page, limit),
        }

    def list_school_campaigns(self, school_id: str) -> list[dict]:
        docs = self.store.query(CAMPAIGNS_COLLECTION, [where("schoolId", school_id)])
        return [self.populate(doc_id, data) for doc_id, data in docs]

    def _load(self, campaign_id: str) -> dict:
        data = self.store.get(CAMPAIGNS_COLLECTION, campaign_id)
        if data is None:
            raise NotFoundError("Campaign not found")
        return data

    def load_owned(self, campaign_id: str, user: AuthUser) -> dict:
        """Fetch a campaign the caller must own; 404 before 403."""
        data = self._load(campaign_id)
        if data.get("schoolId") != user.uid:
            raise ForbiddenError("Forbidden: You do not own this campaign")
        return data

    def get_campaign(self, campaign_id: str) -> dict:
        return self.populate(campaign_id, self._load(campaign_id))

    def update_campaign(
        self, campaign_id: str, payload: CampaignUpdate, user: AuthUser
    ) -> dict:
        existing = self.load_owned(campaign_id, user)
        changes = {**payload.to_document(partial=True), "updatedAt": utc_now_iso()}
        self.store.update(CAMPAIGNS_COLLECTION, campaign_id, changes)
        return self.populate(campaign_id, {**existing, **changes})

    def delete_campaign(self, campaign_id: str, user: AuthUser) -> None:
        self.load_owned(campaign_id, user)
        self.store.delete(CAMPAIGNS_COLLECTION, campaign_id)
        logger.info("Deleted campaign %s (by %s)", campaign_id, user.uid)

    def attach_impact_report(
        self, campaign_id: str, payload: ImpactReportRequest, user: AuthUser
    ) -> dict:
        """
        Point a campaign at an uploaded impact report. The object must already
        be visible in storage, so clients poll the upload status first.
        """
        if self.uploads is None:
            raise RuntimeError("CampaignService needs an upload service for impact reports")
        existing = self.load_owned(campaign_id, user)
        status = self.uploads.check_file_exists(payload.file_url)
        if not status.exists:
            raise ValidationError("Impact report file has not been uploaded yet")

        now = utc_now_iso()
        changes = {
            "impactReport": {
                "url": payload.file_url,
                "uploadDate": now,
                "fileName": payload.file_name or status.file_name,
            },
            "updatedAt": now,
        }
        self.store.update(CAMPAIGNS_COLLECTION, campaign_id, changes)
        logger.info("Attached impact report %s to campaign %s", status.key, campaign_id)
        return self.populate(campaign_id, {**existing, **changes})
