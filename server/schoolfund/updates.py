"""
Campaign updates: short posts a school publishes about its campaigns.
"""

from __future__ import annotations

import logging
from typing import Optional

from schoolfund.auth import AuthUser
from schoolfund.campaigns import CampaignService
from schoolfund.errors import ForbiddenError, NotFoundError
from schoolfund.pagination import page_offset, paginate
from schoolfund.schemas import UpdateCreate, UpdateUpdate
from schoolfund.store import DocumentStore, Filter, where
from shared.constants import DEFAULT_PAGE_LIMIT
from shared.firebase_constants import UPDATES_COLLECTION
from shared.utils import utc_now_iso

logger = logging.getLogger(__name__)


class UpdateService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def create_update(self, payload: UpdateCreate, user: AuthUser) -> dict:
        if payload.campaign_id:
            # Posting on a campaign requires owning it.
            CampaignService(self.store).load_owned(payload.campaign_id, user)
        now = utc_now_iso()
        data = {
            **payload.to_document(),
            "schoolId": user.uid,
            "createdAt": now,
            "updatedAt": now,
        }
        update_id = self.store.add(UPDATES_COLLECTION, data)
        logger.info("Created update %s for school %s", update_id, user.uid)
        return {"id": update_id, **data}

    def list_updates(
        self,
        *,
        school_id: Optional[str] = None,
        campaign_id: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> dict:
        filters: list[Filter] = []
        if school_id:
            filters.append(where("schoolId", school_id))
        if campaign_id:
            filters.append(where("campaignId", campaign_id))

        total = self.store.count(UPDATES_COLLECTION, filters)
        docs = self.store.query(
            UPDATES_COLLECTION,
            filters,
            order_by="createdAt",
            descending=True,
            limit=limit,
            offset=page_offset(page, limit),
        )
        return {
            "updates": [{"id": doc_id, **data} for doc_id, data in docs],
            "pagination": paginate(total, page, limit),
        }

    def _load(self, update_id: str) -> dict:
        data = self.store.get(UPDATES_COLLECTION, update_id)
        if data is None:
            raise NotFoundError("Update not found")
        return data

    def _load_owned(self, update_id: str, user: AuthUser) -> dict:
        data = self._load(update_id)
        if data.get("schoolId") != user.uid:
            raise ForbiddenError("Forbidden: You do not own this update")
        return data

    def get_update(self, update_id: str) -> dict:
        return {"id": update_id, **self._load(update_id)}

    def update_update(
        self, update_id: str, payload: UpdateUpdate, user: AuthUser
    ) -> dict:
        existing = self._load_owned(update_id, user)
        changes = {**payload.to_document(partial=True), "updatedAt": utc_now_iso()}
        self.store.update(UPDATES_COLLECTION, update_id, changes)
        return {"id": update_id, **existing, **changes}

    def delete_update(self, update_id: str, user: AuthUser) -> None:
        self._load_owned(update_id, user)
        self.store.delete(UPDATES_COLLECTION, update_id)
        logger.info("Deleted update %s (by %s)", update_id, user.uid)
