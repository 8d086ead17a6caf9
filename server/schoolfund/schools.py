"""
School profile documents. A school's document id is its owner's uid.
"""

from __future__ import annotations

import logging
from typing import Optional

from schoolfund.auth import AuthUser
from schoolfund.errors import ForbiddenError, NotFoundError
from schoolfund.schemas import SchoolCreate, SchoolUpdate
from schoolfund.store import DocumentStore
from shared.firebase_constants import SCHOOLS_COLLECTION
from shared.utils import utc_now_iso

logger = logging.getLogger(__name__)


class SchoolService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def create_school(self, payload: SchoolCreate, user: AuthUser) -> dict:
        now = utc_now_iso()
        data = {**payload.to_document(), "createdAt": now, "updatedAt": now}
        self.store.set(SCHOOLS_COLLECTION, user.uid, data)
        logger.info("Saved school profile for %s", user.uid)
        return {"id": user.uid, **data}

    def find_school(self, school_id: str) -> Optional[dict]:
        data = self.store.get(SCHOOLS_COLLECTION, school_id)
        if data is None:
            return None
        return {"id": school_id, **data}

    def get_school(self, school_id: str) -> dict:
        school = self.find_school(school_id)
        if school is None:
            raise NotFoundError("School not found")
        return school

    def _check_owner(self, school_id: str, user: AuthUser) -> None:
        if user.uid != school_id and not user.is_admin:
            raise ForbiddenError(
                "Forbidden: You do not have permission to access this school"
            )

    def update_school(
        self, school_id: str, payload: SchoolUpdate, user: AuthUser
    ) -> dict:
        existing = self.get_school(school_id)
        self._check_owner(school_id, user)
        changes = {**payload.to_document(partial=True), "updatedAt": utc_now_iso()}
        self.store.update(SCHOOLS_COLLECTION, school_id, changes)
        return {**existing, **changes, "id": school_id}

    def delete_school(self, school_id: str, user: AuthUser) -> None:
        self.get_school(school_id)
        self._check_owner(school_id, user)
        self.store.delete(SCHOOLS_COLLECTION, school_id)
        logger.info("Deleted school %s (by %s)", school_id, user.uid)
