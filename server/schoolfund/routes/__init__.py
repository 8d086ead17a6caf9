"""
HTTP routes for the SchoolFund API.
"""

from fastapi import APIRouter

from schoolfund.routes import auth, campaigns, schools, updates, upload

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(schools.router, prefix="/schools", tags=["schools"])
router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
router.include_router(updates.router, prefix="/updates", tags=["updates"])
router.include_router(upload.router, prefix="/upload", tags=["upload"])
