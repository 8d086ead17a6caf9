"""
Firebase Admin app bootstrap.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from schoolfund.config import Settings

logger = logging.getLogger(__name__)


def get_firebase_app(settings: Settings) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if settings.firebase_credentials_path:
        cred = credentials.Certificate(settings.firebase_credentials_path)
    else:
        logger.warning(
            "No Firebase credentials file configured; using application default credentials."
        )
        cred = credentials.ApplicationDefault()
    options = (
        {"projectId": settings.firebase_project_id}
        if settings.firebase_project_id
        else None
    )
    return firebase_admin.initialize_app(cred, options)
