from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


class UpdateStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class KeyStyle(str, Enum):
    """How uploaded objects are named inside their folder."""

    TIMESTAMP = "timestamp"  # folder/<ms>_<sanitized name>
    UUID = "uuid"  # folder/<uuid4>.<ext>
