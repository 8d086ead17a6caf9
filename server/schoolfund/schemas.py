"""
Pydantic schemas for the SchoolFund API. Field names are snake_case in
Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.types import CampaignStatus, UpdateStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    def to_document(self, *, partial: bool = False) -> dict:
        """
        camelCase dict ready for the document store. With `partial`, only
        fields the client sent are kept, and an explicit null leaves the
        stored value alone.
        """
        if partial:
            return self.model_dump(
                by_alias=True, exclude_unset=True, exclude_none=True, mode="json"
            )
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# Auth


class RegisterRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=6, max_length=128)
    display_name: Optional[str] = Field(default=None, max_length=128)


class LoginRequest(CamelModel):
    id_token: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)


class UserPayload(CamelModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: str


class AuthResponse(CamelModel):
    message: str
    user: UserPayload
    token: str


class MessageResponse(CamelModel):
    message: str
    id: Optional[str] = None


# Schools


class StudentDemographics(CamelModel):
    male: int = Field(default=0, ge=0)
    female: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class TeacherDemographics(CamelModel):
    steam_involved: int = Field(default=0, ge=0)
    non_steam_involved: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class SchoolCreate(CamelModel):
    school_name: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    school_type: str = Field(..., min_length=1)
    challenges: list[str] = Field(default_factory=list)
    contact_name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone: str = Field(..., min_length=1)
    profile_image: Optional[str] = None
    students: Optional[StudentDemographics] = None
    teachers: Optional[TeacherDemographics] = None


class SchoolUpdate(CamelModel):
    school_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    country: Optional[str] = None
    city: Optional[str] = None
    school_type: Optional[str] = None
    challenges: Optional[list[str]] = None
    contact_name: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    students: Optional[StudentDemographics] = None
    teachers: Optional[TeacherDemographics] = None


# Campaigns


class CampaignLocation(CamelModel):
    city: str = ""
    country: str = ""


class CampaignOrganizer(CamelModel):
    name: str
    profile_image: Optional[str] = None
    role: Optional[str] = None


class CampaignCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    goal: float = Field(..., gt=0)
    start_date: str
    end_date: str
    category: str = Field(..., min_length=1)
    media_url: str = ""
    additional_images: list[str] = Field(default_factory=list)
    location: Optional[CampaignLocation] = None
    organizer: Optional[CampaignOrganizer] = None


class CampaignUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    goal: Optional[float] = Field(default=None, gt=0)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category: Optional[str] = None
    amount_raised: Optional[float] = Field(default=None, ge=0)
    status: Optional[CampaignStatus] = None
    media_url: Optional[str] = None
    additional_images: Optional[list[str]] = None
    featured: Optional[bool] = None
    location: Optional[CampaignLocation] = None
    organizer: Optional[CampaignOrganizer] = None


class ImpactReportRequest(CamelModel):
    file_url: str = Field(..., min_length=1)
    file_name: Optional[str] = None


# Updates


class UpdateAuthor(CamelModel):
    name: str
    role: Optional[str] = None
    profile_image: Optional[str] = None


class UpdateCreate(CamelModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(..., min_length=1)
    campaign_id: Optional[str] = None
    media_url: Optional[str] = None
    status: UpdateStatus = UpdateStatus.PUBLISHED
    author: Optional[UpdateAuthor] = None


class UpdateUpdate(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    media_url: Optional[str] = None
    status: Optional[UpdateStatus] = None
    author: Optional[UpdateAuthor] = None


# Uploads


class UploadResponse(CamelModel):
    url: str
    key: str
    message: str


class MultiUploadResponse(CamelModel):
    urls: list[str]
    message: str


class FileStatus(CamelModel):
    """Whether an uploaded object is visible in storage, with its metadata if so."""

    exists: bool
    key: Optional[str] = None
    file_name: Optional[str] = None
    size: Optional[int] = None
    formatted_size: Optional[str] = None
    last_modified: Optional[str] = None
    content_type: Optional[str] = None

    def as_dict(self) -> dict:
        """camelCase payload with unset fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)
