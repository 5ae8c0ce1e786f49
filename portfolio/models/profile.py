"""
Profile settings models.

A single ``profile_settings`` row carries site-wide state: the public
profile image, CV metadata and the construction-mode flag with its expiry.
"""

from datetime import datetime

from pydantic import BaseModel, field_validator
from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

PROFILE_SETTINGS_ID = 1


class ProfileSettings(SQLModel, table=True):
    """Singleton settings record (always stored under ``PROFILE_SETTINGS_ID``)."""

    __tablename__ = "profile_settings"

    id: int = Field(default=PROFILE_SETTINGS_ID, primary_key=True)
    profile_image_uri: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    cv_updated_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    construction_active: bool = Field(default=False)
    construction_active_until: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class ConstructionState(BaseModel):
    """Effective construction-mode state."""

    is_active: bool
    active_until: datetime | None = None


class ConstructionToggle(BaseModel):
    """Explicit construction-mode switch from the admin panel."""

    is_active: bool


class ProfileImageUpdate(BaseModel):
    """New profile image as a data URI."""

    image_data_uri: str

    @field_validator("image_data_uri")
    @classmethod
    def must_be_image_data_uri(cls, value: str) -> str:
        if not value.startswith("data:image/"):
            raise ValueError("Image must be a data URI starting with 'data:image/'.")
        return value


class AdminProfileData(BaseModel):
    """Initial data for the admin profile page."""

    profile_image_url: str
    cv_url: str
    cv_updated_at: datetime | None = None


class PublicPortfolio(BaseModel):
    """What the public landing page receives when the site is open."""

    profile_image_url: str
    cv_url: str | None = None


class UnderConstruction(BaseModel):
    """Payload served while an admin is editing content."""

    under_construction: bool = True
    message: str = "Sorry, this site is under construction. Please check back in a few minutes."
    retry_after_seconds: int | None = None
