"""
Portfolio data models.

SQLModel tables define the database schema; plain pydantic models
describe request and response bodies.
"""

from .admin import AdminSessionRead, AdminUser, CredentialsUpdate, LoginRequest, LoginStatus
from .base import ActionResult
from .profile import (
    PROFILE_SETTINGS_ID,
    AdminProfileData,
    ConstructionState,
    ConstructionToggle,
    ProfileImageUpdate,
    ProfileSettings,
    PublicPortfolio,
    UnderConstruction,
)

__all__ = [
    "PROFILE_SETTINGS_ID",
    "ActionResult",
    "AdminProfileData",
    "AdminSessionRead",
    "AdminUser",
    "ConstructionState",
    "ConstructionToggle",
    "CredentialsUpdate",
    "LoginRequest",
    "LoginStatus",
    "ProfileImageUpdate",
    "ProfileSettings",
    "PublicPortfolio",
    "UnderConstruction",
]
