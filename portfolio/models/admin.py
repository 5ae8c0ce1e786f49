"""
Admin account models.

This module provides the admin user table and the request/response
schemas used by the login and credential update flows.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel


class AdminUser(SQLModel, table=True):
    """Administrator account used to sign in to the admin area."""

    __tablename__ = "admin_users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(sa_column=Column(String(100), unique=True, nullable=False, index=True))
    hashed_password: str | None = Field(default=None, max_length=255)
    # Plaintext password carried over from older installs; hashed on first login
    legacy_password: str | None = Field(default=None, max_length=255)
    last_login: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class LoginRequest(BaseModel):
    """Credentials submitted from the login form."""

    username: str
    password: str

    @field_validator("username")
    @classmethod
    def username_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Username must not be empty.")
        return value.strip()

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Password must not be empty.")
        return value


class CredentialsUpdate(BaseModel):
    """Change of admin username and/or password.

    Empty strings mean "leave unchanged"; at least one of the two must be set.
    """

    current_password: str
    new_username: str = ""
    new_password: str = ""

    @field_validator("current_password")
    @classmethod
    def current_password_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Current password must not be empty.")
        return value

    @field_validator("new_username")
    @classmethod
    def new_username_length(cls, value: str) -> str:
        value = value.strip()
        if value and len(value) < 3:
            raise ValueError("New username must be at least 3 characters.")
        return value

    @field_validator("new_password")
    @classmethod
    def new_password_length(cls, value: str) -> str:
        value = value.strip()
        if value and len(value) < 6:
            raise ValueError("New password must be at least 6 characters.")
        return value

    @model_validator(mode="after")
    def something_changes(self) -> "CredentialsUpdate":
        if not self.new_username and not self.new_password:
            raise ValueError("Either a new username or a new password is required.")
        return self


class AdminSessionRead(BaseModel):
    """The signed-in admin as seen through the current session token."""

    id: str
    username: str
    expires_at: datetime
    idle_warning_seconds: int
    idle_logout_seconds: int


class LoginStatus(BaseModel):
    """Whether the request already carries a valid admin session."""

    authenticated: bool
