"""User and session claim models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    """Account role. The first registered user is an admin."""

    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    """A registered user as stored in the credential store.

    password_hash is never serialized; model_dump() and API responses
    omit it.
    """

    id: UUID
    name: str
    username: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    role: Role = Role.USER
    reset_token: Optional[str] = Field(default=None, repr=False)
    reset_token_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def reset_fields_set_together(self) -> "User":
        """Ensure reset_token and its expiry are both set or both empty."""
        if (self.reset_token is None) != (self.reset_token_expires_at is None):
            raise ValueError(
                "reset_token and reset_token_expires_at must be set or cleared together"
            )
        return self


class TokenUser(BaseModel):
    """Identity claims carried by a session token.

    Also the public user projection returned by register and login.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    user_id: UUID = Field(alias="userId")
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "TokenUser":
        return cls(name=user.name, user_id=user.id, role=user.role)

    def to_claims(self) -> dict:
        """Return the JSON-safe claim dict (name, userId, role)."""
        return self.model_dump(mode="json", by_alias=True)


class UserSummary(BaseModel):
    """Public user representation for admin listings."""

    id: UUID
    name: str
    username: str
    email: str
    role: Role
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )
