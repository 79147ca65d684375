"""
Pydantic models for accounts.

``User`` is the record stored in the user directory.  The identity is
the directory key and therefore not a field of the record; ``AccountRead``
adds it back for API responses.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class User(BaseModel):
    username: str
    owned_contact_ids: List[int] = Field(default_factory=list)
    shared_contact_ids: List[int] = Field(default_factory=list)


class AccountCreate(BaseModel):
    """Schema for creating an account."""

    # No "/": the username is a single URL path segment when revoking.
    username: str = Field(..., min_length=1, max_length=64, pattern=r"^[^/]+$", examples=["alice"])

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username must not be blank")
        return v


class AccountRead(User):
    """Schema for reading the caller's account."""

    identity: str


class ShareRequest(BaseModel):
    """Body of a share request: the recipient's username."""

    username: str = Field(..., min_length=1, examples=["carol"])
