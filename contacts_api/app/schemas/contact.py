"""
Pydantic schemas for contacts.

A contact holds a name, an e-mail address and a phone number.  The
values are free-form; the only rule is that none of them is empty.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ContactBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Bob"])
    email: str = Field(..., min_length=1, examples=["bob@x.com"])
    phone: str = Field(..., min_length=1, examples=["555-1000"])


class ContactCreate(ContactBase):
    """Schema for creating a contact."""


class ContactUpdate(BaseModel):
    """Schema for editing a contact.

    All fields are optional; only provided values are overwritten.
    """

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)


class Contact(ContactBase):
    """A stored contact.  ``id`` is assigned by the store."""

    id: int

    model_config = {
        "from_attributes": True,
    }
