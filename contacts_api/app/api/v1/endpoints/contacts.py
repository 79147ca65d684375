"""
Contact endpoints for API v1.

Contacts are created by and belong to the caller.  Only the owner may
edit, delete, share or revoke a contact; users a contact was shared with
can read it through ``GET /contacts/{id}`` and ``GET /contacts/shared``.
Errors raised by the directory service are turned into JSON responses
by the handler registered in ``main.py``.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from contacts_api.app.api.deps import get_directory
from contacts_api.app.core.security import resolve_identity
from contacts_api.app.schemas.contact import Contact, ContactCreate, ContactUpdate
from contacts_api.app.schemas.user import ShareRequest
from contacts_api.app.services.directory_service import DirectoryService

router = APIRouter()


@router.post("/", response_model=Contact, status_code=status.HTTP_201_CREATED)
async def create_contact(
    contact_in: ContactCreate,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> Contact:
    """Create a contact owned by the caller."""
    return directory.create_contact(identity, contact_in.name, contact_in.email, contact_in.phone)


@router.get("/", response_model=List[Contact])
async def list_contacts(
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> List[Contact]:
    """List the caller's own contacts in the order they were created."""
    return directory.get_contacts(identity)


@router.get("/shared", response_model=List[Contact])
async def list_shared_contacts(
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> List[Contact]:
    """List contacts other users have shared with the caller."""
    return directory.get_shared_contacts(identity)


@router.get("/{contact_id}", response_model=Contact)
async def get_contact(
    contact_id: int,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> Contact:
    return directory.get_contact(identity, contact_id)


@router.put("/{contact_id}", response_model=Contact)
async def edit_contact(
    contact_id: int,
    contact_in: ContactUpdate,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> Contact:
    """Update the supplied fields of an owned contact."""
    return directory.edit_contact(identity, contact_id, contact_in)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: int,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> None:
    """Delete an owned contact; every share of it disappears as well."""
    directory.delete_contact(identity, contact_id)
    return None


@router.post("/{contact_id}/shares", status_code=status.HTTP_204_NO_CONTENT)
async def share_contact(
    contact_id: int,
    share_in: ShareRequest,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> None:
    """Share an owned contact with another user, by username.

    Sharing again with the same user succeeds without changing anything.
    """
    directory.share_contact(identity, contact_id, share_in.username)
    return None


@router.delete("/{contact_id}/shares/{username}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_shared_contact(
    contact_id: int,
    username: str,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> None:
    """Withdraw a share.  Returns 409 ``not_shared`` if there was none."""
    directory.revoke_shared_contact(identity, contact_id, username)
    return None
