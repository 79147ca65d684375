"""
Account endpoints for API v1.

An identity registers exactly one account with a globally unique
username.  The identity always comes from the bearer token; the body
only carries the desired username.
"""

from typing import Dict

from fastapi import APIRouter, Depends, status

from contacts_api.app.api.deps import get_directory
from contacts_api.app.core.security import resolve_identity
from contacts_api.app.schemas.user import AccountCreate, AccountRead
from contacts_api.app.services.directory_service import DirectoryService

router = APIRouter()


@router.post("/", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_in: AccountCreate,
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> AccountRead:
    """Create the caller's account.

    Returns HTTP 409 with code ``already_has_account`` if the caller is
    already registered, or ``username_taken`` if the username belongs to
    someone else.
    """
    user = directory.create_account(identity, account_in.username)
    return AccountRead(identity=identity, **user.model_dump())


@router.get("/", response_model=AccountRead)
async def get_account(
    identity: str = Depends(resolve_identity),
    directory: DirectoryService = Depends(get_directory),
) -> AccountRead:
    """Return the caller's username and contact id lists."""
    user = directory.get_account(identity)
    return AccountRead(identity=identity, **user.model_dump())


@router.get("/whoami", response_model=Dict[str, str])
async def whoami(identity: str = Depends(resolve_identity)) -> Dict[str, str]:
    """Echo the identity resolved from the token, account or not."""
    return {"identity": identity}
