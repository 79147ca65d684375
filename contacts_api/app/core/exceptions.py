"""
Exceptions raised by the directory services.

Every expected outcome other than success is a subclass of
``DirectoryError``.  Each class carries the HTTP status it maps to and a
stable machine-readable ``code`` which the API returns next to the
human-readable message.  ``InternalConsistencyError`` is different in
kind: it means a store invariant was found broken and must never be
turned into an empty or default result.
"""

from typing import Any, Dict, Optional


class DirectoryError(Exception):
    """Base exception for all directory errors."""

    status_code: int = 400
    code: str = "directory_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AlreadyHasAccount(DirectoryError):
    """The calling identity already owns an account."""

    status_code = 409
    code = "already_has_account"


class UsernameTaken(DirectoryError):
    """Another identity registered the requested username."""

    status_code = 409
    code = "username_taken"


class NoAccount(DirectoryError):
    """The calling identity has not created an account yet."""

    status_code = 401
    code = "no_account"


class NotFound(DirectoryError):
    status_code = 404
    code = "not_found"


class ContactNotFound(NotFound):
    code = "contact_not_found"


class RecipientNotFound(NotFound):
    code = "recipient_not_found"


class UserNotFound(NotFound):
    code = "user_not_found"


class Forbidden(DirectoryError):
    """The caller does not own the contact it tries to use."""

    status_code = 403
    code = "forbidden"


class NotShared(DirectoryError):
    """Revoking a share that does not exist."""

    status_code = 409
    code = "not_shared"


class SelfShare(DirectoryError):
    """Sharing a contact with its own owner."""

    status_code = 409
    code = "self_share"


class InternalConsistencyError(DirectoryError):
    """A store invariant was found violated."""

    status_code = 500
    code = "internal_consistency"
