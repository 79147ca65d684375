"""
Identity resolution for incoming requests.

Callers authenticate with a JSON Web Token signed with HMAC-SHA256.  The
token's ``sub`` claim is the caller identity: an opaque, stable string
that the directory uses as the primary key of the user table.  The
identity is only ever taken from a verified token, never from a request
body or query parameter.

Tokens are produced by ``create_access_token`` (see ``create_token.py``
at the project root) and verified by ``decode_access_token``.  The
``resolve_identity`` dependency ties both to FastAPI.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings

logger = logging.getLogger(__name__)


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(
    identity: str,
    expires_delta: Optional[int] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Create a signed token whose subject is ``identity``.

    Parameters
    ----------
    identity : str
        The caller identity to embed as the ``sub`` claim.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    secret_key : Optional[str]
        Signing key; defaults to ``settings.secret_key``.

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    claims = {"sub": identity, "exp": int(time.time()) + exp_seconds}
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature = _sign(signing_input, secret_key or settings.secret_key)
    return f"{header_b64}.{payload_b64}.{_b64_url_encode(signature)}"


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Verify a token and return its claims, or ``None`` if it is invalid.

    A token is invalid when it is malformed, its signature does not
    match, it has no ``exp`` claim or it has expired.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, secret_key or settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


security = HTTPBearer(auto_error=False)


def resolve_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Dependency returning the identity of the current caller.

    Raises HTTP 401 when the ``Authorization`` header is missing, the
    token does not verify or its subject is empty.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    app_settings = getattr(request.app.state, "settings", settings)
    payload = decode_access_token(credentials.credentials, secret_key=app_settings.secret_key)
    identity = payload.get("sub") if payload else None
    if not identity or not isinstance(identity, str):
        logger.warning("Rejected request with invalid or expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
