"""Contacts API client.

A thin wrapper around the HTTP API served by ``contacts_api``.  Every
method returns a tuple ``(data, error)``: on success ``error`` is
``None``; on failure ``data`` is ``None`` (or an empty list for list
operations) and ``error`` is a dictionary with the keys ``status_code``,
``code`` and ``message``.  ``code`` is the machine-readable error code
returned by the server (for example ``username_taken`` or
``forbidden``) when there is one.

Authentication uses a bearer token whose subject is the caller identity
(see ``create_token.py``)::

    client = ContactsAPI(base_url="http://localhost:8000", token=token)
    client.create_account("alice")
    contact, error = client.create_contact("Bob", "bob@x.com", "555-1000")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class ContactsAPI:
    """Client for the contacts directory API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        api_prefix: str = "/api/v1",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:8000``.
            token: Bearer token identifying the caller.  Without it only
                :meth:`info` succeeds.
            api_prefix: Path prefix of the versioned API.
            session: Optional requests session.  If not supplied a session
                is created automatically.
            timeout: Timeout in seconds applied to every request.
        """
        self.base_url = base_url.rstrip("/") + api_prefix
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request and return ``(data, error)``."""
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            code = None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    code = err_json.get("code")
                    message = err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "code": code, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "code": None, "message": str(exc)}

    def _list(self, path: str) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", path)
        if error:
            return [], error
        return (data if isinstance(data, list) else []), None

    # ------------------------------------------------------------------
    # Account operations
    # ------------------------------------------------------------------
    def create_account(self, username: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("POST", "/account/", json_body={"username": username})

    def get_account(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/account/")

    def whoami(self) -> Tuple[Optional[str], Optional[Error]]:
        data, error = self._request("GET", "/account/whoami")
        if error:
            return None, error
        return data.get("identity"), None

    # ------------------------------------------------------------------
    # Contact operations
    # ------------------------------------------------------------------
    def create_contact(self, name: str, email: str, phone: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request(
            "POST",
            "/contacts/",
            json_body={"name": name, "email": email, "phone": phone},
        )

    def list_contacts(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve the caller's own contacts."""
        return self._list("/contacts/")

    def list_shared_contacts(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve contacts shared with the caller."""
        return self._list("/contacts/shared")

    def get_contact(self, contact_id: int) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/contacts/{contact_id}")

    def edit_contact(self, contact_id: int, **updates: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Update some of ``name``, ``email`` and ``phone``.

        Args:
            contact_id: Identifier of the contact.
            **updates: Only the fields to change.
        """
        return self._request("PUT", f"/contacts/{contact_id}", json_body=updates)

    def delete_contact(self, contact_id: int) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("DELETE", f"/contacts/{contact_id}")
        return error is None, error

    # ------------------------------------------------------------------
    # Sharing operations
    # ------------------------------------------------------------------
    def share_contact(self, contact_id: int, username: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request(
            "POST",
            f"/contacts/{contact_id}/shares",
            json_body={"username": username},
        )
        return error is None, error

    def revoke_shared_contact(self, contact_id: int, username: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("DELETE", f"/contacts/{contact_id}/shares/{quote(username, safe='')}")
        return error is None, error

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def info(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/info/")
