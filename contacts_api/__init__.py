"""
Top-level package for the Contacts API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``contacts_api.app.main:app``.
"""

__all__ = []
