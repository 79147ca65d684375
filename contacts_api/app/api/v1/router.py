"""
Top-level router for version 1 of the API.

Aggregates the domain routers under a unified prefix.  When new
endpoints are added, include their routers here.
"""

from fastapi import APIRouter

from .endpoints import account, contacts, info

router = APIRouter()

router.include_router(account.router, prefix="/account", tags=["account"])
router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
router.include_router(info.router, prefix="/info", tags=["info"])
