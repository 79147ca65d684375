"""
Shared FastAPI dependencies.

The directory service is created once per application by ``create_app``
and kept on ``app.state``; routes obtain it through ``get_directory``.
"""

from fastapi import Request

from contacts_api.app.services.directory_service import DirectoryService


def get_directory(request: Request) -> DirectoryService:
    return request.app.state.directory
