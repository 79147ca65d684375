"""
Information endpoint for API v1.

Returns the service name and version together with the number of
registered users and stored contacts.  Publicly accessible.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from contacts_api.app.api.deps import get_directory
from contacts_api.app.services.directory_service import DirectoryService

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def get_info(
    request: Request,
    directory: DirectoryService = Depends(get_directory),
) -> Dict[str, Any]:
    app_settings = request.app.state.settings
    return {
        "project_name": app_settings.project_name,
        "version": app_settings.api_version,
        **directory.stats(),
    }
