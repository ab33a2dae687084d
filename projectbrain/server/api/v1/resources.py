"""
API endpoints for file resources.

Users upload private files within their plan's file count and storage
limits. Admins manage shared files visible to everyone.
"""

from typing import List, Optional

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from projectbrain.core.database.entities.users import User, UserRole
from projectbrain.core.errors import ForbiddenException, NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.resources import ResourceRead
from projectbrain.server.services.deps import CurrentUserDep, ResourceServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["resources"])

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _owner(user: User, shared: bool) -> Optional[str]:
    """Storage owner for a request; shared resources belong to no user."""
    if not shared:
        return user.id
    if not user.has_role(UserRole.ADMIN):
        raise ForbiddenException("Admin role required for shared resources")
    return None


@router.get(
    "",
    response_model=List[ResourceRead],
    summary="List Resources",
    description="The caller's files, followed by shared files unless excluded.",
)
async def list_resources(
    user: CurrentUserDep, resources: ResourceServiceDep, include_shared: bool = Query(True)
) -> List[ResourceRead]:
    return [ResourceRead.model_validate(r) for r in await resources.get_all_for_user(user.id, include_shared)]


@router.post(
    "/upload",
    response_model=ResourceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Resource",
    description="Upload a file. Uploading an existing name replaces the file.",
    responses={
        400: {"description": "Invalid file name"},
        403: {"description": "Only admins may upload shared files"},
        429: {"description": "File count or storage limit reached"},
    },
)
async def upload_resource(
    user: CurrentUserDep,
    resources: ResourceServiceDep,
    file: UploadFile = File(...),
    shared: bool = Form(False),
) -> ResourceRead:
    """
    Upload a file.

    - **file**: Multipart file content.
    - **shared**: Store as a shared file (admin only).
    """
    owner = _owner(user, shared)
    content = await file.read()
    resource = await resources.upload(owner, file.filename or "", content, file.content_type)
    return ResourceRead.model_validate(resource)


@router.get(
    "/{file_name}",
    response_model=ResourceRead,
    summary="Get Resource",
    description="Metadata of one of the caller's files, or of a shared file with that name.",
    responses={404: {"description": "Resource not found"}},
)
async def get_resource(file_name: str, user: CurrentUserDep, resources: ResourceServiceDep) -> ResourceRead:
    resource = await resources.get_accessible(user.id, file_name)
    if resource is None:
        raise NotFoundException("Resource not found", code="RESOURCE_NOT_FOUND")
    return ResourceRead.model_validate(resource)


@router.get(
    "/{file_name}/file",
    summary="Download Resource",
    description="Stream the content of a file the caller can access.",
    responses={404: {"description": "Resource not found"}},
)
async def download_resource(file_name: str, user: CurrentUserDep, resources: ResourceServiceDep):
    resource = await resources.get_accessible(user.id, file_name)
    if resource is None:
        raise NotFoundException("Resource not found", code="RESOURCE_NOT_FOUND")
    content = await resources.read(resource)

    def chunks():
        for start in range(0, len(content), DOWNLOAD_CHUNK_SIZE):
            yield content[start : start + DOWNLOAD_CHUNK_SIZE]

    return StreamingResponse(
        chunks(),
        media_type=resource.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{resource.file_name}"'},
    )


@router.delete(
    "/{file_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Resource",
    description="Delete a file and release its storage.",
    responses={403: {"description": "Only admins may delete shared files"}, 404: {"description": "Resource not found"}},
)
async def delete_resource(
    file_name: str, user: CurrentUserDep, resources: ResourceServiceDep, shared: bool = Query(False)
) -> None:
    if not await resources.delete(_owner(user, shared), file_name):
        raise NotFoundException("Resource not found", code="RESOURCE_NOT_FOUND")
