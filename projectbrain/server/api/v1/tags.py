"""
API endpoints for journal tags.

Tags are private to the user who created them; names are unique per user.
"""

from typing import List

from fastapi import APIRouter, status

from projectbrain.core.database.entities.journal import Tag
from projectbrain.core.errors import NotFoundException
from projectbrain.core.models.io.journal import TagCreate, TagRead, TagUpdate
from projectbrain.server.services.deps import CurrentUserDep, TagServiceDep

router = APIRouter(tags=["tags"])


@router.post(
    "",
    response_model=TagRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tag",
    description="Create a tag. An existing tag with the same name is returned instead of a duplicate.",
)
async def create_tag(payload: TagCreate, user: CurrentUserDep, tags: TagServiceDep) -> TagRead:
    return TagRead.model_validate(await tags.add(Tag(user_id=user.id, name=payload.name)))


@router.get(
    "",
    response_model=List[TagRead],
    summary="List Tags",
    description="All tags owned by the caller.",
)
async def list_tags(user: CurrentUserDep, tags: TagServiceDep) -> List[TagRead]:
    return [TagRead.model_validate(t) for t in await tags.get_all_for_user(user.id)]


@router.get(
    "/name/{name}",
    response_model=TagRead,
    summary="Get Tag by Name",
    responses={404: {"description": "Tag not found"}},
)
async def get_tag_by_name(name: str, user: CurrentUserDep, tags: TagServiceDep) -> TagRead:
    tag = await tags.get_by_name(name, user.id)
    if tag is None:
        raise NotFoundException("Tag not found", code="TAG_NOT_FOUND")
    return TagRead.model_validate(tag)


@router.get(
    "/{tag_id}",
    response_model=TagRead,
    summary="Get Tag",
    responses={404: {"description": "Tag not found"}},
)
async def get_tag(tag_id: int, user: CurrentUserDep, tags: TagServiceDep) -> TagRead:
    tag = await tags.get_by_id(tag_id, user.id)
    if tag is None:
        raise NotFoundException("Tag not found", code="TAG_NOT_FOUND")
    return TagRead.model_validate(tag)


@router.put(
    "/{tag_id}",
    response_model=TagRead,
    summary="Rename Tag",
    responses={404: {"description": "Tag not found"}},
)
async def update_tag(tag_id: int, payload: TagUpdate, user: CurrentUserDep, tags: TagServiceDep) -> TagRead:
    tag = await tags.get_by_id(tag_id, user.id)
    if tag is None:
        raise NotFoundException("Tag not found", code="TAG_NOT_FOUND")
    tag.name = payload.name
    return TagRead.model_validate(await tags.update(tag))


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Tag",
    description="Delete a tag and unlink it from every journal entry.",
    responses={404: {"description": "Tag not found"}},
)
async def delete_tag(tag_id: int, user: CurrentUserDep, tags: TagServiceDep) -> None:
    tag = await tags.get_by_id(tag_id, user.id)
    if tag is None:
        raise NotFoundException("Tag not found", code="TAG_NOT_FOUND")
    await tags.remove(tag)
