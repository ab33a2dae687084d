"""
API endpoints for journal entries.

Users keep private journal entries and label them with their own tags.
"""

from typing import List

from fastapi import APIRouter, Query, status

from projectbrain.core.database.entities.journal import JournalEntry
from projectbrain.core.errors import NotFoundException
from projectbrain.core.models.io.common import MAX_PAGE_SIZE, PagedRequest, PagedResponse
from projectbrain.core.models.io.journal import CountRead, JournalEntryCreate, JournalEntryRead, JournalEntryUpdate
from projectbrain.server.services.deps import CurrentUserDep, JournalServiceDep

router = APIRouter(tags=["journals"])


@router.post(
    "",
    response_model=JournalEntryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Journal Entry",
    description="Write a new journal entry, optionally linked to the caller's tags.",
)
async def create_entry(payload: JournalEntryCreate, user: CurrentUserDep, journal: JournalServiceDep) -> JournalEntryRead:
    """
    Create a journal entry.

    - **content**: Entry body.
    - **summary**: Optional short summary.
    - **tag_ids**: Tags to link. Tags owned by other users are ignored.
    """
    entry = JournalEntry(user_id=user.id, content=payload.content, summary=payload.summary)
    return await journal.add(entry, payload.tag_ids)


@router.get(
    "/count",
    response_model=CountRead,
    summary="Count Journal Entries",
    description="Total number of journal entries written by the caller.",
)
async def count_entries(user: CurrentUserDep, journal: JournalServiceDep) -> CountRead:
    return CountRead(count=await journal.count_for_user(user.id))


@router.get(
    "/recent",
    response_model=List[JournalEntryRead],
    summary="Recent Journal Entries",
    description="The caller's most recent journal entries.",
)
async def recent_entries(
    user: CurrentUserDep, journal: JournalServiceDep, count: int = Query(5, ge=1, le=MAX_PAGE_SIZE)
) -> List[JournalEntryRead]:
    return await journal.get_recent(user.id, count)


@router.get(
    "",
    response_model=PagedResponse[JournalEntryRead],
    summary="List Journal Entries",
    description="The caller's journal entries, newest first, paged.",
)
async def list_entries(
    user: CurrentUserDep,
    journal: JournalServiceDep,
    page: int = Query(1),
    page_size: int = Query(20),
) -> PagedResponse[JournalEntryRead]:
    paging = PagedRequest(page=page, page_size=page_size)
    items = await journal.get_paged(user.id, paging.skip, paging.take)
    total = await journal.count_for_user(user.id)
    return PagedResponse[JournalEntryRead].build(items, paging, total)


@router.get(
    "/{entry_id}",
    response_model=JournalEntryRead,
    summary="Get Journal Entry",
    description="Retrieve one of the caller's journal entries with its tags.",
    responses={404: {"description": "Entry not found"}},
)
async def get_entry(entry_id: int, user: CurrentUserDep, journal: JournalServiceDep) -> JournalEntryRead:
    entry = await journal.get_by_id(entry_id, user.id)
    if entry is None:
        raise NotFoundException("Journal entry not found", code="JOURNAL_ENTRY_NOT_FOUND")
    return entry


@router.put(
    "/{entry_id}",
    response_model=JournalEntryRead,
    summary="Update Journal Entry",
    description="Update content, summary or tags. Omitted tag_ids keep the current tags.",
    responses={404: {"description": "Entry not found"}},
)
async def update_entry(
    entry_id: int, payload: JournalEntryUpdate, user: CurrentUserDep, journal: JournalServiceDep
) -> JournalEntryRead:
    entry = await journal.get_entity(entry_id, user.id)
    if entry is None:
        raise NotFoundException("Journal entry not found", code="JOURNAL_ENTRY_NOT_FOUND")
    if payload.content is not None:
        entry.content = payload.content
    if "summary" in payload.model_fields_set:
        entry.summary = payload.summary
    return await journal.update(entry, payload.tag_ids)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Journal Entry",
    responses={404: {"description": "Entry not found"}},
)
async def delete_entry(entry_id: int, user: CurrentUserDep, journal: JournalServiceDep) -> None:
    entry = await journal.get_entity(entry_id, user.id)
    if entry is None:
        raise NotFoundException("Journal entry not found", code="JOURNAL_ENTRY_NOT_FOUND")
    await journal.remove(entry)
