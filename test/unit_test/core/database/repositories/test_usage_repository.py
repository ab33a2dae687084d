"""Unit tests for usage counter repositories with a mocked session."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from projectbrain.core.database.entities.usage import FileStorageUsage, UsageTracking
from projectbrain.core.database.repositories.usage import FileStorageUsageRepository, UsageTrackingRepository

PERIOD = datetime(2025, 6, 1)


@pytest.fixture
def mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


class TestUsageTrackingRepository:
    @pytest.mark.asyncio
    async def test_increment_creates_missing_counter(self, mock_session):
        repository = UsageTrackingRepository(mock_session)

        with patch.object(UsageTrackingRepository, "get_counter", AsyncMock(return_value=None)):
            counter = await repository.increment("alice", "ai_query", "daily", PERIOD, amount=2)

        assert isinstance(counter, UsageTracking)
        assert counter.count == 2
        assert counter.period_start == PERIOD
        mock_session.add.assert_called_once_with(counter)
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_increment_existing_counter(self, mock_session):
        repository = UsageTrackingRepository(mock_session)
        existing = UsageTracking(user_id="alice", usage_type="ai_query", period_type="daily", period_start=PERIOD, count=5)

        with patch.object(UsageTrackingRepository, "get_counter", AsyncMock(return_value=existing)):
            counter = await repository.increment("alice", "ai_query", "daily", PERIOD)

        assert counter is existing
        assert counter.count == 6


class TestFileStorageUsageRepository:
    @pytest.mark.asyncio
    async def test_add_bytes_clamps_at_zero(self, mock_session):
        repository = FileStorageUsageRepository(mock_session)
        existing = FileStorageUsage(user_id="alice", total_bytes=100)

        with patch.object(FileStorageUsageRepository, "get_for_user", AsyncMock(return_value=existing)):
            usage = await repository.add_bytes("alice", -250)

        assert usage.total_bytes == 0
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_bytes_creates_row(self, mock_session):
        repository = FileStorageUsageRepository(mock_session)

        with patch.object(FileStorageUsageRepository, "get_for_user", AsyncMock(return_value=None)):
            usage = await repository.add_bytes("alice", 42)

        assert usage.user_id == "alice"
        assert usage.total_bytes == 42
