"""
Tests for the feed service.
"""

import pytest
from fastapi import BackgroundTasks

from feedsync.config import state
from feedsync.services.feed_service import FeedService


@pytest.fixture
def service(test_db, sync_engine, notifier, monkeypatch):
    monkeypatch.setattr(state, "refresh_in_progress", False)
    return FeedService(test_db, sync_engine, notifier)


class TestScheduleRefreshAll:

    @pytest.mark.asyncio
    async def test_second_request_refused_before_first_runs(self, service):
        """Two back-to-back requests schedule exactly one batch."""
        background_tasks = BackgroundTasks()

        assert service.schedule_refresh_all(background_tasks) is True
        assert state.refresh_in_progress is True
        assert service.schedule_refresh_all(background_tasks) is False
        assert len(background_tasks.tasks) == 1

        await background_tasks()

        assert state.refresh_in_progress is False
        assert service.schedule_refresh_all(BackgroundTasks()) is True

    @pytest.mark.asyncio
    async def test_flag_cleared_when_batch_fails(self, service, monkeypatch):
        async def boom():
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(service.sync_engine, "update_all_feeds", boom)
        background_tasks = BackgroundTasks()
        service.schedule_refresh_all(background_tasks)

        with pytest.raises(RuntimeError):
            await background_tasks()

        assert state.refresh_in_progress is False
