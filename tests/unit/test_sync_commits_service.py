"""
Tests for the sync run over all projects.
"""

from datetime import datetime

import pytest

from repo_analyzer.config.settings import settings
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.models.sync_log import SyncType
from repo_analyzer.repositories.commit_repository import CommitRepository
from repo_analyzer.repositories.sync_log_repository import SyncLogRepository
from repo_analyzer.services import sync_commits_service
from repo_analyzer.services.commit_batch_processor import CommitBatchProcessor
from repo_analyzer.services.commit_stats_service import CommitStatsService
from repo_analyzer.services.sync_commits_service import STATE_EXHAUSTED, STATE_FAILED, SyncCommitsService
from tests.conftest import commit_payload


@pytest.fixture
def make_service(gitlab_client, session_factory):
    def _make(batch_pages: int = 10) -> SyncCommitsService:
        processor = CommitBatchProcessor(gitlab_client, session_factory, batch_pages=batch_pages, page_size=2, page_delay=0)
        return SyncCommitsService(gitlab_client, session_factory, processor=processor)

    return _make


async def count_commits(session_factory, project_id: int) -> int:
    async with session_factory() as session:
        return await CommitRepository(session).count_by_project(project_id)


async def stats_snapshot(session_factory, project_id: int):
    async with session_factory() as session:
        stats = CommitStatsService(session)
        return (
            await stats.get_monthly_stats(project_id),
            await stats.get_weekly_stats(project_id, now=datetime(2024, 4, 1)),
            await stats.get_committer_ranking(project_id),
        )


class TestSyncCommits:
    @pytest.mark.asyncio
    async def test_one_failing_project_does_not_stop_the_others(
        self, make_project, make_service, fake_gitlab, session_factory, paged_commits
    ):
        # Arrange
        alpha = await make_project("alpha", gitlab_id=31)
        beta = await make_project("beta", gitlab_id=32)
        gamma = await make_project("gamma", gitlab_id=33)
        fake_gitlab.set_pages(31, paged_commits(2, prefix="a"))
        fake_gitlab.fail(32, status_code=500)
        fake_gitlab.set_pages(33, paged_commits(3, prefix="g"))

        # Act
        summary = await make_service().sync_commits()

        # Assert
        assert [p.project_name for p in summary.projects] == ["alpha", "beta", "gamma"]
        assert [p.state for p in summary.projects] == [STATE_EXHAUSTED, STATE_FAILED, STATE_EXHAUSTED]
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert "HTTP 500" in summary.projects[1].error
        assert await count_commits(session_factory, alpha.id) == 4
        assert await count_commits(session_factory, beta.id) == 0
        assert await count_commits(session_factory, gamma.id) == 6
        assert summary.commits_inserted == 10
        assert summary.finished_at is not None

    @pytest.mark.asyncio
    async def test_failure_keeps_batches_committed_before_it(
        self, make_project, make_service, fake_gitlab, session_factory, paged_commits
    ):
        # Arrange
        project = await make_project("alpha", gitlab_id=34)
        broken = commit_payload("z" * 40)
        del broken["author_email"]
        fake_gitlab.set_pages(34, paged_commits(2) + [[broken]])

        # Act
        result = await make_service(batch_pages=1).sync_project(project)

        # Assert
        assert result.state == STATE_FAILED
        assert result.batches == 2
        assert await count_commits(session_factory, project.id) == 4
        async with session_factory() as session:
            assert await SyncLogRepository(session).count(project_id=project.id, sync_type=SyncType.COMMITS) == 2

    @pytest.mark.asyncio
    async def test_runs_batches_until_exhausted(self, make_project, make_service, fake_gitlab, session_factory, paged_commits):
        # Arrange
        project = await make_project("alpha", gitlab_id=35)
        fake_gitlab.set_pages(35, paged_commits(5))

        # Act
        result = await make_service(batch_pages=2).sync_project(project)

        # Assert
        assert result.state == STATE_EXHAUSTED
        assert result.batches == 3
        assert result.pages_processed == 5
        assert result.commits_inserted == 10

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent_and_incremental(
        self, make_project, make_service, fake_gitlab, session_factory, paged_commits
    ):
        # Arrange
        project = await make_project("alpha", gitlab_id=36)
        fake_gitlab.set_pages(36, paged_commits(2))
        service = make_service()
        await service.sync_commits()
        before = await stats_snapshot(session_factory, project.id)
        fake_gitlab.requests.clear()

        # Act
        summary = await service.sync_commits()

        # Assert
        assert summary.commits_inserted == 0
        assert await count_commits(session_factory, project.id) == 4
        assert fake_gitlab.requests[0].url.params["since"] == "2024-03-28T23:00:00+00:00"
        assert await stats_snapshot(session_factory, project.id) == before
        assert before[0][0].count == 4

    @pytest.mark.asyncio
    async def test_checkpoints_never_decrease_across_batches_of_a_run(
        self, make_project, make_service, fake_gitlab, session_factory, paged_commits
    ):
        # Arrange
        project = await make_project("alpha", gitlab_id=38)
        fake_gitlab.set_pages(38, paged_commits(11))
        service = make_service(batch_pages=10)

        # Act
        result = await service.sync_project(project)

        # Assert
        assert result.batches == 2
        async with session_factory() as session:
            history = await SyncLogRepository(session).find(project_id=project.id, sync_type=SyncType.COMMITS)
            latest = await SyncLogRepository(session).find_latest(project.id, SyncType.COMMITS)
        dates = [h.last_item_date for h in sorted(history, key=lambda h: h.id)]
        assert dates == sorted(dates)
        assert latest.last_item_date == datetime(2024, 3, 28, 23, 0)

        # Act
        fake_gitlab.requests.clear()
        await service.sync_project(project)

        # Assert
        assert fake_gitlab.requests[0].url.params["since"] == "2024-03-28T23:00:00+00:00"

    @pytest.mark.asyncio
    async def test_full_resync_ignores_checkpoints(self, make_project, make_service, fake_gitlab, paged_commits):
        # Arrange
        await make_project("alpha", gitlab_id=37)
        fake_gitlab.set_pages(37, paged_commits(1))
        service = make_service()
        await service.sync_commits()
        fake_gitlab.requests.clear()

        # Act
        summary = await service.sync_commits(full_resync=True)

        # Assert
        assert summary.full_resync is True
        assert "since" not in fake_gitlab.requests[0].url.params

    @pytest.mark.asyncio
    async def test_projects_are_visited_in_enumeration_order(self, make_project, make_service, fake_gitlab, paged_commits):
        # Arrange
        await make_project("gamma", gitlab_id=41)
        await make_project("alpha", gitlab_id=42)
        await make_project("beta", gitlab_id=43)
        for gitlab_id in (41, 42, 43):
            fake_gitlab.set_pages(gitlab_id, paged_commits(1, prefix=str(gitlab_id)))

        # Act
        summary = await make_service().sync_commits()

        # Assert
        assert [p.project_name for p in summary.projects] == ["alpha", "beta", "gamma"]
        first_paths = [r.url.path for r in fake_gitlab.requests if r.url.params.get("page") == "1"]
        assert [path.split("/")[4] for path in first_paths] == ["42", "43", "41"]

    @pytest.mark.asyncio
    async def test_no_projects(self, make_service):
        summary = await make_service().sync_commits()

        assert summary.projects == []
        assert summary.to_dict()["succeeded"] == 0


class TestRunFullSync:
    @pytest.mark.asyncio
    async def test_builds_service_from_settings(
        self, make_project, gitlab_client, fake_gitlab, session_factory, paged_commits, monkeypatch
    ):
        # Arrange
        project = await make_project("alpha", gitlab_id=38)
        fake_gitlab.set_pages(38, paged_commits(1))
        monkeypatch.setattr(settings, "SYNC_PAGE_DELAY_SECONDS", 0)
        monkeypatch.setattr(GitLabClient, "from_settings", classmethod(lambda cls: gitlab_client))
        monkeypatch.setattr(sync_commits_service, "get_session_factory", lambda: session_factory)

        # Act
        summary = await sync_commits_service.run_full_sync()

        # Assert
        assert summary.succeeded == 1
        assert await count_commits(session_factory, project.id) == 2
