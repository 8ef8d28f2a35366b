from unittest.mock import AsyncMock, patch

import pytest

from gallery.platform.errors import SyncError
from gallery.workers import main as sync_main


@pytest.mark.asyncio
async def test_unknown_job_name_exits_with_usage_error():
    with patch.object(sync_main.sys, "argv", ["sync", "reindex"]):
        assert await sync_main.main() == 2


@pytest.mark.asyncio
async def test_sync_failure_exits_non_zero_and_shuts_down():
    runner = AsyncMock()
    runner.run.return_value = ([], ["plugins"])

    with patch.object(sync_main.sys, "argv", ["sync", "plugins"]), \
            patch.object(sync_main, "SyncRunner", return_value=runner):
        assert await sync_main.main() == 1

    runner.run.assert_awaited_once_with(["plugins"])
    runner.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_clean_run_exits_zero():
    runner = AsyncMock()
    runner.run.return_value = ([], [])

    with patch.object(sync_main.sys, "argv", ["sync"]), \
            patch.object(sync_main, "SyncRunner", return_value=runner):
        assert await sync_main.main() == 0

    runner.run.assert_awaited_once_with(["all"])


@pytest.mark.asyncio
async def test_runner_selects_jobs():
    runner = sync_main.SyncRunner.__new__(sync_main.SyncRunner)
    plugin_job, theme_job = AsyncMock(), AsyncMock()

    with patch.object(sync_main.SyncRunner, "plugin_job", return_value=plugin_job), \
            patch.object(sync_main.SyncRunner, "theme_job", return_value=theme_job):
        await runner.run(["themes"])
        plugin_job.run.assert_not_awaited()
        theme_job.run.assert_awaited_once()

        await runner.run(["all"])
        plugin_job.run.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_plugin_job_does_not_stop_theme_job():
    runner = sync_main.SyncRunner.__new__(sync_main.SyncRunner)
    plugin_job, theme_job = AsyncMock(), AsyncMock()
    plugin_job.run.side_effect = SyncError("npm down")

    with patch.object(sync_main.SyncRunner, "plugin_job", return_value=plugin_job), \
            patch.object(sync_main.SyncRunner, "theme_job", return_value=theme_job):
        reports, failed = await runner.run(["all"])

    theme_job.run.assert_awaited_once()
    assert failed == ["plugins"]
    assert reports == [theme_job.run.return_value]


@pytest.mark.asyncio
async def test_main_exits_non_zero_when_any_job_failed():
    plugin_job, theme_job = AsyncMock(), AsyncMock()
    plugin_job.run.side_effect = SyncError("npm down")

    with patch.object(sync_main.sys, "argv", ["sync", "all"]), \
            patch.object(sync_main.SyncRunner, "__init__", return_value=None), \
            patch.object(sync_main.SyncRunner, "start", new=AsyncMock()), \
            patch.object(sync_main.SyncRunner, "shutdown", new=AsyncMock()) as shutdown, \
            patch.object(sync_main.SyncRunner, "plugin_job", return_value=plugin_job), \
            patch.object(sync_main.SyncRunner, "theme_job", return_value=theme_job):
        assert await sync_main.main() == 1

    theme_job.run.assert_awaited_once()
    shutdown.assert_awaited_once()
