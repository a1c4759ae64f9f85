# ============================================================================
# CLI TOOL TESTS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Tests - tools/run_backup.py
# PURPOSE: Verify argument handling and the scheduled / single paths
# CREATED: 17 OCT 2026
# ============================================================================

import argparse
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.config import ClusterConfig, reset_defaults
from core.errors import JobExecutionFailure
from core.models import AsyncJobStatus, BackupDestination, SchedulingPolicy
from core.contracts import RemoteJobStatus
from tools import run_backup


@pytest.fixture
def config():
    return ClusterConfig(mvip="10.0.0.5", username="admin", password="pw")


def patched_client(client):
    """ElementClient replacement whose context manager yields client."""
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = client
    factory.return_value.__aexit__.return_value = False
    return factory


class TestBuildPolicy:

    def _args(self, **overrides):
        values = {
            "poll_interval": None,
            "jitter": None,
            "max_attempts": None,
            "backoff": "fixed",
            "initial_delay": 0.0,
        }
        values.update(overrides)
        return argparse.Namespace(**values)

    def test_env_defaults_used(self, monkeypatch):
        monkeypatch.setenv("BACKUP_POLL_INTERVAL_SEC", "7")
        reset_defaults()
        try:
            policy = run_backup.build_policy(self._args())
        finally:
            reset_defaults()

        assert policy.poll_interval_seconds == 7.0
        assert not policy.launch_retry.is_bounded

    def test_overrides(self):
        policy = run_backup.build_policy(self._args(
            poll_interval=1.0, jitter=0.5, max_attempts=4,
            backoff="exponential", initial_delay=2.0,
        ))

        assert policy.poll_interval_seconds == 1.0
        assert policy.jitter_seconds == 0.5
        assert policy.resolution_retry.max_attempts == 4
        assert policy.launch_retry.backoff == "exponential"


class TestRunScheduled:

    def test_runs_scheduler_against_client(self, config, make_cluster, destination):
        cluster = make_cluster({1: 1, 2: 2})

        with patch.object(run_backup, "ElementClient", patched_client(cluster)):
            report = asyncio.run(run_backup.run_scheduled(
                config, [1, 2], destination, SchedulingPolicy(poll_interval_seconds=0),
            ))

        assert report.all_succeeded
        assert cluster.started == [1, 2]


class TestRunSingle:

    def test_start_and_wait(self, config, destination):
        client = MagicMock()
        client.start_job = AsyncMock(return_value=55)
        client.wait_for_async_result = AsyncMock(return_value=AsyncJobStatus(
            async_handle=55, status=RemoteJobStatus.COMPLETE, detail={"ok": True},
        ))

        with patch.object(run_backup, "ElementClient", patched_client(client)):
            result = asyncio.run(run_backup.run_single(config, 3, destination))

        assert result == {"volume_id": 3, "async_handle": 55, "result": {"ok": True}}
        client.start_job.assert_awaited_once_with(3, destination)
        client.wait_for_async_result.assert_awaited_once_with(55)

    def test_job_error_propagates(self, config, destination):
        client = MagicMock()
        client.start_job = AsyncMock(return_value=55)
        client.wait_for_async_result = AsyncMock(side_effect=JobExecutionFailure(55, "disk full"))

        with patch.object(run_backup, "ElementClient", patched_client(client)):
            with pytest.raises(JobExecutionFailure):
                asyncio.run(run_backup.run_single(config, 3, destination))


class TestMain:

    def test_single_requires_one_volume(self, monkeypatch, config):
        monkeypatch.setattr("sys.argv", ["run_backup.py", "1", "2", "--s3-url", "s3://b/x", "--single"])
        monkeypatch.setattr(run_backup, "load_config", lambda path: config)
        monkeypatch.setattr(run_backup, "configure_logging", lambda level: None)

        with pytest.raises(SystemExit) as exc_info:
            run_backup.main()
        assert exc_info.value.code == 2

    def test_bad_destination_exits_2(self, monkeypatch, config):
        monkeypatch.setattr("sys.argv", ["run_backup.py", "1", "--s3-url", "  "])
        monkeypatch.setattr(run_backup, "load_config", lambda path: config)
        monkeypatch.setattr(run_backup, "configure_logging", lambda level: None)

        with pytest.raises(SystemExit) as exc_info:
            run_backup.main()
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("deadline", ["-5", "0"])
    def test_non_positive_deadline_exits_2(self, monkeypatch, config, deadline):
        monkeypatch.setattr("sys.argv", [
            "run_backup.py", "1", "--s3-url", "s3://b/x", "--deadline", deadline,
        ])
        monkeypatch.setattr(run_backup, "load_config", lambda path: config)
        monkeypatch.setattr(run_backup, "configure_logging", lambda level: None)
        client_factory = MagicMock()
        monkeypatch.setattr(run_backup, "ElementClient", client_factory)

        with pytest.raises(SystemExit) as exc_info:
            run_backup.main()
        assert exc_info.value.code == 2
        client_factory.assert_not_called()

    def test_exit_code_reflects_report(self, monkeypatch, config, make_cluster):
        cluster = make_cluster({1: 1})
        cluster.status_scripts[1] = [("error", "disk full")]
        monkeypatch.setattr("sys.argv", [
            "run_backup.py", "1", "--s3-url", "s3://b/x", "--poll-interval", "0",
        ])
        monkeypatch.setattr(run_backup, "load_config", lambda path: config)
        monkeypatch.setattr(run_backup, "configure_logging", lambda level: None)
        monkeypatch.setattr(run_backup, "ElementClient", patched_client(cluster))

        with pytest.raises(SystemExit) as exc_info:
            run_backup.main()
        assert exc_info.value.code == 1
