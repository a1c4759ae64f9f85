# ============================================================================
# LOGGING TESTS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Tests - Structured logging helpers
# PURPOSE: Verify context propagation and formatter output
# CREATED: 17 OCT 2026
# ============================================================================

import asyncio
import json
import logging

from core.logging import (
    ComponentType,
    HumanFormatter,
    StructuredFormatter,
    get_current_context,
    get_logger,
    log_checkpoint,
    log_context,
)


def make_record(msg="hello", extra=None):
    record = logging.LogRecord("orchestrator.loop", logging.INFO, __file__, 10, msg, None, None)
    if extra is not None:
        record.extra = extra
    return record


class TestLogContext:

    def test_nested_context_merges(self):
        with log_context(run_id="r1"):
            with log_context(volume_id=42, node_id=3):
                ctx = get_current_context()
                assert ctx.run_id == "r1"
                assert ctx.volume_id == 42
                assert ctx.node_id == 3
            assert get_current_context().volume_id is None
        assert get_current_context().run_id is None

    def test_context_popped_on_error(self):
        try:
            with log_context(run_id="r2"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert get_current_context().run_id is None

    def test_context_isolated_between_tasks(self):
        seen = []

        async def worker(run_id):
            with log_context(run_id=run_id):
                await asyncio.sleep(0)
                with log_context(volume_id=len(run_id)):
                    await asyncio.sleep(0)
                    ctx = get_current_context()
                    seen.append((run_id, ctx.run_id, ctx.volume_id))

        async def main():
            await asyncio.gather(worker("a"), worker("bb"), worker("ccc"))

        asyncio.run(main())

        assert sorted(seen) == [("a", "a", 1), ("bb", "bb", 2), ("ccc", "ccc", 3)]
        assert get_current_context().run_id is None


class TestFormatters:

    def test_human_format_includes_context(self):
        with log_context(run_id="r1", volume_id=7, async_handle=900):
            line = HumanFormatter().format(make_record("Started backup"))

        assert "[run=r1, vol=7, handle=900]" in line
        assert "orchestrator.loop" in line
        assert line.endswith("Started backup")

    def test_structured_format_is_json(self):
        with log_context(run_id="r1", node_id=2):
            line = StructuredFormatter().format(make_record("x", extra={"passes": 3}))

        data = json.loads(line)
        assert data["level"] == "INFO"
        assert data["message"] == "x"
        assert data["context"] == {"run_id": "r1", "node_id": 2}
        assert data["data"] == {"passes": 3}


class TestHelpers:

    def test_get_logger_adds_context(self, caplog):
        logger = get_logger("tools.run_backup", ComponentType.TOOL)

        with caplog.at_level(logging.INFO, logger="tools.run_backup"):
            with log_context(run_id="r9"):
                logger.info("starting")

        record = caplog.records[-1]
        assert record.extra["run_id"] == "r9"
        assert record.extra["component"] == ComponentType.TOOL

    def test_checkpoint_carries_context(self, caplog):
        with caplog.at_level(logging.INFO, logger="checkpoint"):
            with log_context(run_id="r3", volume_id=5):
                log_checkpoint("run_started", {"volumes": 2})

        record = caplog.records[-1]
        assert record.getMessage() == "CHECKPOINT: run_started"
        assert record.extra["checkpoint"] == "run_started"
        assert record.extra["run_id"] == "r3"
        assert record.extra["volume_id"] == 5
        assert record.extra["data"] == {"volumes": 2}
