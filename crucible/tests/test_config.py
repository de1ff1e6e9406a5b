"""
Tests for configuration and timers, plus logging setup.
"""

import asyncio
import logging

import pytest

from ..config import CrucibleConfig, get_default_data_dir
from ..engine_core.scheduler import AsyncioScheduler, ManualScheduler
from ..logging_config import setup_logging


class TestConfig:
    """Defaults and environment overrides."""

    def test_defaults(self):
        config = CrucibleConfig()
        assert config.resolver.merge_radius == 60
        assert config.gesture.palette_height == 256
        assert config.sync.debounce_seconds == 2.0
        assert config.sync.token_limit == 20
        assert config.sync.max_bytes == 32000

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CRUCIBLE_MERGE_RADIUS", "80")
        monkeypatch.setenv("CRUCIBLE_SAVE_DEBOUNCE", "0.5")
        monkeypatch.setenv("CRUCIBLE_REMOTE_URL", "http://localhost:8000")
        monkeypatch.setenv("CRUCIBLE_USER_ID", "u1")

        config = CrucibleConfig.from_env()

        assert config.resolver.merge_radius == 80
        assert config.sync.debounce_seconds == 0.5
        assert config.sync.remote_url == "http://localhost:8000"
        assert config.sync.user_id == "u1"

    def test_bad_env_values_ignored(self, monkeypatch):
        monkeypatch.setenv("CRUCIBLE_SAVE_TOKEN_LIMIT", "many")
        assert CrucibleConfig.from_env().sync.token_limit == 20

    def test_data_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CRUCIBLE_DATA_DIR", str(tmp_path))
        assert get_default_data_dir() == tmp_path


class TestManualScheduler:
    """Virtual clock."""

    def test_fires_in_due_order(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(0.4, lambda: fired.append("late"))
        scheduler.call_later(0.05, lambda: fired.append("early"))

        assert scheduler.advance(0.1) == 1
        assert scheduler.advance(1.0) == 1
        assert fired == ["early", "late"]

    def test_cancel(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_later(1.0, lambda: fired.append(1))
        handle.cancel()

        assert handle.cancelled
        assert scheduler.pending == 0
        assert scheduler.advance(2.0) == 0
        assert fired == []

    def test_run_all(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(5.0, lambda: scheduler.call_later(5.0, lambda: fired.append(2)))

        assert scheduler.run_all() == 2
        assert fired == [2]
        assert scheduler.now == pytest.approx(10.0)


class TestAsyncioScheduler:
    """Timers on the running loop."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()
        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self):
        scheduler = AsyncioScheduler()
        fired = []
        handle = scheduler.call_later(0.01, lambda: fired.append(1))
        handle.cancel()

        await asyncio.sleep(0.05)

        assert fired == []
        assert handle.cancelled

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged(self, caplog):
        scheduler = AsyncioScheduler()

        def boom():
            raise RuntimeError("boom")

        scheduler.call_later(0.0, boom)
        await asyncio.sleep(0.05)

        assert "Timer callback failed" in caplog.text


class TestLogging:
    """Root logger setup."""

    @pytest.fixture
    def root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_default_level_is_info(self, root_logger, monkeypatch):
        monkeypatch.delenv("CRUCIBLE_VERBOSE", raising=False)
        setup_logging()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1

    def test_verbose_from_env(self, root_logger, monkeypatch):
        monkeypatch.setenv("CRUCIBLE_VERBOSE", "true")
        setup_logging()
        assert root_logger.level == logging.DEBUG

    def test_repeated_setup_keeps_one_handler(self, root_logger):
        setup_logging(verbose=True)
        setup_logging(verbose=True)
        assert len(root_logger.handlers) == 1
