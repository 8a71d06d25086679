"""Tests for startup helpers."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from main import build_discovery_config, prepare_output_dir, wait_for_storybook
from storybook_mcp.errors import BrowserLaunchError, ConnectivityError


class TestPrepareOutputDir:
    """Tests for prepare_output_dir."""

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "shots" / "nested"

        result = prepare_output_dir(str(target))

        assert result == str(target.resolve())
        assert target.is_dir()
        assert list(target.iterdir()) == []

    def test_falls_back_when_not_permitted(self, tmp_path):
        fallback = tmp_path / "fallback"
        original_mkdir = Path.mkdir

        def mkdir(self, *args, **kwargs):
            if self.name == "locked":
                raise PermissionError("Permission denied")
            return original_mkdir(self, *args, **kwargs)

        with patch("main.FALLBACK_OUTPUT_DIRS", [str(fallback)]), patch.object(Path, "mkdir", mkdir):
            result = prepare_output_dir(str(tmp_path / "locked"))

        assert result == str(fallback.resolve())
        assert fallback.is_dir()

    def test_no_writable_directory(self, tmp_path):
        with patch("main.FALLBACK_OUTPUT_DIRS", []), \
                patch.object(Path, "mkdir", side_effect=PermissionError("Permission denied")):
            with pytest.raises(RuntimeError, match="No writable output directory"):
                prepare_output_dir(str(tmp_path / "locked"))


class TestWaitForStorybook:
    """Tests for the startup connectivity retries."""

    @pytest.mark.asyncio
    async def test_succeeds_after_retries(self):
        probe = MagicMock()
        probe.check = AsyncMock(side_effect=[ConnectivityError("down"), ConnectivityError("down"), None])

        assert await wait_for_storybook(probe, "http://sb", retries=3, delay=0) is True
        assert probe.check.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up(self):
        probe = MagicMock()
        probe.check = AsyncMock(side_effect=ConnectivityError("down"))

        assert await wait_for_storybook(probe, "http://sb", retries=2, delay=0) is False
        assert probe.check.await_count == 2

    @pytest.mark.asyncio
    async def test_browser_launch_failure_is_retried_not_raised(self):
        probe = MagicMock()
        probe.check = AsyncMock(side_effect=BrowserLaunchError("Failed to launch browser: no chromium"))

        assert await wait_for_storybook(probe, "http://sb", retries=2, delay=0) is False
        assert probe.check.await_count == 2

    @pytest.mark.asyncio
    async def test_launch_failure_then_reachable(self):
        probe = MagicMock()
        probe.check = AsyncMock(side_effect=[BrowserLaunchError("no chromium"), None])

        assert await wait_for_storybook(probe, "http://sb", retries=2, delay=0) is True

    @pytest.mark.asyncio
    async def test_zero_retries_still_checks_once(self):
        probe = MagicMock()
        probe.check = AsyncMock(return_value=None)

        assert await wait_for_storybook(probe, "http://sb", retries=0, delay=0) is True
        probe.check.assert_awaited_once_with("http://sb")


def test_build_discovery_config():
    config = MagicMock(TIMEOUT=5000, RENDER_TIMEOUT=2000, STORE_TIMEOUT=3000)

    discovery_config = build_discovery_config(config)

    assert discovery_config.navigation_timeout == 5000
    assert discovery_config.render_timeout == 2000
    assert discovery_config.store_timeout == 3000
