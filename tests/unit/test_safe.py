"""Unit tests for the graceful-degradation helpers."""

from unittest.mock import patch

import pytest

from smoothies.utils.safe import safe_execute_async, safe_execute_sync


async def _ok():
    return ["https://img.example/1.jpg"]


async def _boom():
    raise ConnectionError("provider unreachable")


def _raise_value_error():
    raise ValueError("bad cell")


class TestSafeExecuteAsync:
    """Test safe_execute_async returns results or logs and degrades."""

    @pytest.mark.asyncio
    async def test_returns_result_on_success(self):
        with patch("smoothies.utils.safe.logger") as mock_logger:
            result = await safe_execute_async(_ok(), "Pexels search", default_return=[])

        assert result == ["https://img.example/1.jpg"]
        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_returns_default_on_exception(self):
        with patch("smoothies.utils.safe.logger"):
            result = await safe_execute_async(_boom(), "Pexels search", default_return=[])

        assert result == []

    @pytest.mark.asyncio
    async def test_default_return_is_none_when_omitted(self):
        with patch("smoothies.utils.safe.logger"):
            assert await safe_execute_async(_boom(), "Cache read") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("log_level", ["debug", "warning", "error"])
    async def test_logs_at_requested_level(self, log_level):
        with patch("smoothies.utils.safe.logger") as mock_logger:
            await safe_execute_async(_boom(), "Pixabay search", log_level=log_level)

        getattr(mock_logger, log_level).assert_called_once_with("Pixabay search: provider unreachable")

    @pytest.mark.asyncio
    async def test_unknown_level_falls_back_to_warning(self):
        with patch("smoothies.utils.safe.logger") as mock_logger:
            await safe_execute_async(_boom(), "Unsplash search", log_level="verbose")

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()
        mock_logger.debug.assert_not_called()


class TestSafeExecuteSync:
    """Test safe_execute_sync mirrors the async helper for plain callables."""

    def test_returns_result_on_success(self):
        with patch("smoothies.utils.safe.logger") as mock_logger:
            assert safe_execute_sync(lambda: [1, 2], "JSON parse") == [1, 2]

        mock_logger.debug.assert_not_called()
        mock_logger.warning.assert_not_called()

    def test_returns_default_on_exception(self):
        with patch("smoothies.utils.safe.logger"):
            assert safe_execute_sync(_raise_value_error, "JSON parse", default_return=[]) == []

    @pytest.mark.parametrize("log_level", ["debug", "warning", "error"])
    def test_logs_at_requested_level(self, log_level):
        with patch("smoothies.utils.safe.logger") as mock_logger:
            safe_execute_sync(_raise_value_error, "Directions parse", log_level=log_level)

        getattr(mock_logger, log_level).assert_called_once_with("Directions parse: bad cell")
