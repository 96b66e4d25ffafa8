"""
Unit tests for settings, logging setup and the CLI entry point.
"""

import logging
import sys
from unittest.mock import AsyncMock, Mock

import pytest
from click.testing import CliRunner
from pythonjsonlogger.json import JsonFormatter

import target_mcp.main as main_module
import target_mcp.utils.config as config_module
from target_mcp.utils.config import BUILTIN_TOOLS_DIRECTORY, TargetMCPSettings, get_settings, reload_settings
from target_mcp.utils.errors import AdobeTargetAPIError, ConfigurationError, ServiceError, TargetMCPError
from target_mcp.utils.logging import configure_root_logging

from resources.tests.helpers.tool_modules import write_api_tool, write_module


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("PORT", "TARGET_MCP_PORT", "ADOBE_API_KEY", "ADOBE_ACCESS_TOKEN", "TARGET_MCP_TOOLS_DIRECTORY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestTargetMCPSettings:
    """Test TargetMCPSettings defaults and environment handling."""

    def test_defaults(self, clean_env):
        settings = TargetMCPSettings(_env_file=None)

        assert settings.port == 3001
        assert settings.server_name == "generated-mcp-server"
        assert settings.server_version == "0.1.0"
        assert settings.adobe_api_key is None
        assert settings.get_tools_directory() == BUILTIN_TOOLS_DIRECTORY
        assert settings.get_log_file_path() is None

    def test_reads_port_and_api_key(self, clean_env):
        clean_env.setenv("PORT", "4000")
        clean_env.setenv("ADOBE_API_KEY", "secret")

        settings = TargetMCPSettings(_env_file=None)

        assert settings.port == 4000
        assert settings.adobe_api_key == "secret"
        assert settings.get_access_token() == "secret"

    def test_prefixed_variables(self, clean_env, tmp_path):
        clean_env.setenv("TARGET_MCP_TOOLS_DIRECTORY", str(tmp_path))
        clean_env.setenv("TARGET_MCP_ADOBE_ACTIVITY_ID", "777")

        settings = TargetMCPSettings(_env_file=None)

        assert settings.get_tools_directory() == tmp_path.resolve()
        assert settings.adobe_activity_id == "777"

    def test_validation_passes_with_warning_without_api_key(self, clean_env):
        result = TargetMCPSettings(_env_file=None).validate_settings()

        assert result.valid
        assert any("ADOBE_API_KEY" in warning for warning in result.warnings)

    def test_validation_errors(self, clean_env, tmp_path):
        settings = TargetMCPSettings(
            _env_file=None,
            port=70000,
            log_level="LOUD",
            tools_directory=str(tmp_path / "missing"),
            adobe_api_key="key",
        )

        result = settings.validate_settings()

        assert not result.valid
        assert len(result.errors) == 3
        assert result.warnings == []

        with pytest.raises(ConfigurationError) as exc_info:
            settings.require_valid()
        assert exc_info.value.context["errors"] == result.errors

    def test_reload_settings_replaces_global(self, clean_env):
        # Restored on teardown
        clean_env.setattr(config_module, "settings", config_module.settings)
        clean_env.setenv("PORT", "4321")

        reloaded = reload_settings()

        assert reloaded.port == 4321
        assert get_settings() is reloaded


@pytest.mark.unit
class TestErrors:
    """Test the error hierarchy."""

    def test_adobe_error_carries_status(self):
        error = AdobeTargetAPIError("failed", status=404, suggestions=["check the tenant"])

        assert isinstance(error, ServiceError)
        assert isinstance(error, TargetMCPError)
        assert error.status == 404
        assert error.error_code == "ADOBETARGETAPIERROR"
        assert error.suggestions == ["check the tenant"]


@pytest.mark.unit
class TestLogging:
    """Test configure_root_logging."""

    def test_structured_logging_to_stderr(self):
        configure_root_logging(level="DEBUG", structured=True)

        handler = logging.getLogger("target_mcp").handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)
        assert handler.stream is sys.stderr
        assert logging.getLogger("target_mcp").level == logging.DEBUG

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "server.log"

        configure_root_logging(level="INFO", log_file=log_file)
        logging.getLogger("target_mcp.test").info("hello file")
        for handler in logging.getLogger("target_mcp").handlers:
            handler.flush()

        assert "hello file" in log_file.read_text()
        configure_root_logging(level="INFO")


@pytest.mark.unit
class TestCli:
    """Test the click entry point."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        yield
        # CliRunner swaps sys.stderr; rebind handlers to the real stream
        configure_root_logging(level="INFO")

    def test_invalid_configuration_exits(self, clean_env, tmp_path):
        settings = TargetMCPSettings(_env_file=None, tools_directory=str(tmp_path / "missing"))
        run = AsyncMock()
        clean_env.setattr(main_module, "get_settings", lambda: settings)
        clean_env.setattr(main_module, "_run", run)

        result = CliRunner().invoke(main_module.main, [])

        assert result.exit_code == 1
        run.assert_not_awaited()

    @pytest.mark.parametrize("args, sse", [([], False), (["--sse"], True)])
    def test_selects_transport(self, clean_env, args, sse):
        settings = TargetMCPSettings(_env_file=None, adobe_api_key="key")
        run = AsyncMock()
        clean_env.setattr(main_module, "get_settings", lambda: settings)
        clean_env.setattr(main_module, "_run", run)

        result = CliRunner().invoke(main_module.main, args)

        assert result.exit_code == 0
        run.assert_awaited_once_with(sse, settings)

    @pytest.mark.asyncio
    async def test_startup_logs_skipped_modules(self, clean_env, tools_root):
        write_api_tool(tools_root, "echo.py", "echo")
        write_module(tools_root, "broken.py", "raise RuntimeError('boom')\n")
        settings = TargetMCPSettings(_env_file=None, tools_directory=str(tools_root))
        run_stdio = AsyncMock()
        logger = Mock()
        clean_env.setattr(main_module, "run_stdio_server", run_stdio)
        clean_env.setattr(main_module, "logger", logger)

        await main_module._run(False, settings)

        registry = run_stdio.await_args.args[0]
        assert registry.list_tools() == ["echo"]
        warnings = [call.args[0] for call in logger.warning.call_args_list]
        assert any("broken.py" in message and "boom" in message for message in warnings)
