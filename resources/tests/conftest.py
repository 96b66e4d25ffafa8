"""Pytest configuration for resources/tests.

Ensures the repository root is on sys.path so tests can import
helpers via absolute package path like `resources.tests.helpers`.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from target_mcp.utils.config import TargetMCPSettings  # noqa: E402


@pytest.fixture
def settings(monkeypatch):
    """Settings isolated from the process environment and any .env file."""
    for name in ("PORT", "TARGET_MCP_PORT", "ADOBE_API_KEY", "ADOBE_ACCESS_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    return TargetMCPSettings(_env_file=None, adobe_api_key="test-key")


@pytest.fixture
def tools_root(tmp_path):
    """Empty directory to write tool modules into."""
    root = tmp_path / "tools"
    root.mkdir()
    return root
