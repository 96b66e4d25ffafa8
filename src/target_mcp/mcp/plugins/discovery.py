"""
Tool Discovery for MCP tool modules.

Walks a directory tree, loads every tool module it finds and collects the
tools they export. A module contributes its ``api_tool`` object, if any,
followed by every concrete ``ToolPlugin`` subclass it defines.

A module that fails to import or exports nothing usable is logged and
skipped. Only an unreadable root directory stops discovery.
"""

import importlib.util
import inspect
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from target_mcp.mcp.plugins.base import ToolDescriptor, ToolPlugin
from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.utils.config import get_settings
from target_mcp.utils.errors import DiscoveryError, ToolContractError
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)

CONTRACT_ATTRIBUTE = "api_tool"
MODULE_PREFIX = "target_mcp_tools"


class PluginDiscovery:
    """Discovery and loading of tool modules under one root directory."""

    def __init__(self, root: Path):
        """Initialize tool discovery.

        Args:
            root: Directory searched recursively for tool modules
        """
        self.root = Path(root)
        self._loaded_modules: list[str] = []
        self._rejected_modules: dict[str, str] = {}

    def discover(self) -> list[ToolDescriptor]:
        """Discover all tools under the root directory.

        Returns:
            Tool descriptors in discovery order

        Raises:
            DiscoveryError: If the root directory cannot be read
        """
        logger.info(f"Discovering tools in directory: {self.root}")

        tools: list[ToolDescriptor] = []
        for py_file in self._list_module_files():
            source = py_file.relative_to(self.root).as_posix()

            try:
                module = self._load_module(py_file)
            except (Exception, SystemExit) as e:
                logger.error(f"Failed to load tool module {source}: {e!r}")
                self._rejected_modules[source] = str(e)
                continue

            found = self._extract_tools(module, source)
            if not found:
                self._rejected_modules.setdefault(source, "no tool contract found")
                continue

            self._loaded_modules.append(source)
            tools.extend(found)

        logger.info(
            f"Discovered {len(tools)} tools in {self.root} "
            f"({len(self._rejected_modules)} modules skipped)"
        )
        return tools

    def _list_module_files(self) -> list[Path]:
        """List candidate module files, sorted by relative path."""
        if not self.root.exists():
            raise DiscoveryError(
                f"Tool directory does not exist: {self.root}",
                suggestions=["Set TARGET_MCP_TOOLS_DIRECTORY to an existing directory"],
            )
        if not self.root.is_dir():
            raise DiscoveryError(f"Tool directory is not a directory: {self.root}")

        try:
            # rglob skips unreadable directories silently; list the root first
            os.listdir(self.root)
            candidates = list(self.root.rglob("*.py"))
        except OSError as e:
            raise DiscoveryError(f"Tool directory cannot be read: {self.root}: {e}") from e

        module_files = []
        for path in candidates:
            relative = path.relative_to(self.root)
            if any(part.startswith(("_", ".")) for part in relative.parts):
                continue  # Skip private files and packages
            module_files.append(path)

        return sorted(module_files, key=lambda p: p.relative_to(self.root).as_posix())

    def _load_module(self, file_path: Path) -> ModuleType:
        """Load a module from a Python file under a unique name."""
        relative = file_path.relative_to(self.root).with_suffix("")
        module_name = ".".join((MODULE_PREFIX, *relative.parts))

        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Could not create module spec for {file_path}")

        module = importlib.util.module_from_spec(spec)

        # Registered before execution so dataclasses and pickling can resolve it
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise

        return module

    def _extract_tools(self, module: ModuleType, source: str) -> list[ToolDescriptor]:
        """Extract validated tools from a loaded module."""
        candidates: list[Any] = []

        api_tool = getattr(module, CONTRACT_ATTRIBUTE, None)
        if api_tool is not None:
            candidates.append(api_tool)

        for plugin_class in self._plugin_classes(module):
            try:
                candidates.append(plugin_class())
            except (Exception, SystemExit) as e:
                logger.error(f"Failed to instantiate {plugin_class.__name__} from {source}: {e}")
                self._rejected_modules[source] = str(e)

        if not candidates:
            logger.warning(f"No tool contract found in {source}, skipping")
            return []

        tools = []
        for candidate in candidates:
            try:
                tools.append(ToolDescriptor.from_contract(candidate, source=source))
            except ToolContractError as e:
                logger.error(f"Rejected tool in {source}: {e}")
                self._rejected_modules[source] = str(e)

        for tool in tools:
            logger.debug(f"Found tool {tool.name} in {source}")
        return tools

    @staticmethod
    def _plugin_classes(module: ModuleType) -> list[type[ToolPlugin]]:
        """Concrete ToolPlugin subclasses defined in the module, in definition order."""
        return [
            obj for obj in vars(module).values()
            if inspect.isclass(obj)
            and issubclass(obj, ToolPlugin)
            and not inspect.isabstract(obj)
            and obj.__module__ == module.__name__
        ]

    def get_discovery_info(self) -> dict[str, Any]:
        """Get information about the last discovery run."""
        return {
            "root": str(self.root),
            "loaded_modules": list(self._loaded_modules),
            "rejected_modules": dict(self._rejected_modules),
        }


def discover_tools(root: Path | str | None = None) -> list[ToolDescriptor]:
    """Discover tools under ``root`` (default: the configured tools directory)."""
    directory = Path(root) if root else get_settings().get_tools_directory()
    return PluginDiscovery(directory).discover()


def build_registry(root: Path | str | None = None) -> ToolRegistry:
    """Run discovery once and freeze the result into a registry."""
    return ToolRegistry(discover_tools(root))
