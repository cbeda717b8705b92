"""
Capability group registry - registers every capability group with the MCP server.

Groups are discovered from ``tools_*.py`` modules, each exposing a
``register_*_tools(registry, provider, **kwargs)`` function. The known groups
register in a fixed order so that a registration ceiling always keeps the
same capabilities; any other discovered group registers after them.

Adding a new capability group:
1. Create tools_*.py with a register_*_tools(registry, provider, **kwargs) function
2. It will be discovered and registered after the known groups
"""

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Registration order; the ceiling consumes slots in this order.
ORDERED_MODULES = (
    "tools_automations",
    "tools_config",
    "tools_entity_registry",
    "tools_entities",
    "tools_lovelace",
)


class ToolsRegistry:
    """Registers all capability groups of the server."""

    def __init__(self, server: Any) -> None:
        self.server = server
        self.registry = server.registry
        self.provider = server.provider
        self.settings = server.settings
        self._modules_registered = False
        self._discovered_modules = self._discover_tool_modules()

    def _discover_tool_modules(self) -> list[str]:
        """Module names following the tools_*.py convention, known groups first."""
        package_path = Path(__file__).parent
        found = {
            module_info.name
            for module_info in pkgutil.iter_modules([str(package_path)])
            if module_info.name.startswith("tools_")
        }
        discovered = [name for name in ORDERED_MODULES if name in found]
        discovered.extend(sorted(found - set(ORDERED_MODULES)))

        logger.debug(f"Discovered {len(discovered)} capability modules")
        return discovered

    def register_all_tools(self) -> None:
        """Import every discovered group and run its register function once."""
        if self._modules_registered:
            logger.debug("Tools already registered, skipping")
            return

        kwargs = {"settings": self.settings}
        registered_count = 0

        for module_name in self._discovered_modules:
            try:
                module = importlib.import_module(f".{module_name}", __package__)

                register_func = None
                for attr_name in dir(module):
                    if attr_name.startswith("register_") and attr_name.endswith("_tools"):
                        register_func = getattr(module, attr_name)
                        break

                if register_func:
                    register_func(self.registry, self.provider, **kwargs)
                    registered_count += 1
                    logger.debug(f"Registered capabilities from {module_name}")
                else:
                    logger.warning(f"Module {module_name} has no register_*_tools function")

            except Exception as e:
                logger.error(f"Failed to register capabilities from {module_name}: {e}")
                raise

        self._modules_registered = True
        ceiling = self.registry.ceiling
        logger.info(
            f"Registered capabilities from {registered_count} modules "
            f"({len(self.registry.registered)} registered, {len(ceiling.skipped)} skipped by limit)"
        )
