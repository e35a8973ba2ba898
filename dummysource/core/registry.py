from typing import Any, Dict, Type, List, Optional
import importlib
import logging
import pkgutil
from pathlib import Path

from .plugin import SourcePlugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    _instance: Optional["PluginRegistry"] = None
    _plugins: Dict[str, Type[SourcePlugin]] = {}

    def __new__(cls) -> "PluginRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def register(cls, name: str, plugin_class: Type[SourcePlugin]) -> None:
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, SourcePlugin)):
            raise ValueError(f"Plugin {plugin_class} must inherit from SourcePlugin")
        cls._plugins[name] = plugin_class

    @classmethod
    def get_plugin(cls, name: str) -> Optional[Type[SourcePlugin]]:
        return cls._plugins.get(name)

    @classmethod
    def list_plugins(cls) -> List[str]:
        return list(cls._plugins.keys())

    @classmethod
    def create_plugin(cls, name: str, raw_config: Any = None) -> SourcePlugin:
        """Instantiate a registered plugin and run its one-time configuration.

        Configuration failures propagate as the plugin's own ``InvalidConfig``.
        """
        plugin_class = cls.get_plugin(name)
        if plugin_class is None:
            raise ValueError(f"Unknown plugin: {name}")

        plugin = plugin_class()
        plugin.configure(raw_config)
        logger.debug("Created plugin %s", name)
        return plugin

    @classmethod
    def discover_plugins(cls, package_path: str = "dummysource.plugins") -> None:
        try:
            package = importlib.import_module(package_path)
        except ImportError:
            logger.warning("Plugin package %s not importable", package_path)
            return

        package_dir = Path(package.__file__).parent
        for _, module_name, _ in pkgutil.iter_modules([str(package_dir)]):
            module_path = f"{package_path}.{module_name}"
            try:
                importlib.import_module(module_path)
            except ImportError as e:
                # Some plugins may have optional dependencies
                logger.warning("Skipping plugin module %s: %s", module_path, e)


def register_plugin(name: str):
    def decorator(cls: Type[SourcePlugin]) -> Type[SourcePlugin]:
        PluginRegistry.register(name, cls)
        return cls
    return decorator
