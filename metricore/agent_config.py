"""Global agent configuration: loading, default generation and plugin sub-tables.

The global configuration is a TOML table. Plugin configurations live in the
``plugins`` sub-table, one sub-table per plugin name; everything else belongs
to the application.
"""

from __future__ import annotations

import copy
import datetime
import logging
import tomllib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

import tomli_w

logger = logging.getLogger(__name__)

ConfigTable = dict[str, Any]


class ConfigError(ValueError):
    """Raised when a configuration is missing, malformed or cannot be written."""


@dataclass
class PluginMetadata:
    """What the agent needs to know about a plugin before it is initialized.

    ``init`` receives the plugin's configuration table and returns the plugin.
    ``default_config`` returns the plugin's default configuration table, or
    ``None`` if the plugin has no configuration; leaving it unset means the
    plugin has no default configuration.
    """

    name: str
    version: str
    init: Callable[[ConfigTable], Any]
    default_config: Callable[[], ConfigTable | None] | None = None

    def default_config_table(self) -> ConfigTable | None:
        """Returns the plugin's default configuration, or ``None`` if it has none."""
        if self.default_config is None:
            return None
        return self.default_config()


def _type_str(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return "datetime"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "table"
    return type(value).__name__


class AgentConfig:
    """A global configuration split into the plugins' part and the app's part."""

    def __init__(self, plugins_table: ConfigTable, app_table: ConfigTable) -> None:
        self._plugins_table = plugins_table
        self._app_table: ConfigTable | None = app_table

    @classmethod
    def from_table(cls, table: ConfigTable) -> AgentConfig:
        """Checks the structure of a global configuration and wraps it.

        Raises :class:`ConfigError` if ``plugins`` is missing or is not a table.
        """
        global_config = dict(table)
        if "plugins" not in global_config:
            raise ConfigError("invalid global config: it should contain a 'plugins' table")
        plugins_table = global_config.pop("plugins")
        if not isinstance(plugins_table, dict):
            raise ConfigError(
                "invalid global config: 'plugins' must be a table, "
                f"not a {_type_str(plugins_table)}."
            )
        return cls(plugins_table, global_config)

    def plugin_config(self, plugin_name: str) -> ConfigTable | None:
        """Returns the plugin's sub-table (modifiable in place), or ``None``."""
        sub_config = self._plugins_table.get(plugin_name)
        return sub_config if isinstance(sub_config, dict) else None

    def take_plugin_config(self, plugin_name: str) -> ConfigTable:
        """Removes and returns the plugin's sub-table.

        A missing sub-table gives an empty table, so that the plugin can use
        its defaults. Raises :class:`ConfigError` if the value is not a table.
        """
        if plugin_name not in self._plugins_table:
            return {}
        sub_config = self._plugins_table.pop(plugin_name)
        if not isinstance(sub_config, dict):
            raise ConfigError(
                f"invalid configuration for plugin '{plugin_name}': "
                f"the value must be a table, not a {_type_str(sub_config)}."
            )
        return sub_config

    def app_config(self) -> ConfigTable:
        """Returns the application's configuration (modifiable in place)."""
        if self._app_table is None:
            raise RuntimeError("the application config has already been taken")
        return self._app_table

    def take_app_config(self) -> ConfigTable:
        """Removes and returns the application's configuration."""
        app_table = self.app_config()
        self._app_table = None
        return app_table


def build_default_config(
    plugins: Iterable[PluginMetadata], default_agent_config: ConfigTable
) -> ConfigTable:
    """Combines the agent's default config with the default config of each plugin.

    Plugin defaults go into the ``plugins`` sub-table, keyed by plugin name.
    """
    default_config = copy.deepcopy(default_agent_config)
    plugins_config: ConfigTable = {}
    for plugin in plugins:
        logger.debug("Generating default config for plugin %s", plugin.name)
        plugin_default = plugin.default_config_table()
        logger.debug("default config: %r", plugin_default)
        if plugin_default is not None:
            plugins_config[plugin.name] = plugin_default
    default_config["plugins"] = plugins_config
    return default_config


def _write_config(path: Path, config: ConfigTable) -> None:
    try:
        with path.open("wb") as file:
            tomli_w.dump(config, file)
    except (OSError, TypeError) as error:
        raise ConfigError(f"writing default config to {path}: {error}") from error


def load_config_from_file(
    plugins: Iterable[PluginMetadata],
    path: str | PathLike[str],
    default_agent_config: ConfigTable,
) -> ConfigTable:
    """Loads the global configuration from a TOML file.

    If the file does not exist, a default configuration is built, written to
    ``path`` and returned.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        default_config = build_default_config(plugins, default_agent_config)
        _write_config(path, default_config)
        logger.info("Default configuration written to %s", path)
        return default_config
    except (OSError, UnicodeDecodeError) as error:
        raise ConfigError(
            f"unable to load the configuration from {path} - {error}"
        ) from error
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as error:
        raise ConfigError(f"invalid TOML configuration {path}: {error}") from error