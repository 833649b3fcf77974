"""Skeleton of a measurement agent: configuration handling and plugin start-up."""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Any

import tomli_w

from metricore.agent_config import (
    AgentConfig,
    ConfigError,
    ConfigTable,
    PluginMetadata,
    build_default_config,
    load_config_from_file,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("metricore-config.toml")


def _to_table(app_config: Any) -> ConfigTable:
    if isinstance(app_config, Mapping):
        table = copy.deepcopy(dict(app_config))
    elif dataclasses.is_dataclass(app_config) and not isinstance(app_config, type):
        table = dataclasses.asdict(app_config)
    else:
        raise TypeError("default app config should be serializable to a TOML table")
    try:
        tomli_w.dumps(table)
    except TypeError as error:
        raise TypeError(
            "default app config should be serializable to a TOML table"
        ) from error
    return table


class AgentBuilder:
    """Collects the settings of an :class:`Agent`.

    By default the global configuration is loaded from ``metricore-config.toml``.
    ``after_plugin_init``, if given, is called with the list of initialized plugins.
    """

    def __init__(
        self,
        plugins: Iterable[PluginMetadata],
        after_plugin_init: Callable[[list[Any]], None] | None = None,
    ) -> None:
        self._plugins = list(plugins)
        self._config_source: Path | ConfigTable = DEFAULT_CONFIG_PATH
        self._default_app_config: ConfigTable = {}
        self._after_plugin_init = after_plugin_init
        self._allow_no_metrics = False

    def config_path(self, path: str | PathLike[str]) -> AgentBuilder:
        """Loads the global configuration from the given file path."""
        self._config_source = Path(path)
        return self

    def config_value(self, config: ConfigTable) -> AgentBuilder:
        """Uses the given table as the global configuration."""
        if not isinstance(config, dict):
            raise TypeError("the global configuration must be a table")
        self._config_source = config
        return self

    def default_app_config(self, app_config: Any) -> AgentBuilder:
        """Defines the default configuration of the application (not the plugins).

        Accepts a mapping or a dataclass instance; raises ``TypeError`` if it
        cannot be turned into a TOML table.
        """
        self._default_app_config = _to_table(app_config)
        return self

    def allow_no_metrics(self) -> AgentBuilder:
        """Disables the "no metrics registered" warning."""
        self._allow_no_metrics = True
        return self

    def build(self) -> Agent:
        """Creates an agent with these settings."""
        return Agent(self)


class Agent:
    """A measurement agent built by :class:`AgentBuilder`."""

    def __init__(self, settings: AgentBuilder) -> None:
        self._plugins = list(settings._plugins)
        self._config_source: Path | ConfigTable | None = settings._config_source
        self._default_app_config = copy.deepcopy(settings._default_app_config)
        self._after_plugin_init = settings._after_plugin_init
        self._allow_no_metrics = settings._allow_no_metrics

    @property
    def allow_no_metrics(self) -> bool:
        """Whether the "no metrics registered" warning is disabled."""
        return self._allow_no_metrics

    @property
    def plugins(self) -> list[PluginMetadata]:
        """The plugins that the agent will initialize."""
        return list(self._plugins)

    def _source(self) -> Path | ConfigTable:
        if self._config_source is None:
            raise RuntimeError("the configuration has already been loaded")
        return self._config_source

    def load_config(self) -> AgentConfig:
        """Loads the global configuration, from a file or a value, and checks it.

        The configuration can be loaded only once.
        """
        source = self._source()
        self._config_source = None
        if isinstance(source, Path):
            global_config = load_config_from_file(
                self._plugins, source, self._default_app_config
            )
        else:
            global_config = source
        logger.debug("Global configuration: %r", global_config)
        try:
            return AgentConfig.from_table(global_config)
        except ConfigError as error:
            raise ConfigError(f"invalid agent configuration: {error}") from error

    def default_config(self) -> ConfigTable:
        """Combines the default app config with the default config of each plugin."""
        return build_default_config(self._plugins, self._default_app_config)

    def write_default_config(self) -> None:
        """Writes the default configuration to the configuration file.

        Only works if the agent was built with a configuration path.
        """
        default_config = self.default_config()
        source = self._source()
        if not isinstance(source, Path):
            raise ConfigError(
                "write_default_config() only works if the Agent is built with config_path()"
            )
        try:
            with source.open("wb") as file:
                tomli_w.dump(default_config, file)
        except (OSError, TypeError) as error:
            raise ConfigError(f"writing default config to {source}: {error}") from error

    def initialize_plugins(self, config: AgentConfig) -> list[Any]:
        """Initializes every plugin with its part of ``config``, in order."""
        logger.info("Initializing the plugins...")
        initialized = []
        for plugin in self._plugins:
            try:
                initialized.append(initialize_with_config(config, plugin))
            except Exception as error:
                raise RuntimeError(
                    f"Plugin failed to initialize: {plugin.name} v{plugin.version}: {error}"
                ) from error
        count = len(initialized)
        if count == 0:
            logger.warning("No plugin has been initialized, please check your AgentBuilder.")
        elif count == 1:
            logger.info("1 plugin initialized.")
        else:
            logger.info("%d plugins initialized.", count)
        if self._after_plugin_init is not None:
            self._after_plugin_init(initialized)
        return initialized


def initialize_with_config(agent_config: AgentConfig, plugin: PluginMetadata) -> Any:
    """Takes the plugin's configuration out of ``agent_config`` and initializes it."""
    plugin_config = agent_config.take_plugin_config(plugin.name)
    logger.debug("Initializing plugin %s with config %r", plugin.name, plugin_config)
    return plugin.init(plugin_config)