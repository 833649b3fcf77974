import tomllib

import pytest

from metricore.agent_config import (
    AgentConfig,
    ConfigError,
    PluginMetadata,
    build_default_config,
    load_config_from_file,
)


def _my_plugin_default():
    return {"list": ["default-item"], "count": 42}


def _fail_init(config):
    raise AssertionError("init should not be called")


@pytest.fixture
def plugins():
    return [
        PluginMetadata(
            name="name",
            version="version",
            init=_fail_init,
            default_config=_my_plugin_default,
        )
    ]


def test_parse_config_file(tmp_path, plugins):
    config_path = tmp_path / "test-config.toml"
    config_content = """
        key = "value"

        [plugins.name]
        list = ["a", "b"]
        count = 1
    """
    config_path.write_text(config_content, encoding="utf-8")

    config = load_config_from_file(plugins, config_path, {})
    assert config == tomllib.loads(config_content)
    assert config_path.read_text(encoding="utf-8") == config_content


def test_create_default_config_file(tmp_path, plugins):
    config_path = tmp_path / "I-do-not-exist.toml"
    config = load_config_from_file(plugins, config_path, {})
    expected = tomllib.loads(
        """
        [plugins.name]
        list = ["default-item"]
        count = 42
        """
    )
    assert config == expected
    assert config_path.exists()
    assert tomllib.loads(config_path.read_text(encoding="utf-8")) == expected


def test_default_file_includes_app_config(tmp_path, plugins):
    config_path = tmp_path / "cfg.toml"
    config = load_config_from_file(plugins, config_path, {"app": "x", "level": 3})
    assert config["app"] == "x"
    assert config["level"] == 3
    assert tomllib.loads(config_path.read_text(encoding="utf-8")) == config


def test_invalid_toml_raises(tmp_path, plugins):
    config_path = tmp_path / "bad.toml"
    config_path.write_text("key = = broken", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid TOML configuration"):
        load_config_from_file(plugins, config_path, {})


def test_unreadable_path_raises(tmp_path, plugins):
    with pytest.raises(ConfigError, match="unable to load the configuration"):
        load_config_from_file(plugins, tmp_path, {})


def test_build_default_config_skips_plugins_without_defaults(plugins):
    plugins.append(PluginMetadata(name="bare", version="1.0", init=_fail_init))
    config = build_default_config(plugins, {"key": "value"})
    assert config == {
        "key": "value",
        "plugins": {"name": {"list": ["default-item"], "count": 42}},
    }


def test_build_default_config_does_not_mutate_input(plugins):
    app = {"nested": {"a": 1}}
    config = build_default_config(plugins, app)
    config["nested"]["a"] = 2
    assert app == {"nested": {"a": 1}}
    assert "plugins" not in app


def test_agent_config_requires_plugins():
    with pytest.raises(ConfigError, match="should contain a 'plugins' table"):
        AgentConfig.from_table({"key": "value"})


def test_agent_config_plugins_must_be_table():
    with pytest.raises(ConfigError, match="'plugins' must be a table, not a string"):
        AgentConfig.from_table({"plugins": "oops"})


def test_agent_config_splits_app_and_plugins():
    table = {"key": "value", "plugins": {"p": {"x": 1}}}
    config = AgentConfig.from_table(table)
    assert config.app_config() == {"key": "value"}
    assert config.plugin_config("p") == {"x": 1}
    assert "plugins" in table


def test_plugin_config_is_modifiable():
    config = AgentConfig.from_table({"plugins": {"p": {"x": 1}, "q": 5}})
    config.plugin_config("p")["y"] = 2
    assert config.take_plugin_config("p") == {"x": 1, "y": 2}
    assert config.plugin_config("q") is None
    assert config.plugin_config("missing") is None


def test_take_plugin_config_missing_gives_empty():
    config = AgentConfig.from_table({"plugins": {}})
    assert config.take_plugin_config("absent") == {}


def test_take_plugin_config_removes_entry():
    config = AgentConfig.from_table({"plugins": {"p": {"x": 1}}})
    assert config.take_plugin_config("p") == {"x": 1}
    assert config.take_plugin_config("p") == {}


def test_take_plugin_config_non_table_raises():
    config = AgentConfig.from_table({"plugins": {"p": [1, 2]}})
    with pytest.raises(ConfigError, match="plugin 'p': the value must be a table, not a array"):
        config.take_plugin_config("p")


def test_take_app_config_then_access_raises():
    config = AgentConfig.from_table({"a": True, "plugins": {}})
    assert config.take_app_config() == {"a": True}
    with pytest.raises(RuntimeError):
        config.app_config()
    with pytest.raises(RuntimeError):
        config.take_app_config()