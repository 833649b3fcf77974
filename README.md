# metricore

Building blocks for a measurement agent. The package provides:

- a registry of metrics with unique names and ids (`metricore.metrics`);
- timestamped measurement points with attributes, and buffers to collect
  them (`metricore.measurement`);
- typed lookups in parsed TOML tables (`metricore.config`);
- the global TOML configuration of an agent and its plugins
  (`metricore.agent_config`);
- an agent skeleton that loads that configuration and initializes the
  plugins (`metricore.agent`).

## Installation

```
pip install metricore
```

Requires Python 3.11 or later. TOML is read with the standard `tomllib` and
written with `tomli-w`.

## Metrics

A `Metric` has a name, a description, a value type (`MeasurementType.U64` or
`MeasurementType.F64`) and a unit. Registering it returns a `RawMetricId`.

```python
from metricore.measurement import MeasurementType
from metricore.metrics import Metric, MetricRegistry, TypedMetricId

registry = MetricRegistry()
metric_id = registry.register(
    Metric(name="cpu_voltage", description="Voltage of the CPU socket",
           value_type=MeasurementType.U64, unit="V")
)
registry.with_name("cpu_voltage").description   # "Voltage of the CPU socket"
registry.with_id(metric_id).name                # "cpu_voltage"
len(registry)                                    # 1

typed = TypedMetricId.try_from(metric_id, MeasurementType.U64, registry)
```

- Ids are numbered from 0 in registration order.
- `register` raises `MetricCreationError` if the name is already taken.
- `register_infallible(metric, suffix)` and `extend_infallible(metrics, suffix)`
  rename a conflicting metric to `<name>_<suffix>`, then `<name>_<suffix>__1`,
  `<name>_<suffix>__2`, … until the name is free.
- `TypedMetricId.try_from` raises `MetricTypeError` when the registered type
  differs, and `KeyError` when the id is unknown.
- Iterating over a registry yields `(RawMetricId, Metric)` pairs.

## Measurements

```python
from metricore.measurement import (
    MeasurementBuffer, MeasurementPoint, MeasurementValue, Timestamp,
)

buffer = MeasurementBuffer()
acc = buffer.as_accumulator()
acc.push(
    MeasurementPoint(
        timestamp=Timestamp.now(),
        metric=metric_id,
        resource="cpu_package:0",
        consumer="local_machine",
        value=MeasurementValue.u64(1234),
    ).with_attr("domain", "package")
)
len(buffer)   # 1
```

- `MeasurementValue.u64` accepts integers from 0 to 2**64 - 1;
  `MeasurementValue.f64` stores a float.
- Attribute values may be unsigned 64-bit integers, floats, booleans or
  strings. `with_attr` and `with_attrs` (a mapping or `(key, value)` pairs)
  append attributes in order and return the point; keys are not deduplicated.
  `attributes()`, `attributes_keys()` and `attributes_len()` read them back.
- `format_attribute` renders an attribute value: booleans as `true`/`false`,
  floats without exponent and without a trailing `.0`.
- `Timestamp` holds nanoseconds since the Unix epoch;
  `Timestamp.from_unix(secs, nanos)` and `to_unix()` convert from and to
  `(seconds, nanoseconds)`.
- A `MeasurementBuffer` can be iterated and cleared; a
  `MeasurementAccumulator` can only push into its buffer.

## Configuration lookups

`metricore.config` reads a value of a given type from a table or an array:
`string_in`, `int_in`, `bool_in`, `float_in`, `array_in`, `table_in` take a
table and a key; `string_at`, `int_at`, `bool_at`, `float_at`, `array_at`,
`table_at` take an array and an index. Each returns `None` when the key or
index is missing or holds a value of another type (booleans are not integers,
integers are not floats).

## Agent configuration

The global configuration is a TOML table. Each `[plugins.<name>]` sub-table
belongs to one plugin; everything else belongs to the application.

Plugins are described with `PluginMetadata(name, version, init, default_config)`.
`init` receives the plugin's configuration table and returns the plugin;
`default_config`, if given, returns its default table or `None`.

```python
from metricore.agent import AgentBuilder
from metricore.agent_config import PluginMetadata

plugins = [
    PluginMetadata(
        name="rapl",
        version="0.1.0",
        init=lambda config: config,
        default_config=lambda: {"poll_interval": "1s"},
    )
]

agent = (
    AgentBuilder(plugins)
    .config_path("agent-config.toml")
    .default_app_config({"log_level": "info"})
    .build()
)
config = agent.load_config()
initialized = agent.initialize_plugins(config)
```

- Without `config_path` or `config_value`, the agent reads
  `metricore-config.toml` in the current directory.
- If the configuration file does not exist, `load_config` builds the default
  configuration (the app defaults plus each plugin's defaults under
  `plugins`), writes it to the file and uses it. The configuration can be
  loaded only once per agent.
- `config_value(table)` uses the given table instead of a file.
- `default_app_config` accepts a mapping or a dataclass instance and raises
  `TypeError` if it cannot be written as TOML.
- A plugin without a sub-table receives an empty table. A missing or
  non-table `plugins` entry, or a plugin entry that is not a table, raises
  `ConfigError`.
- `initialize_plugins` initializes the plugins in order and calls the
  `after_plugin_init` callback given to `AgentBuilder`, if any, with the list
  of initialized plugins. A plugin whose `init` fails raises `RuntimeError`
  naming the plugin and its version.
- `Agent.default_config()` returns the combined default configuration;
  `Agent.write_default_config()` writes it to the configuration file and
  raises `ConfigError` when the agent was built with `config_value`.

`AgentConfig` can also be used on its own: `AgentConfig.from_table(table)`,
`plugin_config(name)`, `take_plugin_config(name)`, `app_config()` and
`take_app_config()`. `load_config_from_file` and `build_default_config` are
available as functions.

## What the package does not do

The package stops once the plugins are initialized. It does not start or
stop plugins, does not run sources, transforms or outputs, and has no
scheduler that polls sources or flushes buffers to outputs. Units are not
modelled: the `unit` of a metric is whatever value you store there. There is
no command-line program.

## Running the tests

```
pip install metricore[test]
pytest
```