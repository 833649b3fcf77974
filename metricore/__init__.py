"""Metric registry, measurement points and buffers, and TOML agent configuration."""

__version__ = "0.1.0"

__all__ = ["agent", "agent_config", "config", "measurement", "metrics"]