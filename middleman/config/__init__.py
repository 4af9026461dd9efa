"""Configuration loading and validation for middleman."""

from middleman.config.builder import build_dispatchers, load_dispatchers
from middleman.config.env import expand_env_vars
from middleman.config.loader import load_config, parse_config
from middleman.config.schema import (
    DispatcherSettings,
    LoggingSettings,
    MiddlemanConfig,
    PipelineConfig,
)

__all__ = [
    "DispatcherSettings",
    "LoggingSettings",
    "MiddlemanConfig",
    "PipelineConfig",
    "build_dispatchers",
    "expand_env_vars",
    "load_config",
    "load_dispatchers",
    "parse_config",
]
