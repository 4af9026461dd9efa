"""Shared constants for middleman."""

PACKAGE_NAME = "middleman"
PACKAGE_VERSION = "0.1.0"

# Configuration file format
CONFIG_VERSION = "1"
CONFIG_EXTENSIONS = (".yaml", ".yml")

# Dispatch conventions
CONVENTION_REQUEST = "request"
CONVENTION_ACCUMULATOR = "accumulator"

# Logging defaults
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s - %(name)25s:%(lineno)-4d - %(levelname)-7s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
