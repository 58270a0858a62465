"""
Configuration for the workflow engine (``workflow_config``).

Database and logging settings come from one YAML file, overridden by
environment variables.  ``load_settings`` is the single entry point.
"""

from workflow_config.settings import (
    DatabaseSettings,
    EngineSettings,
    LoggingSettings,
    load_settings,
)

__all__ = ["DatabaseSettings", "EngineSettings", "LoggingSettings", "load_settings"]
