"""
Environment-specific configuration loading for the settings modules.

Each deployment environment reads its variables from its own .env file at the
repository root through python-decouple; when the file is missing the process
environment is used instead.
"""

import logging
from pathlib import Path

from decouple import Config, RepositoryEnv
from decouple import config as default_config

logger = logging.getLogger(__name__)

ENV_FILES = {
    "development": ".env.dev",
    "production": ".env.production",
}


def load_environment_config(environment):
    """
    Load environment-specific configuration from the matching .env file.

    Args:
        environment (str): Target environment ('development', 'production')

    Returns:
        Config: A decouple config callable bound to the environment file, or
            the default process-environment config when the file is absent.
    """
    env_file_name = ENV_FILES.get(environment, ".env")
    env_file_path = Path(__file__).resolve().parent.parent.parent.parent / env_file_name

    if env_file_path.exists():
        logger.info(
            "Loading environment configuration",
            extra={
                "environment": environment,
                "env_file": env_file_name,
                "action": "environment_config_loaded",
                "component": "settings",
            },
        )
        return Config(RepositoryEnv(str(env_file_path)))

    logger.warning(
        "Environment file not found, using process environment",
        extra={
            "environment": environment,
            "env_file": env_file_name,
            "action": "environment_config_fallback",
            "component": "settings",
        },
    )
    return default_config


def rotating_file_handler(filename, level, formatter, max_mb, backups=10):
    """Handler dict for a size-rotated UTF-8 log file."""
    return {
        "level": level,
        "class": "logging.handlers.RotatingFileHandler",
        "filename": str(filename),
        "maxBytes": max_mb * 1024 * 1024,
        "backupCount": backups,
        "formatter": formatter,
        "encoding": "utf-8",
    }


def route_loggers(logging_config, names, handlers, level):
    """Point the named loggers at ``handlers`` with a common level."""
    for name in names:
        logger_config = logging_config["loggers"].setdefault(
            name, {"propagate": False}
        )
        logger_config["handlers"] = list(handlers)
        logger_config["level"] = level
