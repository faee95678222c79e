"""
Logging Configuration Module.

This module provides centralized logging configuration for the Actuator-AI project.
It sets up structured logging with different levels for different modules and environments.

Features:
- Configurable log levels per module
- Console and file logging
- Structured logging with JSON format support
- A dedicated ``actuator_ai.audit`` logger used by the audit sink
"""

import logging
import os
from pathlib import Path
from typing import Optional

AUDIT_LOGGER_NAME = "actuator_ai.audit"


def _get_logging_config():
    """Get logging configuration from settings model.

    Settings are imported lazily to avoid circular imports during module
    initialization.
    """
    try:
        from actuator_ai.server.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
            "enable_file_logging": settings.enable_file_logging,
        }
    except Exception:
        # Fallback to environment variables if settings cannot be built
        return {
            "log_level": os.getenv("ACTUATOR_AI_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes"),
        }


# Define log formats
SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)


# Module-specific log levels
MODULE_LOG_LEVELS = {
    # Core modules
    "actuator_ai.agent_core": "DEBUG",
    "actuator_ai.agent_core.capabilities": "DEBUG",
    "actuator_ai.agent_core.policy": "DEBUG",
    "actuator_ai.agent_core.confirmation": "DEBUG",
    "actuator_ai.agent_core.sandbox": "DEBUG",
    "actuator_ai.agent_core.pipeline": "DEBUG",
    "actuator_ai.agent_core.llm": "INFO",
    "actuator_ai.agent_core.repos": "INFO",
    AUDIT_LOGGER_NAME: "INFO",
    # Server modules
    "actuator_ai.server": "INFO",
    "actuator_ai.server.api": "DEBUG",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _format_string(fmt: str) -> str:
    if fmt == "json":
        return JSON_FORMAT
    if fmt == "simple":
        return SIMPLE_FORMAT
    return DETAILED_FORMAT


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: Optional[bool] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Override whether to enable file logging
    """
    config = _get_logging_config()
    level = (log_level or config["log_level"]).upper()
    fmt = log_format or config["log_format"]
    file_logging = config["enable_file_logging"] if enable_file is None else enable_file

    formatter = logging.Formatter(_format_string(fmt), datefmt="%Y-%m-%d %H:%M:%S")

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all levels, filter at handler level

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in audit_logger.handlers[:]:
        audit_logger.removeHandler(handler)

    if file_logging:
        log_dir = Path(config["log_file_dir"])
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "actuator_ai.log")
        file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        audit_handler = logging.FileHandler(log_dir / "audit.log")
        audit_handler.setLevel(logging.INFO)
        audit_handler.setFormatter(logging.Formatter(JSON_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        audit_logger.addHandler(audit_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Return the logger that receives audit events."""
    return logging.getLogger(AUDIT_LOGGER_NAME)
