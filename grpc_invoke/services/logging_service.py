# -*- coding: utf-8 -*-
"""Logging Service Implementation.

Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

This module implements logging for gRPC Invoke. Every module obtains its
logger through ``LoggingService().get_logger(__name__)``; handlers live on the
``grpc_invoke`` package logger so that module loggers share them. Console
output is plain text or JSON, and an optional rotating file always receives
JSON records.
"""

# Standard
import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Dict, Optional

# Third-Party
from pythonjsonlogger import jsonlogger

# First-Party
from grpc_invoke.config import Settings
from grpc_invoke.models import LogLevel

PACKAGE_LOGGER = "grpc_invoke"

# Create a text formatter
text_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Create a JSON formatter
json_formatter = jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")

# Handlers are created lazily and shared by every LoggingService instance
_file_handler: Optional[RotatingFileHandler] = None
_text_handler: Optional[logging.StreamHandler] = None
_loggers: Dict[str, logging.Logger] = {}


def _create_file_handler(settings: Settings) -> RotatingFileHandler:
    """Create the rotating JSON file handler.

    Args:
        settings: Settings naming the log file and folder.

    Returns:
        RotatingFileHandler: The file handler for JSON logging.

    Raises:
        ValueError: If file logging is disabled or no log file specified.
    """
    if not settings.log_to_file or not settings.log_file:
        raise ValueError("File logging is disabled or no log file specified")

    if settings.log_folder:
        os.makedirs(settings.log_folder, exist_ok=True)
        log_path = os.path.join(settings.log_folder, settings.log_file)
    else:
        log_path = settings.log_file

    handler = RotatingFileHandler(log_path, maxBytes=1024 * 1024, backupCount=5)
    handler.setFormatter(json_formatter)
    return handler


def _get_text_handler() -> logging.StreamHandler:
    """Get or create the console handler.

    Returns:
        logging.StreamHandler: The stream handler for console logging.
    """
    global _text_handler  # pylint: disable=global-statement
    if _text_handler is None:
        _text_handler = logging.StreamHandler()
        _text_handler.setFormatter(text_formatter)
    return _text_handler


def _package_logger() -> logging.Logger:
    """Return the package logger, attaching the console handler once.

    Returns:
        logging.Logger: The ``grpc_invoke`` logger.
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    handler = _get_text_handler()
    if handler not in root.handlers:
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return root


class LoggingService:
    """gRPC Invoke logging service.

    Provides:
    - Named loggers sharing console and file handlers
    - Log level management
    - Text or JSON console output
    """

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create logger instance.

        Args:
            name: Logger name

        Returns:
            Logger instance

        Examples:
            >>> from grpc_invoke.services.logging_service import LoggingService
            >>> service = LoggingService()
            >>> logger = service.get_logger('grpc_invoke.test')
            >>> import logging
            >>> isinstance(logger, logging.Logger)
            True
            >>> service.get_logger('grpc_invoke.test') is logger
            True
        """
        if name not in _loggers:
            _package_logger()
            _loggers[name] = logging.getLogger(name)
        return _loggers[name]

    def configure(self, settings: Settings) -> None:
        """Apply level, console format and file logging from settings.

        Args:
            settings: Application settings

        Examples:
            >>> from grpc_invoke.config import Settings
            >>> service = LoggingService()
            >>> service.configure(Settings(_env_file=None, log_level="warning"))
            >>> logging.getLogger("grpc_invoke").level == logging.WARNING
            True
            >>> service.configure(Settings(_env_file=None))
        """
        global _file_handler  # pylint: disable=global-statement
        root = _package_logger()

        _get_text_handler().setFormatter(json_formatter if settings.log_format == "json" else text_formatter)

        if _file_handler is not None:
            root.removeHandler(_file_handler)
            _file_handler.close()
            _file_handler = None

        if settings.log_to_file and settings.log_file:
            try:
                _file_handler = _create_file_handler(settings)
                root.addHandler(_file_handler)
                root.info(f"File logging enabled: {settings.log_folder or '.'}/{settings.log_file}")
            except OSError as e:
                root.warning(f"Failed to initialize file logging: {e}")

        self.set_level(settings.log_level)

    def set_level(self, level: LogLevel) -> None:
        """Set minimum log level for the package logger and its children.

        Args:
            level: New log level

        Examples:
            >>> service = LoggingService()
            >>> service.set_level(LogLevel.DEBUG)
            >>> logging.getLogger("grpc_invoke").level == logging.DEBUG
            True
            >>> service.set_level(LogLevel.INFO)
        """
        _package_logger().setLevel(getattr(logging, LogLevel(level).upper()))

    def shutdown(self) -> None:
        """Detach and close the file handler, if any."""
        global _file_handler  # pylint: disable=global-statement
        if _file_handler is not None:
            _package_logger().removeHandler(_file_handler)
            _file_handler.close()
            _file_handler = None
