# -*- coding: utf-8 -*-
"""Location: ./tests/unit/grpc_invoke/services/test_logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Tests for the logging service.
"""

# Standard
import json
import logging

# Third-Party
import pytest

# First-Party
from grpc_invoke.config import Settings
from grpc_invoke.models import LogLevel
from grpc_invoke.services import logging_service as logging_module
from grpc_invoke.services.logging_service import LoggingService


@pytest.fixture
def service():
    service = LoggingService()
    yield service
    service.shutdown()
    service.configure(Settings(_env_file=None))


def test_module_loggers_share_package_handlers(service):
    logger = service.get_logger("grpc_invoke.services.example")
    assert logger.name == "grpc_invoke.services.example"
    assert logger.propagate
    assert logging_module._get_text_handler() in logging.getLogger("grpc_invoke").handlers


def test_set_level(service):
    service.set_level(LogLevel.ERROR)
    assert logging.getLogger("grpc_invoke").level == logging.ERROR
    service.set_level("debug")
    assert logging.getLogger("grpc_invoke").level == logging.DEBUG


def test_json_console_format(service):
    service.configure(Settings(_env_file=None, log_format="json"))
    assert logging_module._get_text_handler().formatter is logging_module.json_formatter

    service.configure(Settings(_env_file=None, log_format="text"))
    assert logging_module._get_text_handler().formatter is logging_module.text_formatter


def test_file_logging_writes_json(service, tmp_path):
    service.configure(Settings(_env_file=None, log_to_file=True, log_file="invoke.log", log_folder=str(tmp_path / "logs")))
    service.get_logger("grpc_invoke.test_file").warning("written to file")
    service.shutdown()

    lines = (tmp_path / "logs" / "invoke.log").read_text().splitlines()
    records = [json.loads(line) for line in lines]
    assert any(record["message"] == "written to file" and record["levelname"] == "WARNING" for record in records)


def test_file_logging_requires_file_name(service):
    with pytest.raises(ValueError):
        logging_module._create_file_handler(Settings(_env_file=None, log_to_file=True))
