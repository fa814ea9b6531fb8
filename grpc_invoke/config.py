# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Invoke Configuration.

Settings are read from environment variables prefixed with ``GRPC_INVOKE_``
(or a ``.env`` file). A ``Settings`` value is built once at startup and
handed to the services that need it.

Examples:
    >>> from grpc_invoke.config import Settings
    >>> s = Settings(_env_file=None)
    >>> s.connect_timeout
    5.0
    >>> s.schema_max_depth
    0
    >>> s.endpoints
    []
"""

# Standard
from typing import List, Literal, Optional

# Third-Party
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# First-Party
from grpc_invoke.models import LogLevel


class EndpointConfig(BaseModel):
    """A gRPC endpoint to register at startup.

    Examples:
        >>> EndpointConfig(name="greeter", host="127.0.0.1", port=50051).target
        '127.0.0.1:50051'
        >>> EndpointConfig(name="bad", host="127.0.0.1", port=0)  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ...
        ValidationError: port must be >= 1
    """

    name: str = Field("", description="Human readable endpoint name")
    host: str = Field(..., min_length=1, description="Host name or IP address")
    port: int = Field(..., ge=1, le=65535, description="TCP port")

    @property
    def target(self) -> str:
        """Return the ``host:port`` dial target.

        Returns:
            str: The dial target.
        """
        return f"{self.host}:{self.port}"


class Settings(BaseSettings):
    """gRPC Invoke settings."""

    model_config = SettingsConfigDict(env_prefix="GRPC_INVOKE_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Connections
    connect_timeout: float = Field(5.0, gt=0, description="Seconds to wait for a new channel to become ready")
    reflection_timeout: float = Field(10.0, gt=0, description="Seconds allowed for each server reflection call")
    invoke_timeout: Optional[float] = Field(30.0, gt=0, description="Default deadline in seconds for invocations; None disables it")

    # Schema compilation
    schema_max_depth: int = Field(0, ge=0, description="Maximum message nesting depth in generated schemas; 0 means unlimited")

    # Logging
    log_level: LogLevel = Field(LogLevel.INFO, description="Minimum log level")
    log_format: Literal["text", "json"] = Field("text", description="Console log format")
    log_to_file: bool = Field(False, description="Also write JSON logs to a rotating file")
    log_file: Optional[str] = Field(None, description="Log file name")
    log_folder: Optional[str] = Field(None, description="Folder for the log file")

    # Startup endpoints
    endpoints: List[EndpointConfig] = Field(default_factory=list, description="Endpoints registered by the CLI at startup")
    traefik_api_url: Optional[str] = Field(None, description="Traefik API base URL used to discover h2c endpoints")
