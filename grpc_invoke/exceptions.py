# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/exceptions.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Invoke exceptions.

Examples:
    >>> str(DuplicateRegistrationError("127.0.0.1", 50051))
    "endpoint '127.0.0.1:50051' already exists"
    >>> str(MethodNotFoundError("helloworld.Greeter", "Missing"))
    'not found [helloworld.Greeter:Missing]'
    >>> issubclass(ReflectionError, EndpointConnectionError)
    True
"""

# Standard
from typing import Any, Optional


class GrpcInvokeError(Exception):
    """Base class for gRPC Invoke errors."""


class DuplicateRegistrationError(GrpcInvokeError):
    """Raised when an endpoint for the same host and port is already registered."""

    def __init__(self, host: str, port: int):
        """Initialize the DuplicateRegistrationError.

        Args:
            host: Host of the existing endpoint
            port: Port of the existing endpoint
        """
        self.host = host
        self.port = port
        super().__init__(f"endpoint '{host}:{port}' already exists")


class EndpointConnectionError(GrpcInvokeError):
    """Raised when a channel cannot be established or introspected."""

    def __init__(self, target: str, reason: str):
        """Initialize the EndpointConnectionError.

        Args:
            target: The ``host:port`` dial target
            reason: Human readable failure reason
        """
        self.target = target
        self.reason = reason
        super().__init__(f"connect [{target}] {reason}")


class ReflectionError(EndpointConnectionError):
    """Raised when the server reflection protocol fails or answers with an error."""


class MethodNotFoundError(GrpcInvokeError):
    """Raised when no registered endpoint exposes the requested unary method."""

    def __init__(self, service_name: str, method_name: str):
        """Initialize the MethodNotFoundError.

        Args:
            service_name: Requested service
            method_name: Requested method
        """
        self.service_name = service_name
        self.method_name = method_name
        super().__init__(f"not found [{service_name}:{method_name}]")


class InvalidPayloadError(GrpcInvokeError):
    """Raised when a payload cannot be parsed into the method's input message."""


class RpcError(GrpcInvokeError):
    """Raised when the remote call fails; carries the remote status untouched.

    Examples:
        >>> import grpc
        >>> err = RpcError(grpc.StatusCode.UNAVAILABLE, "connection refused")
        >>> err.code_name
        'UNAVAILABLE'
        >>> str(err)
        'rpc error: code = UNAVAILABLE desc = connection refused'
    """

    def __init__(self, code: Any, details: Optional[str]):
        """Initialize the RpcError.

        Args:
            code: The ``grpc.StatusCode`` reported for the call
            details: The status message reported by the remote side
        """
        self.code = code
        self.details = details or ""
        super().__init__(f"rpc error: code = {self.code_name} desc = {self.details}")

    @property
    def code_name(self) -> str:
        """Textual status code name, e.g. ``NOT_FOUND``."""
        return getattr(self.code, "name", str(self.code))


class InvalidResponseError(GrpcInvokeError):
    """Raised when a response message cannot be rendered as JSON."""
