# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/grpc_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Service Management

This module is the entry point consumed by front-ends (CLI, HTTP layers).
It handles endpoint registration with reflection-based discovery, catalog
listing, per-method JSON schema generation and dynamic invocation.
"""

# Standard
from typing import List, Mapping, Optional

# First-Party
from grpc_invoke.config import Settings
from grpc_invoke.models import EndpointRead, InvokeResult, MethodRead, MethodSchemaRead, ServiceRead
from grpc_invoke.services.endpoint_service import Endpoint, EndpointService
from grpc_invoke.services.invoke_service import InvokeService, Payload
from grpc_invoke.services.logging_service import LoggingService
from grpc_invoke.services.schema_service import SchemaService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


class GrpcService:
    """Service for registering gRPC endpoints and invoking their methods."""

    def __init__(self, settings: Settings, endpoint_service: Optional[EndpointService] = None):
        """Initialize the gRPC service manager.

        Args:
            settings: Application settings
            endpoint_service: Endpoint registry; built from settings when omitted
        """
        self._endpoints = endpoint_service or EndpointService(settings)
        self._schemas = SchemaService(max_depth=settings.schema_max_depth)
        self._invoker = InvokeService(self._endpoints, default_timeout=settings.invoke_timeout)

    async def register_service(self, name: str, host: str, port: int) -> EndpointRead:
        """Register a gRPC endpoint and discover its services.

        Args:
            name: Human readable endpoint name
            host: Host name or IP address
            port: TCP port

        Returns:
            EndpointRead: The registered endpoint

        Raises:
            DuplicateRegistrationError: If (host, port) is already registered
            EndpointConnectionError: If connecting or reflection fails
        """
        endpoint = await self._endpoints.register(name, host, port)
        return self._endpoint_read(endpoint)

    def list_endpoints(self) -> List[EndpointRead]:
        """List registered endpoints with their connectivity state.

        Returns:
            List[EndpointRead]: Registered endpoints
        """
        return [self._endpoint_read(endpoint) for endpoint in self._endpoints.list_endpoints()]

    def list_services(self) -> List[ServiceRead]:
        """List the services and unary methods of every registered endpoint.

        Returns:
            List[ServiceRead]: Services in registration and discovery order
        """
        return [
            ServiceRead(
                service_name=service.name,
                methods=[MethodRead(name=method.name, request=method.input_type.name, response=method.output_type.name) for method in service.methods],
            )
            for service in self._endpoints.list_catalogs()
        ]

    def get_method_schema(self, service_name: str, method_name: str) -> MethodSchemaRead:
        """Compile the input and output schemas of a method.

        Args:
            service_name: Fully qualified service name
            method_name: Method name

        Returns:
            MethodSchemaRead: Input and output JSON schemas

        Raises:
            MethodNotFoundError: If no endpoint exposes the method
        """
        _, method = self._endpoints.find_method(service_name, method_name)
        return MethodSchemaRead(
            input_schema=self._schemas.compile(method.input_type, is_root=True).to_dict(),
            output_schema=self._schemas.compile(method.output_type, is_root=True).to_dict(),
        )

    async def invoke_method(
        self,
        service_name: str,
        method_name: str,
        payload: Payload = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> InvokeResult:
        """Invoke a unary method with a JSON payload.

        Args:
            service_name: Fully qualified service name
            method_name: Method name
            payload: JSON request, as text or decoded mapping
            headers: Outgoing call metadata
            timeout: Deadline in seconds

        Returns:
            InvokeResult: Response data with header and trailer metadata

        Raises:
            MethodNotFoundError: If no endpoint exposes the method
            InvalidPayloadError: If the payload does not match the input message
            RpcError: If the remote call fails
        """
        return await self._invoker.invoke(service_name, method_name, payload, headers=headers, timeout=timeout)

    async def shutdown(self) -> None:
        """Close all endpoint channels."""
        await self._endpoints.shutdown()
        logger.info("gRPC service shutdown")

    @staticmethod
    def _endpoint_read(endpoint: Endpoint) -> EndpointRead:
        """Build the read model of an endpoint.

        Args:
            endpoint: Registered endpoint

        Returns:
            EndpointRead: Endpoint summary
        """
        return EndpointRead(
            name=endpoint.name,
            host=endpoint.host,
            port=endpoint.port,
            target=endpoint.target,
            state=endpoint.state(),
            service_count=len(endpoint.catalog.services),
            method_count=endpoint.catalog.method_count,
        )
