# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/endpoint_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Endpoint Management

This module owns one live channel per registered (host, port). Registration
connects with a bounded timeout, resolves the endpoint's services through
server reflection and keeps the resulting catalog for the process lifetime.
A registration reserves its (host, port) under a lock and connects outside it,
so a slow endpoint does not hold up others. Catalog reads need no locking: a
catalog is never mutated after it is built.
"""

# Standard
import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

# Third-Party
import grpc

# First-Party
from grpc_invoke.config import Settings
from grpc_invoke.exceptions import DuplicateRegistrationError, EndpointConnectionError, MethodNotFoundError
from grpc_invoke.models import MethodEntry, ServiceCatalog, ServiceEntry
from grpc_invoke.services.logging_service import LoggingService
from grpc_invoke.services.reflection_service import ReflectionService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A registered endpoint: its channel and the catalog built at registration."""

    name: str
    host: str
    port: int
    channel: grpc.aio.Channel
    catalog: ServiceCatalog

    @property
    def key(self) -> Tuple[str, int]:
        """Registry key."""
        return (self.host, self.port)

    @property
    def target(self) -> str:
        """Dial target ``host:port``."""
        return f"{self.host}:{self.port}"

    def state(self) -> str:
        """Return the channel connectivity state name, e.g. ``ready``.

        Returns:
            str: Lower-cased ``grpc.ChannelConnectivity`` name
        """
        return self.channel.get_state(try_to_connect=False).name.lower()


class EndpointService:
    """Registry of endpoints keyed by (host, port)."""

    def __init__(self, settings: Settings, reflection_service: Optional[ReflectionService] = None):
        """Initialize the endpoint registry.

        Args:
            settings: Application settings (connect and reflection timeouts)
            reflection_service: Resolver used on new connections
        """
        self._connect_timeout = settings.connect_timeout
        self._reflection = reflection_service or ReflectionService(timeout=settings.reflection_timeout)
        self._endpoints: Dict[Tuple[str, int], Endpoint] = {}
        # keys being connected; reserved under the lock, dialed outside it
        self._pending: Set[Tuple[str, int]] = set()
        self._lock = asyncio.Lock()

    async def register(self, name: str, host: str, port: int) -> Endpoint:
        """Connect to an endpoint and build its service catalog.

        Args:
            name: Human readable endpoint name
            host: Host name or IP address
            port: TCP port

        Returns:
            Endpoint: The registered endpoint

        Raises:
            DuplicateRegistrationError: If (host, port) is already registered
            EndpointConnectionError: If the channel is not ready in time or reflection fails
        """
        key = (host, port)
        async with self._lock:
            if key in self._endpoints or key in self._pending:
                raise DuplicateRegistrationError(host, port)
            self._pending.add(key)

        try:
            target = f"{host}:{port}"
            logger.info(f"Connecting to [{name}] {target}")
            channel = grpc.aio.insecure_channel(target)
            try:
                catalog = await self._connect(channel, target)
            except BaseException:
                await channel.close()
                raise

            endpoint = Endpoint(name=name, host=host, port=port, channel=channel, catalog=catalog)
            async with self._lock:
                self._endpoints[key] = endpoint
        finally:
            self._pending.discard(key)

        logger.info("Registered endpoint [%s] %s: %d services, %d methods", name, target, len(catalog.services), catalog.method_count)
        return endpoint

    async def _connect(self, channel: grpc.aio.Channel, target: str) -> ServiceCatalog:
        """Wait for the channel and resolve its catalog.

        Args:
            channel: Freshly created channel
            target: Dial target

        Returns:
            ServiceCatalog: Catalog of the endpoint

        Raises:
            EndpointConnectionError: If the channel does not become ready within the connect timeout
        """
        try:
            await asyncio.wait_for(channel.channel_ready(), timeout=self._connect_timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"connect {target} timed out after {self._connect_timeout}s")
            raise EndpointConnectionError(target, f"not ready within {self._connect_timeout}s") from e

        try:
            return await self._reflection.resolve(channel, target)
        except EndpointConnectionError as e:
            logger.warning(f"Reflection failed for {target}: {e}")
            raise

    def list_endpoints(self) -> List[Endpoint]:
        """Return registered endpoints in registration order.

        Returns:
            List[Endpoint]: Registered endpoints
        """
        return list(self._endpoints.values())

    def get_endpoint(self, host: str, port: int) -> Optional[Endpoint]:
        """Return the endpoint registered for (host, port), if any.

        Args:
            host: Host name or IP address
            port: TCP port

        Returns:
            The endpoint or None
        """
        return self._endpoints.get((host, port))

    def list_catalogs(self) -> List[ServiceEntry]:
        """Return every endpoint's services, endpoints in registration order.

        Returns:
            List[ServiceEntry]: All catalog services
        """
        services: List[ServiceEntry] = []
        for endpoint in self.list_endpoints():
            services.extend(endpoint.catalog.services)
        return services

    def find_method(self, service_name: str, method_name: str) -> Tuple[Endpoint, MethodEntry]:
        """Find a unary method across all endpoints.

        Args:
            service_name: Fully qualified service name
            method_name: Method name

        Returns:
            Tuple of the owning endpoint and the method entry

        Raises:
            MethodNotFoundError: If no endpoint exposes the method
        """
        for endpoint in self.list_endpoints():
            method = endpoint.catalog.get_method(service_name, method_name)
            if method is not None:
                return endpoint, method
        raise MethodNotFoundError(service_name, method_name)

    async def shutdown(self) -> None:
        """Close every endpoint channel."""
        for endpoint in self.list_endpoints():
            await endpoint.channel.close()
            logger.info(f"Closed channel to [{endpoint.name}] {endpoint.target}")
        self._endpoints.clear()
