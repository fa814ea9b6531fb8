# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/reflection_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Server Reflection Resolver

This module talks to a remote endpoint's server reflection service, lists its
services, pulls the file descriptors that define them (with the transitive
import closure) and builds a ``ServiceCatalog`` backed by a private
descriptor pool. Only unary methods are admitted into the catalog.
"""

# Standard
from typing import Dict, List, Optional, Set, Union

# Third-Party
from google.protobuf import descriptor_pool
from google.protobuf.descriptor import ServiceDescriptor
from google.protobuf.descriptor_pb2 import FileDescriptorProto  # pylint: disable=no-name-in-module
import grpc
from grpc_reflection.v1alpha import reflection_pb2, reflection_pb2_grpc

# First-Party
from grpc_invoke.exceptions import ReflectionError
from grpc_invoke.models import MethodEntry, ServiceCatalog, ServiceEntry
from grpc_invoke.services.logging_service import LoggingService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

REFLECTION_SERVICE_NAMES = frozenset(
    {
        "grpc.reflection.v1alpha.ServerReflection",
        "grpc.reflection.v1.ServerReflection",
    }
)

REFLECTION_V1_METHOD = "/grpc.reflection.v1.ServerReflection/ServerReflectionInfo"


class ReflectionV1Stub:
    """Client stub for ``grpc.reflection.v1.ServerReflection``.

    The v1 messages are identical on the wire to the v1alpha ones, so the
    v1alpha message classes are used for both directions.
    """

    def __init__(self, channel: grpc.aio.Channel):
        """Bind the stub to a channel.

        Args:
            channel: An open channel to the endpoint
        """
        self.ServerReflectionInfo = channel.stream_stream(  # pylint: disable=invalid-name
            REFLECTION_V1_METHOD,
            request_serializer=reflection_pb2.ServerReflectionRequest.SerializeToString,  # pylint: disable=no-member
            response_deserializer=reflection_pb2.ServerReflectionResponse.FromString,  # pylint: disable=no-member
        )


ReflectionStub = Union[reflection_pb2_grpc.ServerReflectionStub, ReflectionV1Stub]


def is_unimplemented(error: ReflectionError) -> bool:
    """Tell whether a reflection failure means the server lacks that reflection version.

    Args:
        error: Error raised by a reflection call

    Returns:
        bool: True when the underlying RPC failed with ``UNIMPLEMENTED``

    Examples:
        >>> is_unimplemented(ReflectionError("h:1", "boom"))
        False
    """
    cause = error.__cause__
    return isinstance(cause, grpc.aio.AioRpcError) and cause.code() == grpc.StatusCode.UNIMPLEMENTED


class ReflectionService:
    """Resolve a remote endpoint's services through server reflection.

    Examples:
        >>> ReflectionService(timeout=2.5)._timeout
        2.5
        >>> sorted(REFLECTION_SERVICE_NAMES)[0]
        'grpc.reflection.v1.ServerReflection'
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the reflection resolver.

        Args:
            timeout: Deadline in seconds applied to each reflection call
        """
        self._timeout = timeout

    async def resolve(self, channel: grpc.aio.Channel, target: str = "") -> ServiceCatalog:
        """Build the service catalog of the endpoint behind ``channel``.

        Args:
            channel: An open channel to the endpoint
            target: Dial target, used in error messages and logs

        Returns:
            ServiceCatalog: Services with their unary methods

        Raises:
            ReflectionError: If a reflection call fails or the descriptors are incomplete
        """
        stub = reflection_pb2_grpc.ServerReflectionStub(channel)
        try:
            service_names = await self.list_services(stub, target)
        except ReflectionError as e:
            if not is_unimplemented(e):
                raise
            logger.info(f"{target} does not serve v1alpha reflection, trying grpc.reflection.v1")
            stub = ReflectionV1Stub(channel)
            service_names = await self.list_services(stub, target)

        files: Dict[str, FileDescriptorProto] = {}
        raw_files: Dict[str, bytes] = {}
        for symbol in service_names:
            logger.debug(f"Resolving symbol {symbol} on {target}")
            request = reflection_pb2.ServerReflectionRequest(file_containing_symbol=symbol)  # pylint: disable=no-member
            self._collect_files(await self._request(stub, request, target), files, raw_files)

        await self._resolve_dependencies(stub, files, raw_files, target)
        pool = self._build_pool(files, raw_files, target)

        services: List[ServiceEntry] = []
        for symbol in service_names:
            try:
                service_desc = pool.FindServiceByName(symbol)
            except KeyError as e:
                raise ReflectionError(target, f"service '{symbol}' missing from resolved descriptors") from e
            services.append(self._build_service_entry(service_desc))

        catalog = ServiceCatalog(services=tuple(services), pool=pool)
        logger.info("Reflection completed for %s: %d services, %d methods", target, len(catalog.services), catalog.method_count)
        return catalog

    async def list_services(self, stub: ReflectionStub, target: str = "") -> List[str]:
        """List the user-facing service names exposed by the endpoint.

        Args:
            stub: Reflection stub bound to the endpoint channel
            target: Dial target, used in error messages

        Returns:
            List[str]: Fully qualified service names, in server order
        """
        request = reflection_pb2.ServerReflectionRequest(list_services="")  # pylint: disable=no-member
        service_names: List[str] = []
        for response in await self._request(stub, request, target):
            for service in response.list_services_response.service:
                if service.name in REFLECTION_SERVICE_NAMES:
                    continue
                service_names.append(service.name)
        return service_names

    async def _request(self, stub: ReflectionStub, request, target: str) -> List:
        """Send one reflection request and collect the responses.

        Args:
            stub: Reflection stub
            request: A ``ServerReflectionRequest``
            target: Dial target, used in error messages

        Returns:
            List of ``ServerReflectionResponse`` messages

        Raises:
            ReflectionError: If the call fails or the server answers with an error
        """
        try:
            call = stub.ServerReflectionInfo(iter((request,)), timeout=self._timeout)
            responses = [response async for response in call]
        except grpc.aio.AioRpcError as e:
            raise ReflectionError(target, f"reflection call failed: {e.code().name}: {e.details()}") from e

        for response in responses:
            if response.HasField("error_response"):
                error = response.error_response
                raise ReflectionError(target, f"reflection error {error.error_code}: {error.error_message}")
        return responses

    async def _resolve_dependencies(
        self,
        stub: ReflectionStub,
        files: Dict[str, FileDescriptorProto],
        raw_files: Dict[str, bytes],
        target: str,
    ) -> None:
        """Fetch imported files that were not delivered with their dependents.

        Args:
            stub: Reflection stub
            files: Parsed files keyed by file name, extended in place
            raw_files: Serialized files keyed by file name, extended in place
            target: Dial target, used in error messages

        Raises:
            ReflectionError: If the server cannot provide a required file
        """
        missing = self._missing_dependencies(files)
        while missing:
            file_name = missing[0]
            logger.debug(f"Fetching dependency {file_name} from {target}")
            request = reflection_pb2.ServerReflectionRequest(file_by_filename=file_name)  # pylint: disable=no-member
            self._collect_files(await self._request(stub, request, target), files, raw_files)
            if file_name not in files:
                raise ReflectionError(target, f"dependency '{file_name}' was not provided by the server")
            missing = self._missing_dependencies(files)

    @staticmethod
    def _collect_files(responses: List, files: Dict[str, FileDescriptorProto], raw_files: Dict[str, bytes]) -> None:
        """Parse file descriptors from reflection responses, keeping the first copy of each file.

        Args:
            responses: ``ServerReflectionResponse`` messages
            files: Parsed files keyed by file name
            raw_files: Serialized files keyed by file name
        """
        for response in responses:
            for raw in response.file_descriptor_response.file_descriptor_proto:
                proto = FileDescriptorProto.FromString(raw)
                if proto.name not in files:
                    files[proto.name] = proto
                    raw_files[proto.name] = raw

    @staticmethod
    def _missing_dependencies(files: Dict[str, FileDescriptorProto]) -> List[str]:
        """List imported file names that have not been fetched yet.

        Args:
            files: Parsed files keyed by file name

        Returns:
            Sorted list of missing file names

        Examples:
            >>> a = FileDescriptorProto(name="a.proto", dependency=["b.proto", "c.proto"])
            >>> b = FileDescriptorProto(name="b.proto")
            >>> ReflectionService._missing_dependencies({"a.proto": a, "b.proto": b})
            ['c.proto']
        """
        missing: Set[str] = set()
        for proto in files.values():
            for dependency in proto.dependency:
                if dependency not in files:
                    missing.add(dependency)
        return sorted(missing)

    def _build_pool(self, files: Dict[str, FileDescriptorProto], raw_files: Dict[str, bytes], target: str) -> descriptor_pool.DescriptorPool:
        """Load files into a fresh descriptor pool in dependency order.

        Args:
            files: Parsed files keyed by file name
            raw_files: Serialized files keyed by file name
            target: Dial target, used in error messages

        Returns:
            DescriptorPool: Pool containing every file

        Raises:
            ReflectionError: If a file cannot be loaded
        """
        pool = descriptor_pool.DescriptorPool()
        added: Set[str] = set()

        def add(file_name: str) -> None:
            if file_name in added:
                return
            added.add(file_name)
            for dependency in files[file_name].dependency:
                add(dependency)
            try:
                pool.AddSerializedFile(raw_files[file_name])
            except (TypeError, ValueError) as e:
                raise ReflectionError(target, f"invalid descriptor '{file_name}': {e}") from e

        for file_name in files:
            add(file_name)
        return pool

    @staticmethod
    def _build_service_entry(service_desc: ServiceDescriptor) -> ServiceEntry:
        """Build a catalog entry, dropping streaming methods.

        Args:
            service_desc: Resolved service descriptor

        Returns:
            ServiceEntry: The service with its unary methods
        """
        methods: List[MethodEntry] = []
        for method_desc in service_desc.methods:
            if method_desc.client_streaming or method_desc.server_streaming:
                logger.info(
                    "[stream] %s, server stream: %s, client stream: %s",
                    method_desc.full_name,
                    method_desc.server_streaming,
                    method_desc.client_streaming,
                )
                continue
            methods.append(
                MethodEntry(
                    service_name=service_desc.full_name,
                    name=method_desc.name,
                    input_type=method_desc.input_type,
                    output_type=method_desc.output_type,
                )
            )
        return ServiceEntry(name=service_desc.full_name, methods=tuple(methods))
