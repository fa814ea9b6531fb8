# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/demo.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Demo ``helloworld.Greeter`` server with server reflection.

The service is defined at runtime from a ``FileDescriptorProto`` (no
generated code) and served on ``grpc.aio`` with reflection enabled over the
same descriptor pool, so it can be registered and invoked like any remote
endpoint.

Examples:
    >>> DEMO_POOL.FindServiceByName(SERVICE_NAME).methods_by_name["SayHello"].input_type.full_name
    'helloworld.HelloRequest'
    >>> HelloReply(message="hello world").message
    'hello world'
"""

# Standard
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

# Third-Party
from google.protobuf import descriptor_pool, message_factory
from google.protobuf.descriptor_pb2 import DescriptorProto, FieldDescriptorProto, FileDescriptorProto  # pylint: disable=no-name-in-module
import grpc
from grpc_reflection.v1alpha import reflection

# First-Party
from grpc_invoke.services.logging_service import LoggingService
from grpc_invoke.utils.base_models import to_camel_case

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

SERVICE_NAME = "helloworld.Greeter"
VERSION = "1.0.2"


def _add_message(file_proto: FileDescriptorProto, name: str, fields: Iterable[Tuple[str, int]]) -> DescriptorProto:
    """Append a message with string fields to a file descriptor.

    Args:
        file_proto: File being built
        name: Message name
        fields: ``(field_name, number)`` pairs

    Returns:
        DescriptorProto: The new message
    """
    message = file_proto.message_type.add(name=name)
    for field_name, number in fields:
        message.field.add(
            name=field_name,
            number=number,
            type=FieldDescriptorProto.TYPE_STRING,
            label=FieldDescriptorProto.LABEL_OPTIONAL,
            json_name=to_camel_case(field_name),
        )
    return message


def build_helloworld_file() -> FileDescriptorProto:
    """Build the ``helloworld.proto`` file descriptor.

    Returns:
        FileDescriptorProto: The demo file

    Examples:
        >>> [m.name for m in build_helloworld_file().service[0].method]
        ['SayHello', 'GetVersion', 'ClientStream']
    """
    file_proto = FileDescriptorProto(name="helloworld.proto", package="helloworld", syntax="proto3")
    _add_message(file_proto, "HelloRequest", [("name", 1)])
    _add_message(file_proto, "HelloReply", [("message", 1)])
    _add_message(file_proto, "GetVersionReq", [])
    _add_message(file_proto, "GetVersionReply", [("version", 1)])
    _add_message(file_proto, "StreamRequest", [("data", 1)])

    service = file_proto.service.add(name="Greeter")
    service.method.add(name="SayHello", input_type=".helloworld.HelloRequest", output_type=".helloworld.HelloReply")
    service.method.add(name="GetVersion", input_type=".helloworld.GetVersionReq", output_type=".helloworld.GetVersionReply")
    service.method.add(name="ClientStream", input_type=".helloworld.StreamRequest", output_type=".helloworld.HelloReply", client_streaming=True)
    return file_proto


DEMO_POOL = descriptor_pool.DescriptorPool()
DEMO_POOL.AddSerializedFile(build_helloworld_file().SerializeToString())

HelloRequest = message_factory.GetMessageClass(DEMO_POOL.FindMessageTypeByName("helloworld.HelloRequest"))
HelloReply = message_factory.GetMessageClass(DEMO_POOL.FindMessageTypeByName("helloworld.HelloReply"))
GetVersionReq = message_factory.GetMessageClass(DEMO_POOL.FindMessageTypeByName("helloworld.GetVersionReq"))
GetVersionReply = message_factory.GetMessageClass(DEMO_POOL.FindMessageTypeByName("helloworld.GetVersionReply"))
StreamRequest = message_factory.GetMessageClass(DEMO_POOL.FindMessageTypeByName("helloworld.StreamRequest"))


class GreeterServicer:
    """Greeter implementation.

    ``SayHello`` sends header ``header-key`` and trailer ``trailer-key`` unless
    ``send_metadata`` is false, and remembers the metadata of the last call.
    """

    def __init__(self, send_metadata: bool = True):
        """Initialize the servicer.

        Args:
            send_metadata: Whether SayHello sends header and trailer metadata
        """
        self.send_metadata = send_metadata
        self.last_metadata: Dict[str, str] = {}

    async def say_hello(self, request, context: grpc.aio.ServicerContext):
        """Reply ``hello <name>``.

        Args:
            request: HelloRequest
            context: Call context

        Returns:
            HelloReply
        """
        self.last_metadata = {key: value for key, value in context.invocation_metadata() or ()}
        logger.debug(f"SayHello metadata: {self.last_metadata}")
        if self.send_metadata:
            await context.send_initial_metadata((("header-key", "val"),))
            context.set_trailing_metadata((("trailer-key", "val"),))
        return HelloReply(message="hello " + request.name)

    async def get_version(self, request, context: grpc.aio.ServicerContext):  # pylint: disable=unused-argument
        """Return the demo version.

        Args:
            request: GetVersionReq
            context: Call context

        Returns:
            GetVersionReply
        """
        return GetVersionReply(version=VERSION)

    async def client_stream(self, request_iterator, context: grpc.aio.ServicerContext):  # pylint: disable=unused-argument
        """Greet every name sent on the stream.

        Args:
            request_iterator: Stream of StreamRequest
            context: Call context

        Returns:
            HelloReply
        """
        names = [request.data async for request in request_iterator]
        return HelloReply(message="hello " + ", ".join(names))


def greeter_handler(servicer: GreeterServicer) -> grpc.GenericRpcHandler:
    """Build the generic handler routing Greeter methods to ``servicer``.

    Args:
        servicer: Greeter implementation

    Returns:
        grpc.GenericRpcHandler: Handler for ``helloworld.Greeter``
    """
    handlers = {
        "SayHello": grpc.unary_unary_rpc_method_handler(
            servicer.say_hello,
            request_deserializer=HelloRequest.FromString,
            response_serializer=HelloReply.SerializeToString,
        ),
        "GetVersion": grpc.unary_unary_rpc_method_handler(
            servicer.get_version,
            request_deserializer=GetVersionReq.FromString,
            response_serializer=GetVersionReply.SerializeToString,
        ),
        "ClientStream": grpc.stream_unary_rpc_method_handler(
            servicer.client_stream,
            request_deserializer=StreamRequest.FromString,
            response_serializer=HelloReply.SerializeToString,
        ),
    }
    return grpc.method_handlers_generic_handler(SERVICE_NAME, handlers)


@dataclass(slots=True)
class DemoServer:
    """A running demo server."""

    server: grpc.aio.Server
    port: int
    servicer: GreeterServicer

    async def stop(self, grace: float = 0) -> None:
        """Stop the server.

        Args:
            grace: Seconds granted to in-flight calls
        """
        await self.server.stop(grace)


async def start_demo_server(host: str = "127.0.0.1", port: int = 0, send_metadata: bool = True) -> DemoServer:
    """Start the Greeter demo server with reflection enabled.

    Args:
        host: Bind address
        port: Bind port; 0 picks a free port
        send_metadata: Whether SayHello sends header and trailer metadata

    Returns:
        DemoServer: The running server and its bound port
    """
    servicer = GreeterServicer(send_metadata=send_metadata)
    server = grpc.aio.server()
    server.add_generic_rpc_handlers((greeter_handler(servicer),))
    reflection.enable_server_reflection((SERVICE_NAME, reflection.SERVICE_NAME), server, pool=DEMO_POOL)
    bound_port = server.add_insecure_port(f"{host}:{port}")
    await server.start()
    logger.info(f"Demo gRPC server listening on {host}:{bound_port}")
    return DemoServer(server=server, port=bound_port, servicer=servicer)
