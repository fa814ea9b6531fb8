# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/invoke_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Dynamic gRPC Invocation

This module performs unary calls against registered endpoints without
generated stubs: the JSON payload is parsed into a dynamic message built
from the method's input descriptor, the call runs over the endpoint's shared
channel, and the response is rendered back to JSON together with the header
and trailer metadata of the call.

The invoker keeps no per-call state, so concurrent invocations share the
endpoint channel and rely on HTTP/2 multiplexing.
"""

# Standard
import base64
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

# Third-Party
from google.protobuf import json_format, message_factory
from google.protobuf.descriptor import Descriptor
from google.protobuf.descriptor_pool import DescriptorPool
from google.protobuf.message import Message
import grpc
import orjson

# First-Party
from grpc_invoke.exceptions import InvalidPayloadError, InvalidResponseError, RpcError
from grpc_invoke.models import InvokeResult
from grpc_invoke.services.endpoint_service import EndpointService
from grpc_invoke.services.logging_service import LoggingService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

Payload = Union[str, bytes, Mapping[str, Any], None]


def build_request(input_type: Descriptor, payload: Payload, pool: Optional[DescriptorPool] = None) -> Message:
    """Parse a JSON payload into a new message of ``input_type``.

    ``google.protobuf.Any`` values are resolved against ``pool``, which
    defaults to the pool ``input_type`` was loaded into.

    Args:
        input_type: Input message descriptor
        payload: JSON text, an already decoded mapping, or None for an empty message
        pool: Descriptor pool used to resolve ``@type`` URLs

    Returns:
        Message: The populated dynamic message

    Raises:
        InvalidPayloadError: If the payload is not valid JSON or does not match the message
    """
    message = message_factory.GetMessageClass(input_type)()
    if payload is None:
        return message
    pool = pool or input_type.file.pool
    try:
        if isinstance(payload, (str, bytes)):
            json_format.Parse(payload, message, descriptor_pool=pool)
        elif isinstance(payload, Mapping):
            json_format.ParseDict(dict(payload), message, descriptor_pool=pool)
        else:
            raise InvalidPayloadError(f"unsupported payload type {type(payload).__name__}")
    except (json_format.ParseError, TypeError, ValueError) as e:
        raise InvalidPayloadError(f"invalid payload for {input_type.full_name}: {e}") from e
    return message


def encode_metadata(headers: Optional[Mapping[str, str]]) -> Optional[Tuple[Tuple[str, str], ...]]:
    """Convert a header map into outgoing call metadata.

    Args:
        headers: Header names and values

    Returns:
        Metadata tuples with lower-cased keys, or None when there is nothing to send

    Examples:
        >>> encode_metadata({"Authorization": "Bearer t"})
        (('authorization', 'Bearer t'),)
        >>> encode_metadata({}) is None
        True
    """
    if not headers:
        return None
    return tuple((key.lower(), value) for key, value in headers.items())


def decode_metadata(metadata: Optional[Iterable[Tuple[str, Union[str, bytes]]]]) -> Dict[str, List[str]]:
    """Group received metadata into a multi-valued map, preserving wire order.

    Binary values (keys ending in ``-bin``) are base64 encoded.

    Args:
        metadata: Received metadata pairs

    Returns:
        Dict[str, List[str]]: Values per key

    Examples:
        >>> decode_metadata([("k", "a"), ("k", "b"), ("x-bin", b"\\x01")])
        {'k': ['a', 'b'], 'x-bin': ['AQ==']}
        >>> decode_metadata(None)
        {}
    """
    result: Dict[str, List[str]] = {}
    for key, value in metadata or ():
        if isinstance(value, bytes):
            value = base64.b64encode(value).decode("ascii")
        result.setdefault(key, []).append(value)
    return result


def response_to_dict(response: Message, pool: Optional[DescriptorPool] = None) -> Dict[str, Any]:
    """Render a response message through the canonical proto3 JSON mapping.

    Args:
        response: Response message
        pool: Descriptor pool used to resolve packed ``Any`` values; defaults to the message's own pool

    Returns:
        Dict[str, Any]: Decoded JSON object

    Raises:
        InvalidResponseError: If the message cannot be rendered, e.g. an ``Any`` packs an unknown type
    """
    pool = pool or response.DESCRIPTOR.file.pool
    try:
        return orjson.loads(json_format.MessageToJson(response, descriptor_pool=pool))
    except (json_format.Error, TypeError, ValueError) as e:
        raise InvalidResponseError(f"cannot render {response.DESCRIPTOR.full_name} as JSON: {e}") from e


class InvokeService:
    """Invoke unary methods of registered endpoints."""

    def __init__(self, endpoints: EndpointService, default_timeout: Optional[float] = None):
        """Initialize the invoker.

        Args:
            endpoints: Endpoint registry used to look methods up
            default_timeout: Deadline in seconds used when the caller gives none
        """
        self._endpoints = endpoints
        self._default_timeout = default_timeout

    async def invoke(
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
            timeout: Deadline in seconds; defaults to the service default

        Returns:
            InvokeResult: Decoded response with header and trailer metadata

        Raises:
            RpcError: If the remote call fails
            InvalidResponseError: If the response cannot be rendered as JSON
        """
        endpoint, method = self._endpoints.find_method(service_name, method_name)
        pool = endpoint.catalog.pool
        request = build_request(method.input_type, payload, pool)

        response_class = message_factory.GetMessageClass(method.output_type)
        multicallable = endpoint.channel.unary_unary(
            method.path,
            request_serializer=lambda message: message.SerializeToString(),
            response_deserializer=response_class.FromString,
        )

        deadline = timeout if timeout is not None else self._default_timeout
        call = multicallable(request, timeout=deadline, metadata=encode_metadata(headers))
        try:
            response = await call
            header = await call.initial_metadata()
            trailer = await call.trailing_metadata()
        except grpc.aio.AioRpcError as e:
            logger.warning(f"Invocation of {method.full_name} on {endpoint.target} failed: {e.code().name}: {e.details()}")
            raise RpcError(e.code(), e.details()) from e

        return InvokeResult(
            data=response_to_dict(response, pool),
            header=decode_metadata(header),
            trailer=decode_metadata(trailer),
        )
