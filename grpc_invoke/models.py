# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Data models for gRPC Invoke.

This module holds three groups of types:

- enumerations shared across the package (``LogLevel``, ``SchemaType``),
- the in-memory service catalog built from server reflection
  (``MethodEntry``, ``ServiceEntry``, ``ServiceCatalog``), which keeps
  references to live protobuf descriptors,
- the pydantic read models returned to callers of the core
  (``SchemaNode``, ``ServiceRead``, ``MethodSchemaRead``, ``InvokeResult``,
  ``EndpointRead``).

Examples:
    >>> SchemaType.INTEGER.value
    'integer'
    >>> node = SchemaNode(type=SchemaType.STRING, title="name", description="string")
    >>> node.to_dict()
    {'type': 'string', 'title': 'name', 'description': 'string'}
"""

# Standard
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Third-Party
from google.protobuf.descriptor import Descriptor
from google.protobuf.descriptor_pool import DescriptorPool
from pydantic import BaseModel, Field

# First-Party
from grpc_invoke.utils.base_models import BaseModelWithConfigDict


class LogLevel(str, Enum):
    """Log levels understood by the logging service.

    Examples:
        >>> LogLevel.INFO.upper()
        'INFO'
        >>> LogLevel("debug")
        <LogLevel.DEBUG: 'debug'>
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SchemaType(str, Enum):
    """JSON-Schema primitive kinds produced by the schema compiler."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"


class SchemaNode(BaseModel):
    """A JSON-Schema-like description of a message or field.

    ``options`` carries presentation metadata for form renderers: nested
    objects are ``collapsed``, and nodes that were not expanded carry either a
    ``$ref`` to the recursive message name or a ``truncated`` flag.

    Examples:
        >>> leaf = SchemaNode(type=SchemaType.STRING, title="tags", description="string")
        >>> arr = SchemaNode(type=SchemaType.ARRAY, title="tags", description="string", items=leaf)
        >>> arr.to_dict()["items"]["type"]
        'string'
        >>> SchemaNode(type=SchemaType.OBJECT, properties={}, options={"collapsed": False}).to_dict()
        {'type': 'object', 'properties': {}, 'options': {'collapsed': False}}
    """

    type: SchemaType
    title: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[str]] = None
    items: Optional["SchemaNode"] = None
    properties: Optional[Dict[str, "SchemaNode"]] = None
    options: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the node as a JSON-Schema dictionary, omitting unset keys.

        Returns:
            Dict[str, Any]: JSON-compatible schema.
        """
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Service catalog (built once per endpoint, read-only afterwards)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MethodEntry:
    """A unary method admitted into the catalog."""

    service_name: str
    name: str
    input_type: Descriptor
    output_type: Descriptor

    @property
    def full_name(self) -> str:
        """Fully qualified method name, e.g. ``helloworld.Greeter.SayHello``."""
        return f"{self.service_name}.{self.name}"

    @property
    def path(self) -> str:
        """HTTP/2 request path used on the wire, e.g. ``/helloworld.Greeter/SayHello``."""
        return f"/{self.service_name}/{self.name}"


@dataclass(frozen=True, slots=True)
class ServiceEntry:
    """A service and its unary methods, in declaration order."""

    name: str
    methods: Tuple[MethodEntry, ...] = ()

    def get_method(self, method_name: str) -> Optional[MethodEntry]:
        """Find a method by its short name.

        Args:
            method_name: Method name, e.g. ``SayHello``

        Returns:
            The method entry, or None when the service has no such unary method.
        """
        for method in self.methods:
            if method.name == method_name:
                return method
        return None


@dataclass(frozen=True, slots=True)
class ServiceCatalog:
    """Services exposed by one endpoint, plus the pool their descriptors live in."""

    services: Tuple[ServiceEntry, ...] = ()
    pool: Optional[DescriptorPool] = field(default=None, compare=False, repr=False)

    def get_method(self, service_name: str, method_name: str) -> Optional[MethodEntry]:
        """Find a method by service and method name.

        Args:
            service_name: Fully qualified service name
            method_name: Method name

        Returns:
            The method entry, or None if absent.

        Examples:
            >>> ServiceCatalog().get_method("helloworld.Greeter", "SayHello") is None
            True
        """
        for service in self.services:
            if service.name == service_name:
                return service.get_method(method_name)
        return None

    @property
    def method_count(self) -> int:
        """Total number of unary methods in the catalog."""
        return sum(len(service.methods) for service in self.services)


# ---------------------------------------------------------------------------
# Boundary read models
# ---------------------------------------------------------------------------


class MethodRead(BaseModelWithConfigDict):
    """A catalog method as listed to callers."""

    name: str = Field(..., description="Method name")
    request: str = Field("", description="Input message name")
    response: str = Field("", description="Output message name")


class ServiceRead(BaseModelWithConfigDict):
    """A catalog service as listed to callers.

    Examples:
        >>> ServiceRead(service_name="helloworld.Greeter", methods=[MethodRead(name="SayHello")]).to_dict(use_alias=True)
        {'serviceName': 'helloworld.Greeter', 'methods': [{'name': 'SayHello', 'request': '', 'response': ''}]}
    """

    service_name: str = Field(..., description="Fully qualified service name")
    methods: List[MethodRead] = Field(default_factory=list)


class MethodSchemaRead(BaseModelWithConfigDict):
    """Input and output schemas of one method."""

    input_schema: Dict[str, Any]
    output_schema: Dict[str, Any]


class InvokeResult(BaseModelWithConfigDict):
    """Decoded response of a dynamic invocation plus the call metadata.

    Examples:
        >>> InvokeResult(data={"message": "hello world"}).to_dict(use_alias=True)
        {'data': {'message': 'hello world'}, 'header': {}, 'trailer': {}}
    """

    data: Dict[str, Any] = Field(default_factory=dict)
    header: Dict[str, List[str]] = Field(default_factory=dict)
    trailer: Dict[str, List[str]] = Field(default_factory=dict)


class EndpointRead(BaseModelWithConfigDict):
    """A registered endpoint and its connectivity state."""

    name: str
    host: str
    port: int
    target: str
    state: str
    service_count: int = 0
    method_count: int = 0
