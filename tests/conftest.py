# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Shared fixtures: a descriptor pool built from hand-written file descriptors,
fake channels and test settings.
"""

# Standard
from typing import Iterable, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

# Third-Party
from google.protobuf import descriptor_pool, message_factory
from google.protobuf.descriptor_pb2 import DescriptorProto, FieldDescriptorProto, FileDescriptorProto  # pylint: disable=no-name-in-module
import grpc
import pytest

# First-Party
from grpc_invoke.config import Settings
from grpc_invoke.models import ServiceCatalog
from grpc_invoke.services.reflection_service import ReflectionService
from grpc_invoke.utils.base_models import to_camel_case

F = FieldDescriptorProto


def add_field(message: DescriptorProto, name: str, number: int, field_type: int, label: int = F.LABEL_OPTIONAL, type_name: Optional[str] = None) -> None:
    """Append a field with an explicit json_name."""
    field = message.field.add(name=name, number=number, type=field_type, label=label, json_name=to_camel_case(name))
    if type_name:
        field.type_name = type_name


def add_method(file_proto: FileDescriptorProto, service_name: str, methods: Iterable[Tuple[str, str, str, bool, bool]]) -> None:
    """Append a service with ``(name, input, output, client_streaming, server_streaming)`` methods."""
    service = file_proto.service.add(name=service_name)
    for name, input_type, output_type, client_streaming, server_streaming in methods:
        service.method.add(
            name=name,
            input_type=input_type,
            output_type=output_type,
            client_streaming=client_streaming,
            server_streaming=server_streaming,
        )


def build_test_file() -> FileDescriptorProto:
    """Build ``testpkg/people.proto`` covering every scalar kind, enums, nesting and recursion."""
    file_proto = FileDescriptorProto(name="testpkg/people.proto", package="testpkg", syntax="proto3")

    color = file_proto.enum_type.add(name="Color")
    for number, name in enumerate(("RED", "GREEN", "BLUE")):
        color.value.add(name=name, number=number)

    address = file_proto.message_type.add(name="Address")
    add_field(address, "street", 1, F.TYPE_STRING)
    add_field(address, "zip_code", 2, F.TYPE_INT32)

    person = file_proto.message_type.add(name="Person")
    add_field(person, "name", 1, F.TYPE_STRING)
    add_field(person, "age", 2, F.TYPE_INT32)
    add_field(person, "id", 3, F.TYPE_INT64)
    add_field(person, "score", 4, F.TYPE_DOUBLE)
    add_field(person, "ratio", 5, F.TYPE_FLOAT)
    add_field(person, "active", 6, F.TYPE_BOOL)
    add_field(person, "avatar", 7, F.TYPE_BYTES)
    add_field(person, "color", 8, F.TYPE_ENUM, type_name=".testpkg.Color")
    add_field(person, "address", 9, F.TYPE_MESSAGE, type_name=".testpkg.Address")
    add_field(person, "tags", 10, F.TYPE_STRING, label=F.LABEL_REPEATED)
    add_field(person, "addresses", 11, F.TYPE_MESSAGE, label=F.LABEL_REPEATED, type_name=".testpkg.Address")
    add_field(person, "visits", 12, F.TYPE_UINT32)
    add_field(person, "points", 13, F.TYPE_UINT64)
    add_field(person, "delta32", 14, F.TYPE_SINT32)
    add_field(person, "delta64", 15, F.TYPE_SINT64)
    add_field(person, "hash32", 16, F.TYPE_FIXED32)
    add_field(person, "hash64", 17, F.TYPE_FIXED64)
    add_field(person, "offset32", 18, F.TYPE_SFIXED32)
    add_field(person, "offset64", 19, F.TYPE_SFIXED64)

    tree = file_proto.message_type.add(name="TreeNode")
    add_field(tree, "value", 1, F.TYPE_STRING)
    add_field(tree, "children", 2, F.TYPE_MESSAGE, label=F.LABEL_REPEATED, type_name=".testpkg.TreeNode")
    add_field(tree, "parent", 3, F.TYPE_MESSAGE, type_name=".testpkg.TreeNode")

    a = file_proto.message_type.add(name="A")
    add_field(a, "b", 1, F.TYPE_MESSAGE, type_name=".testpkg.B")
    add_field(a, "label", 2, F.TYPE_STRING)
    b = file_proto.message_type.add(name="B")
    add_field(b, "a", 1, F.TYPE_MESSAGE, type_name=".testpkg.A")

    household = file_proto.message_type.add(name="Household")
    add_field(household, "head", 1, F.TYPE_MESSAGE, type_name=".testpkg.Person")

    file_proto.message_type.add(name="Empty")

    add_method(
        file_proto,
        "PeopleService",
        [
            ("GetPerson", ".testpkg.Person", ".testpkg.Person", False, False),
            ("Walk", ".testpkg.TreeNode", ".testpkg.TreeNode", False, False),
            ("Watch", ".testpkg.Person", ".testpkg.Person", False, True),
            ("Upload", ".testpkg.Person", ".testpkg.Empty", True, False),
            ("Chat", ".testpkg.Person", ".testpkg.Person", True, True),
        ],
    )
    return file_proto


@pytest.fixture(scope="session")
def test_pool():
    """Descriptor pool holding ``testpkg/people.proto``."""
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(build_test_file().SerializeToString())
    return pool


@pytest.fixture
def person_descriptor(test_pool):
    return test_pool.FindMessageTypeByName("testpkg.Person")


@pytest.fixture
def person_class(person_descriptor):
    return message_factory.GetMessageClass(person_descriptor)


@pytest.fixture
def people_catalog(test_pool):
    """Catalog of ``testpkg.PeopleService`` with its streaming methods dropped."""
    service_entry = ReflectionService._build_service_entry(test_pool.FindServiceByName("testpkg.PeopleService"))
    return ServiceCatalog(services=(service_entry,), pool=test_pool)


@pytest.fixture
def settings():
    """Settings isolated from any .env file, with short timeouts."""
    return Settings(_env_file=None, connect_timeout=0.5, reflection_timeout=1.0, invoke_timeout=5.0)


@pytest.fixture
def fake_channel():
    """A ``grpc.aio`` channel stand-in that is immediately ready."""
    channel = MagicMock()
    channel.channel_ready = AsyncMock()
    channel.close = AsyncMock()
    channel.get_state = MagicMock(return_value=grpc.ChannelConnectivity.READY)
    return channel
