# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/schema_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Protobuf to JSON Schema Compiler

This module converts protobuf message descriptors resolved through server
reflection into JSON-Schema-like ``SchemaNode`` trees that a form renderer can
display. Schemas are compiled on demand and never cached.

Recursive message types are expanded once per recursion path; a revisit
yields an object node whose ``options`` carry a ``$ref`` to the message name.
An optional depth cap stops expansion with a ``truncated`` marker.

Examples:
    >>> from google.protobuf.descriptor import FieldDescriptor
    >>> FIELD_TYPE_SCHEMA_MAP[FieldDescriptor.TYPE_BOOL].value
    'boolean'
    >>> FIELD_TYPE_SCHEMA_MAP[FieldDescriptor.TYPE_SFIXED64].value
    'integer'
    >>> FIELD_TYPE_SCHEMA_MAP[FieldDescriptor.TYPE_BYTES].value
    'string'
"""

# Standard
from typing import Dict, FrozenSet

# Third-Party
from google.protobuf.descriptor import Descriptor, FieldDescriptor
from google.protobuf.descriptor_pb2 import FieldDescriptorProto  # pylint: disable=no-name-in-module

# First-Party
from grpc_invoke.models import SchemaNode, SchemaType

FIELD_TYPE_SCHEMA_MAP: Dict[int, SchemaType] = {
    FieldDescriptor.TYPE_BOOL: SchemaType.BOOLEAN,
    FieldDescriptor.TYPE_DOUBLE: SchemaType.NUMBER,
    FieldDescriptor.TYPE_FLOAT: SchemaType.NUMBER,
    FieldDescriptor.TYPE_INT32: SchemaType.INTEGER,
    FieldDescriptor.TYPE_INT64: SchemaType.INTEGER,
    FieldDescriptor.TYPE_UINT32: SchemaType.INTEGER,
    FieldDescriptor.TYPE_UINT64: SchemaType.INTEGER,
    FieldDescriptor.TYPE_SINT32: SchemaType.INTEGER,
    FieldDescriptor.TYPE_SINT64: SchemaType.INTEGER,
    FieldDescriptor.TYPE_FIXED32: SchemaType.INTEGER,
    FieldDescriptor.TYPE_FIXED64: SchemaType.INTEGER,
    FieldDescriptor.TYPE_SFIXED32: SchemaType.INTEGER,
    FieldDescriptor.TYPE_SFIXED64: SchemaType.INTEGER,
    FieldDescriptor.TYPE_STRING: SchemaType.STRING,
    FieldDescriptor.TYPE_BYTES: SchemaType.STRING,
    FieldDescriptor.TYPE_ENUM: SchemaType.STRING,
}

_MESSAGE_TYPES = (FieldDescriptor.TYPE_MESSAGE, FieldDescriptor.TYPE_GROUP)


def field_type_name(field: FieldDescriptor) -> str:
    """Return the lower-cased wire type name of a field.

    Args:
        field: Field descriptor

    Returns:
        str: e.g. ``string``, ``int64``, ``message``, ``enum``

    Examples:
        >>> from unittest.mock import MagicMock
        >>> field_type_name(MagicMock(type=FieldDescriptor.TYPE_STRING))
        'string'
        >>> field_type_name(MagicMock(type=FieldDescriptor.TYPE_MESSAGE))
        'message'
    """
    name = FieldDescriptorProto.Type.Name(field.type)
    if name.startswith("TYPE_"):
        name = name[len("TYPE_") :]
    return name.lower()


def is_repeated(field: FieldDescriptor) -> bool:
    """Tell whether a field is declared repeated.

    Args:
        field: Field descriptor

    Returns:
        bool: True for repeated fields
    """
    repeated = getattr(field, "is_repeated", None)
    if isinstance(repeated, bool):
        return repeated
    return field.label == FieldDescriptor.LABEL_REPEATED


class SchemaService:
    """Compile message descriptors into ``SchemaNode`` trees.

    Examples:
        >>> SchemaService(max_depth=4)._max_depth
        4
    """

    def __init__(self, max_depth: int = 0):
        """Initialize the compiler.

        Args:
            max_depth: Maximum message nesting depth to expand; 0 means unlimited
        """
        self._max_depth = max_depth

    def compile(self, message: Descriptor, is_root: bool = True) -> SchemaNode:
        """Compile a message descriptor.

        Args:
            message: Message descriptor
            is_root: Whether the node is a schema root (root nodes are not collapsed)

        Returns:
            SchemaNode: An object node with one property per declared field
        """
        return self._compile_message(message, is_root, frozenset(), 0)

    def compile_field(self, field: FieldDescriptor) -> SchemaNode:
        """Compile a single field, wrapping repeated fields in an array node.

        Args:
            field: Field descriptor

        Returns:
            SchemaNode: The field schema
        """
        return self._compile_field(field, frozenset({field.containing_type.full_name}), 0)

    def compile_field_element(self, field: FieldDescriptor) -> SchemaNode:
        """Compile a single field ignoring its repeated label.

        Args:
            field: Field descriptor

        Returns:
            SchemaNode: The schema of one element of the field
        """
        return self._compile_element(field, frozenset({field.containing_type.full_name}), 0)

    def _compile_message(self, message: Descriptor, is_root: bool, path: FrozenSet[str], depth: int) -> SchemaNode:
        """Expand a message into an object node.

        Args:
            message: Message descriptor
            is_root: Whether the node is the schema root
            path: Fully qualified names of the messages enclosing this one
            depth: Current nesting depth (0 for the root)

        Returns:
            SchemaNode: Object node
        """
        node = SchemaNode(
            type=SchemaType.OBJECT,
            title=message.name,
            description=message.full_name,
            properties={},
            options={"collapsed": not is_root},
        )
        path = path | {message.full_name}
        for field in message.fields:
            node.properties[field.json_name] = self._compile_field(field, path, depth)
        return node

    def _compile_field(self, field: FieldDescriptor, path: FrozenSet[str], depth: int) -> SchemaNode:
        """Compile a field, wrapping repeated fields in an array node.

        Args:
            field: Field descriptor
            path: Fully qualified names of the enclosing messages
            depth: Nesting depth of the enclosing message

        Returns:
            SchemaNode: Field schema
        """
        element = self._compile_element(field, path, depth)
        if is_repeated(field):
            return SchemaNode(
                type=SchemaType.ARRAY,
                title=field.name,
                description=field_type_name(field),
                items=element,
            )
        return element

    def _compile_element(self, field: FieldDescriptor, path: FrozenSet[str], depth: int) -> SchemaNode:
        """Compile the element type of a field.

        Args:
            field: Field descriptor
            path: Fully qualified names of the enclosing messages
            depth: Nesting depth of the enclosing message

        Returns:
            SchemaNode: Element schema
        """
        type_name = field_type_name(field)

        if field.type in _MESSAGE_TYPES:
            nested = field.message_type
            if nested.full_name in path:
                return SchemaNode(
                    type=SchemaType.OBJECT,
                    title=nested.name,
                    description=type_name,
                    options={"collapsed": True, "$ref": nested.full_name},
                )
            if self._max_depth and depth + 1 > self._max_depth:
                return SchemaNode(
                    type=SchemaType.OBJECT,
                    title=nested.name,
                    description=type_name,
                    options={"collapsed": True, "truncated": True},
                )
            node = self._compile_message(nested, False, path, depth + 1)
            node.description = type_name
            return node

        if field.type == FieldDescriptor.TYPE_ENUM:
            return SchemaNode(
                type=SchemaType.STRING,
                title=field.name,
                description=type_name,
                enum=[value.name for value in field.enum_type.values],
            )

        return SchemaNode(type=FIELD_TYPE_SCHEMA_MAP[field.type], title=field.name, description=type_name)
