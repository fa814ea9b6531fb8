# -*- coding: utf-8 -*-
"""Location: ./tests/unit/grpc_invoke/test_models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Tests for catalog types and read models.
"""

# First-Party
from grpc_invoke.models import EndpointRead, InvokeResult, MethodEntry, MethodSchemaRead, SchemaNode, SchemaType, ServiceCatalog, ServiceEntry


def test_method_entry_names(person_descriptor):
    method = MethodEntry(service_name="testpkg.PeopleService", name="GetPerson", input_type=person_descriptor, output_type=person_descriptor)
    assert method.full_name == "testpkg.PeopleService.GetPerson"
    assert method.path == "/testpkg.PeopleService/GetPerson"


def test_catalog_lookup(people_catalog):
    assert people_catalog.method_count == 2
    assert people_catalog.get_method("testpkg.PeopleService", "Walk").input_type.name == "TreeNode"
    assert people_catalog.get_method("testpkg.PeopleService", "Upload") is None
    assert people_catalog.get_method("other.Service", "Walk") is None


def test_service_entry_without_methods():
    entry = ServiceEntry(name="empty.Service")
    assert entry.get_method("Anything") is None
    assert ServiceCatalog(services=(entry,)).method_count == 0


def test_schema_node_omits_unset_keys():
    node = SchemaNode(type=SchemaType.OBJECT, title="TreeNode", description="message", options={"collapsed": True, "$ref": "testpkg.TreeNode"})
    assert node.to_dict() == {
        "type": "object",
        "title": "TreeNode",
        "description": "message",
        "options": {"collapsed": True, "$ref": "testpkg.TreeNode"},
    }


def test_boundary_models_use_camel_case():
    assert set(MethodSchemaRead(input_schema={}, output_schema={}).to_dict(use_alias=True)) == {"inputSchema", "outputSchema"}
    endpoint = EndpointRead(name="a", host="h", port=1, target="h:1", state="ready", service_count=2, method_count=3)
    assert endpoint.to_dict(use_alias=True)["serviceCount"] == 2
    assert endpoint.to_dict()["method_count"] == 3


def test_boundary_models_accept_aliases():
    schema = MethodSchemaRead.model_validate({"inputSchema": {"type": "object"}, "outputSchema": {}})
    assert schema.input_schema == {"type": "object"}


def test_invoke_result_defaults():
    result = InvokeResult()
    assert result.to_dict(use_alias=True) == {"data": {}, "header": {}, "trailer": {}}
