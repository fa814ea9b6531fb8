# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Services for gRPC Invoke.

- reflection_service: pulls service descriptors through server reflection
- endpoint_service: owns channels and catalogs per (host, port)
- schema_service: compiles message descriptors into JSON schemas
- invoke_service: performs dynamic unary calls
- grpc_service: the facade consumed by front-ends
"""
