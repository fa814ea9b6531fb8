# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

gRPC Invoke - call any gRPC method through server reflection.
"""

__version__ = "0.1.0"
