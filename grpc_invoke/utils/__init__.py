# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/utils/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Shared helpers.
"""
