# -*- coding: utf-8 -*-
"""Location: ./grpc_invoke/services/discovery_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Endpoint discovery from a Traefik API.

Traefik load balancers that route ``h2c://`` backends are usually gRPC
services. This module reads the Traefik HTTP services listing and turns every
healthy h2c backend into an ``EndpointConfig``. Discovery is best effort: a
failing Traefik API yields no endpoints instead of an error.
"""

# Standard
import re
from typing import Any, Dict, List, Optional

# Third-Party
import httpx
from pydantic import ValidationError

# First-Party
from grpc_invoke.config import EndpointConfig
from grpc_invoke.services.logging_service import LoggingService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

TRAEFIK_SERVICES_PATH = "/api/http/services"
TRAEFIK_SERVICES_PARAMS = {"search": "", "status": "", "per_page": "120", "page": "1"}

_H2C_ADDRESS = re.compile(r"^h2c://\[?([^\]/]+?)\]?:(\d+)/?$")


def parse_h2c_address(url: str) -> Optional[tuple]:
    """Extract host and port from an ``h2c://host:port`` backend URL.

    Args:
        url: Backend URL reported by Traefik

    Returns:
        ``(host, port)`` or None when the URL is not an h2c address

    Examples:
        >>> parse_h2c_address("h2c://127.0.0.1:60038")
        ('127.0.0.1', 60038)
        >>> parse_h2c_address("http://127.0.0.1:8080") is None
        True
        >>> parse_h2c_address("h2c://greeter:9000/")
        ('greeter', 9000)
    """
    match = _H2C_ADDRESS.match(url)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def endpoints_from_services(services: List[Dict[str, Any]]) -> List[EndpointConfig]:
    """Select healthy h2c backends of Traefik load balancers.

    Args:
        services: Decoded Traefik services listing

    Returns:
        List[EndpointConfig]: One endpoint per healthy h2c backend

    Examples:
        >>> endpoints_from_services([
        ...     {"name": "greeter@docker", "type": "loadbalancer", "serverStatus": {"h2c://10.0.0.5:50051": "UP", "h2c://10.0.0.6:50051": "DOWN"}},
        ...     {"name": "web@docker", "type": "loadbalancer", "serverStatus": {"http://10.0.0.7:80": "UP"}},
        ...     {"name": "split@file", "type": "weighted"},
        ... ])
        [EndpointConfig(name='greeter@docker', host='10.0.0.5', port=50051)]
    """
    endpoints: List[EndpointConfig] = []
    for service in services:
        if not isinstance(service, dict) or service.get("type") != "loadbalancer":
            continue
        server_status = service.get("serverStatus")
        if not isinstance(server_status, dict):
            continue
        for url, status in server_status.items():
            if status != "UP":
                continue
            address = parse_h2c_address(url)
            if address is None:
                continue
            host, port = address
            try:
                endpoints.append(EndpointConfig(name=service.get("name") or url, host=host, port=port))
            except ValidationError as e:
                logger.warning(f"Skipping Traefik backend {url}: {e.error_count()} validation errors")
    return endpoints


async def discover_traefik_endpoints(api_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0) -> List[EndpointConfig]:
    """Discover gRPC endpoints behind a Traefik instance.

    Args:
        api_url: Traefik API base URL, e.g. ``http://127.0.0.1:58181``
        client: HTTP client to use; a short-lived one is created when omitted
        timeout: Request timeout in seconds for the created client

    Returns:
        List[EndpointConfig]: Discovered endpoints, empty on failure
    """
    url = api_url.rstrip("/") + TRAEFIK_SERVICES_PATH
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)
    try:
        response = await http.get(url, params=TRAEFIK_SERVICES_PARAMS)
        response.raise_for_status()
        services = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Traefik discovery at {url} failed: {e}")
        return []
    finally:
        if owns_client:
            await http.aclose()

    if not isinstance(services, list):
        logger.warning(f"Traefik discovery at {url} returned an unexpected payload")
        return []

    endpoints = endpoints_from_services(services)
    logger.info(f"Discovered {len(endpoints)} gRPC endpoints from Traefik at {api_url}")
    return endpoints
