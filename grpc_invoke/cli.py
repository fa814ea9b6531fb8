# -*- coding: utf-8 -*-
"""grpc-invoke CLI ─ inspect and call gRPC services through server reflection

Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

This module is exposed as a **console-script** via:

    [project.scripts]
    grpc-invoke = "grpc_invoke.cli:main"

Every command registers its endpoints, runs, and closes its channels before
exiting. With ``--host``/``--port`` a single endpoint is used; otherwise the
endpoints from ``GRPC_INVOKE_ENDPOINTS`` and, when ``GRPC_INVOKE_TRAEFIK_API_URL``
is set, the h2c backends discovered through Traefik.

Features
─────────
* services: list services and unary methods
* endpoints: list registered endpoints and their connectivity state
* schema: print the input and output JSON schemas of a method
* invoke: call a unary method with a JSON payload
* demo: run the reflection-enabled Greeter demo server

Typical usage
─────────────
```console
$ grpc-invoke demo --port 50051 &
$ grpc-invoke invoke helloworld.Greeter SayHello --host 127.0.0.1 --port 50051 --data '{"name": "world"}'
```
"""

# Standard
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

# Third-Party
import orjson
import typer
from typing_extensions import Annotated

# First-Party
from grpc_invoke.config import EndpointConfig, Settings
from grpc_invoke.demo import start_demo_server
from grpc_invoke.exceptions import DuplicateRegistrationError, EndpointConnectionError, GrpcInvokeError
from grpc_invoke.models import LogLevel
from grpc_invoke.services.discovery_service import discover_traefik_endpoints
from grpc_invoke.services.grpc_service import GrpcService
from grpc_invoke.services.logging_service import LoggingService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

DEFAULT_DEMO_HOST = "127.0.0.1"
DEFAULT_DEMO_PORT = 50051

app = typer.Typer(
    help="Inspect and invoke gRPC services through server reflection.",
    add_completion=False,
)

HostOption = Annotated[Optional[str], typer.Option("--host", help="Endpoint host; requires --port.")]
PortOption = Annotated[Optional[int], typer.Option("--port", "-p", min=1, max=65535, help="Endpoint port; requires --host.")]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``key=value`` header options.

    Args:
        values: Raw option values

    Returns:
        Dict[str, str]: Header names and values

    Raises:
        typer.BadParameter: If an item is not ``key=value``

    Examples:
        >>> parse_headers(["authorization=Bearer t", "x-env=a=b"])
        {'authorization': 'Bearer t', 'x-env': 'a=b'}
        >>> parse_headers(None)
        {}
        >>> parse_headers(["oops"])  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ...
        BadParameter: expected key=value, got 'oops'
    """
    headers: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="--header")
        headers[key.strip()] = value
    return headers


def _explicit_target(host: Optional[str], port: Optional[int]) -> Optional[EndpointConfig]:
    """Build the endpoint given on the command line, if any.

    Args:
        host: ``--host`` value
        port: ``--port`` value

    Returns:
        The endpoint, or None when neither option is given

    Raises:
        typer.BadParameter: If only one of the options is given
    """
    if host is None and port is None:
        return None
    if host is None or port is None:
        raise typer.BadParameter("--host and --port must be given together")
    return EndpointConfig(name=f"{host}:{port}", host=host, port=port)


async def _register_endpoints(service: GrpcService, settings: Settings, explicit: Optional[EndpointConfig]) -> None:
    """Register the command's endpoints.

    An explicit endpoint must connect. Configured and discovered endpoints are
    registered best effort: failures are logged and skipped.

    Args:
        service: gRPC service facade
        settings: Application settings
        explicit: Endpoint from ``--host``/``--port``

    Raises:
        EndpointConnectionError: If the explicit endpoint cannot be registered
    """
    if explicit is not None:
        await service.register_service(explicit.name, explicit.host, explicit.port)
        return

    targets = list(settings.endpoints)
    if settings.traefik_api_url:
        targets.extend(await discover_traefik_endpoints(settings.traefik_api_url))
    if not targets:
        logger.warning("No endpoints configured; use --host/--port or GRPC_INVOKE_ENDPOINTS")

    for endpoint in targets:
        try:
            await service.register_service(endpoint.name, endpoint.host, endpoint.port)
        except DuplicateRegistrationError:
            logger.debug(f"Endpoint {endpoint.target} already registered")
        except EndpointConnectionError as e:
            logger.warning(f"Skipping endpoint [{endpoint.name}]: {e}")


def _run(ctx: typer.Context, host: Optional[str], port: Optional[int], action: Callable[[GrpcService], Awaitable[Any]]) -> None:
    """Register endpoints, run ``action`` and print its result as JSON.

    Args:
        ctx: Typer context holding the settings
        host: ``--host`` value
        port: ``--port`` value
        action: Coroutine function receiving the service facade

    Raises:
        typer.Exit: With code 1 when the action fails
    """
    settings: Settings = ctx.obj
    explicit = _explicit_target(host, port)

    async def runner() -> Any:
        service = GrpcService(settings)
        try:
            await _register_endpoints(service, settings, explicit)
            return await action(service)
        finally:
            await service.shutdown()

    try:
        result = asyncio.run(runner())
    except GrpcInvokeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(orjson.dumps(result, option=orjson.OPT_INDENT_2).decode())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.callback()
def setup(
    ctx: typer.Context,
    log_level: Annotated[Optional[LogLevel], typer.Option("--log-level", "-l", help="Override GRPC_INVOKE_LOG_LEVEL.")] = None,
):
    """Load settings and configure logging."""
    settings = Settings()
    if log_level is not None:
        settings.log_level = log_level
    logging_service.configure(settings)
    ctx.obj = settings


@app.command(help="List services and their unary methods.")
def services(ctx: typer.Context, host: HostOption = None, port: PortOption = None):
    """Print the services of every registered endpoint.

    Args:
        ctx: Typer context holding the settings
        host: Endpoint host
        port: Endpoint port
    """

    async def action(service: GrpcService):
        return [item.to_dict(use_alias=True) for item in service.list_services()]

    _run(ctx, host, port, action)


@app.command(help="List registered endpoints and their connectivity state.")
def endpoints(ctx: typer.Context, host: HostOption = None, port: PortOption = None):
    """Print the registered endpoints."""

    async def action(service: GrpcService):
        return [item.to_dict(use_alias=True) for item in service.list_endpoints()]

    _run(ctx, host, port, action)


@app.command(help="Print the input and output JSON schemas of a method.")
def schema(
    ctx: typer.Context,
    service_name: Annotated[str, typer.Argument(help="Fully qualified service name, e.g. helloworld.Greeter.")],
    method_name: Annotated[str, typer.Argument(help="Method name, e.g. SayHello.")],
    host: HostOption = None,
    port: PortOption = None,
):
    """Print the input and output schemas of ``SERVICE_NAME/METHOD_NAME``."""

    async def action(service: GrpcService):
        return service.get_method_schema(service_name, method_name).to_dict(use_alias=True)

    _run(ctx, host, port, action)


@app.command(help="Invoke a unary method with a JSON payload.")
def invoke(
    ctx: typer.Context,
    service_name: Annotated[str, typer.Argument(help="Fully qualified service name, e.g. helloworld.Greeter.")],
    method_name: Annotated[str, typer.Argument(help="Method name, e.g. SayHello.")],
    data: Annotated[Optional[str], typer.Option("--data", "-d", help="JSON request body; empty message when omitted.")] = None,
    header: Annotated[Optional[List[str]], typer.Option("--header", "-H", help="Request metadata as key=value; repeatable.")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", "-t", min=0, help="Deadline in seconds.")] = None,
    host: HostOption = None,
    port: PortOption = None,
):
    """Invoke a unary method and print the response with its metadata.

    Args:
        ctx: Typer context holding the settings
        service_name: Fully qualified service name
        method_name: Method name
        data: JSON request body
        header: ``key=value`` metadata items
        timeout: Deadline in seconds
        host: Endpoint host
        port: Endpoint port
    """
    headers = parse_headers(header)

    async def action(service: GrpcService):
        result = await service.invoke_method(service_name, method_name, data, headers=headers, timeout=timeout)
        return result.to_dict(use_alias=True)

    _run(ctx, host, port, action)


@app.command(help="Run the Greeter demo server with server reflection.")
def demo(
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = DEFAULT_DEMO_HOST,
    port: Annotated[int, typer.Option("--port", "-p", min=0, max=65535, help="Bind port; 0 picks a free port.")] = DEFAULT_DEMO_PORT,
    no_metadata: Annotated[bool, typer.Option("--no-metadata", help="Do not send header and trailer metadata.")] = False,
):
    """Serve the Greeter demo until interrupted."""

    async def serve() -> None:
        server = await start_demo_server(host, port, send_metadata=not no_metadata)
        typer.echo(f"Greeter demo listening on {host}:{server.port}")
        try:
            await server.server.wait_for_termination()
        finally:
            await server.stop(grace=1)

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        typer.echo("Demo server stopped")


def main() -> None:
    """Run the grpc-invoke command line."""
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
