# -*- coding: utf-8 -*-
"""Location: ./tests/unit/grpc_invoke/services/test_endpoint_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: gRPC Invoke Contributors

Tests for the endpoint registry.
"""

# Standard
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

# Third-Party
import pytest

# First-Party
from grpc_invoke.exceptions import DuplicateRegistrationError, EndpointConnectionError, MethodNotFoundError, ReflectionError
from grpc_invoke.services.endpoint_service import Endpoint, EndpointService
from grpc_invoke.services.reflection_service import ReflectionService


class TestEndpointService:
    """Test suite for EndpointService."""

    @pytest.fixture
    def reflection(self, people_catalog):
        reflection = MagicMock(spec=ReflectionService)
        reflection.resolve = AsyncMock(return_value=people_catalog)
        return reflection

    @pytest.fixture
    def service(self, settings, reflection):
        return EndpointService(settings, reflection_service=reflection)

    @pytest.fixture
    def insecure_channel(self, fake_channel):
        with patch("grpc.aio.insecure_channel", return_value=fake_channel) as factory:
            yield factory

    async def test_register(self, service, insecure_channel, fake_channel, reflection, people_catalog):
        endpoint = await service.register("people", "127.0.0.1", 50051)

        insecure_channel.assert_called_once_with("127.0.0.1:50051")
        fake_channel.channel_ready.assert_awaited_once()
        reflection.resolve.assert_awaited_once_with(fake_channel, "127.0.0.1:50051")
        assert isinstance(endpoint, Endpoint)
        assert endpoint.key == ("127.0.0.1", 50051)
        assert endpoint.target == "127.0.0.1:50051"
        assert endpoint.catalog is people_catalog
        assert endpoint.state() == "ready"
        assert service.list_endpoints() == [endpoint]
        assert service.get_endpoint("127.0.0.1", 50051) is endpoint

    async def test_slow_endpoint_does_not_block_other_targets(self, service, fake_channel):
        released = asyncio.Event()
        slow_channel = MagicMock()
        slow_channel.channel_ready = AsyncMock(side_effect=released.wait)
        slow_channel.close = AsyncMock()
        channels = {"10.0.0.1:9": slow_channel, "127.0.0.1:50051": fake_channel}

        with patch("grpc.aio.insecure_channel", side_effect=channels.__getitem__):
            slow = asyncio.ensure_future(service.register("slow", "10.0.0.1", 9))
            await asyncio.sleep(0)

            fast = await asyncio.wait_for(service.register("fast", "127.0.0.1", 50051), timeout=1.0)
            assert service.list_endpoints() == [fast]

            with pytest.raises(DuplicateRegistrationError):
                await service.register("again", "10.0.0.1", 9)

            released.set()
            endpoint = await slow

        assert [item.name for item in service.list_endpoints()] == ["fast", "slow"]
        assert endpoint.channel is slow_channel

    async def test_failed_registration_releases_its_target(self, settings, reflection, fake_channel):
        settings.connect_timeout = 0.05

        async def never_ready():
            await asyncio.Event().wait()

        stuck = MagicMock()
        stuck.channel_ready = never_ready
        stuck.close = AsyncMock()
        service = EndpointService(settings, reflection_service=reflection)
        with patch("grpc.aio.insecure_channel", side_effect=[stuck, fake_channel]):
            with pytest.raises(EndpointConnectionError):
                await service.register("slow", "10.0.0.1", 9)
            endpoint = await service.register("retry", "10.0.0.1", 9)

        assert service.list_endpoints() == [endpoint]

    async def test_duplicate_registration(self, service, insecure_channel):
        await service.register("people", "127.0.0.1", 50051)

        with pytest.raises(DuplicateRegistrationError, match="endpoint '127.0.0.1:50051' already exists"):
            await service.register("again", "127.0.0.1", 50051)
        assert insecure_channel.call_count == 1
        assert len(service.list_endpoints()) == 1

    async def test_same_host_other_port_is_distinct(self, service, insecure_channel):
        await service.register("a", "127.0.0.1", 50051)
        await service.register("b", "127.0.0.1", 50052)
        assert [endpoint.name for endpoint in service.list_endpoints()] == ["a", "b"]

    async def test_concurrent_registration_of_same_target(self, service, insecure_channel):
        results = await asyncio.gather(
            service.register("a", "127.0.0.1", 50051),
            service.register("b", "127.0.0.1", 50051),
            return_exceptions=True,
        )
        assert sum(isinstance(result, Endpoint) for result in results) == 1
        assert sum(isinstance(result, DuplicateRegistrationError) for result in results) == 1
        assert insecure_channel.call_count == 1

    async def test_connect_timeout(self, settings, reflection, fake_channel):
        settings.connect_timeout = 0.05

        async def never_ready():
            await asyncio.Event().wait()

        fake_channel.channel_ready = never_ready
        service = EndpointService(settings, reflection_service=reflection)
        with patch("grpc.aio.insecure_channel", return_value=fake_channel):
            with pytest.raises(EndpointConnectionError, match=r"connect \[10.0.0.1:9\]"):
                await service.register("slow", "10.0.0.1", 9)

        fake_channel.close.assert_awaited_once()
        reflection.resolve.assert_not_awaited()
        assert service.list_endpoints() == []

    async def test_reflection_failure_leaves_registry_unchanged(self, service, insecure_channel, fake_channel, reflection, people_catalog):
        reflection.resolve.side_effect = ReflectionError("127.0.0.1:50051", "boom")

        with pytest.raises(ReflectionError):
            await service.register("people", "127.0.0.1", 50051)
        fake_channel.close.assert_awaited_once()
        assert service.get_endpoint("127.0.0.1", 50051) is None

        reflection.resolve.side_effect = None
        reflection.resolve.return_value = people_catalog
        endpoint = await service.register("people", "127.0.0.1", 50051)
        assert service.list_endpoints() == [endpoint]

    async def test_find_method(self, service, insecure_channel):
        endpoint = await service.register("people", "127.0.0.1", 50051)

        found, method = service.find_method("testpkg.PeopleService", "GetPerson")
        assert found is endpoint
        assert method.full_name == "testpkg.PeopleService.GetPerson"

    @pytest.mark.parametrize(
        "service_name,method_name",
        [
            ("testpkg.PeopleService", "Missing"),
            ("testpkg.Unknown", "GetPerson"),
            ("testpkg.PeopleService", "Watch"),
            ("testpkg.PeopleService", "Chat"),
        ],
    )
    async def test_find_method_not_found(self, service, insecure_channel, service_name, method_name):
        await service.register("people", "127.0.0.1", 50051)

        with pytest.raises(MethodNotFoundError, match=rf"not found \[{service_name}:{method_name}\]"):
            service.find_method(service_name, method_name)

    async def test_list_catalogs(self, service, insecure_channel):
        await service.register("a", "127.0.0.1", 50051)
        await service.register("b", "127.0.0.1", 50052)
        assert [entry.name for entry in service.list_catalogs()] == ["testpkg.PeopleService", "testpkg.PeopleService"]

    async def test_shutdown_closes_channels(self, service, insecure_channel, fake_channel):
        await service.register("people", "127.0.0.1", 50051)

        await service.shutdown()
        fake_channel.close.assert_awaited_once()
        assert service.list_endpoints() == []
