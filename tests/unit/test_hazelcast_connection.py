"""Unit tests for HazelcastConnection.

This module tests connection management, the async context manager,
timeout handling, structure listing and health reporting.
"""

import asyncio
import time
from unittest.mock import AsyncMock, Mock, patch

import pytest

from hzmcp.exceptions import HazelcastConnectionError, StructureLookupError
from hzmcp.hazelcast_connection import HazelcastConnection


def _distributed_object(name, service_name):
    obj = Mock()
    obj.name = name
    obj.service_name = service_name
    return obj


class TestHazelcastConnection:
    """Tests for HazelcastConnection class."""

    @pytest.fixture
    def connection(self):
        """Create a HazelcastConnection instance for testing."""
        return HazelcastConnection(cluster_name="dev", cluster_members=["127.0.0.1:5701"])

    @pytest.fixture
    def connected(self, connection):
        """A connection with a mocked, running client."""
        connection._client = Mock()
        connection._client.lifecycle_service.is_running.return_value = True
        connection._is_connected = True
        return connection

    @pytest.mark.asyncio
    async def test_context_manager_success(self, connection):
        """Test async context manager with successful connection."""
        with patch.object(connection, "connect", new_callable=AsyncMock) as mock_connect:
            with patch.object(connection, "disconnect") as mock_disconnect:
                async with connection as conn:
                    assert conn is connection
                    mock_connect.assert_called_once()
                mock_disconnect.assert_called_once()

    @pytest.mark.asyncio
    async def test_context_manager_with_error(self, connection):
        """Test that disconnect is skipped when connect fails."""
        with patch.object(connection, "connect", new_callable=AsyncMock) as mock_connect:
            with patch.object(connection, "disconnect") as mock_disconnect:
                mock_connect.side_effect = HazelcastConnectionError("Connection refused")

                with pytest.raises(HazelcastConnectionError):
                    async with connection:
                        pass

                mock_disconnect.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_builds_client(self, connection):
        """Test that the client is created with the configured settings."""
        connection.username = "admin"
        connection.password = "secret"

        with patch("hzmcp.hazelcast_connection.hazelcast.HazelcastClient") as mock_client_cls:
            await connection.connect()

        mock_client_cls.assert_called_once_with(
            cluster_name="dev",
            cluster_members=["127.0.0.1:5701"],
            cluster_connect_timeout=connection.connect_timeout,
            creds_username="admin",
            creds_password="secret",
        )
        assert connection._is_connected
        assert connection._client is mock_client_cls.return_value

    @pytest.mark.asyncio
    async def test_connect_already_connected(self, connected):
        """Test connect when already connected."""
        with patch("hzmcp.hazelcast_connection.hazelcast.HazelcastClient") as mock_client_cls:
            await connected.connect()
            mock_client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_timeout(self, connection):
        """Test connection timeout handling."""
        connection.connect_timeout = 0.05
        late_client = Mock()

        def slow_client(**kwargs):
            time.sleep(0.3)
            return late_client

        with patch("hzmcp.hazelcast_connection.hazelcast.HazelcastClient", side_effect=slow_client):
            with pytest.raises(HazelcastConnectionError) as exc_info:
                await connection.connect()

            assert "Connection timeout" in str(exc_info.value)
            assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
            assert not connection._is_connected

            # Let the abandoned construction finish
            await asyncio.sleep(0.6)

        late_client.shutdown.assert_called_once()
        assert connection._client is None

    @pytest.mark.asyncio
    async def test_connect_timeout_with_failed_late_client(self, connection):
        """Test that a construction failing after the timeout is ignored."""
        connection.connect_timeout = 0.05

        def failing_client(**kwargs):
            time.sleep(0.3)
            raise RuntimeError("Connection refused")

        with patch("hzmcp.hazelcast_connection.hazelcast.HazelcastClient", side_effect=failing_client):
            with pytest.raises(HazelcastConnectionError):
                await connection.connect()
            await asyncio.sleep(0.6)

        assert connection._client is None

    @pytest.mark.asyncio
    async def test_connect_failure(self, connection):
        """Test that client errors are wrapped."""
        with patch("hzmcp.hazelcast_connection.hazelcast.HazelcastClient") as mock_client_cls:
            mock_client_cls.side_effect = RuntimeError("boom")

            with pytest.raises(HazelcastConnectionError) as exc_info:
                await connection.connect()

        assert "Unable to connect: boom" in str(exc_info.value)
        assert not connection._is_connected

    def test_client_when_not_connected(self, connection):
        with pytest.raises(HazelcastConnectionError) as exc_info:
            connection.client

        assert "Not connected to Hazelcast cluster" in str(exc_info.value)

    def test_client_after_shutdown(self, connected):
        """Test that a client whose lifecycle stopped counts as disconnected."""
        connected._client.lifecycle_service.is_running.return_value = False

        assert not connected.is_connected()
        with pytest.raises(HazelcastConnectionError):
            connected.client

    def test_get_structures(self, connected):
        connected._client.get_distributed_objects.return_value = [
            _distributed_object("orders", "hz:impl:mapService"),
            _distributed_object("jobs", "hz:impl:queueService"),
        ]

        assert connected.get_structures() == [
            {"name": "jobs", "service": "hz:impl:queueService"},
            {"name": "orders", "service": "hz:impl:mapService"},
        ]

    def test_get_structure_names_distinct(self, connected):
        """Test that names shared by different services appear once."""
        connected._client.get_distributed_objects.return_value = [
            _distributed_object("orders", "hz:impl:mapService"),
            _distributed_object("orders", "hz:impl:topicService"),
            _distributed_object("audit", "hz:impl:ringbufferService"),
        ]

        assert connected.get_structure_names() == ["audit", "orders"]

    def test_get_structures_error(self, connected):
        connected._client.get_distributed_objects.side_effect = RuntimeError("boom")

        with pytest.raises(StructureLookupError):
            connected.get_structures()

    def test_get_structure_names_not_connected(self, connection):
        with pytest.raises(HazelcastConnectionError):
            connection.get_structure_names()

    def test_get_health_connected(self, connected):
        connected._client.cluster_service.get_members.return_value = [Mock(), Mock(), Mock()]

        health = connected.get_health()

        assert health["connected"] is True
        assert health["status"] == "CONNECTED"
        assert health["member_count"] == 3
        assert health["latency_ms"] >= 0

    def test_get_health_disconnected(self, connection):
        assert connection.get_health() == {
            "connected": False,
            "status": "DISCONNECTED",
            "member_count": 0,
            "latency_ms": -1,
        }

    def test_get_health_error(self, connected):
        connected._client.cluster_service.get_members.side_effect = RuntimeError("boom")

        health = connected.get_health()

        assert health["connected"] is False
        assert health["status"] == "ERROR: boom"

    def test_disconnect_not_connected(self, connection):
        """Test disconnect when not connected."""
        connection.disconnect()
        assert not connection._is_connected

    def test_disconnect_with_error(self, connected):
        """Test disconnect error handling."""
        connected._client.shutdown.side_effect = Exception("Shutdown failed")

        # Should not raise, just log error
        connected.disconnect()

        assert not connected._is_connected
        assert connected._client is None
