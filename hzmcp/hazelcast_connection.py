import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import hazelcast

from .constants import (CONNECTION_TIMEOUT, DEFAULT_CLUSTER_MEMBERS,
                        DEFAULT_CLUSTER_NAME)
from .exceptions import HazelcastConnectionError, StructureLookupError

logger = logging.getLogger(__name__)


def _shutdown_late_client(future: "asyncio.Future") -> None:
    """Shut down a client whose construction completed after connect() gave up."""
    if future.cancelled() or future.exception() is not None:
        return
    logger.warning("Shutting down Hazelcast client that connected after the timeout")
    try:
        future.result().shutdown()
    except Exception as e:
        logger.error(f"Error during Hazelcast client shutdown: {e}")


class HazelcastConnection:
    """Manages the Hazelcast client connection.

    Also serves as the cluster handle for the error translator through
    ``get_structure_names``.

    Can be used as an async context manager:
        async with HazelcastConnection(...) as conn:
            # Use connection
            pass
    """

    def __init__(
        self,
        cluster_name: str = DEFAULT_CLUSTER_NAME,
        cluster_members: Optional[List[str]] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: float = CONNECTION_TIMEOUT,
    ) -> None:
        self.cluster_name = cluster_name
        self.cluster_members = list(cluster_members or DEFAULT_CLUSTER_MEMBERS)
        self.username = username
        self.password = password
        self.connect_timeout = connect_timeout
        self._client: Optional[hazelcast.HazelcastClient] = None
        self._is_connected: bool = False

    async def connect(self) -> None:
        """Connect to the Hazelcast cluster without blocking the event loop.

        Raises:
            HazelcastConnectionError: If connection fails
        """
        if self._is_connected:
            logger.debug("Already connected to Hazelcast cluster")
            return

        logger.info(
            f"Connecting to Hazelcast cluster '{self.cluster_name}' at {self.cluster_members}"
        )

        client_kwargs: Dict[str, Any] = {
            "cluster_name": self.cluster_name,
            "cluster_members": [member.strip() for member in self.cluster_members],
            "cluster_connect_timeout": self.connect_timeout,
        }
        if self.username:
            client_kwargs["creds_username"] = self.username
            client_kwargs["creds_password"] = self.password or ""

        loop = asyncio.get_event_loop()
        pending = loop.run_in_executor(None, lambda: hazelcast.HazelcastClient(**client_kwargs))
        try:
            # Shielded so a client that finishes after the timeout can still be shut down
            self._client = await asyncio.wait_for(
                asyncio.shield(pending), timeout=self.connect_timeout
            )
            self._is_connected = True
            logger.info("Successfully connected to Hazelcast cluster")
        except asyncio.TimeoutError as e:
            pending.add_done_callback(_shutdown_late_client)
            raise HazelcastConnectionError(
                f"Connection timeout after {self.connect_timeout} seconds"
            ) from e
        except Exception as e:
            logger.error(f"Failed to connect to Hazelcast: {e}")
            raise HazelcastConnectionError(f"Unable to connect: {e}") from e

    @property
    def client(self) -> hazelcast.HazelcastClient:
        """The live client.

        Raises:
            HazelcastConnectionError: If the client is not connected
        """
        if not self.is_connected():
            raise HazelcastConnectionError("Not connected to Hazelcast cluster")
        return self._client

    def is_connected(self) -> bool:
        if not self._is_connected or self._client is None:
            return False
        return self._client.lifecycle_service.is_running()

    def get_structures(self) -> List[Dict[str, str]]:
        """List the distributed objects visible to this client.

        Returns:
            Dictionaries with the structure ``name`` and its ``service`` name,
            sorted by name
        """
        try:
            objects = self.client.get_distributed_objects()
        except HazelcastConnectionError:
            raise
        except Exception as e:
            raise StructureLookupError(f"Unable to list data structures: {e}") from e
        structures = [{"name": obj.name, "service": obj.service_name} for obj in objects]
        return sorted(structures, key=lambda s: (s["name"], s["service"]))

    def get_structure_names(self) -> List[str]:
        """Distinct names of existing distributed structures."""
        return sorted({structure["name"] for structure in self.get_structures()})

    def get_health(self) -> Dict[str, Any]:
        """Connection health: connected flag, status, member count and latency."""
        if not self.is_connected():
            return {"connected": False, "status": "DISCONNECTED", "member_count": 0, "latency_ms": -1}
        try:
            start = time.monotonic()
            member_count = len(self._client.cluster_service.get_members())
            latency_ms = int((time.monotonic() - start) * 1000)
            return {
                "connected": True,
                "status": "CONNECTED",
                "member_count": member_count,
                "latency_ms": latency_ms,
            }
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return {"connected": False, "status": f"ERROR: {e}", "member_count": 0, "latency_ms": -1}

    def disconnect(self) -> None:
        """Shut down the client gracefully."""
        if not self._is_connected:
            logger.debug("Not connected, skipping disconnect")
            return

        logger.info("Shutting down Hazelcast client connection")
        try:
            if self._client:
                self._client.shutdown()
        except Exception as e:
            logger.error(f"Error during Hazelcast client shutdown: {e}")
        finally:
            # Always mark as disconnected, even on error
            self._is_connected = False
            self._client = None

    async def __aenter__(self) -> "HazelcastConnection":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        self.disconnect()
