import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from fastmcp import FastMCP

from .constants import MCP_SERVER_NAME, STRUCTURE_LOOKUP_TIMEOUT
from .error_translator import ClusterHandle, translate
from .hazelcast_service import HazelcastService
from .json_values import to_json_string

logger = logging.getLogger(__name__)


async def run_operation(
    operation: str,
    action: Callable[[], Awaitable[str]],
    cluster: Optional[ClusterHandle],
    lookup_timeout: float = STRUCTURE_LOOKUP_TIMEOUT,
) -> str:
    """Run a tool action and turn any failure into a translated message.

    The translation runs in the executor because it may list structures on
    the cluster.
    """
    try:
        return await action()
    except Exception as e:
        logger.error(f"Error in {operation}: {e}")
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, translate, e, operation, cluster, lookup_timeout)


def create_mcp_server(
    service: HazelcastService, lookup_timeout: float = STRUCTURE_LOOKUP_TIMEOUT
) -> FastMCP:
    """Create and configure the MCP server with Hazelcast tools."""
    mcp = FastMCP(name=MCP_SERVER_NAME)
    cluster = service.connection

    async def guarded(operation: str, action: Callable[[], Awaitable[str]]) -> str:
        return await run_operation(operation, action, cluster, lookup_timeout)

    @mcp.tool(description="Retrieve a value from a Hazelcast Map by key.")
    async def map_get(map_name: str, key: str) -> str:
        async def action() -> str:
            value = await service.map_get(map_name, key)
            if value is None:
                size = await service.map_size(map_name)
                return f"Key '{key}' not found in map '{map_name}'. Map size: {size}"
            return to_json_string({"map": map_name, "key": key, "value": value})

        return await guarded("map_get", action)

    @mcp.tool(description="Store a key-value pair in a Hazelcast Map. Values are stored as JSON.")
    async def map_put(map_name: str, key: str, value: Any, ttl: Optional[int] = None) -> str:
        """Store a value.

        Args:
            ttl: Optional time-to-live in seconds
        """

        async def action() -> str:
            await service.map_put(map_name, key, value, ttl)
            suffix = f" (TTL: {ttl}s)" if ttl else ""
            return f"Stored key '{key}' in map '{map_name}'{suffix}"

        return await guarded("map_put", action)

    @mcp.tool(description="Remove a key from a Hazelcast Map.")
    async def map_delete(map_name: str, key: str) -> str:
        async def action() -> str:
            previous = await service.map_delete(map_name, key)
            if previous is None:
                return f"Key '{key}' was not present in map '{map_name}'"
            return f"Deleted key '{key}' from map '{map_name}'"

        return await guarded("map_delete", action)

    @mcp.tool(description="Get the number of entries in a Hazelcast Map.")
    async def map_size(map_name: str) -> str:
        async def action() -> str:
            size = await service.map_size(map_name)
            return f"Map '{map_name}' contains {size} entries"

        return await guarded("map_size", action)

    @mcp.tool(description="List all distributed data structures (maps, queues, topics, ...) in the cluster.")
    async def list_structures() -> str:
        async def action() -> str:
            structures = await service.list_structures()
            if not structures:
                return "No data structures found in the cluster"
            output = ["Data structures:"]
            for structure in structures:
                output.append(f"  - {structure['name']} ({structure['service']})")
            return "\n".join(output)

        return await guarded("list_structures", action)

    @mcp.tool(
        description="Execute a SQL statement against the cluster. Use ? placeholders for parameters."
    )
    async def sql_execute(query: str, parameters: Optional[List[Any]] = None) -> str:
        async def action() -> str:
            result = await service.sql_execute(query, parameters)
            if "update_count" in result:
                return f"Query executed successfully. Rows affected: {result['update_count']}"
            return to_json_string(result)

        return await guarded("sql_execute", action)

    @mcp.tool(description="Report whether the client is connected and how many members the cluster has.")
    async def cluster_health() -> str:
        async def action() -> str:
            return to_json_string(service.connection.get_health())

        return await guarded("cluster_health", action)

    return mcp
