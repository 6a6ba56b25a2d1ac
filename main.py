import asyncio
import logging

from hzmcp.config import HazelcastConfig
from hzmcp.constants import LOG_FORMAT
from hzmcp.hazelcast_connection import HazelcastConnection
from hzmcp.hazelcast_service import HazelcastService
from hzmcp.mcp_server import create_mcp_server

# Configure logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point for the Hazelcast MCP server."""
    logger.info("Starting Hazelcast MCP Server")

    # Load configuration
    config = HazelcastConfig()

    # Create connection using context manager for proper cleanup
    async with HazelcastConnection(
        cluster_name=config.cluster_name,
        cluster_members=config.cluster_members,
        username=config.username,
        password=config.password,
        connect_timeout=config.connect_timeout,
    ) as connection:
        service = HazelcastService(connection, operation_timeout=config.operation_timeout)

        mcp = create_mcp_server(service, lookup_timeout=config.structure_lookup_timeout)
        logger.info(f"Starting MCP server with {config.transport} transport")
        await mcp.run_async(transport=config.transport)


if __name__ == "__main__":
    asyncio.run(main())
