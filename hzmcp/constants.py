"""Constants used throughout the Hazelcast MCP server.

This module centralizes defaults, timeouts and fixed strings so the
connection, service and translation layers agree on them.
"""

# Connection defaults
DEFAULT_CLUSTER_NAME = "dev"
DEFAULT_CLUSTER_MEMBERS = ["127.0.0.1:5701"]
CONNECTION_TIMEOUT = 30  # seconds
OPERATION_TIMEOUT = 10  # seconds
MAX_SQL_ROWS = 100

# Error translation
STRUCTURE_LOOKUP_TIMEOUT = 0.3  # seconds
STRUCTURE_LOOKUP_WORKERS = 4
MAX_CAUSE_DEPTH = 8
JSON_VALUE_TYPE = "HazelcastJsonValue"

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_QUERY_LOG_LENGTH = 100  # characters

# MCP Server
MCP_SERVER_NAME = "Hazelcast MCP Server"
MCP_TRANSPORT = "http"
