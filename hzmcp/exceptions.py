"""Custom exceptions for the Hazelcast MCP server.

These are raised by the connection and service layers. Their messages are
written so the error translator can classify them by wording alone.
"""


class HazelcastMCPError(Exception):
    """Base exception for all Hazelcast MCP errors."""

    pass


class HazelcastConnectionError(HazelcastMCPError):
    """Raised when the client is not connected or cannot connect."""

    pass


class HazelcastOperationTimeoutError(HazelcastMCPError):
    """Raised when a cluster operation exceeds its time limit."""

    pass


class StructureLookupError(HazelcastMCPError):
    """Raised when the list of distributed structures cannot be read."""

    pass
