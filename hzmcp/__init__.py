"""Hazelcast MCP Server - error translation and cluster tools"""

from .config import HazelcastConfig
from .error_translator import (ClusterHandle, DiagnosticCategory, TranslationRule,
                               classify, translate)
from .exceptions import (HazelcastConnectionError, HazelcastMCPError,
                         HazelcastOperationTimeoutError, StructureLookupError)
from .failure import Failure, FailureLayer
from .hazelcast_connection import HazelcastConnection
from .hazelcast_service import HazelcastService
from .mcp_server import create_mcp_server

__all__ = [
    "ClusterHandle",
    "DiagnosticCategory",
    "Failure",
    "FailureLayer",
    "HazelcastConfig",
    "HazelcastConnection",
    "HazelcastConnectionError",
    "HazelcastMCPError",
    "HazelcastOperationTimeoutError",
    "HazelcastService",
    "StructureLookupError",
    "TranslationRule",
    "classify",
    "create_mcp_server",
    "translate",
]
