import os
from typing import List, Optional, Union

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings

from .constants import (CONNECTION_TIMEOUT, DEFAULT_CLUSTER_MEMBERS,
                        DEFAULT_CLUSTER_NAME, MCP_TRANSPORT,
                        OPERATION_TIMEOUT, STRUCTURE_LOOKUP_TIMEOUT)


class HazelcastConfig(BaseSettings):
    """Configuration for Hazelcast MCP server."""

    model_config = ConfigDict(env_prefix="HAZELCAST_", env_file=".env", extra="ignore")

    # Connection settings - support both a comma-separated string and a list
    cluster_name: str = DEFAULT_CLUSTER_NAME
    cluster_members: Union[str, List[str]] = list(DEFAULT_CLUSTER_MEMBERS)
    username: Optional[str] = None
    password: Optional[str] = None
    connect_timeout: float = CONNECTION_TIMEOUT

    # Operation settings
    operation_timeout: float = OPERATION_TIMEOUT
    structure_lookup_timeout: float = STRUCTURE_LOOKUP_TIMEOUT

    # MCP settings
    transport: str = MCP_TRANSPORT

    @field_validator("cluster_members", mode="before")
    @classmethod
    def parse_cluster_members(cls, v):
        """Parse cluster members from string or list format."""
        if isinstance(v, str):
            return [member.strip() for member in v.split(",") if member.strip()]
        return v

    def __init__(self, **data):
        """Initialize config with Docker-friendly environment variable support."""
        # Support HAZELCAST_HOST as a single-member alternative to HAZELCAST_CLUSTER_MEMBERS
        if "cluster_members" not in data and os.getenv("HAZELCAST_HOST"):
            data["cluster_members"] = [os.getenv("HAZELCAST_HOST")]
        super().__init__(**data)

        if isinstance(self.cluster_members, str):
            self.cluster_members = [self.cluster_members]
