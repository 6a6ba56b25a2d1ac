"""Conversion between plain JSON data and HazelcastJsonValue.

Values written through the MCP tools are stored as HazelcastJsonValue so any
cluster member or client can read them without knowing a Python type.
"""

import json
from typing import Any

from hazelcast.core import HazelcastJsonValue


def to_hazelcast_json(value: Any) -> HazelcastJsonValue:
    """Wrap a JSON-compatible value (or a JSON string) for storage."""
    if isinstance(value, HazelcastJsonValue):
        return value
    if isinstance(value, str):
        try:
            json.loads(value)
            return HazelcastJsonValue(value)
        except ValueError:
            pass
    return HazelcastJsonValue(json.dumps(value))


def from_hazelcast_value(value: Any) -> Any:
    """Turn a value read from the cluster into JSON-compatible data."""
    if isinstance(value, HazelcastJsonValue):
        return value.loads()
    if value is None or isinstance(value, (str, int, float, bool, list, dict)):
        return value
    return str(value)


def to_json_string(value: Any) -> str:
    return json.dumps(value, default=str, sort_keys=True)
