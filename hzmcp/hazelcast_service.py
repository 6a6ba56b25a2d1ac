import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .constants import MAX_QUERY_LOG_LENGTH, MAX_SQL_ROWS, OPERATION_TIMEOUT
from .exceptions import HazelcastOperationTimeoutError
from .hazelcast_connection import HazelcastConnection
from .json_values import from_hazelcast_value, to_hazelcast_json

logger = logging.getLogger(__name__)


class HazelcastService:
    """Service layer for async Hazelcast operations.

    The Python client's blocking proxies are called from the default executor
    so tool handlers never block the event loop.
    """

    def __init__(
        self, connection: HazelcastConnection, operation_timeout: float = OPERATION_TIMEOUT
    ) -> None:
        self.connection = connection
        self.operation_timeout = operation_timeout

    async def _run(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_event_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(func, *args, **kwargs)),
                timeout=self.operation_timeout,
            )
        except asyncio.TimeoutError:
            raise HazelcastOperationTimeoutError(
                f"Operation timeout after {self.operation_timeout} seconds"
            )

    def _map(self, map_name: str):
        return self.connection.client.get_map(map_name).blocking()

    async def map_get(self, map_name: str, key: str) -> Any:
        """Get a value by key. Returns None when the key is absent."""
        logger.info(f"Getting key '{key}' from map '{map_name}'")
        value = await self._run(lambda: self._map(map_name).get(key))
        return from_hazelcast_value(value)

    async def map_put(
        self, map_name: str, key: str, value: Any, ttl: Optional[int] = None
    ) -> None:
        """Store a JSON value, optionally expiring after ``ttl`` seconds."""
        logger.info(f"Putting key '{key}' into map '{map_name}'")
        json_value = to_hazelcast_json(value)
        if ttl is not None and ttl > 0:
            await self._run(lambda: self._map(map_name).put(key, json_value, ttl=ttl))
        else:
            await self._run(lambda: self._map(map_name).put(key, json_value))

    async def map_delete(self, map_name: str, key: str) -> Any:
        """Remove a key and return the value it held, if any."""
        logger.info(f"Deleting key '{key}' from map '{map_name}'")
        previous = await self._run(lambda: self._map(map_name).remove(key))
        return from_hazelcast_value(previous)

    async def map_size(self, map_name: str) -> int:
        return await self._run(lambda: self._map(map_name).size())

    async def list_structures(self) -> List[Dict[str, str]]:
        """All distributed objects visible to the client, with their service names."""
        logger.info("Listing distributed data structures")
        structures = await self._run(self.connection.get_structures)
        logger.info(f"Found {len(structures)} data structures")
        return structures

    async def sql_execute(
        self, query: str, parameters: Optional[Sequence[Any]] = None
    ) -> Dict[str, Any]:
        """Execute a SQL statement.

        Returns:
            ``{"columns": [...], "rows": [...], "truncated": bool}`` for queries
            that produce rows, otherwise ``{"update_count": n}``
        """
        query_log = query[:MAX_QUERY_LOG_LENGTH] + "..." if len(query) > MAX_QUERY_LOG_LENGTH else query
        logger.info(f"Executing SQL: {query_log}")
        return await self._run(self._execute_sql, query, list(parameters or []))

    def _execute_sql(self, query: str, parameters: List[Any]) -> Dict[str, Any]:
        with self.connection.client.sql.execute(query, *parameters).result() as result:
            if not result.is_row_set():
                return {"update_count": result.update_count()}

            columns: List[str] = []
            rows: List[Dict[str, Any]] = []
            truncated = False
            for row in result:
                if not columns:
                    columns = [column.name for column in row.metadata.columns]
                if len(rows) >= MAX_SQL_ROWS:
                    truncated = True
                    break
                rows.append(
                    {
                        name: from_hazelcast_value(row.get_object_with_index(i))
                        for i, name in enumerate(columns)
                    }
                )
            return {"columns": columns, "rows": rows, "truncated": truncated}
