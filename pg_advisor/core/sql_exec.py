"""Corrective DDL execution"""
import asyncio
from typing import Any, Optional

import asyncpg

from pg_advisor.core.errors import ExecutionError


class DDLExecutor:
    """Execute one corrective statement inside its own transaction"""

    def __init__(self, timeout: Optional[float] = None):
        # None leaves timing to the connection's own command_timeout
        self.timeout = timeout

    async def execute_ddl(
        self,
        conn: Any,
        sql: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Execute a DDL statement (CREATE INDEX, DROP INDEX) in a dedicated
        transaction. A failure rolls back only this statement.

        Raises:
            ExecutionError: If execution fails; carries the server message.
        """
        effective_timeout = timeout if timeout is not None else self.timeout

        try:
            async with conn.transaction():
                if effective_timeout is None:
                    await conn.execute(sql)
                else:
                    await asyncio.wait_for(conn.execute(sql), timeout=effective_timeout)
        except asyncio.TimeoutError as e:
            raise ExecutionError(
                f"DDL execution timeout after {effective_timeout} seconds"
            ) from e
        except asyncpg.PostgresError as e:
            raise ExecutionError(f"Database error: {e}") from e
        except Exception as e:
            raise ExecutionError(f"DDL execution failed: {e}") from e
