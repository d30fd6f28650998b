"""Connection management and FastAPI dependencies"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Optional

import asyncpg

from pg_advisor.config import Settings, settings as default_settings
from pg_advisor.core.errors import CatalogConnectionError
from pg_advisor.smart_logger import SmartLogger
from pg_advisor.utils.log_sanitize import sanitize_for_log


def _connection_params(cfg: Settings) -> dict:
    # SSL mode: 'disable' -> ssl=False, other values passed as ssl parameter
    ssl_mode = cfg.target_db_ssl if cfg.target_db_ssl != "disable" else False
    return {
        "host": cfg.target_db_host,
        "port": cfg.target_db_port,
        "database": cfg.target_db_name,
        "user": cfg.target_db_user,
        "password": cfg.target_db_password,
        "ssl": ssl_mode,
        "timeout": cfg.target_db_connect_timeout_seconds,
        "command_timeout": cfg.target_db_command_timeout_seconds,
    }


@asynccontextmanager
async def connect_target_db(cfg: Optional[Settings] = None) -> AsyncIterator[Any]:
    """
    Open one connection to the target database for the duration of a run.

    The connection is always closed on exit, error paths included.

    Raises:
        CatalogConnectionError: if the database cannot be reached.
    """
    cfg = cfg or default_settings
    params = _connection_params(cfg)
    try:
        conn = await asyncpg.connect(**params)
    except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        SmartLogger.log(
            "ERROR",
            "advisor.connection.failed",
            category="advisor.connection",
            params=sanitize_for_log({**params, "error": repr(exc)}),
        )
        raise CatalogConnectionError(
            f"Cannot connect to {cfg.target_db_host}:{cfg.target_db_port}/{cfg.target_db_name}: {exc}"
        ) from exc

    try:
        yield conn
    finally:
        await conn.close()


async def get_db_connection() -> AsyncGenerator[Any, None]:
    """FastAPI dependency for target database connection"""
    async with connect_target_db() as conn:
        yield conn
