"""Taskline Store -- 远端有序集合存储

提供 RecordStore 契约、SQLite / PostgREST 两种实现及工厂函数。
"""

from pathlib import Path

import aiosqlite

from .config import StoreConfig, load_store_config
from .exceptions import InvalidIdentifierError, RelationMissingError, StoreError
from .postgrest_store import PostgrestRecordStore
from .protocols import Record, RecordStore
from .sqlite_init import init_db, verify_schema, verify_wal_mode
from .sqlite_store import SqliteRecordStore


async def open_sqlite_store(db_path: str) -> SqliteRecordStore:
    """打开 SQLite 存储（不建表，建表由 init_db 负责）

    Args:
        db_path: SQLite 数据库文件路径，":memory:" 表示内存库

    Returns:
        SqliteRecordStore 实例
    """
    if db_path != ":memory:":
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await conn.execute("PRAGMA busy_timeout = 5000;")
    return SqliteRecordStore(conn)


async def create_record_store(config: StoreConfig) -> RecordStore:
    """按配置创建存储实例

    Args:
        config: Store 配置

    Returns:
        RecordStore 实现
    """
    if config.backend == "postgrest":
        return PostgrestRecordStore(
            base_url=config.base_url,
            api_key=config.api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    return await open_sqlite_store(config.db_path)


__all__ = [
    "Record",
    "RecordStore",
    "StoreConfig",
    "load_store_config",
    "StoreError",
    "RelationMissingError",
    "InvalidIdentifierError",
    "SqliteRecordStore",
    "PostgrestRecordStore",
    "open_sqlite_store",
    "create_record_store",
    "init_db",
    "verify_schema",
    "verify_wal_mode",
]
