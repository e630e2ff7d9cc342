"""全局 pytest 配置 -- async 测试支持 + 临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest_asyncio


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化 todos 表的临时 SQLite 数据库连接"""
    from taskline.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def sqlite_store(db_conn: aiosqlite.Connection):
    """基于临时数据库的 SqliteRecordStore"""
    from taskline.store.sqlite_store import SqliteRecordStore

    return SqliteRecordStore(db_conn)
