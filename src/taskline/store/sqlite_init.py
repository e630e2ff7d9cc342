"""SQLite 数据库初始化

PRAGMA 配置 + todos 表 DDL + 排序索引 + updated_at 触发器。
兼容旧版表结构：缺少 order_index 列时补列并按 created_at 倒序回填序号。
"""

import re

import aiosqlite
import structlog

from .exceptions import InvalidIdentifierError

log = structlog.get_logger()

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# todos 表 DDL（{table} 经 quote_identifier 校验后填入）
_TODOS_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    text         TEXT NOT NULL,
    completed    INTEGER NOT NULL DEFAULT 0,
    order_index  INTEGER NOT NULL DEFAULT 0,
    created_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_ORDER_INDEX_DDL = "CREATE INDEX IF NOT EXISTS idx_{name}_order ON {table}(order_index);"

# 行更新时自动维护 updated_at（SQLite 不能在 BEFORE 触发器里改 NEW，改用 AFTER）
_UPDATED_AT_TRIGGER = """
CREATE TRIGGER IF NOT EXISTS update_{name}_updated_at
AFTER UPDATE OF text, completed, order_index ON {table}
FOR EACH ROW
BEGIN
    UPDATE {table}
    SET updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
    WHERE id = NEW.id;
END;
"""

# 旧表迁移：按 created_at 倒序回填连续序号（从 1 开始）
_BACKFILL_ORDER_INDEX = """
UPDATE {table}
SET order_index = (
    SELECT COUNT(*) FROM {table} AS newer
    WHERE newer.created_at > {table}.created_at
       OR (newer.created_at = {table}.created_at AND newer.id >= {table}.id)
);
"""


def quote_identifier(name: str) -> str:
    """校验并引用 SQL 标识符（表名/列名不能走参数绑定）

    Raises:
        InvalidIdentifierError: 名称不是合法标识符
    """
    if not _IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(name)
    return f'"{name}"'


async def _table_columns(conn: aiosqlite.Connection, table: str) -> set[str]:
    cursor = await conn.execute(f"PRAGMA table_info({quote_identifier(table)});")
    rows = await cursor.fetchall()
    return {row[1] for row in rows}


async def init_db(conn: aiosqlite.Connection, table: str = "todos") -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 迁移旧表 + 创建索引和触发器

    Args:
        conn: aiosqlite 数据库连接
        table: 任务表名
    """
    quoted = quote_identifier(table)

    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TODOS_DDL.format(table=quoted))

    # 旧表缺 order_index 时补列并回填
    columns = await _table_columns(conn, table)
    if "order_index" not in columns:
        await conn.execute(
            f"ALTER TABLE {quoted} ADD COLUMN order_index INTEGER NOT NULL DEFAULT 0;"
        )
        await conn.execute(_BACKFILL_ORDER_INDEX.format(table=quoted))
        log.info("order_index_column_migrated", table=table)

    # 索引 + 触发器
    await conn.execute(_ORDER_INDEX_DDL.format(name=table, table=quoted))
    await conn.execute(_UPDATED_AT_TRIGGER.format(name=table, table=quoted))

    await conn.commit()


async def verify_schema(conn: aiosqlite.Connection, table: str = "todos") -> bool:
    """验证任务表是否存在且包含全部必需列

    Returns:
        True 如果表结构完整
    """
    required = {"id", "text", "completed", "order_index", "created_at", "updated_at"}
    columns = await _table_columns(conn, table)
    return required <= columns


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
