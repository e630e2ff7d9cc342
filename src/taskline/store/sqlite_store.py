"""RecordStore 的 SQLite 实现

以本地 SQLite 库扮演远端关系型存储：
- 表名/列名经白名单校验后拼接，值一律参数绑定
- 写操作在单事务内提交，失败自动回滚
- "no such table" 映射为 RelationMissingError，其余驱动错误映射为 StoreError
"""

from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite
import structlog

from .exceptions import UNDEFINED_TABLE_CODE, RelationMissingError, StoreError
from .protocols import Record
from .sqlite_init import quote_identifier

log = structlog.get_logger()


class SqliteRecordStore:
    """RecordStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    @staticmethod
    def _translate(error: aiosqlite.Error, table: str) -> StoreError:
        """将驱动异常转换为 Store 异常"""
        text = str(error)
        if isinstance(error, aiosqlite.OperationalError) and "no such table" in text:
            return RelationMissingError(table, code=UNDEFINED_TABLE_CODE)
        return StoreError(f"SQLite 操作失败: {text}", code=type(error).__name__)

    @asynccontextmanager
    async def _transaction(self, table: str) -> AsyncIterator[None]:
        """写事务：成功提交，失败回滚并转换异常"""
        try:
            yield
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            log.warning(
                "sqlite_write_failed",
                table=table,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise self._translate(e, table) from e
        except Exception:
            # 如非法列名：已执行的语句同样回滚
            await self._conn.rollback()
            raise

    async def _select(self, sql: str, params: tuple, table: str) -> list[Record]:
        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise self._translate(e, table) from e
        columns = [d[0] for d in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def fetch_all(
        self,
        table: str,
        order_by: str,
        ascending: bool = True,
    ) -> list[Record]:
        """查询全部记录，order_by 相同时按 id 升序保证稳定"""
        direction = "ASC" if ascending else "DESC"
        sql = (
            f"SELECT * FROM {quote_identifier(table)} "
            f"ORDER BY {quote_identifier(order_by)} {direction}, id ASC"
        )
        return await self._select(sql, (), table)

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """插入记录并回读完整行（含自增 id 与默认时间戳）"""
        quoted = quote_identifier(table)
        if record:
            columns = ", ".join(quote_identifier(c) for c in record)
            placeholders = ", ".join("?" for _ in record)
            sql = f"INSERT INTO {quoted} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {quoted} DEFAULT VALUES"

        # 插入与回读同一事务：回读失败时插入一并回滚
        async with self._transaction(table):
            cursor = await self._conn.execute(sql, tuple(record.values()))
            record_id = cursor.lastrowid
            rows = await self._select(
                f"SELECT * FROM {quoted} WHERE id = ?", (record_id,), table
            )
            if not rows:
                raise StoreError(f"inserted row {record_id} not found in {table!r}")
        return rows[0]

    async def update(
        self,
        table: str,
        record_id: int,
        partial: Mapping[str, Any],
    ) -> None:
        """按 id 局部更新"""
        if not partial:
            return
        async with self._transaction(table):
            await self._execute_update(table, record_id, partial)

    async def update_many(
        self,
        table: str,
        updates: Mapping[int, Mapping[str, Any]],
    ) -> None:
        """同一事务内批量更新，任一行失败则整体回滚"""
        if not updates:
            return
        async with self._transaction(table):
            for record_id, partial in updates.items():
                if partial:
                    await self._execute_update(table, record_id, partial)

    async def _execute_update(
        self,
        table: str,
        record_id: int,
        partial: Mapping[str, Any],
    ) -> None:
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in partial)
        await self._conn.execute(
            f"UPDATE {quote_identifier(table)} SET {assignments} WHERE id = ?",
            (*partial.values(), record_id),
        )

    async def delete_one(self, table: str, record_id: int) -> None:
        """按 id 删除单条记录"""
        async with self._transaction(table):
            await self._conn.execute(
                f"DELETE FROM {quote_identifier(table)} WHERE id = ?",
                (record_id,),
            )

    async def delete_many(self, table: str, record_ids: Iterable[int]) -> None:
        """按 id 集合单语句批量删除"""
        ids = list(record_ids)
        if not ids:
            return
        placeholders = ", ".join("?" for _ in ids)
        async with self._transaction(table):
            await self._conn.execute(
                f"DELETE FROM {quote_identifier(table)} WHERE id IN ({placeholders})",
                tuple(ids),
            )

    async def close(self) -> None:
        await self._conn.close()
