"""Store Protocol 接口定义

远端有序集合的最小 CRUD + 排序契约，
使用 Python Protocol 实现结构化子类型（duck typing）。
所有方法失败时抛出 StoreError（或其子类 RelationMissingError）。
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

Record = dict[str, Any]


class RecordStore(Protocol):
    """远端记录存储接口"""

    async def fetch_all(
        self,
        table: str,
        order_by: str,
        ascending: bool = True,
    ) -> list[Record]:
        """查询全部记录，按指定字段排序"""
        ...

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """插入记录，返回含生成 id 与默认值的完整记录"""
        ...

    async def update(
        self,
        table: str,
        record_id: int,
        partial: Mapping[str, Any],
    ) -> None:
        """按 id 局部更新单条记录"""
        ...

    async def update_many(
        self,
        table: str,
        updates: Mapping[int, Mapping[str, Any]],
    ) -> None:
        """批量局部更新（原子：全部成功或全部不生效）"""
        ...

    async def delete_one(self, table: str, record_id: int) -> None:
        """按 id 删除单条记录"""
        ...

    async def delete_many(self, table: str, record_ids: Iterable[int]) -> None:
        """按 id 集合批量删除"""
        ...

    async def close(self) -> None:
        """释放连接"""
        ...
