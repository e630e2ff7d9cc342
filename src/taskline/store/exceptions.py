"""Store 异常体系

所有远端存储调用失败统一包装为 StoreError，
表/关系缺失单独区分为 RelationMissingError，便于上层给出修复提示。
"""

# PostgreSQL undefined_table
UNDEFINED_TABLE_CODE = "42P01"


class StoreError(Exception):
    """Store 包基础异常"""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        recoverable: bool = True,
    ) -> None:
        """
        Args:
            message: 错误描述
            code: 后端错误码（PostgreSQL SQLSTATE / PostgREST 错误码），可为空
            recoverable: 用户手动重试是否可能成功
        """
        super().__init__(message)
        self.code = code
        self.recoverable = recoverable


class RelationMissingError(StoreError):
    """目标表不存在（数据库尚未初始化）

    重试无意义，需要先执行建表脚本。
    """

    def __init__(self, table: str, code: str = UNDEFINED_TABLE_CODE) -> None:
        super().__init__(
            f"relation {table!r} does not exist",
            code=code,
            recoverable=False,
        )
        self.table = table


class InvalidIdentifierError(StoreError):
    """表名/列名不是合法的 SQL 标识符"""

    def __init__(self, name: str) -> None:
        super().__init__(f"invalid identifier: {name!r}", recoverable=False)
        self.name = name
