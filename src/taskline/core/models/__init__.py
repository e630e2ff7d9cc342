"""Taskline Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    CONFIGURABLE_OPERATIONS,
    DEFAULT_SYNC_POLICIES,
    NoticeLevel,
    ReorderPersistence,
    SyncPolicy,
    TodoOperation,
)
from .notice import Notice
from .todo import NewTodo, Todo

__all__ = [
    # 枚举
    "SyncPolicy",
    "TodoOperation",
    "ReorderPersistence",
    "NoticeLevel",
    # 策略
    "CONFIGURABLE_OPERATIONS",
    "DEFAULT_SYNC_POLICIES",
    # Todo
    "Todo",
    "NewTodo",
    # Notice
    "Notice",
]
