"""Taskline Core -- 有序任务列表的本地/远端协调

公开接口导出。
"""

from .models import (
    Notice,
    NoticeLevel,
    ReorderPersistence,
    SyncPolicy,
    Todo,
    TodoOperation,
)
from .reporter import CollectingStatusReporter, LogStatusReporter, StatusReporter
from .task_list import OrderedTaskList

__all__ = [
    "OrderedTaskList",
    "Todo",
    "Notice",
    "NoticeLevel",
    "SyncPolicy",
    "TodoOperation",
    "ReorderPersistence",
    "StatusReporter",
    "LogStatusReporter",
    "CollectingStatusReporter",
]
