"""StatusReporter -- 用户通知回调

OrderedTaskList 通过注入的 reporter 发出成功/失败通知，
不依赖全局状态。reporter 为同步、即发即忘的观察者。
"""

from typing import Protocol

import structlog

from taskline.store.exceptions import RelationMissingError

from .models.enums import NoticeLevel, TodoOperation
from .models.notice import Notice

log = structlog.get_logger()

# 操作 -> (成功描述, 失败时的动作描述)；成功描述为 None 表示成功时不通知
_MESSAGES: dict[TodoOperation, tuple[str | None, str]] = {
    TodoOperation.LOAD: (None, "load todos"),
    TodoOperation.INSERT: ("Todo added successfully!", "add todo"),
    TodoOperation.TOGGLE: (None, "update todo"),
    TodoOperation.RENAME: ("Todo updated successfully!", "update todo"),
    TodoOperation.DELETE: ("Todo deleted successfully!", "delete todo"),
    TodoOperation.CLEAR_COMPLETED: (
        "Completed todos cleared successfully!",
        "clear completed todos",
    ),
    TodoOperation.REORDER: ("Todo order updated successfully!", "update todo order"),
}


def success_notice(operation: TodoOperation) -> Notice | None:
    """构造成功通知，不需要通知的操作返回 None"""
    description = _MESSAGES[operation][0]
    if description is None:
        return None
    return Notice(
        level=NoticeLevel.SUCCESS,
        title="Success",
        description=description,
        operation=operation,
    )


def failure_notice(operation: TodoOperation, error: Exception) -> Notice:
    """构造失败通知

    表缺失给出建表提示；其余错误给出通用的重试提示。
    """
    if isinstance(error, RelationMissingError):
        return Notice(
            level=NoticeLevel.ERROR,
            title="Database not initialised",
            description=(
                f"The {error.table} table has not been created yet. "
                "Run `python -m taskline.core init-db` or the SQL scripts in scripts/."
            ),
            operation=operation,
        )
    return Notice(
        level=NoticeLevel.ERROR,
        title="Error",
        description=f"Failed to {_MESSAGES[operation][1]}. Please try again.",
        operation=operation,
    )


class StatusReporter(Protocol):
    """通知接收方接口"""

    def report(self, notice: Notice) -> None:
        """接收一条通知"""
        ...


class LogStatusReporter:
    """将通知写入 structlog（默认 reporter）"""

    def report(self, notice: Notice) -> None:
        if notice.is_error:
            log.warning(
                "status_notice",
                level=notice.level.value,
                title=notice.title,
                description=notice.description,
            )
        else:
            log.info(
                "status_notice",
                level=notice.level.value,
                title=notice.title,
                description=notice.description,
            )


class CollectingStatusReporter:
    """在内存中收集通知（CLI 输出与测试使用）"""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def report(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def errors(self) -> list[Notice]:
        return [n for n in self.notices if n.is_error]

    def clear(self) -> None:
        self.notices.clear()
