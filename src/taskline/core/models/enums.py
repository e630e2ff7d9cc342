"""枚举定义 -- 同步策略、操作类型、通知级别"""

from enum import StrEnum


class SyncPolicy(StrEnum):
    """本地状态与远端确认的先后策略"""

    OPTIMISTIC = "optimistic"  # 先改本地，远端失败回滚
    CONFIRMED = "confirmed"  # 远端成功后才改本地


class TodoOperation(StrEnum):
    """列表操作类型"""

    LOAD = "load"
    INSERT = "insert"
    TOGGLE = "toggle"
    RENAME = "rename"
    DELETE = "delete"
    CLEAR_COMPLETED = "clear_completed"
    REORDER = "reorder"


class ReorderPersistence(StrEnum):
    """排序结果的持久化方式"""

    BATCHED = "batched"  # 单次 update_many，原子
    PER_ROW = "per_row"  # 逐行 update，非原子


class NoticeLevel(StrEnum):
    """用户通知级别"""

    SUCCESS = "success"
    ERROR = "error"


# 可配置同步策略的操作（insert 需要远端生成 id，load 无本地预写，二者固定）
CONFIGURABLE_OPERATIONS: frozenset[TodoOperation] = frozenset({
    TodoOperation.TOGGLE,
    TodoOperation.RENAME,
    TodoOperation.DELETE,
    TodoOperation.CLEAR_COMPLETED,
    TodoOperation.REORDER,
})

DEFAULT_SYNC_POLICIES: dict[TodoOperation, SyncPolicy] = {
    TodoOperation.TOGGLE: SyncPolicy.CONFIRMED,
    TodoOperation.RENAME: SyncPolicy.CONFIRMED,
    TodoOperation.DELETE: SyncPolicy.CONFIRMED,
    TodoOperation.CLEAR_COMPLETED: SyncPolicy.CONFIRMED,
    TodoOperation.REORDER: SyncPolicy.OPTIMISTIC,
}
