"""有序列表纯函数 -- 内存中操作，不触碰存储

所有函数都返回新列表，输入序列与其中的 Todo 实例保持不变，
调用方持有的旧列表因此可以直接作为回滚快照。
"""

from collections.abc import Collection, Sequence
from typing import Any

from .models.todo import Todo


def sort_by_order(todos: Sequence[Todo]) -> list[Todo]:
    """按 order_index 升序稳定排序（同序号保持原相对顺序）"""
    return sorted(todos, key=lambda t: t.order_index)


def next_order_index(todos: Sequence[Todo]) -> int:
    """新任务的排序序号：当前最大值 + 1，空列表为 1"""
    if not todos:
        return 1
    return max(t.order_index for t in todos) + 1


def index_of(todos: Sequence[Todo], todo_id: int) -> int | None:
    """查找 id 所在位置，不存在返回 None"""
    for i, todo in enumerate(todos):
        if todo.id == todo_id:
            return i
    return None


def move_item(todos: Sequence[Todo], old_index: int, new_index: int) -> list[Todo]:
    """单元素移动：取出 old_index 处元素并插入到 new_index

    其余元素相对顺序不变（不是交换）。

    Raises:
        IndexError: 下标越界
    """
    size = len(todos)
    if not (0 <= old_index < size and 0 <= new_index < size):
        raise IndexError(f"move {old_index} -> {new_index} out of range for {size} items")
    result = list(todos)
    item = result.pop(old_index)
    result.insert(new_index, item)
    return result


def reindex(todos: Sequence[Todo]) -> list[Todo]:
    """按当前位置重新生成连续序号 0..N-1"""
    return [
        todo if todo.order_index == position else todo.model_copy(update={"order_index": position})
        for position, todo in enumerate(todos)
    ]


def order_updates(
    before: Sequence[Todo],
    after: Sequence[Todo],
) -> dict[int, dict[str, Any]]:
    """计算需要持久化的序号变更

    Returns:
        id -> {"order_index": 新序号}，按 after 中的位置顺序排列，
        只包含序号与 before 不同的元素
    """
    previous = {t.id: t.order_index for t in before}
    return {
        todo.id: {"order_index": todo.order_index}
        for todo in after
        if previous.get(todo.id) != todo.order_index
    }


def replace_item(todos: Sequence[Todo], todo_id: int, **changes: Any) -> list[Todo]:
    """替换指定 id 的字段，返回新列表"""
    return [
        todo.model_copy(update=changes) if todo.id == todo_id else todo
        for todo in todos
    ]


def remove_items(todos: Sequence[Todo], todo_ids: Collection[int]) -> list[Todo]:
    """移除指定 id 集合，返回新列表"""
    return [todo for todo in todos if todo.id not in todo_ids]
