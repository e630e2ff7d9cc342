"""OrderedTaskList -- 本地有序任务列表与远端存储的协调

每个写操作的流程：
1. 在集合锁内取当前列表快照
2. 按操作的同步策略决定本地何时变更：
   - OPTIMISTIC: 先应用本地变更，远端失败时恢复快照
   - CONFIRMED: 远端成功后才应用本地变更
3. 通过 StatusReporter 发出成功/失败通知

所有异常在操作边界捕获、记录日志并转为通知，不向调用方传播。
写操作与 load 共用一把 asyncio.Lock，同一集合上的远端调用串行执行，
迟到的响应不会覆盖之后的本地变更。
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping

import structlog

from taskline.store.protocols import RecordStore

from .config import ORDER_COLUMN
from .models import (
    CONFIGURABLE_OPERATIONS,
    DEFAULT_SYNC_POLICIES,
    NewTodo,
    ReorderPersistence,
    SyncPolicy,
    Todo,
    TodoOperation,
)
from .models.notice import Notice
from .ordering import (
    index_of,
    move_item,
    next_order_index,
    order_updates,
    reindex,
    remove_items,
    replace_item,
    sort_by_order,
)
from .reporter import LogStatusReporter, StatusReporter, failure_notice, success_notice

log = structlog.get_logger()

Mutation = Callable[[list[Todo]], list[Todo]]


class OrderedTaskList:
    """与远端存储同步的有序任务列表"""

    def __init__(
        self,
        store: RecordStore,
        reporter: StatusReporter | None = None,
        *,
        table: str = "todos",
        policies: Mapping[TodoOperation, SyncPolicy] | None = None,
        reorder_persistence: ReorderPersistence = ReorderPersistence.BATCHED,
    ) -> None:
        """
        Args:
            store: 远端存储
            reporter: 通知接收方，默认写入日志
            table: 任务表名
            policies: 按操作覆盖默认同步策略（仅 CONFIGURABLE_OPERATIONS）
            reorder_persistence: 排序结果持久化方式

        Raises:
            ValueError: 为不可配置的操作指定了策略
        """
        self._store = store
        self._reporter = reporter or LogStatusReporter()
        self._table = table
        self._policies = dict(DEFAULT_SYNC_POLICIES)
        for operation, policy in (policies or {}).items():
            if operation not in CONFIGURABLE_OPERATIONS:
                raise ValueError(f"sync policy is not configurable for {operation}")
            self._policies[operation] = SyncPolicy(policy)
        self._reorder_persistence = ReorderPersistence(reorder_persistence)

        self._todos: list[Todo] = []
        self._lock = asyncio.Lock()
        self._editing_id: int | None = None
        self._editing_text = ""

        self.loading = False
        self.adding = False
        # 最近一次 load 是否成功；失败时本地视图不可作为写操作的依据
        self.loaded = False

    # ---- 只读视图 ----

    @property
    def todos(self) -> tuple[Todo, ...]:
        """当前显示顺序的快照"""
        return tuple(self._todos)

    @property
    def total_count(self) -> int:
        return len(self._todos)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self._todos if t.completed)

    @property
    def has_completed(self) -> bool:
        """是否存在可清理的已完成任务"""
        return any(t.completed for t in self._todos)

    @property
    def editing_id(self) -> int | None:
        return self._editing_id

    @property
    def editing_text(self) -> str:
        return self._editing_text

    def find(self, todo_id: int) -> Todo | None:
        index = index_of(self._todos, todo_id)
        return None if index is None else self._todos[index]

    def policy_for(self, operation: TodoOperation) -> SyncPolicy:
        """查询操作的同步策略（insert/load 固定为 CONFIRMED）"""
        return self._policies.get(operation, SyncPolicy.CONFIRMED)

    # ---- 加载 / 新增 ----

    async def load(self) -> list[Todo]:
        """从远端加载全部任务，整体替换本地状态

        失败时本地状态置空、loaded 置为 False 并通知，不自动重试。
        """
        async with self._lock:
            self.loading = True
            try:
                rows = await self._store.fetch_all(self._table, ORDER_COLUMN)
                todos = sort_by_order([Todo.model_validate(row) for row in rows])
            except Exception as e:
                self._todos = []
                self.loaded = False
                self._report_failure(TodoOperation.LOAD, e)
                return []
            finally:
                self.loading = False

            self._todos = todos
            self.loaded = True
            log.info("todos_loaded", table=self._table, count=len(todos))
            return list(todos)

    async def insert(self, text: str) -> Todo | None:
        """新增任务：远端生成 id 后追加到列表末尾

        空白文本直接忽略（不调用远端，不通知）。

        Returns:
            新建的 Todo，忽略或失败时返回 None
        """
        trimmed = text.strip()
        if not trimmed:
            return None

        async with self._lock:
            self.adding = True
            try:
                new_todo = NewTodo(text=trimmed, order_index=next_order_index(self._todos))
                row = await self._store.insert(self._table, new_todo.model_dump())
                todo = Todo.model_validate(row)
            except Exception as e:
                self._report_failure(TodoOperation.INSERT, e)
                return None
            finally:
                self.adding = False

            self._todos = [*self._todos, todo]
            log.info("todo_inserted", todo_id=todo.id, order_index=todo.order_index)
            self._notify(success_notice(TodoOperation.INSERT))
            return todo

    # ---- 排序 ----

    async def reorder(self, moved_id: int, target_id: int | None) -> bool:
        """把 moved_id 移到 target_id 当前所在位置

        移动后整表重新编号为 0..N-1，仅持久化序号有变化的行。
        target_id 为空、与 moved_id 相同或任一 id 不存在时不做任何事。

        Returns:
            True 如果排序已被远端确认
        """
        if target_id is None or moved_id == target_id:
            return False

        async with self._lock:
            before = self._todos
            old_index = index_of(before, moved_id)
            new_index = index_of(before, target_id)
            if old_index is None or new_index is None:
                log.warning("reorder_unknown_id", moved_id=moved_id, target_id=target_id)
                return False

            reordered = reindex(move_item(before, old_index, new_index))
            updates = order_updates(before, reordered)

            async def persist() -> None:
                if self._reorder_persistence is ReorderPersistence.BATCHED:
                    await self._store.update_many(self._table, updates)
                    return
                # 逐行更新：按新位置顺序，非原子
                for record_id, partial in updates.items():
                    await self._store.update(self._table, record_id, partial)

            return await self._transact(
                TodoOperation.REORDER,
                lambda current: reordered,
                persist,
            )

    # ---- 完成状态 ----

    async def toggle(self, todo_id: int) -> bool:
        """切换完成状态"""
        async with self._lock:
            todo = self.find(todo_id)
            if todo is None:
                return False
            completed = not todo.completed
            return await self._transact(
                TodoOperation.TOGGLE,
                lambda current: replace_item(current, todo_id, completed=completed),
                lambda: self._store.update(self._table, todo_id, {"completed": completed}),
            )

    # ---- 编辑会话 ----

    def start_edit(self, todo_id: int) -> bool:
        """进入编辑模式；已有会话时转移到新任务

        已完成或不存在的任务不可编辑。
        """
        todo = self.find(todo_id)
        if todo is None or todo.completed:
            return False
        self._editing_id = todo.id
        self._editing_text = todo.text
        return True

    def set_editing_text(self, text: str) -> None:
        if self._editing_id is not None:
            self._editing_text = text

    def cancel_edit(self) -> None:
        self._editing_id = None
        self._editing_text = ""

    async def commit_edit(self) -> bool:
        """提交编辑：成功后更新本地文本并结束会话

        无会话或文本为空白时忽略（会话保留）；远端失败时会话保留以便重试。
        """
        async with self._lock:
            editing_id = self._editing_id
            if editing_id is None:
                return False
            trimmed = self._editing_text.strip()
            if not trimmed:
                return False
            if self.find(editing_id) is None:
                # 编辑中的任务已被删除
                self.cancel_edit()
                return False

            ok = await self._transact(
                TodoOperation.RENAME,
                lambda current: replace_item(current, editing_id, text=trimmed),
                lambda: self._store.update(self._table, editing_id, {"text": trimmed}),
            )
            # 等待期间会话可能已转移到其他任务
            if ok and self._editing_id == editing_id:
                self.cancel_edit()
            return ok

    # ---- 删除 ----

    async def delete(self, todo_id: int) -> bool:
        """删除单个任务"""
        async with self._lock:
            if self.find(todo_id) is None:
                return False
            ok = await self._transact(
                TodoOperation.DELETE,
                lambda current: remove_items(current, {todo_id}),
                lambda: self._store.delete_one(self._table, todo_id),
            )
            if ok and self._editing_id == todo_id:
                self.cancel_edit()
            return ok

    async def clear_completed(self) -> bool:
        """一次批量删除全部已完成任务：要么全部移除，要么全部保留"""
        async with self._lock:
            completed_ids = [t.id for t in self._todos if t.completed]
            if not completed_ids:
                return False
            id_set = frozenset(completed_ids)
            ok = await self._transact(
                TodoOperation.CLEAR_COMPLETED,
                lambda current: remove_items(current, id_set),
                lambda: self._store.delete_many(self._table, completed_ids),
            )
            if ok and self._editing_id in id_set:
                self.cancel_edit()
            return ok

    # ---- 内部 ----

    async def _transact(
        self,
        operation: TodoOperation,
        mutate: Mutation,
        remote: Callable[[], Awaitable[None]],
    ) -> bool:
        """快照 -> 变更 -> 确认或回滚（调用方需持有集合锁）

        Args:
            operation: 操作类型，决定同步策略与通知文案
            mutate: 由旧列表生成新列表的纯函数
            remote: 远端调用

        Returns:
            True 如果远端确认成功
        """
        snapshot = self._todos
        policy = self.policy_for(operation)

        if policy is SyncPolicy.OPTIMISTIC:
            self._todos = mutate(snapshot)

        try:
            await remote()
        except Exception as e:
            if policy is SyncPolicy.OPTIMISTIC:
                self._todos = snapshot
                log.info("optimistic_update_rolled_back", operation=operation.value)
            self._report_failure(operation, e)
            return False

        if policy is SyncPolicy.CONFIRMED:
            self._todos = mutate(snapshot)

        log.info("todo_operation_confirmed", operation=operation.value, policy=policy.value)
        self._notify(success_notice(operation))
        return True

    def _report_failure(self, operation: TodoOperation, error: Exception) -> None:
        log.error(
            "todo_operation_failed",
            operation=operation.value,
            table=self._table,
            error_type=type(error).__name__,
            error=str(error),
        )
        self._notify(failure_notice(operation, error))

    def _notify(self, notice: Notice | None) -> None:
        if notice is None:
            return
        try:
            self._reporter.report(notice)
        except Exception as e:
            # reporter 故障不影响列表状态
            log.warning("status_reporter_failed", error_type=type(e).__name__)
