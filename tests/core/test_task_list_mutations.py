"""OrderedTaskList 完成状态/编辑/删除/清理测试

测试内容：
1. toggle 确认后生效，失败不变；乐观策略失败回滚
2. 编辑会话：单一会话、转移、已完成任务不可编辑、空白提交忽略
3. delete / clear_completed 全部成功或全部不变
4. 集合锁串行化并发操作
"""

import asyncio

import pytest
from taskline.core import OrderedTaskList
from taskline.core.models import SyncPolicy, TodoOperation
from taskline.store.exceptions import StoreError


class TestToggle:
    async def test_toggle_confirmed(self, task_list, seeded_store, reporter):
        assert await task_list.toggle(2) is True
        assert task_list.find(2).completed is True
        assert reporter.notices == []  # toggle 成功不通知

        rows = {r["id"]: r["completed"] for r in await seeded_store.fetch_all("todos", "id")}
        assert rows == {1: 0, 2: 1, 3: 0}

        assert await task_list.toggle(2) is True
        assert task_list.find(2).completed is False

    async def test_toggle_failure_leaves_state(self, task_list, seeded_store, reporter, patch_store):
        patch_store(seeded_store, "update")
        assert await task_list.toggle(2) is False
        assert task_list.find(2).completed is False
        assert reporter.errors[0].description == "Failed to update todo. Please try again."

    async def test_toggle_not_applied_before_confirmation(self, task_list, seeded_store, monkeypatch):
        started = asyncio.Event()
        release = asyncio.Event()
        original = seeded_store.update

        async def slow_update(table, record_id, partial):
            started.set()
            await release.wait()
            await original(table, record_id, partial)

        monkeypatch.setattr(seeded_store, "update", slow_update)
        pending = asyncio.create_task(task_list.toggle(1))
        await started.wait()
        assert task_list.find(1).completed is False
        release.set()
        assert await pending is True
        assert task_list.find(1).completed is True

    async def test_optimistic_toggle_rolls_back(self, seeded_store, reporter, patch_store):
        todo_list = OrderedTaskList(
            seeded_store,
            reporter,
            policies={TodoOperation.TOGGLE: SyncPolicy.OPTIMISTIC},
        )
        await todo_list.load()
        patch_store(seeded_store, "update")

        assert await todo_list.toggle(1) is False
        assert todo_list.find(1).completed is False
        assert todo_list.policy_for(TodoOperation.TOGGLE) == SyncPolicy.OPTIMISTIC

    async def test_unknown_id(self, task_list, seeded_store, patch_store):
        calls = patch_store(seeded_store, "update", fail_after=None)
        assert await task_list.toggle(42) is False
        assert calls == []

    async def test_insert_policy_not_configurable(self, seeded_store):
        with pytest.raises(ValueError):
            OrderedTaskList(seeded_store, policies={TodoOperation.INSERT: SyncPolicy.OPTIMISTIC})


class TestEditSession:
    async def test_single_session_transfers(self, task_list):
        assert task_list.start_edit(1) is True
        task_list.set_editing_text("A edited")

        assert task_list.start_edit(2) is True
        assert task_list.editing_id == 2
        assert task_list.editing_text == "B"

    async def test_completed_task_not_editable(self, task_list):
        await task_list.toggle(3)
        assert task_list.start_edit(3) is False
        assert task_list.editing_id is None
        assert task_list.start_edit(42) is False

    async def test_commit_updates_text(self, task_list, seeded_store, reporter):
        task_list.start_edit(2)
        task_list.set_editing_text("  Buy milk ")

        assert await task_list.commit_edit() is True

        assert task_list.find(2).text == "Buy milk"
        assert task_list.editing_id is None
        assert task_list.editing_text == ""
        assert reporter.notices[-1].description == "Todo updated successfully!"
        rows = {r["id"]: r["text"] for r in await seeded_store.fetch_all("todos", "id")}
        assert rows[2] == "Buy milk"

    async def test_commit_blank_is_ignored(self, task_list, seeded_store, patch_store):
        calls = patch_store(seeded_store, "update", fail_after=None)
        task_list.start_edit(1)
        task_list.set_editing_text("   ")

        assert await task_list.commit_edit() is False
        assert calls == []
        assert task_list.editing_id == 1
        assert task_list.find(1).text == "A"

    async def test_commit_without_session(self, task_list):
        assert await task_list.commit_edit() is False

    async def test_commit_failure_keeps_session(self, task_list, seeded_store, reporter, patch_store):
        patch_store(seeded_store, "update")
        task_list.start_edit(1)
        task_list.set_editing_text("A2")

        assert await task_list.commit_edit() is False

        assert task_list.find(1).text == "A"
        assert task_list.editing_id == 1
        assert task_list.editing_text == "A2"
        assert reporter.errors

    async def test_cancel_edit(self, task_list, seeded_store, patch_store):
        calls = patch_store(seeded_store, "update", fail_after=None)
        task_list.start_edit(1)
        task_list.set_editing_text("changed")
        task_list.cancel_edit()

        assert task_list.editing_id is None
        assert task_list.find(1).text == "A"
        assert calls == []

    async def test_set_text_without_session(self, seeded_store):
        todo_list = OrderedTaskList(seeded_store)
        todo_list.set_editing_text("ignored")
        assert todo_list.editing_text == ""


class TestDelete:
    async def test_delete(self, task_list, seeded_store, reporter):
        assert await task_list.delete(2) is True
        assert [t.id for t in task_list.todos] == [1, 3]
        assert reporter.notices[-1].description == "Todo deleted successfully!"
        assert [r["id"] for r in await seeded_store.fetch_all("todos", "id")] == [1, 3]

    async def test_delete_failure_keeps_item(self, task_list, seeded_store, reporter, patch_store):
        patch_store(seeded_store, "delete_one")
        assert await task_list.delete(2) is False
        assert [t.id for t in task_list.todos] == [1, 2, 3]
        assert reporter.errors[0].description == "Failed to delete todo. Please try again."

    async def test_delete_ends_edit_session(self, task_list):
        task_list.start_edit(2)
        await task_list.delete(2)
        assert task_list.editing_id is None

    async def test_commit_after_external_delete(self, task_list, seeded_store):
        task_list.start_edit(2)
        await seeded_store.delete_one("todos", 2)
        await task_list.load()
        assert await task_list.commit_edit() is False
        assert task_list.editing_id is None


class TestClearCompleted:
    async def test_clear_all_completed(self, task_list, seeded_store, reporter, patch_store):
        await task_list.toggle(1)
        await task_list.toggle(3)
        assert task_list.completed_count == 2
        assert task_list.has_completed
        calls = patch_store(seeded_store, "delete_many", fail_after=None)

        assert await task_list.clear_completed() is True

        assert [t.id for t in task_list.todos] == [2]
        assert list(calls[0][1]) == [1, 3]
        assert not task_list.has_completed
        assert reporter.notices[-1].description == "Completed todos cleared successfully!"
        assert [r["id"] for r in await seeded_store.fetch_all("todos", "id")] == [2]

    async def test_failure_removes_none(self, task_list, seeded_store, reporter, patch_store):
        await task_list.toggle(1)
        await task_list.toggle(3)
        patch_store(seeded_store, "delete_many")

        assert await task_list.clear_completed() is False

        assert [t.id for t in task_list.todos] == [1, 2, 3]
        assert task_list.completed_count == 2
        assert reporter.errors[-1].description == (
            "Failed to clear completed todos. Please try again."
        )

    async def test_optimistic_failure_restores_all(self, seeded_store, reporter, patch_store):
        todo_list = OrderedTaskList(
            seeded_store,
            reporter,
            policies={TodoOperation.CLEAR_COMPLETED: SyncPolicy.OPTIMISTIC},
        )
        await todo_list.load()
        await todo_list.toggle(2)
        patch_store(seeded_store, "delete_many", error=StoreError("partial outage"))

        assert await todo_list.clear_completed() is False
        assert [t.id for t in todo_list.todos] == [1, 2, 3]

    async def test_nothing_completed(self, task_list, seeded_store, patch_store):
        calls = patch_store(seeded_store, "delete_many", fail_after=None)
        assert await task_list.clear_completed() is False
        assert calls == []


class TestSerialization:
    async def test_operations_do_not_interleave(self, task_list, seeded_store, monkeypatch):
        """排序等待远端期间发起的删除，在排序完成后才执行"""
        events: list[str] = []
        started = asyncio.Event()
        release = asyncio.Event()
        original_update_many = seeded_store.update_many
        original_delete_one = seeded_store.delete_one

        async def slow_update_many(table, updates):
            events.append("reorder_started")
            started.set()
            await release.wait()
            await original_update_many(table, updates)
            events.append("reorder_done")

        async def tracked_delete_one(table, record_id):
            events.append("delete_started")
            await original_delete_one(table, record_id)

        monkeypatch.setattr(seeded_store, "update_many", slow_update_many)
        monkeypatch.setattr(seeded_store, "delete_one", tracked_delete_one)

        reorder = asyncio.create_task(task_list.reorder(3, 1))
        await started.wait()
        delete = asyncio.create_task(task_list.delete(2))
        await asyncio.sleep(0)
        assert events == ["reorder_started"]

        release.set()
        assert await reorder is True
        assert await delete is True
        assert events == ["reorder_started", "reorder_done", "delete_started"]
        assert [t.text for t in task_list.todos] == ["C", "A"]
