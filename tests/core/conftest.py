"""core 测试配置 -- 预置数据的任务列表 + 远端故障注入"""

import pytest
import pytest_asyncio
from taskline.core import CollectingStatusReporter, OrderedTaskList
from taskline.store.exceptions import StoreError


@pytest.fixture
def reporter() -> CollectingStatusReporter:
    return CollectingStatusReporter()


@pytest_asyncio.fixture
async def seeded_store(sqlite_store):
    """预置 A(1, 0) / B(2, 1) / C(3, 2) 三条任务"""
    for index, text in enumerate(["A", "B", "C"]):
        await sqlite_store.insert("todos", {"text": text, "order_index": index})
    return sqlite_store


@pytest_asyncio.fixture
async def task_list(seeded_store, reporter) -> OrderedTaskList:
    """已加载预置数据的任务列表（默认同步策略）"""
    todo_list = OrderedTaskList(seeded_store, reporter)
    await todo_list.load()
    return todo_list


@pytest.fixture
def patch_store(monkeypatch):
    """包装 store 方法：记录调用，并可在第 fail_after 次之后抛出异常

    fail_after=None 时仅记录调用（spy），不注入故障。
    返回调用参数列表。
    """

    def _patch(store, method: str, fail_after: int | None = 0, error: Exception | None = None):
        original = getattr(store, method)
        calls: list[tuple] = []

        async def wrapper(*args, **kwargs):
            calls.append(args)
            if fail_after is not None and len(calls) > fail_after:
                raise error or StoreError("injected failure")
            return await original(*args, **kwargs)

        monkeypatch.setattr(store, method, wrapper)
        return calls

    return _patch
