"""CLI 入口模块 -- python -m taskline.core <command>

支持的命令：
  init-db                       初始化 SQLite 任务表（含旧表迁移）
  list                          列出全部任务
  add <text>                    新增任务
  toggle <id>                   切换完成状态
  rename <id> <text>            修改任务文本
  rm <id>                       删除任务
  move <moved_id> <target_id>   把任务移动到目标任务所在位置
  clear-completed               清除全部已完成任务
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable

import structlog

from taskline.store import (
    StoreConfig,
    create_record_store,
    init_db,
    load_store_config,
    open_sqlite_store,
)

from .config import TEXT_PREVIEW_LENGTH, get_sync_policy_overrides, get_table_name
from .logging_config import bind_command_context, setup_logging
from .models import (
    CONFIGURABLE_OPERATIONS,
    Notice,
    ReorderPersistence,
    SyncPolicy,
    Todo,
    TodoOperation,
)
from .reporter import CollectingStatusReporter
from .task_list import OrderedTaskList

log = structlog.get_logger()

_USAGE = """用法: python -m taskline.core <command> [args]
命令:
  init-db                       初始化 SQLite 任务表
  list                          列出全部任务
  add <text>                    新增任务
  toggle <id>                   切换完成状态
  rename <id> <text>            修改任务文本
  rm <id>                       删除任务
  move <moved_id> <target_id>   移动任务到目标位置
  clear-completed               清除已完成任务"""


class UsageError(Exception):
    """命令参数错误"""


def _parse_id(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise UsageError(f"无效的任务 ID: {value}") from None


def _require(args: list[str], count: int, usage: str) -> None:
    if len(args) < count:
        raise UsageError(f"用法: {usage}")


async def _cmd_list(task_list: OrderedTaskList, args: list[str]) -> bool:
    return True


async def _cmd_add(task_list: OrderedTaskList, args: list[str]) -> bool:
    _require(args, 1, "add <text>")
    return await task_list.insert(" ".join(args)) is not None


async def _cmd_toggle(task_list: OrderedTaskList, args: list[str]) -> bool:
    _require(args, 1, "toggle <id>")
    return await task_list.toggle(_parse_id(args[0]))


async def _cmd_rename(task_list: OrderedTaskList, args: list[str]) -> bool:
    _require(args, 2, "rename <id> <text>")
    todo_id = _parse_id(args[0])
    if not task_list.start_edit(todo_id):
        raise UsageError(f"任务 {todo_id} 不存在或已完成，无法编辑")
    task_list.set_editing_text(" ".join(args[1:]))
    return await task_list.commit_edit()


async def _cmd_rm(task_list: OrderedTaskList, args: list[str]) -> bool:
    _require(args, 1, "rm <id>")
    return await task_list.delete(_parse_id(args[0]))


async def _cmd_move(task_list: OrderedTaskList, args: list[str]) -> bool:
    _require(args, 2, "move <moved_id> <target_id>")
    return await task_list.reorder(_parse_id(args[0]), _parse_id(args[1]))


async def _cmd_clear_completed(task_list: OrderedTaskList, args: list[str]) -> bool:
    return await task_list.clear_completed()


COMMANDS: dict[str, Callable[[OrderedTaskList, list[str]], Awaitable[bool]]] = {
    "list": _cmd_list,
    "add": _cmd_add,
    "toggle": _cmd_toggle,
    "rename": _cmd_rename,
    "rm": _cmd_rm,
    "move": _cmd_move,
    "clear-completed": _cmd_clear_completed,
}


def format_todo(todo: Todo) -> str:
    """单行渲染：[x] 3. text"""
    mark = "x" if todo.completed else " "
    text = todo.text
    if len(text) > TEXT_PREVIEW_LENGTH:
        text = text[: TEXT_PREVIEW_LENGTH - 3] + "..."
    return f"[{mark}] {todo.id}. {text}"


def format_notice(notice: Notice) -> str:
    return f"{notice.title}: {notice.description}"


def render(task_list: OrderedTaskList) -> list[str]:
    """渲染整个列表"""
    if not task_list.total_count:
        return ["No tasks yet."]
    lines = [format_todo(todo) for todo in task_list.todos]
    lines.append(
        f"{task_list.completed_count} of {task_list.total_count} tasks completed"
    )
    return lines


async def execute(task_list: OrderedTaskList, command: str, args: list[str]) -> bool:
    """加载列表后执行单个命令

    加载失败时不执行命令，直接返回 False。

    Raises:
        UsageError: 命令参数错误
        KeyError: 未知命令
    """
    handler = COMMANDS[command]
    await task_list.load()
    if not task_list.loaded:
        log.warning("command_skipped_after_load_failure", command=command)
        return False
    return await handler(task_list, args)


def load_sync_policies() -> dict[TodoOperation, SyncPolicy]:
    """从 TASKLINE_SYNC_POLICIES 解析同步策略覆盖，无效项记录日志后忽略"""
    policies: dict[TodoOperation, SyncPolicy] = {}
    for name, value in get_sync_policy_overrides().items():
        try:
            operation = TodoOperation(name)
            policy = SyncPolicy(value)
        except ValueError:
            log.warning("invalid_sync_policy_config", operation=name, policy=value)
            continue
        if operation not in CONFIGURABLE_OPERATIONS:
            log.warning("sync_policy_not_configurable", operation=name)
            continue
        policies[operation] = policy
    return policies


async def init_database(config: StoreConfig, table: str) -> bool:
    """初始化 SQLite 任务表；PostgREST 后端需在数据库侧执行 SQL 脚本"""
    if config.backend != "sqlite":
        print("PostgREST 后端请在数据库中执行 scripts/ 下的 SQL 脚本")
        return False

    store = await open_sqlite_store(config.db_path)
    try:
        await init_db(store.conn, table)
    finally:
        await store.close()
    print(f"数据库已初始化: {config.db_path} (表 {table})")
    return True


async def run(command: str, args: list[str]) -> bool:
    """执行命令并输出通知和列表，返回是否成功"""
    config = load_store_config()
    table = get_table_name()
    bind_command_context(command, table)

    if command == "init-db":
        return await init_database(config, table)

    store = await create_record_store(config)
    reporter = CollectingStatusReporter()
    task_list = OrderedTaskList(
        store,
        reporter,
        table=table,
        policies=load_sync_policies(),
        reorder_persistence=ReorderPersistence(config.reorder_mode),
    )

    try:
        ok = await execute(task_list, command, args)
    except UsageError as e:
        print(str(e))
        return False
    finally:
        await store.close()

    for notice in reporter.notices:
        print(format_notice(notice))
    if not ok and not reporter.errors:
        print("未执行任何变更")
    for line in render(task_list):
        print(line)

    return ok and not reporter.errors


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    if command != "init-db" and command not in COMMANDS:
        print(f"未知命令: {command}")
        print(_USAGE)
        sys.exit(1)

    setup_logging()
    ok = asyncio.run(run(command, sys.argv[2:]))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
