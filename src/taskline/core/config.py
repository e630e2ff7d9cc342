"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、任务表名、文本长度限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKLINE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKLINE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskline.db"),
    )


def get_table_name() -> str:
    """获取任务表名"""
    return os.environ.get("TASKLINE_TABLE", "todos")


def get_sync_policy_overrides() -> dict[str, str]:
    """读取同步策略覆盖：TASKLINE_SYNC_POLICIES="toggle=optimistic,delete=optimistic"

    Returns:
        操作名 -> 策略名（原样返回，由调用方校验）
    """
    raw = os.environ.get("TASKLINE_SYNC_POLICIES", "")
    overrides: dict[str, str] = {}
    for item in raw.split(","):
        name, sep, value = item.partition("=")
        if sep and name.strip():
            overrides[name.strip().lower()] = value.strip().lower()
    return overrides


# 排序字段
ORDER_COLUMN: str = "order_index"

# CLI 列表输出时单条文本的最大显示长度
TEXT_PREVIEW_LENGTH: int = int(os.environ.get("TASKLINE_TEXT_PREVIEW_LENGTH", "80"))
