"""StoreConfig -- 远端存储配置加载

从环境变量加载配置，选择 SQLite 本地库或 PostgREST（Supabase）后端。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class StoreConfig(BaseModel):
    """Store 配置 -- 从环境变量加载

    环境变量:
        TASKLINE_STORE_BACKEND: 后端类型（sqlite/postgrest）
        TASKLINE_DB_PATH: SQLite 数据库路径（sqlite 后端）
        SUPABASE_URL: PostgREST 服务地址（postgrest 后端）
        SUPABASE_ANON_KEY: PostgREST 访问密钥
        TASKLINE_STORE_TIMEOUT_S: 请求超时（秒，默认 10）
        TASKLINE_REORDER_MODE: 排序持久化方式（batched/per_row）
    """

    backend: Literal["sqlite", "postgrest"] = Field(
        default="sqlite",
        description="存储后端：sqlite / postgrest",
    )
    db_path: str = Field(
        default="data/sqlite/taskline.db",
        description="SQLite 数据库文件路径",
    )
    base_url: str = Field(
        default="http://localhost:54321",
        description="PostgREST / Supabase 项目地址",
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="PostgREST anon key",
    )
    timeout_s: int = Field(
        default=10,
        ge=1,
        description="远端调用超时（秒）",
    )
    reorder_mode: Literal["batched", "per_row"] = Field(
        default="batched",
        description="排序持久化：单次批量事务 / 逐行更新",
    )


def load_store_config() -> StoreConfig:
    """从环境变量加载 Store 配置

    环境变量映射:
        TASKLINE_STORE_BACKEND -> backend (默认 "sqlite")
        TASKLINE_DB_PATH -> db_path (默认 taskline.core.config.get_db_path())
        SUPABASE_URL -> base_url
        SUPABASE_ANON_KEY -> api_key
        TASKLINE_STORE_TIMEOUT_S -> timeout_s (默认 10)
        TASKLINE_REORDER_MODE -> reorder_mode (默认 "batched")

    Returns:
        StoreConfig 实例
    """
    from taskline.core.config import get_db_path

    kwargs: dict = {"db_path": get_db_path()}

    if val := os.environ.get("TASKLINE_STORE_BACKEND"):
        kwargs["backend"] = val

    if val := os.environ.get("SUPABASE_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("SUPABASE_ANON_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("TASKLINE_STORE_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKLINE_STORE_TIMEOUT_S",
                value=val,
                fallback=10,
            )

    if val := os.environ.get("TASKLINE_REORDER_MODE"):
        kwargs["reorder_mode"] = val

    return StoreConfig(**kwargs)
