"""StoreConfig 加载与存储工厂测试"""

from pathlib import Path

import pytest
from pydantic import ValidationError
from taskline.store import (
    PostgrestRecordStore,
    SqliteRecordStore,
    StoreConfig,
    create_record_store,
    load_store_config,
)

_ENV_VARS = [
    "TASKLINE_STORE_BACKEND",
    "TASKLINE_DB_PATH",
    "TASKLINE_DATA_DIR",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "TASKLINE_STORE_TIMEOUT_S",
    "TASKLINE_REORDER_MODE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadStoreConfig:
    def test_defaults(self):
        config = load_store_config()
        assert config.backend == "sqlite"
        assert Path(config.db_path) == Path("data") / "sqlite" / "taskline.db"
        assert config.timeout_s == 10
        assert config.reorder_mode == "batched"

    def test_data_dir_moves_default_db(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("TASKLINE_DATA_DIR", str(tmp_path))
        assert load_store_config().db_path == str(tmp_path / "sqlite" / "taskline.db")

    def test_postgrest_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKLINE_STORE_BACKEND", "postgrest")
        monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        monkeypatch.setenv("TASKLINE_STORE_TIMEOUT_S", "30")
        monkeypatch.setenv("TASKLINE_REORDER_MODE", "per_row")

        config = load_store_config()

        assert config.backend == "postgrest"
        assert config.base_url == "https://demo.supabase.co"
        assert config.api_key.get_secret_value() == "anon-key"
        assert "anon-key" not in repr(config)
        assert config.timeout_s == 30
        assert config.reorder_mode == "per_row"

    def test_invalid_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("TASKLINE_STORE_TIMEOUT_S", "soon")
        assert load_store_config().timeout_s == 10

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("TASKLINE_STORE_BACKEND", "mongo")
        with pytest.raises(ValidationError):
            load_store_config()

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            StoreConfig(timeout_s=0)


class TestCreateRecordStore:
    async def test_sqlite_creates_parent_dir(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "dir" / "todos.db"
        store = await create_record_store(StoreConfig(db_path=str(db_path)))
        try:
            assert isinstance(store, SqliteRecordStore)
            assert db_path.parent.is_dir()
        finally:
            await store.close()

    async def test_postgrest(self):
        store = await create_record_store(
            StoreConfig(backend="postgrest", base_url="https://demo.supabase.co")
        )
        try:
            assert isinstance(store, PostgrestRecordStore)
        finally:
            await store.close()
