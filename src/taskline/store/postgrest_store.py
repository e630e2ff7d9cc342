"""RecordStore 的 PostgREST 实现（兼容 Supabase REST API）

请求映射:
    fetch_all   -> GET    /rest/v1/{table}?select=*&order={col}.asc
    insert      -> POST   /rest/v1/{table}        (Prefer: return=representation)
    update      -> PATCH  /rest/v1/{table}?id=eq.{id}
    update_many -> POST   /rest/v1/rpc/bulk_update_{table}  {"updates": [...]}
    delete_one  -> DELETE /rest/v1/{table}?id=eq.{id}
    delete_many -> DELETE /rest/v1/{table}?id=in.({ids})

update_many 依赖 scripts/create-bulk-update-function.sql 中的存储过程，
在数据库侧单事务执行。
"""

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

from .exceptions import UNDEFINED_TABLE_CODE, RelationMissingError, StoreError
from .protocols import Record
from .sqlite_init import quote_identifier

log = structlog.get_logger()

# PostgREST 在 schema cache 中找不到表时返回的错误码
SCHEMA_CACHE_MISS_CODE = "PGRST205"

_RELATION_MISSING_CODES = frozenset({UNDEFINED_TABLE_CODE, SCHEMA_CACHE_MISS_CODE})


class PostgrestRecordStore:
    """PostgREST 客户端

    封装 httpx.AsyncClient，所有 HTTP/连接错误统一转换为 StoreError。
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化 PostgREST 客户端

        Args:
            base_url: 项目地址（如 https://xyz.supabase.co），自动追加 /rest/v1
            api_key: anon key，同时作为 apikey 头和 Bearer token
            timeout_s: 请求超时（秒）
            transport: 自定义 transport（测试时注入 httpx.MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/rest/v1",
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )

    async def _request(
        self,
        table: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """发送请求并统一错误处理"""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log.error(
                "postgrest_request_failed",
                method=method,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise StoreError(
                f"PostgREST 不可达: {self._base_url} -- {e}",
                code=type(e).__name__,
            ) from e

        if response.is_error:
            raise self._error_from_response(table, response)
        return response

    @staticmethod
    def _error_from_response(table: str, response: httpx.Response) -> StoreError:
        """解析 PostgREST 错误体 {code, message, details, hint}"""
        code: str | None = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message

        log.warning(
            "postgrest_error_response",
            table=table,
            status_code=response.status_code,
            code=code,
            message=message,
        )
        if code in _RELATION_MISSING_CODES:
            return RelationMissingError(table, code=code)
        return StoreError(
            f"PostgREST 请求失败 ({response.status_code}): {message}",
            code=code,
        )

    @staticmethod
    def _table_path(table: str) -> str:
        quote_identifier(table)
        return f"/{table}"

    async def fetch_all(
        self,
        table: str,
        order_by: str,
        ascending: bool = True,
    ) -> list[Record]:
        quote_identifier(order_by)
        direction = "asc" if ascending else "desc"
        response = await self._request(
            table,
            "GET",
            self._table_path(table),
            params={"select": "*", "order": f"{order_by}.{direction}"},
        )
        return list(response.json() or [])

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        response = await self._request(
            table,
            "POST",
            self._table_path(table),
            params={"select": "*"},
            json=[dict(record)],
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise StoreError(f"insert into {table!r} returned no representation")
        return rows[0]

    async def update(
        self,
        table: str,
        record_id: int,
        partial: Mapping[str, Any],
    ) -> None:
        if not partial:
            return
        await self._request(
            table,
            "PATCH",
            self._table_path(table),
            params={"id": f"eq.{record_id}"},
            json=dict(partial),
            headers={"Prefer": "return=minimal"},
        )

    async def update_many(
        self,
        table: str,
        updates: Mapping[int, Mapping[str, Any]],
    ) -> None:
        """通过存储过程在数据库侧单事务批量更新"""
        if not updates:
            return
        quote_identifier(table)
        payload = [
            {"id": record_id, **dict(partial)}
            for record_id, partial in updates.items()
        ]
        await self._request(
            table,
            "POST",
            f"/rpc/bulk_update_{table}",
            json={"updates": payload},
        )

    async def delete_one(self, table: str, record_id: int) -> None:
        await self._request(
            table,
            "DELETE",
            self._table_path(table),
            params={"id": f"eq.{record_id}"},
        )

    async def delete_many(self, table: str, record_ids: Iterable[int]) -> None:
        ids = list(record_ids)
        if not ids:
            return
        await self._request(
            table,
            "DELETE",
            self._table_path(table),
            params={"id": f"in.({','.join(str(i) for i in ids)})"},
        )

    async def close(self) -> None:
        await self._client.aclose()
