from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4
from datetime import datetime, timezone
import asyncio
import logging

import httpx
from postgrest.exceptions import APIError
# Lightweight adapter over Supabase client. Keep an in-memory fallback when SUPABASE_URL is missing.
from supabase import create_client, Client

from .config import get_settings
from .exceptions import PersistenceError, RecordNotFoundError

logger = logging.getLogger(__name__)

CALLS = "calls"
SESSIONS = "telavox_call_sessions"
TRANSCRIPTIONS = "transcriptions"
SETTINGS = "settings"

# Column that identifies a single row in each collection
PRIMARY_KEYS: Dict[str, str] = {
    CALLS: "id",
    SESSIONS: "id",
    TRANSCRIPTIONS: "id",
    SETTINGS: "key",
}


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(row: Dict[str, Any], match: Dict[str, Any]) -> bool:
    return all(row.get(k) == v for k, v in match.items())


class InMemoryDB:
    def __init__(self, tables: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in PRIMARY_KEYS}
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(r) for r in rows]

    def _table(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.tables:
            raise PersistenceError(f"Unknown collection: {table}")
        return self.tables[table]

    async def get(self, table: str, value: Any, column: Optional[str] = None) -> Optional[Dict[str, Any]]:
        column = column or PRIMARY_KEYS[table]
        for row in self._table(table):
            if row.get(column) == value:
                return dict(row)
        return None

    async def query(self, table: str, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
                    descending: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        items = [dict(r) for r in self._table(table) if _matches(r, filters or {})]
        if order_by:
            items.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or ""), reverse=descending)
        if limit is not None:
            items = items[:limit]
        return items

    async def insert(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._table(table)
        row = dict(fields)
        if PRIMARY_KEYS[table] == "id":
            row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", utcnow_iso())
        pk = PRIMARY_KEYS[table]
        if any(r.get(pk) == row[pk] for r in rows):
            raise PersistenceError(f"Duplicate key {pk}={row[pk]} in {table}")
        rows.append(row)
        return dict(row)

    async def upsert(self, table: str, fields: Dict[str, Any], on_conflict: Optional[str] = None) -> Dict[str, Any]:
        column = on_conflict or PRIMARY_KEYS[table]
        for row in self._table(table):
            if row.get(column) == fields.get(column):
                row.update(fields)
                return dict(row)
        return await self.insert(table, fields)

    async def update(self, table: str, match: Dict[str, Any], fields: Dict[str, Any]) -> List[Dict[str, Any]]:
        updated = []
        for row in self._table(table):
            if _matches(row, match):
                row.update(fields)
                updated.append(dict(row))
        if not updated:
            raise RecordNotFoundError(f"No {table} row matched {match}")
        return updated

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        rows = self._table(table)
        keep = [r for r in rows if not _matches(r, match)]
        removed = len(rows) - len(keep)
        self.tables[table] = keep
        return removed


class SupabaseDB:
    def __init__(self, client: Client) -> None:
        self.client = client

    async def _execute(self, query, action: str):
        # supabase-py is synchronous; keep the event loop free while PostgREST answers
        try:
            return await asyncio.to_thread(query.execute)
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Supabase {action} failed: {str(e)}")
            raise PersistenceError(f"Supabase {action} failed: {str(e)}") from e

    async def get(self, table: str, value: Any, column: Optional[str] = None) -> Optional[Dict[str, Any]]:
        column = column or PRIMARY_KEYS[table]
        q = self.client.table(table).select("*").eq(column, value).limit(1)
        res = await self._execute(q, f"select from {table}")
        rows = res.data or []
        return rows[0] if rows else None

    async def query(self, table: str, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
                    descending: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        q = self.client.table(table).select("*")
        for k, v in (filters or {}).items():
            q = q.eq(k, v)
        if order_by:
            q = q.order(order_by, desc=descending)
        if limit is not None:
            q = q.limit(limit)
        res = await self._execute(q, f"query {table}")
        return res.data or []

    async def insert(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        res = await self._execute(self.client.table(table).insert(fields), f"insert into {table}")
        return (res.data or [fields])[0]

    async def upsert(self, table: str, fields: Dict[str, Any], on_conflict: Optional[str] = None) -> Dict[str, Any]:
        q = self.client.table(table).upsert(fields, on_conflict=on_conflict or PRIMARY_KEYS[table])
        res = await self._execute(q, f"upsert into {table}")
        return (res.data or [fields])[0]

    async def update(self, table: str, match: Dict[str, Any], fields: Dict[str, Any]) -> List[Dict[str, Any]]:
        q = self.client.table(table).update(fields)
        for k, v in match.items():
            q = q.eq(k, v)
        res = await self._execute(q, f"update {table}")
        # PostgREST reports success for an update that touched nothing
        if not res.data:
            raise RecordNotFoundError(f"No {table} row matched {match}")
        return res.data

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        q = self.client.table(table).delete()
        for k, v in match.items():
            q = q.eq(k, v)
        res = await self._execute(q, f"delete from {table}")
        return len(res.data or [])


_client: Optional[Client] = None
_db_instance: Optional[Any] = None


def get_db():
    global _client, _db_instance

    settings = get_settings()
    if settings.has_supabase:
        if _client is None:
            _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        if _db_instance is None or not isinstance(_db_instance, SupabaseDB):
            _db_instance = SupabaseDB(_client)
        return _db_instance
    if _db_instance is None or not isinstance(_db_instance, InMemoryDB):
        logger.warning("SUPABASE_URL not configured; using in-memory record store")
        _db_instance = InMemoryDB()
    return _db_instance
