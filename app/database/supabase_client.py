from supabase import create_client, Client, ClientOptions
from app.config import settings
from app.core.errors import Unavailable
from typing import Any, Dict, List, NamedTuple, Optional, Sequence
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def _options(cls) -> ClientOptions:
        return ClientOptions(
            postgrest_client_timeout=settings.collaborator_timeout_seconds,
            storage_client_timeout=int(settings.collaborator_timeout_seconds),
        )

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key, options=cls._options())
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Handlers enforce access in core.policy instead."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key, options=cls._options()
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


class Filter(NamedTuple):
    op: str
    column: str
    value: Any


def eq(column: str, value: Any) -> Filter:
    return Filter("eq", column, value)


def contains(column: str, value: Any) -> Filter:
    """Array column contains value."""
    return Filter("contains", column, value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter("in", column, list(values))


def lt(column: str, value: Any) -> Filter:
    return Filter("lt", column, value)


def gte(column: str, value: Any) -> Filter:
    return Filter("gte", column, value)


class SupabaseStore:
    """
    Data store collaborator: get / insert / update / delete with simple filters.

    No call spans more than one request to PostgREST, so there are no
    transactions across calls. Every failure surfaces as Unavailable.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _apply(self, query, filters: Sequence[Filter]):
        for f in filters:
            if f.op == "eq":
                query = query.eq(f.column, f.value)
            elif f.op == "contains":
                query = query.contains(f.column, [f.value])
            elif f.op == "in":
                query = query.in_(f.column, f.value)
            elif f.op == "lt":
                query = query.lt(f.column, f.value)
            elif f.op == "gte":
                query = query.gte(f.column, f.value)
            else:
                raise ValueError(f"Unsupported filter op: {f.op}")
        return query

    def get(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        single: bool = False,
        order: Optional[str] = None,
        desc: bool = False,
        columns: str = "*",
    ):
        """Return a list of rows, or the first row (None when absent) if single=True."""
        try:
            query = self._apply(self.supabase.table(table).select(columns), filters)
            if order:
                query = query.order(order, desc=desc)
            if single:
                query = query.limit(1)
            result = query.execute()
        except Exception as e:
            logger.error(f"Data store read failed on {table}: {e}")
            raise Unavailable(f"read {table}: {e}") from e
        rows = result.data or []
        if single:
            return rows[0] if rows else None
        return rows

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table(table).insert(row).execute()
        except Exception as e:
            logger.error(f"Data store insert failed on {table}: {e}")
            raise Unavailable(f"insert {table}: {e}") from e
        if not result.data:
            raise Unavailable(f"insert {table}: no row returned")
        return result.data[0]

    def update(self, table: str, filters: Sequence[Filter], patch: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("update requires at least one filter")
        try:
            result = self._apply(self.supabase.table(table).update(patch), filters).execute()
        except Exception as e:
            logger.error(f"Data store update failed on {table}: {e}")
            raise Unavailable(f"update {table}: {e}") from e
        return result.data or []

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        if not filters:
            raise ValueError("delete requires at least one filter")
        try:
            result = self._apply(self.supabase.table(table).delete(), filters).execute()
        except Exception as e:
            logger.error(f"Data store delete failed on {table}: {e}")
            raise Unavailable(f"delete {table}: {e}") from e
        return len(result.data or [])


def get_store() -> SupabaseStore:
    return SupabaseStore(SupabaseClient.get_service_client())
