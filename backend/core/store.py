"""
Record store client - owner-scoped reads over Supabase tables.

Every read is filtered by the owning user's id here, so the pure
computations downstream never filter by owner themselves. Read failures
surface as FetchError and write failures as WriteError; rows that do not
fit their model surface as DataIntegrityError.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar, Union

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError

from core.database import get_supabase_admin
from core.errors import FetchError, DataIntegrityError, WriteError

ModelT = TypeVar("ModelT", bound=BaseModel)


def fetch_rows(
    table: str,
    user_id: str,
    status: Optional[Union[str, Sequence[str]]] = None,
    columns: str = "*",
    order_by: Optional[str] = None,
    desc: bool = False,
    limit: Optional[int] = None,
    owner_column: str = "user_id",
    filters: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """Fetch all rows of `table` owned by `user_id`, optionally filtered by status
    and exact-match `filters` (e.g. {"client_id": ...})."""
    try:
        db = get_supabase_admin()
        query = db.table(table).select(columns).eq(owner_column, user_id)

        if isinstance(status, str):
            query = query.eq("status", status)
        elif status:
            query = query.in_("status", list(status))
        for column, value in (filters or {}).items():
            query = query.eq(column, value)

        if order_by:
            query = query.order(order_by, desc=desc)
        if limit:
            query = query.limit(limit)

        result = query.execute()
    except (APIError, httpx.HTTPError) as e:
        print(f"[Store] Fetch failed for {table} (user={user_id}): {e}")
        raise FetchError(table, str(e)) from e

    return result.data or []


def fetch_one(table: str, row_id: str, user_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
    """Fetch a single owned row by id. Returns None if it does not exist for this user."""
    try:
        db = get_supabase_admin()
        result = db.table(table).select(columns).eq(
            "id", row_id
        ).eq("user_id", user_id).limit(1).execute()
    except (APIError, httpx.HTTPError) as e:
        print(f"[Store] Fetch failed for {table}/{row_id}: {e}")
        raise FetchError(table, str(e)) from e

    return result.data[0] if result.data else None


def fetch_children(table: str, parent_column: str, parent_id: str) -> List[Dict[str, Any]]:
    """Fetch rows owned through a parent (e.g. invoice_items by invoice_id)."""
    try:
        db = get_supabase_admin()
        result = db.table(table).select("*").eq(parent_column, parent_id).order("position").execute()
    except (APIError, httpx.HTTPError) as e:
        print(f"[Store] Fetch failed for {table} ({parent_column}={parent_id}): {e}")
        raise FetchError(table, str(e)) from e

    return result.data or []


def parse_row(model: Type[ModelT], row: Dict[str, Any]) -> ModelT:
    """Validate a store row into a model; invalid rows are integrity errors."""
    try:
        return model(**row)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        print(f"[Store] Invalid {model.__name__} row id={row.get('id')}: {fields}")
        raise DataIntegrityError(
            f"Stored {model.__name__} record is invalid",
            details={"id": row.get("id"), "fields": fields}
        ) from e


def parse_rows(model: Type[ModelT], rows: Iterable[Dict[str, Any]]) -> List[ModelT]:
    """Validate a batch of rows; the first invalid row aborts the batch."""
    return [parse_row(model, row) for row in rows]


def execute_write(table: str, query) -> List[Dict[str, Any]]:
    """Run a prepared insert/update/upsert/delete and return the affected rows."""
    try:
        result = query.execute()
    except (APIError, httpx.HTTPError) as e:
        print(f"[Store] Write failed for {table}: {e}")
        raise WriteError(table, str(e)) from e

    return result.data or []
