"""
Helpers shared by every service that writes to Supabase tables.

All timestamps are epoch milliseconds stamped here, never by the caller.
Counter-bearing rows carry an integer ``revision`` used for conditional writes:
the update only applies when the stored revision still matches the one read.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from supabase import Client

from app.core.errors import ConcurrentModification, NotFound

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000

# Returns the fields to write, or None when nothing needs to change.
Mutation = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


def now_ms() -> int:
    return int(time.time() * 1000)


def to_datetime(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def new_record(data: Dict[str, Any], now: Optional[int] = None, with_revision: bool = False) -> Dict[str, Any]:
    """Copy of data with id, created_at and updated_at stamped."""
    stamp = now if now is not None else now_ms()
    record = dict(data)
    record.setdefault("id", str(uuid.uuid4()))
    record["created_at"] = stamp
    record["updated_at"] = stamp
    if with_revision:
        record["revision"] = 0
    return record


def insert_record(supabase: Client, table: str, data: Dict[str, Any], now: Optional[int] = None, with_revision: bool = False) -> Dict[str, Any]:
    record = new_record(data, now=now, with_revision=with_revision)
    result = supabase.table(table).insert(record).execute()
    if not result.data:
        raise RuntimeError(f"Insert into {table} returned no row")
    return result.data[0]


def fetch_one(supabase: Client, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
    query = supabase.table(table).select("*")
    for column, value in filters.items():
        query = query.eq(column, value)
    result = query.limit(1).execute()
    return result.data[0] if result.data else None


def fetch_all(supabase: Client, table: str, order_by: Optional[str] = None, desc: bool = True, **filters: Any) -> List[Dict[str, Any]]:
    query = supabase.table(table).select("*")
    for column, value in filters.items():
        query = query.eq(column, value)
    if order_by:
        query = query.order(order_by, desc=desc)
    result = query.execute()
    return result.data or []


def update_record(supabase: Client, table: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    payload = dict(changes)
    payload["updated_at"] = now_ms()
    result = supabase.table(table).update(payload).eq("id", record_id).execute()
    return result.data[0] if result.data else None


def delete_record(supabase: Client, table: str, record_id: str) -> None:
    supabase.table(table).delete().eq("id", record_id).execute()


def count_with_ballot(
    supabase: Client,
    ballot_table: str,
    ballot: Dict[str, Any],
    counter_table: str,
    record_id: str,
    mutate: Mutation,
    entity: str,
    max_attempts: int = 5,
) -> Dict[str, Any]:
    """
    Counter update for a ballot row that was just inserted.

    If the counter cannot be moved the ballot row is deleted again, so the
    member is not locked out with a vote that was never counted.
    """
    try:
        return conditional_update(supabase, counter_table, record_id, mutate, entity=entity, max_attempts=max_attempts)
    except Exception:
        logger.warning(f"Counter update on {counter_table}/{record_id} failed, removing ballot {ballot['id']}")
        try:
            delete_record(supabase, ballot_table, ballot["id"])
        except Exception:
            logger.exception(f"Could not remove ballot {ballot_table}/{ballot['id']}")
        raise


def conditional_update(
    supabase: Client,
    table: str,
    record_id: str,
    mutate: Mutation,
    entity: str,
    max_attempts: int = 5,
) -> Dict[str, Any]:
    """
    Read-modify-write guarded by the row revision.

    ``mutate`` receives the current row and may raise a validation error
    (AlreadyVoted, NotVoted...). A zero-row update means another writer bumped
    the revision first; the whole cycle is then replayed on a fresh read.
    """
    for attempt in range(1, max_attempts + 1):
        row = fetch_one(supabase, table, id=record_id)
        if row is None:
            raise NotFound(entity)
        changes = mutate(row)
        if changes is None:
            return row
        revision = row.get("revision") or 0
        payload = dict(changes)
        payload["revision"] = revision + 1
        payload["updated_at"] = now_ms()
        result = supabase.table(table)\
            .update(payload)\
            .eq("id", record_id)\
            .eq("revision", revision)\
            .execute()
        if result.data:
            return result.data[0]
        logger.info(f"Revision conflict on {table}/{record_id} (attempt {attempt}/{max_attempts})")
    raise ConcurrentModification(f"{entity} was modified concurrently, please try again")
