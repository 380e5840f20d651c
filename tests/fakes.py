"""
In-memory stand-ins for the Supabase clients used by the services.

FakeSupabase implements the slice of the postgrest query builder the app
calls (select/insert/update/delete, eq/neq/in_/gt/gte/lt/lte, order, limit,
offset, execute) plus a tiny ``auth`` namespace. Unique keys raise the same
``postgrest.exceptions.APIError`` (code 23505) PostgREST would.
"""

import asyncio
import copy
import itertools
from types import SimpleNamespace

from postgrest.exceptions import APIError

UNIQUE_KEYS = {
    "user_profiles": [("uid",)],
    "monthly_selections": [("month", "year")],
    "final_user_votes": [("user_id", "final_vote_id")],
    "user_votes": [("user_id", "vote_id")],
    "application_votes": [("voter_id", "application_id")],
}


class FakeResult:
    def __init__(self, data):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_limit = None
        self.row_offset = 0

    def select(self, columns="*", **kwargs):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def _filter(self, column, predicate):
        self.filters.append((column, predicate))
        return self

    def eq(self, column, value):
        return self._filter(column, lambda v: v == value)

    def neq(self, column, value):
        return self._filter(column, lambda v: v != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(column, lambda v: v in values)

    def gt(self, column, value):
        return self._filter(column, lambda v: v is not None and v > value)

    def gte(self, column, value):
        return self._filter(column, lambda v: v is not None and v >= value)

    def lt(self, column, value):
        return self._filter(column, lambda v: v is not None and v < value)

    def lte(self, column, value):
        return self._filter(column, lambda v: v is not None and v <= value)

    def order(self, column, desc=False, **kwargs):
        self.orders.append((column, desc))
        return self

    def limit(self, size):
        self.row_limit = size
        return self

    def offset(self, size):
        self.row_offset = size
        return self

    def _matches(self, row):
        return all(predicate(row.get(column)) for column, predicate in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self):
        self.db.check_failure(self.table, self.op)
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for record in payload:
                record = copy.deepcopy(record)
                self.db.check_unique(self.table, record)
                rows.append(record)
                inserted.append(copy.deepcopy(record))
            return FakeResult(inserted)

        if self.op == "update":
            self.db.run_before_update(self.table)
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResult(updated)

        if self.op == "delete":
            kept = [row for row in rows if not self._matches(row)]
            removed = [copy.deepcopy(row) for row in rows if self._matches(row)]
            self.db.tables[self.table] = kept
            return FakeResult(removed)

        selected = [row for row in rows if self._matches(row)]
        # Python's sort is stable, so applying keys last-to-first gives multi-column ordering
        for column, desc in reversed(self.orders):
            selected.sort(key=lambda row: row.get(column), reverse=desc)
        selected = selected[self.row_offset:]
        if self.row_limit is not None:
            selected = selected[:self.row_limit]
        return FakeResult([self._project(row) for row in selected])


class FakeAuth:
    def __init__(self):
        self.users_by_token = {}
        self.accounts = {}
        self.signed_out = 0
        self._ids = itertools.count(1)

    def add_user(self, token, uid, email, display_name=None):
        metadata = {"display_name": display_name} if display_name else {}
        self.users_by_token[token] = SimpleNamespace(
            id=uid, email=email, user_metadata=metadata, app_metadata={}
        )

    def get_user(self, jwt=None):
        user = self.users_by_token.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.accounts:
            raise Exception("User already registered")
        user = SimpleNamespace(id=f"user-{next(self._ids)}", email=email)
        self.accounts[email] = (credentials["password"], user)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = account[1]
        token = f"token-{user.id}"
        self.users_by_token[token] = SimpleNamespace(
            id=user.id, email=user.email, user_metadata={}, app_metadata={}
        )
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))

    def sign_out(self):
        self.signed_out += 1


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.auth = FakeAuth()
        self.failures = []
        self.before_update = {}

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, table):
        return copy.deepcopy(self.tables.get(table, []))

    def seed(self, table, *records):
        for record in records:
            self.tables.setdefault(table, []).append(copy.deepcopy(record))

    def fail_on(self, table, op, after=0, error=None):
        """Make the (after+1)-th matching call raise"""
        self.failures.append({
            "table": table, "op": op, "remaining": after,
            "error": error or RuntimeError(f"{op} on {table} unavailable"),
        })

    def check_failure(self, table, op):
        for failure in self.failures:
            if failure["table"] == table and failure["op"] == op:
                if failure["remaining"] == 0:
                    self.failures.remove(failure)
                    raise failure["error"]
                failure["remaining"] -= 1

    def on_update(self, table, hook, times=1):
        """Run hook(self) right before the next `times` updates of table (a concurrent writer)"""
        self.before_update[table] = [hook, times]

    def run_before_update(self, table):
        pending = self.before_update.get(table)
        if not pending or pending[1] == 0:
            return
        pending[1] -= 1
        hook = pending[0]
        # The hook may itself update the table; do not recurse into it
        self.before_update[table] = [hook, 0]
        hook(self)
        self.before_update[table] = [hook, pending[1]]

    def bump_revision(self, table, record_id):
        for row in self.tables.get(table, []):
            if row["id"] == record_id:
                row["revision"] = row.get("revision", 0) + 1

    def check_unique(self, table, record):
        rows = self.tables.get(table, [])
        for key in [("id",)] + UNIQUE_KEYS.get(table, []):
            if all(column in record for column in key):
                for row in rows:
                    if all(row.get(column) == record[column] for column in key):
                        raise APIError({
                            "message": f'duplicate key value violates unique constraint "{table}_{"_".join(key)}_key"',
                            "code": "23505",
                            "hint": None,
                            "details": None,
                        })


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.bindings = []
        self.subscribed = False

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.bindings.append({"event": event, "callback": callback, "table": table, "schema": schema})
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        return self


class FakeAsyncClient:
    """Realtime side of the async client: channels and postgres_changes delivery"""

    def __init__(self):
        self.channels = []
        self.removed = []

    def channel(self, name, params=None):
        channel = FakeChannel(name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        channel.subscribed = False
        self.removed.append(channel)

    def emit(self, table, event_type="UPDATE", record=None):
        payload = {"data": {"table": table, "type": event_type, "record": record or {}}}
        for channel in list(self.channels):
            for binding in channel.bindings:
                if binding["table"] == table:
                    binding["callback"](payload)

    @property
    def open_channels(self):
        return [channel for channel in self.channels if channel.subscribed]


async def settle():
    """Let queued callbacks and tasks run"""
    for _ in range(5):
        await asyncio.sleep(0)

# 2024-03-15T12:00:00Z
NOW = 1710504000000
DAY_MS = 24 * 60 * 60 * 1000


def make_profile(uid, role="member", display_name=None, joined_at=NOW - 60 * DAY_MS, last_active=NOW):
    return {
        "id": uid,
        "uid": uid,
        "email": f"{uid}@example.com",
        "display_name": display_name or uid.capitalize(),
        "avatar": None,
        "role": role,
        "joined_at": joined_at,
        "last_active": last_active,
        "created_at": joined_at,
        "updated_at": joined_at,
    }


def auth(token="token-alice"):
    return {"Authorization": f"Bearer {token}"}
