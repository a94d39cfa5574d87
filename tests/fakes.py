# =============================================================================
# tests/fakes.py - In-Memory Test Doubles
# =============================================================================
# FakeSupabase mimics the parts of the supabase-py query builder the
# services use (table/select/insert/update/delete/upsert, eq/is_/in_
# filters, order/limit/single, rpc, auth.admin.get_user_by_id) on top of
# plain dicts, so service tests can assert on resulting table contents.
#
# FakeS3 records put/delete calls and can be told to fail for given keys.
# =============================================================================

import itertools
import uuid
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Callable


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


class FakeQuery:
    """One chained query against a FakeSupabase table."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list[Callable[[dict], bool]] = []
        self.order_by: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.want_single = False
        self.want_count = False

    # -- operations ---------------------------------------------------------

    def select(self, columns: str = "*", count: str | None = None):
        self.operation = "select"
        self.want_count = count is not None
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def upsert(self, payload, on_conflict: str | None = None):
        self.operation = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    # -- filters ------------------------------------------------------------

    def eq(self, column: str, value):
        self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def neq(self, column: str, value):
        self.filters.append(lambda row: not _same(row.get(column), value))
        return self

    def is_(self, column: str, value):
        if value in ("null", None):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def in_(self, column: str, values):
        wanted = {str(v) for v in values}
        self.filters.append(lambda row: str(row.get(column)) in wanted)
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by.append((column, desc))
        return self

    def limit(self, n: int):
        self.row_limit = n
        return self

    def single(self):
        self.want_single = True
        return self

    # -- execution ----------------------------------------------------------

    def _matching(self) -> list[dict]:
        rows = self.db.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def execute(self) -> FakeResponse:
        self.db.check_failure(self.table_name, self.operation)
        if self.operation in ("update", "delete"):
            for row in self._matching():
                self.db.check_failure(self.table_name, self.operation, row.get("id"))
        handler = getattr(self, f"_run_{self.operation}")
        return handler()

    def _run_select(self) -> FakeResponse:
        rows = self._matching()
        for column, desc in reversed(self.order_by):
            rows = sorted(rows, key=lambda r: (r.get(column) is None, str(r.get(column))), reverse=desc)
        total = len(rows)
        if self.row_limit is not None:
            rows = rows[: self.row_limit]
        rows = [dict(row) for row in rows]

        if self.want_single:
            if len(rows) != 1:
                raise Exception(
                    "{'code': 'PGRST116', 'message': 'JSON object requested, "
                    "multiple (or no) rows returned'}"
                )
            return FakeResponse(data=rows[0], count=total if self.want_count else None)
        return FakeResponse(data=rows, count=total if self.want_count else None)

    def _run_insert(self) -> FakeResponse:
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = [self.db.add(self.table_name, row) for row in payload]
        return FakeResponse(data=[dict(row) for row in inserted])

    def _run_update(self) -> FakeResponse:
        updated = []
        for row in self._matching():
            row.update(self.payload)
            updated.append(dict(row))
        return FakeResponse(data=updated)

    def _run_delete(self) -> FakeResponse:
        matched = self._matching()
        ids = {id(row) for row in matched}
        self.db.tables[self.table_name] = [
            row for row in self.db.tables.get(self.table_name, []) if id(row) not in ids
        ]
        return FakeResponse(data=[dict(row) for row in matched])

    def _run_upsert(self) -> FakeResponse:
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        result = []
        for item in payload:
            existing = next(
                (
                    row for row in self.db.tables.setdefault(self.table_name, [])
                    if all(_same(row.get(k), item.get(k)) for k in keys)
                ),
                None,
            )
            if existing is not None:
                existing.update(item)
                result.append(dict(existing))
            else:
                result.append(dict(self.db.add(self.table_name, item)))
        return FakeResponse(data=result)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, self.params))
        self.db.check_failure("rpc", self.name)
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise Exception(f"Could not find the function public.{self.name}")
        return FakeResponse(data=handler(self.db, **self.params))


class FakeSupabase:
    """
    In-memory stand-in for a supabase Client.

    Example:
        db = FakeSupabase()
        db.add("projects", {"id": "p1", "user_id": "u1", "name": "Shoot"})
        db.fail("images", "delete")           # next image deletes raise
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.rpc_calls: list[tuple[str, dict]] = []
        self.failures: set[tuple[str, str, str | None]] = set()
        self.users: dict[str, str] = {}
        self._clock = itertools.count(1)
        self.rpc_handlers: dict[str, Callable[..., Any]] = {
            "increment_storage_usage": _rpc_increment_storage_usage,
            "is_username_available": _rpc_is_username_available,
        }
        self.auth = SimpleNamespace(admin=SimpleNamespace(get_user_by_id=self._get_user_by_id))

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict | None = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    # -- helpers for tests --------------------------------------------------

    def add(self, table: str, row: dict) -> dict:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        tick = next(self._clock)
        stored.setdefault("created_at", f"2024-01-01T{tick // 3600:02d}:{tick // 60 % 60:02d}:{tick % 60:02d}+00:00")
        self.tables.setdefault(table, []).append(stored)
        return stored

    def rows(self, table: str, **filters) -> list[dict]:
        return [
            row for row in self.tables.get(table, [])
            if all(_same(row.get(k), v) for k, v in filters.items())
        ]

    def get(self, table: str, row_id: str) -> dict | None:
        matches = self.rows(table, id=row_id)
        return matches[0] if matches else None

    def fail(self, table: str, operation: str, row_id: str | None = None) -> None:
        """Make an operation raise; with row_id, only when it touches that row."""
        self.failures.add((table, operation, str(row_id) if row_id else None))

    def check_failure(self, table: str, operation: str, row_id: str | None = None) -> None:
        key = (table, operation, str(row_id) if row_id else None)
        if key in self.failures:
            raise Exception(f"Simulated {operation} failure on {table}")

    def add_user(self, user_id: str, email: str) -> None:
        self.users[str(user_id)] = email

    def _get_user_by_id(self, user_id: str):
        email = self.users.get(str(user_id))
        if email is None:
            raise Exception("User not found")
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))


def _same(left, right) -> bool:
    if left is None or right is None:
        return left is right
    return str(left) == str(right)


def _rpc_increment_storage_usage(db: FakeSupabase, user_id: str, size_mb: float):
    for row in db.rows("profiles", id=user_id):
        row["total_size_mb"] = float(row.get("total_size_mb") or 0) + size_mb
    return None


def _rpc_is_username_available(db: FakeSupabase, username: str):
    return not db.rows("profiles", username=username)


class FakeS3:
    """Records S3 calls; keys in fail_keys raise on delete."""

    def __init__(self):
        self.deleted: list[str] = []
        self.fail_keys: set[str] = set()
        self.presigned: list[tuple[str, dict]] = []

    def generate_presigned_url(self, ClientMethod: str, Params: dict, ExpiresIn: int, **kwargs) -> str:
        self.presigned.append((ClientMethod, {**Params, "ExpiresIn": ExpiresIn}))
        return f"https://bucket.s3.amazonaws.com/{Params['Key']}?X-Amz-Expires={ExpiresIn}&op={ClientMethod}"

    def delete_object(self, Bucket: str, Key: str, **kwargs) -> dict:
        if Key in self.fail_keys:
            raise Exception(f"AccessDenied for {Key}")
        self.deleted.append(Key)
        return {}

    def head_bucket(self, Bucket: str) -> dict:
        return {}


# =============================================================================
# Sample Rows
# =============================================================================

OWNER_ID = "11111111-1111-1111-1111-111111111111"
COLLABORATOR_ID = "22222222-2222-2222-2222-222222222222"
STRANGER_ID = "33333333-3333-3333-3333-333333333333"
PROJECT_ID = "44444444-4444-4444-4444-444444444444"
PLAN_ID = "55555555-5555-5555-5555-555555555555"


def add_folder(db: FakeSupabase, name: str, parent_id: str | None = None, project_id: str = PROJECT_ID) -> dict:
    return db.add("folders", {"name": name, "project_id": project_id, "parent_id": parent_id})


def add_image(
    db: FakeSupabase,
    folder_id: str | None = None,
    size_bytes: int = 1_000_000,
    user_id: str = OWNER_ID,
    project_id: str = PROJECT_ID,
    name: str = "still.jpg",
) -> dict:
    """Insert an image row whose s3_key follows the real key layout."""
    row = db.add("images", {
        "project_id": project_id,
        "folder_id": folder_id,
        "user_id": user_id,
        "file_name": name,
        "file_size_bytes": size_bytes,
        "mime_type": "image/jpeg",
        "is_approved": False,
    })
    segments = [user_id, project_id] + ([folder_id] if folder_id else []) + [f"{row['id']}{name}"]
    row["s3_key"] = "/".join(segments)
    return row
