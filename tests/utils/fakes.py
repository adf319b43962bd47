"""In-memory stand-ins for Supabase projects and the rate limiter."""

import uuid
from collections import defaultdict
from dataclasses import dataclass, field

from src.api.core.constants import LOOKUP_RATE_LIMIT, LOOKUP_RATE_LIMIT_WINDOW_SECONDS
from src.api.core.models.rate_limit import RateLimitResult
from src.modules.tenancy.infrastructure.supabase_client import (
    AuthResult,
    QueryFilter,
    StoreConnection,
    SupabaseError,
)


@dataclass
class FakeStore:
    """One Supabase project: tables for PostgREST, users for GoTrue."""

    tables: dict[str, list[dict]] = field(default_factory=lambda: defaultdict(list))
    users: dict[str, dict] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[tuple] = field(default_factory=list)

    def add_user(self, email: str, password: str) -> dict:
        user = {"id": str(uuid.uuid4()), "email": email.lower(), "aud": "authenticated"}
        self.users[email.lower()] = {"password": password, "user": user}
        return user

    def count(self, method: str, table: str | None = None) -> int:
        return sum(
            1
            for call in self.calls
            if call[0] == method and (table is None or call[1] == table)
        )


def _matches(row: dict, query_filter: QueryFilter) -> bool:
    value = row.get(query_filter.column)
    if query_filter.operator == "in":
        return str(value) in {str(v) for v in query_filter.value}
    if query_filter.operator == "ilike":
        return str(value).lower() == str(query_filter.value).lower()
    return str(value) == str(query_filter.value)


class FakeSupabaseClient:
    def __init__(self, store: FakeStore, connection: StoreConnection):
        self.store = store
        self.connection = connection

    def _check(self) -> None:
        if self.store.error is not None:
            raise self.store.error

    async def select(self, table, columns, filters, limit=None):
        self.store.calls.append(("select", table, tuple(filters)))
        self._check()
        wanted = [c.strip() for c in columns.split(",")]
        rows = [
            {c: row.get(c) for c in wanted}
            for row in self.store.tables[table]
            if all(_matches(row, f) for f in filters)
        ]
        return rows[:limit] if limit is not None else rows

    async def select_single(self, table, columns, filters):
        rows = await self.select(table, columns, filters, limit=2)
        return rows[0] if len(rows) == 1 else None

    async def sign_in_with_password(self, email, password):
        self.store.calls.append(("sign_in", email))
        self._check()
        account = self.store.users.get(email.lower())
        if account is None or account["password"] != password:
            return AuthResult(
                session=None, user=None, error_message="Invalid login credentials"
            )
        session = {
            "access_token": uuid.uuid4().hex,
            "refresh_token": uuid.uuid4().hex,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": account["user"],
        }
        return AuthResult(session=session, user=account["user"])

    async def ping(self):
        self.store.calls.append(("ping",))
        self._check()
        return True


class FakeClientFactory:
    """Routes each connection URL to its own :class:`FakeStore`."""

    def __init__(self):
        self.stores: dict[str, FakeStore] = defaultdict(FakeStore)
        self.connections: list[StoreConnection] = []

    def store(self, url: str) -> FakeStore:
        return self.stores[url.rstrip("/")]

    def create(self, connection: StoreConnection) -> FakeSupabaseClient:
        self.connections.append(connection)
        return FakeSupabaseClient(self.store(connection.url), connection)


class InMemoryRateLimiter:
    """Fixed counter per key, no clock."""

    def __init__(
        self,
        limit: int = LOOKUP_RATE_LIMIT,
        window_seconds: int = LOOKUP_RATE_LIMIT_WINDOW_SECONDS,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.counts: dict[str, int] = defaultdict(int)

    async def hit(self, key):
        allowed = self.counts[key] < self.limit
        if allowed:
            self.counts[key] += 1
        return RateLimitResult(
            is_allowed=allowed,
            current_count=self.counts[key],
            retry_after=0 if allowed else self.window_seconds,
            key=key,
            limit=self.limit,
            window_seconds=self.window_seconds,
        )


__all__ = [
    "FakeStore",
    "FakeSupabaseClient",
    "FakeClientFactory",
    "InMemoryRateLimiter",
    "SupabaseError",
]
