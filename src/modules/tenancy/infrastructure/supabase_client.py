"""Minimal async client for a Supabase project (PostgREST + GoTrue)."""

import asyncio
from dataclasses import dataclass
from typing import Any, Literal

import aiohttp
from pydantic import SecretStr

from src.utils.logger import get_logger

logger = get_logger(__name__)

FilterOperator = Literal["eq", "ilike", "in"]


class SupabaseError(Exception):
    """A store could not be reached or answered with something unusable."""


@dataclass(frozen=True)
class StoreConnection:
    """Where a Supabase project lives and which key to talk to it with."""

    url: str
    key: SecretStr

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


@dataclass(frozen=True)
class QueryFilter:
    column: str
    operator: FilterOperator
    value: Any

    def to_param(self) -> tuple[str, str]:
        if self.operator == "in":
            values = ",".join(f'"{v}"' for v in self.value)
            return self.column, f"in.({values})"
        if self.operator == "ilike":
            return self.column, f"ilike.{escape_like(str(self.value))}"
        return self.column, f"eq.{self.value}"


@dataclass
class AuthResult:
    """Outcome of a password sign-in against a project's identity provider."""

    session: dict | None
    user: dict | None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.session is not None and self.error_message is None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` matches the literal value."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def extract_error_message(payload: Any) -> str | None:
    """Pull the human message out of a GoTrue/PostgREST error body."""
    if not isinstance(payload, dict):
        return None
    for key in ("msg", "message", "error_description", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class SupabaseClient:
    """Talks to one Supabase project with one key.

    A new ``aiohttp.ClientSession`` is opened per call; clients are cheap and
    are built per request by :class:`SupabaseClientFactory`.
    """

    def __init__(self, connection: StoreConnection, timeout: int = 30):
        self.connection = connection
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        key = self.connection.key.get_secret_value()
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: dict | None = None,
    ) -> tuple[int, Any]:
        url = f"{self.connection.base_url}{path}"
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.request(
                    method, url, params=params, json=json, headers=self._headers()
                ) as response:
                    payload = await response.json(content_type=None)
                    return response.status, payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Supabase request failed: {method} {path}: {e!r}")
            raise SupabaseError(f"Store unavailable: {e}") from e
        except ValueError as e:
            logger.error(f"Supabase returned undecodable body: {method} {path}")
            raise SupabaseError(f"Invalid response from store: {e}") from e

    async def select(
        self,
        table: str,
        columns: str,
        filters: list[QueryFilter],
        limit: int | None = None,
    ) -> list[dict]:
        """Select rows from ``table`` matching every filter."""
        params = [("select", columns)]
        params.extend(f.to_param() for f in filters)
        if limit is not None:
            params.append(("limit", str(limit)))

        status, payload = await self._request("GET", f"/rest/v1/{table}", params=params)
        if status >= 400:
            message = extract_error_message(payload) or f"HTTP {status}"
            raise SupabaseError(f"Query on {table} failed: {message}")
        if not isinstance(payload, list):
            raise SupabaseError(f"Query on {table} returned a non-list body")
        return payload

    async def select_single(
        self, table: str, columns: str, filters: list[QueryFilter]
    ) -> dict | None:
        """Return the row when exactly one matches, otherwise ``None``."""
        rows = await self.select(table, columns, filters, limit=2)
        if len(rows) != 1:
            return None
        return rows[0]

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        """Password grant against the project's identity provider.

        HTTP-level rejections come back as a failed :class:`AuthResult`;
        only transport failures raise.
        """
        status, payload = await self._request(
            "POST",
            "/auth/v1/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
        )
        if status >= 400:
            return AuthResult(
                session=None, user=None, error_message=extract_error_message(payload)
            )
        if not isinstance(payload, dict) or not payload.get("access_token"):
            return AuthResult(session=None, user=None)

        return AuthResult(session=payload, user=payload.get("user"))

    async def ping(self) -> bool:
        """True when the REST endpoint answers without a server error."""
        status, _ = await self._request("GET", "/rest/v1/")
        return status < 500


class SupabaseClientFactory:
    """Builds a client from a connection resolved at request time."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    def create(self, connection: StoreConnection) -> SupabaseClient:
        return SupabaseClient(connection, timeout=self.timeout)
