# =============================================================================
# lib/supabase_client.py - Supabase Data-Access Gateway
# =============================================================================
# This module wraps the Supabase SDK behind a small set of table-level
# operations used by every service:
# - select / insert / update / delete / count against a table
# - invoke for server-side (edge) functions
# - subscribe for realtime change notifications on a table
# - probe for a cheap connectivity check
#
# One gateway instance is created at startup and handed to services through
# the request's AppContext (see app/dependencies.py). There is no retry or
# backoff: every failure is raised as SupabaseClientError to the caller.
#
# Usage:
#   gateway = SupabaseGateway(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
#   rows = gateway.select("customers", order="name")
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Callable
from uuid import UUID

from supabase import AsyncClient, Client, acreate_client, create_client

from lib.utils import normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)

# Error fragments that mean "reached the database, but the table isn't set up"
_CONNECTED_BUT_UNCONFIGURED = (
    "does not exist",
    "permission denied",
    "failed to parse",
)


class ConfigurationError(Exception):
    """Raised when the gateway is created without its connection secrets."""


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Errors should tell HOW to fix, not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to API response dict."""
        result = {"detail": self.message, "code": self.code}
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


class RemoteFunctionError(SupabaseClientError):
    """
    A server-side function reported failure.

    Functions answer with JSON. Version 1 of the error contract is a single
    string under "error", e.g. {"error": "Item 42 has insufficient stock"};
    it arrives either as the body of a non-2xx response or as a 2xx body
    that carries the "error" key.
    """

    def __init__(self, function_name: str, message: str):
        super().__init__(
            message=message,
            code="FUNCTION_FAILED",
            suggestion=f"Check the '{function_name}' function logs in Supabase",
            details={"function": function_name},
        )
        self.function_name = function_name


def parse_function_result(function_name: str, raw: Any) -> dict[str, Any]:
    """
    Decode a function response body and raise if it carries an error.

    Args:
        function_name: Name of the invoked function (for error context)
        raw: Body returned by the SDK (bytes, str, dict or None)

    Returns:
        The decoded JSON object ({} for an empty body)

    Raises:
        RemoteFunctionError: If the body is a version 1 error payload
    """
    if raw is None or raw == b"" or raw == "":
        return {}
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return {"message": raw}
    if not isinstance(raw, dict):
        return {"result": raw}
    if raw.get("error"):
        raise RemoteFunctionError(function_name, str(raw["error"]))
    return raw


class SupabaseGateway:
    """
    Table-level wrapper around one authenticated Supabase connection.

    The synchronous SDK client serves request-time reads and writes; an
    async client is opened lazily the first time a realtime subscription
    is requested, since realtime channels need an event loop.
    """

    def __init__(self, url: str | None, key: str | None):
        if not url or not key:
            raise ConfigurationError(
                "Missing Supabase environment variables. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY in your .env file."
            )
        self.url = url
        self.key = key
        self._client: Client | None = None
        self._async_client: AsyncClient | None = None
        self._channels: list[Any] = []

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def get_client(self) -> Client:
        """
        Get or create the Supabase client for this gateway.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if self._client is None:
            try:
                self._client = create_client(self.url, self.key)
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
                )
        return self._client

    def probe(self) -> bool:
        """
        Check that the database answers.

        A missing table or a permission error still proves the connection
        works, so those count as connected.
        """
        try:
            self.get_client().table("customers").select("*").limit(1).execute()
            logger.debug("Supabase connected successfully")
            return True
        except Exception as e:
            text = str(e)
            if any(fragment in text for fragment in _CONNECTED_BUT_UNCONFIGURED):
                logger.info("Supabase connected (but customers table needs setup)")
                return True
            logger.error(f"Supabase connection failed: {text}")
            return False

    # -------------------------------------------------------------------------
    # Table Operations
    # -------------------------------------------------------------------------

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, list[Any]] | None = None,
        order: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Read rows from a table.

        Args:
            table: Table name
            columns: PostgREST column list, may embed joins
                     (e.g. "*, customer:customers(name)")
            eq: Column -> value equality filters
            in_: Column -> allowed values filters
            order: Column to order by
            desc: Descending order
            limit: Maximum rows

        Returns:
            List of row dicts (empty if none match)

        Raises:
            SupabaseClientError: If the query fails
        """
        query = self.get_client().table(table).select(columns)
        for column, value in (eq or {}).items():
            query = query.eq(column, normalize_uuid(value))
        for column, values in (in_ or {}).items():
            query = query.in_(column, [normalize_uuid(v) for v in values])
        if order:
            query = query.order(order, desc=desc)
        if limit is not None:
            query = query.limit(limit)

        try:
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to load {table}: {e}",
                code="SELECT_FAILED",
                suggestion=f"Check that the {table} table exists and is readable",
                details={"table": table},
            )

        rows = response.data or []
        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    def select_one(
        self,
        table: str,
        row_id: str | UUID,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Fetch a single row by id, or None if it doesn't exist."""
        rows = self.select(table, columns, eq={"id": row_id}, limit=1)
        return rows[0] if rows else None

    def insert(
        self,
        table: str,
        rows: dict[str, Any] | list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """
        Insert one or more rows and return them as stored.

        Raises:
            SupabaseClientError: If the insert fails or returns nothing
        """
        payload = rows if isinstance(rows, list) else [rows]
        try:
            response = self.get_client().table(table).insert(payload).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create {table} row: {e}",
                code="INSERT_FAILED",
                details={"table": table, "rows": len(payload)},
            )

        if not response.data:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_EMPTY",
                suggestion="Check that the row-level policy allows reading inserted rows",
                details={"table": table},
            )

        logger.info(f"Inserted {len(response.data)} row(s) into {table}")
        return response.data

    def update(
        self,
        table: str,
        row_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update a row by id.

        Returns:
            The updated row, or None if no row has that id

        Raises:
            SupabaseClientError: If the update fails
        """
        row_id_str = normalize_uuid(row_id)
        try:
            response = (
                self.get_client().table(table)
                .update(data)
                .eq("id", row_id_str)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table} row: {e}",
                code="UPDATE_FAILED",
                details={"table": table, "id": row_id_str},
            )

        if response.data:
            logger.info(f"Updated {table} row: {row_id_str}")
            return response.data[0]
        return None

    def delete(self, table: str, row_id: str | UUID) -> None:
        """
        Delete a row by id.

        Raises:
            SupabaseClientError: If the delete fails
        """
        row_id_str = normalize_uuid(row_id)
        try:
            self.get_client().table(table).delete().eq("id", row_id_str).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete {table} row: {e}",
                code="DELETE_FAILED",
                details={"table": table, "id": row_id_str},
            )
        logger.info(f"Deleted {table} row: {row_id_str}")

    def count(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, list[Any]] | None = None,
    ) -> int:
        """
        Count rows matching the filters without fetching them.

        Raises:
            SupabaseClientError: If the query fails
        """
        query = self.get_client().table(table).select("id", count="exact", head=True)
        for column, value in (eq or {}).items():
            query = query.eq(column, normalize_uuid(value))
        for column, values in (in_ or {}).items():
            query = query.in_(column, values)

        try:
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count {table}: {e}",
                code="COUNT_FAILED",
                details={"table": table},
            )
        return response.count or 0

    # -------------------------------------------------------------------------
    # Server-side Functions
    # -------------------------------------------------------------------------

    def invoke(self, function_name: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        Invoke a Supabase edge function with a JSON body.

        Returns:
            The decoded JSON response

        Raises:
            RemoteFunctionError: If the function reports failure
            SupabaseClientError: If the client can't be created
        """
        client = self.get_client()
        try:
            raw = client.functions.invoke(
                function_name,
                invoke_options={"body": body, "responseType": "json"},
            )
        except Exception as e:
            # The SDK raises with the response body's "error" string as message
            raise RemoteFunctionError(function_name, str(e))

        result = parse_function_result(function_name, raw)
        logger.info(f"Invoked function {function_name}")
        return result

    # -------------------------------------------------------------------------
    # Realtime
    # -------------------------------------------------------------------------

    async def subscribe(
        self,
        table: str,
        callback: Callable[[dict[str, Any]], None],
        on_status: Callable[[Any, Exception | None], None] | None = None,
    ) -> Any:
        """
        Subscribe to INSERT/UPDATE/DELETE notifications for a table.

        The callback receives the raw change payload and runs on the
        event loop, so it must not block. `on_status` is told about channel
        state changes (SUBSCRIBED, CHANNEL_ERROR, TIMED_OUT, CLOSED).

        Returns:
            The subscribed realtime channel
        """
        try:
            if self._async_client is None:
                self._async_client = await acreate_client(self.url, self.key)
            channel = self._async_client.channel(f"{table}_changes")
            channel.on_postgres_changes(
                event="*",
                schema="public",
                table=table,
                callback=callback,
            )
            await channel.subscribe(on_status)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to subscribe to {table} changes: {e}",
                code="SUBSCRIBE_FAILED",
                suggestion=f"Enable realtime replication for the {table} table",
                details={"table": table},
            )

        self._channels.append(channel)
        logger.info(f"Subscribed to realtime changes on {table}")
        return channel

    async def unsubscribe_all(self) -> None:
        """Remove every realtime channel opened by this gateway."""
        if self._async_client is None:
            return
        for channel in self._channels:
            try:
                await self._async_client.remove_channel(channel)
            except Exception as e:
                logger.warning(f"Failed to remove realtime channel: {e}")
        self._channels.clear()
