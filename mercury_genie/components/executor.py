"""Query execution through the Supabase RPC endpoint"""
import logging
from typing import Any, Dict, List, Optional

import requests

from mercury_genie.components.query_guard import QueryGuard
from mercury_genie.errors import QueryExecutionError

logger = logging.getLogger(__name__)


class RPCQueryExecutor:
    """Sends vetted SQL to the remote ``execute_query`` stored procedure.

    The procedure runs with the anon (low-privilege) key and is trusted to be
    the actual execution boundary; every query still passes the guard first.
    """

    def __init__(
        self,
        rpc_url: str,
        anon_key: str,
        guard: Optional[QueryGuard] = None,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self.anon_key = anon_key
        self.guard = guard or QueryGuard()
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
        }

    def execute(self, sql_query: str) -> List[Dict[str, Any]]:
        """Guard, normalize and run ``sql_query``; returns the result rows."""
        safe_query = self.guard.enforce(sql_query)
        logger.debug("Executing query via RPC: %s", safe_query)

        try:
            response = self.session.post(
                self.rpc_url,
                json={"query_text": safe_query},
                headers=self.headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("RPC request failed: error_class=%s message=%s", type(e).__name__, str(e)[:200])
            raise QueryExecutionError(f"Database request failed: {e}") from e

        if not response.ok:
            message = self._error_message(response)
            logger.warning(
                "RPC returned error: status=%s message=%s", response.status_code, message[:200]
            )
            raise QueryExecutionError(message, status_code=response.status_code)

        try:
            rows = response.json() if response.content else None
        except ValueError as e:
            raise QueryExecutionError(
                "Database returned an unreadable response", status_code=response.status_code
            ) from e

        if rows is None:
            return []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise QueryExecutionError(
                "Database returned an unexpected response shape",
                status_code=response.status_code,
            )
        logger.info("Query returned %d rows", len(rows))
        return rows

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "Failed to execute query"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return "Failed to execute query"

    @staticmethod
    def summarize(rows: List[Dict[str, Any]]) -> str:
        """Short human summary of a result set"""
        if not rows:
            return "No results found."
        if len(rows) == 1:
            return "1 result found."
        return f"{len(rows)} results found."
