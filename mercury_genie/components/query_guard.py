"""Static validation and row-limit normalization of candidate SQL.

The guard is a textual filter in front of the remote ``execute_query``
procedure, which remains the real execution boundary.  It does not parse
SQL and makes no claim to stop every injection.
"""
import logging
import re
from typing import Optional, Tuple

from mercury_genie.errors import RejectedQueryError

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 100


class QueryGuard:
    """Rejects non-SELECT or write/DDL statements and caps result size."""

    # Matched as whole words so identifiers like created_at or is_deleted pass
    FORBIDDEN_KEYWORDS = (
        "drop", "delete", "insert", "update", "alter",
        "truncate", "create", "grant", "revoke",
    )
    _FORBIDDEN_RE = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b")
    _LIMIT_RE = re.compile(r"\blimit\b\s+\d+", re.IGNORECASE)
    # Quoted literals are matched first so comment markers inside them survive
    _COMMENT_RE = re.compile(
        r"""('(?:[^']|'')*'|"(?:[^"]|"")*")|--[^\n]*|/\*.*?(?:\*/|\Z)""",
        re.DOTALL,
    )

    def __init__(self, row_limit: int = DEFAULT_ROW_LIMIT):
        self.row_limit = row_limit

    def check(self, sql_query: str) -> Tuple[bool, Optional[str]]:
        """Validate without raising; returns ``(ok, error_message)``."""
        try:
            self.validate(sql_query)
        except RejectedQueryError as e:
            return False, str(e)
        return True, None

    def validate(self, sql_query: str) -> None:
        lowered = (sql_query or "").strip().lower()

        match = self._FORBIDDEN_RE.search(lowered)
        if match:
            keyword = match.group(1)
            logger.warning(
                "Query rejected: rule=forbidden_keyword keyword=%s query=%r",
                keyword,
                sql_query[:200],
            )
            raise RejectedQueryError(
                rule="forbidden_keyword",
                message=f"forbidden keyword {keyword.upper()} is not allowed",
                keyword=keyword,
            )

        if not lowered.startswith("select"):
            logger.warning(
                "Query rejected: rule=must_start_with_select query=%r", (sql_query or "")[:200]
            )
            raise RejectedQueryError(
                rule="must_start_with_select",
                message="query must be a SELECT statement",
            )

    def normalize(self, sql_query: str) -> str:
        """Strip comments, drop one trailing semicolon and append a LIMIT when none is present.

        Comments are removed first so an appended LIMIT can never end up
        inside a trailing ``--`` or ``/* */`` comment.
        """
        trimmed = self.strip_comments(sql_query).strip()
        if trimmed.endswith(";"):
            trimmed = trimmed[:-1]
        if self._LIMIT_RE.search(trimmed):
            return trimmed
        return f"{trimmed} LIMIT {self.row_limit}"

    @classmethod
    def strip_comments(cls, sql_query: str) -> str:
        # group(1) is a quoted literal, kept as is
        return cls._COMMENT_RE.sub(lambda m: m.group(1) or "", sql_query)

    def enforce(self, sql_query: str) -> str:
        """Validate and normalize, raising ``RejectedQueryError`` on failure."""
        self.validate(sql_query)
        return self.normalize(sql_query)
