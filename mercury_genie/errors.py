"""Error taxonomy for the question -> SQL -> chart pipeline.

Generation, rejection and execution errors abort a request and are shown
to the user as a single chat message.  ``ChartConfigError`` never leaves
the chart step: it is caught there and replaced by a fallback config.
"""
from typing import Optional


class GenieError(Exception):
    """Base class for all pipeline errors."""

    user_message = "Sorry, I encountered an error while processing your request."

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class GenerationError(GenieError):
    """The LLM call failed or did not return a SELECT statement."""

    user_message = "Failed to generate query."

    def __init__(
        self,
        message: str = "Failed to generate query",
        user_message: Optional[str] = None,
        category: str = "unknown",
    ):
        super().__init__(message, user_message)
        self.category = category


class RejectedQueryError(GenieError):
    """Candidate SQL failed the static safety checks."""

    def __init__(self, rule: str, message: str, keyword: Optional[str] = None):
        super().__init__(message, user_message=f"Query rejected: {message}")
        self.rule = rule
        self.keyword = keyword


class QueryExecutionError(GenieError):
    """The remote RPC procedure failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, user_message=message)
        self.status_code = status_code


class ChartConfigError(GenieError):
    """Chart config response was unusable; always recovered by a fallback."""
