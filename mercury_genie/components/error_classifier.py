"""Categorized classification of LLM provider failures.

``classify_llm_error`` inspects an exception raised by the chat model
(openai / httpx style) and returns a short category for log lines plus a
message that is safe to show in the chat transcript.
"""
from typing import Tuple

_MESSAGES = {
    "quota_exceeded": "LLM provider credits exhausted. Top up the OpenRouter account.",
    "rate_limited": "LLM provider is rate limiting requests. Wait a moment and try again.",
    "invalid_api_key": "LLM API key is invalid or revoked. Check OPENROUTER_API_KEY.",
    "model_not_found": "Model not found. Check LLM_MODEL.",
    "timeout": "LLM request timed out. Try again or raise LLM_TIMEOUT_SECONDS.",
    "network_error": "Cannot reach the LLM provider. Check network connectivity.",
    "unknown": "Unexpected error. Check logs for details.",
}

_NETWORK_HINTS = ("connection", "network", "dns", "ssl", "unreachable")


def classify_llm_error(exc: BaseException) -> Tuple[str, str]:
    """Return ``(category, user_message)`` for an LLM exception.

    Category is one of: quota_exceeded, rate_limited, invalid_api_key,
    model_not_found, timeout, network_error, unknown.
    """
    category = _categorize(exc)
    return category, _MESSAGES[category]


def _categorize(exc: BaseException) -> str:
    error_str = str(exc).lower()
    error_type = type(exc).__name__.lower()
    status = getattr(exc, "status_code", None) or getattr(exc, "http_status", None)
    code = str(getattr(exc, "code", "") or "").lower()

    # 402 is OpenRouter's "insufficient credits"
    if status == 402 or "insufficient_quota" in code or "insufficient_quota" in error_str:
        return "quota_exceeded"
    if status == 429 or "429" in error_str or "rate_limit" in code:
        return "rate_limited"
    if (
        status == 401
        or "invalid_api_key" in code
        or "invalid api key" in error_str
        or "authentication" in error_str
    ):
        return "invalid_api_key"
    if "model_not_found" in error_str or (status == 404 and "model" in error_str):
        return "model_not_found"
    if "timeout" in error_type or "timeout" in error_str or "timed out" in error_str:
        return "timeout"
    if any(hint in error_type for hint in _NETWORK_HINTS) or any(
        hint in error_str for hint in _NETWORK_HINTS
    ):
        return "network_error"
    return "unknown"
