"""Factory for the OpenRouter-backed LangChain chat model."""
import logging

from langchain_openai import ChatOpenAI

from mercury_genie.config import Settings

logger = logging.getLogger(__name__)


def build_chat_model(settings: Settings, max_tokens: int) -> ChatOpenAI:
    """Create a deterministic (temperature 0) chat model for one pipeline step."""
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; LLM calls will fail")
    return ChatOpenAI(
        api_key=settings.openrouter_api_key or "missing",
        base_url=settings.openrouter_base_url,
        model=settings.llm_model,
        temperature=0,
        max_tokens=max_tokens,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )
