"""SQL generation engine powered by LangChain and LLMs"""
from typing import List, Optional
import logging
import re
import uuid

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate

from mercury_genie.components.cache import TTLCache
from mercury_genie.components.error_classifier import classify_llm_error
from mercury_genie.components.predefined import find_predefined_query, normalize_question
from mercury_genie.components.sanitizer import sanitize_prompt_input
from mercury_genie.errors import GenerationError

logger = logging.getLogger(__name__)


# Simplified schema description for the model, excluding PII
AI_SAFE_SCHEMA_DESCRIPTION = (
    "Simplified database schema (excluding PII for privacy):\n"
    "- clients (client_id, advisor_id, first_name, last_name, risk_profile, "
    "financial_goal, notes)\n"
    "- portfolios (portfolio_id, client_id, name, portfolio_type, risk_level, "
    "total_value, inception_date)\n"
    "- investments (investment_id, portfolio_id, asset_name, asset_type, "
    "ticker_symbol, quantity, current_price, market_value [computed], "
    "allocation_percentage)\n"
    "- The users table is internal and must not be queried for user details. "
    "Focus on aggregated client/portfolio/investment data."
)


class SQLPromptBuilder:
    """Builds structured LangChain prompts for SQL generation."""

    SQL_SYSTEM_PROMPT = (
        "You are a SQL expert. Generate ONLY SELECT queries for PostgreSQL "
        "using the provided simplified schema.\n\n"
        "CRITICAL RULES:\n"
        "1. ONLY generate SELECT statements.\n"
        "2. NEVER query for PII (client emails, phone numbers, addresses) UNLESS "
        "the user explicitly and specifically asks for it. For general questions "
        "about clients or portfolios, client_id, portfolio_id, first_name and "
        "last_name are acceptable identifiers. Prefer aggregated data (counts, "
        "sums) when the request is ambiguous.\n"
        "3. Query only the tables and columns listed in the schema.\n"
        "4. NEVER use: DROP, DELETE, INSERT, UPDATE, ALTER, CREATE, TRUNCATE, "
        "GRANT, REVOKE.\n"
        "5. Always start with \"SELECT\".\n"
        "6. Use JOINs with table aliases. When a column name exists in more than "
        "one joined table, ALWAYS qualify it with the alias (c.client_id, not "
        "client_id) in the SELECT list and in GROUP BY.\n"
        "7. Include ORDER BY and LIMIT clauses.\n"
        "8. Use ILIKE for case-insensitive text matching on non-PII text fields. "
        "Users give partial asset names ('Alibaba' for 'Alibaba Group'), so "
        "asset_name ILIKE '%term%' is usually right.\n"
        "9. Client names are not PII.\n\n"
        f"{AI_SAFE_SCHEMA_DESCRIPTION}\n\n"
        "Return ONLY the SELECT query, no explanations and no markdown."
    )

    SQL_GENERATION_TEMPLATE = PromptTemplate(
        input_variables=["user_query"],
        template=(
            "Generate a SELECT query for: {user_query}\n\n"
            "Remember: ONLY SELECT queries are allowed. Avoid PII. "
            "Start with \"SELECT\"."
        ),
    )

    @staticmethod
    def build_sql_generation_prompt(user_query: str) -> str:
        """Render the user turn; the question is sanitized first."""
        return SQLPromptBuilder.SQL_GENERATION_TEMPLATE.format(
            user_query=sanitize_prompt_input(user_query)
        )

    @classmethod
    def build_messages(cls, user_query: str) -> List[BaseMessage]:
        return [
            SystemMessage(content=cls.SQL_SYSTEM_PROMPT),
            HumanMessage(content=cls.build_sql_generation_prompt(user_query)),
        ]


class QueryGenerator:
    """Turns a natural-language question into a single SELECT statement.

    Lookup order: predefined queries, then the injected cache, then the LLM.
    Only LLM results are cached.  There is no retry: any failure surfaces as
    ``GenerationError``.
    """

    _FENCE_RE = re.compile(r"```(?:sql)?\s*", re.IGNORECASE)

    def __init__(self, llm: BaseChatModel, cache: Optional[TTLCache] = None):
        self.llm = llm
        self.cache = cache if cache is not None else TTLCache(name="query_cache")
        self.prompt_builder = SQLPromptBuilder()

    @classmethod
    def clean_sql(cls, raw: str) -> str:
        """Strip markdown code fences from model output."""
        return cls._FENCE_RE.sub("", str(raw or "")).strip()

    def generate(self, user_query: str) -> str:
        if not user_query or not user_query.strip():
            raise GenerationError(
                "Question must not be empty", user_message="Please type a question."
            )

        predefined = find_predefined_query(user_query)
        if predefined:
            logger.info("Using predefined query for %r", normalize_question(user_query))
            return predefined

        key = normalize_question(user_query)
        cached = self.cache.get(key)
        if cached:
            logger.info("Using cached query for %r", key)
            return cached

        req_id = uuid.uuid4().hex[:8]
        try:
            response = self.llm.invoke(self.prompt_builder.build_messages(user_query))
        except Exception as e:
            category, user_message = classify_llm_error(e)
            logger.warning(
                "SQL generation failed: req_id=%s category=%s error_class=%s message=%s",
                req_id,
                category,
                type(e).__name__,
                str(e)[:200],
            )
            raise GenerationError(
                "Failed to generate query",
                user_message=f"Failed to generate query. {user_message} (ref: {req_id})",
                category=category,
            ) from e

        sql = self.clean_sql(response.content)
        if not sql.lower().startswith("select"):
            logger.warning(
                "SQL generation failed: req_id=%s category=not_select output=%r",
                req_id,
                sql[:200],
            )
            raise GenerationError(
                "Failed to generate query: output is not a SELECT statement",
                user_message=f"Failed to generate query. Try rephrasing your question. (ref: {req_id})",
                category="not_select",
            )

        logger.debug("Generated query: req_id=%s sql=%s", req_id, sql)
        self.cache.set(key, sql)
        return sql
