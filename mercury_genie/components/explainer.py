"""Plain-language, section-by-section explanation of generated SQL"""
import logging
import uuid
from typing import List

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from mercury_genie.components.error_classifier import classify_llm_error
from mercury_genie.components.sanitizer import sanitize_prompt_input
from mercury_genie.components.sql_generator import AI_SAFE_SCHEMA_DESCRIPTION

logger = logging.getLogger(__name__)


class QueryExplanation(BaseModel):
    section: str = Field(description="A fragment of the SQL query, e.g. 'LIMIT 5'")
    explanation: str = Field(description="What this fragment does, for a non-expert")


class QueryExplanations(BaseModel):
    explanations: List[QueryExplanation]


class QueryExplainer:
    """Breaks a SQL query into sections and explains each one."""

    SYSTEM_PROMPT = (
        "You are a SQL (postgres) expert. Explain the SQL query by breaking it "
        "into sections and explaining each section. Assume the user is not a "
        "SQL expert. Be concise. Use 'Standard SQL clause.' for sections that "
        "need no explanation.\n\n"
        f"{AI_SAFE_SCHEMA_DESCRIPTION}"
    )

    def __init__(self, llm: BaseChatModel):
        self.structured_llm = llm.with_structured_output(QueryExplanations, method="function_calling")

    def explain(self, user_query: str, sql_query: str) -> List[QueryExplanation]:
        messages = [
            SystemMessage(content=self.SYSTEM_PROMPT),
            HumanMessage(
                content=(
                    f"User Query:\n{sanitize_prompt_input(user_query)}\n\n"
                    f"Generated SQL Query:\n{sql_query}"
                )
            ),
        ]
        try:
            result = self.structured_llm.invoke(messages)
            if result is None:
                raise ValueError("Model returned no explanation")
            if not isinstance(result, QueryExplanations):
                result = QueryExplanations.model_validate(result)
            return result.explanations
        except Exception as e:
            req_id = uuid.uuid4().hex[:8]
            category, _ = classify_llm_error(e)
            logger.warning(
                "SQL explanation failed: req_id=%s category=%s error_class=%s message=%s",
                req_id,
                category,
                type(e).__name__,
                str(e)[:200],
            )
            return [
                QueryExplanation(
                    section="Error", explanation="Could not generate query explanation."
                )
            ]
