"""Question -> SQL -> rows -> chart orchestration"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from mercury_genie.components.cache import TTLCache
from mercury_genie.components.chart_config import ChartConfig, ChartConfigGenerator
from mercury_genie.components.chart_data import prepare_chart_data
from mercury_genie.components.executor import RPCQueryExecutor
from mercury_genie.components.explainer import QueryExplainer, QueryExplanation
from mercury_genie.components.llm_client import build_chat_model
from mercury_genie.components.query_guard import QueryGuard
from mercury_genie.components.sql_generator import QueryGenerator
from mercury_genie.config import Settings
from mercury_genie.errors import GenerationError, QueryExecutionError, RejectedQueryError

logger = logging.getLogger(__name__)


@dataclass
class GenieResponse:
    """Outcome of one question; ``error`` is set when the run was aborted"""

    question: str
    sql: Optional[str] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)
    chart_config: Optional[ChartConfig] = None
    chart: Optional[Dict[str, Any]] = None
    explanation: List[QueryExplanation] = field(default_factory=list)
    summary: str = ""
    error: Optional[str] = None
    error_category: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "question": self.question,
            "sql": self.sql,
            "rows": self.rows,
            "summary": self.summary,
            "chart_config": self.chart_config.to_wire() if self.chart_config else None,
            "chart": self.chart,
            "explanation": [e.model_dump() for e in self.explanation],
            "error": self.error,
            "error_category": self.error_category,
        }


class GeniePipeline:
    """Runs generate -> guard/execute -> chart config -> shaping for a question.

    Steps run sequentially; a generation, rejection or execution error ends
    the run with a single user-visible message and is never retried.
    """

    def __init__(
        self,
        query_generator: QueryGenerator,
        executor: RPCQueryExecutor,
        chart_generator: ChartConfigGenerator,
        explainer: Optional[QueryExplainer] = None,
    ):
        self.query_generator = query_generator
        self.executor = executor
        self.chart_generator = chart_generator
        self.explainer = explainer

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeniePipeline":
        query_cache = TTLCache(
            max_size=settings.query_cache_size,
            ttl_seconds=settings.query_cache_ttl_seconds,
            name="query_cache",
        )
        chart_cache = TTLCache(
            max_size=settings.chart_cache_size,
            ttl_seconds=settings.chart_cache_ttl_seconds,
            name="chart_cache",
        )
        executor = RPCQueryExecutor(
            rpc_url=settings.rpc_url,
            anon_key=settings.supabase_anon_key,
            guard=QueryGuard(row_limit=settings.default_row_limit),
            timeout_seconds=settings.rpc_timeout_seconds,
        )
        return cls(
            query_generator=QueryGenerator(
                build_chat_model(settings, settings.query_max_tokens), cache=query_cache
            ),
            executor=executor,
            chart_generator=ChartConfigGenerator(
                build_chat_model(settings, settings.chart_max_tokens), cache=chart_cache
            ),
            explainer=QueryExplainer(build_chat_model(settings, settings.explain_max_tokens)),
        )

    def ask(self, question: str, explain: bool = False) -> GenieResponse:
        req_id = uuid.uuid4().hex[:8]
        question = (question or "").strip()
        response = GenieResponse(question=question)
        start = time.time()

        try:
            response.sql = self.query_generator.generate(question)
            response.rows = self.executor.execute(response.sql)
        except (GenerationError, RejectedQueryError, QueryExecutionError) as e:
            response.error = e.user_message
            response.error_category = self._error_category(e)
            logger.warning(
                "RUN_SUMMARY req_id=%s status=error error_class=%s message=%s elapsed_ms=%d",
                req_id,
                type(e).__name__,
                str(e)[:200],
                round((time.time() - start) * 1000),
            )
            return response

        response.summary = RPCQueryExecutor.summarize(response.rows)
        response.chart_config = self.chart_generator.generate(response.rows, question)
        response.chart = prepare_chart_data(response.rows, response.chart_config)

        if explain and self.explainer is not None:
            response.explanation = self.explainer.explain(question, response.sql)

        logger.info(
            "RUN_SUMMARY req_id=%s status=success rows=%d chart=%s elapsed_ms=%d",
            req_id,
            len(response.rows),
            response.chart_config.type,
            round((time.time() - start) * 1000),
        )
        return response

    @staticmethod
    def _error_category(error: Exception) -> str:
        if isinstance(error, GenerationError):
            return error.category
        if isinstance(error, RejectedQueryError):
            return error.rule
        return "execution_error"
