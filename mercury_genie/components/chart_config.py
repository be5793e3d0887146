"""Chart configuration for query results.

The LLM picks a chart type and axis columns through schema-validated
structured output.  Visualization is best effort: any failure here is
logged and replaced by a deterministic bar-chart fallback, never shown
to the user as an error.
"""
import json
import logging
import uuid
from typing import Any, Dict, Hashable, List, Literal, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field

from mercury_genie.components.cache import TTLCache
from mercury_genie.components.error_classifier import classify_llm_error
from mercury_genie.components.sanitizer import sanitize_prompt_input
from mercury_genie.errors import ChartConfigError

logger = logging.getLogger(__name__)

ChartType = Literal["bar", "line", "area", "pie"]


class ChartConfig(BaseModel):
    """Rendering instructions for one result set.

    Attribute names are snake_case; the wire format (``to_wire``) uses the
    camelCase keys the chart front end expects.  Colors are deliberately
    absent: the display layer derives them from series index.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: ChartType = Field(
        default="bar",
        description="pie for distributions, bar for rankings, line for time series, area for cumulative time series",
    )
    title: str = Field(default="Data Chart", description="Short chart title")
    description: str = Field(
        default="Generated chart based on your query.",
        description="One sentence describing what the chart shows",
    )
    takeaway: str = Field(default="", description="Key insight from the data")
    x_key: str = Field(alias="xKey", description="Column used for the x axis or pie categories")
    y_keys: List[str] = Field(
        alias="yKeys", min_length=1, description="Numeric columns plotted as series"
    )
    legend: bool = Field(default=True, description="Whether to show a legend")
    multiple_lines: bool = Field(
        default=False,
        alias="multipleLines",
        description="True when one line per category value should be drawn",
    )
    measurement_column: str = Field(
        default="",
        alias="measurementColumn",
        description="Value column for multi-line charts, empty otherwise",
    )
    line_categories: List[str] = Field(
        default_factory=list,
        alias="lineCategories",
        description="Category values drawn as separate lines, empty otherwise",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def fallback_config(
    rows: List[Dict[str, Any]],
    title: str = "Data Chart",
    description: str = "Generated chart based on your query.",
    takeaway: str = "",
) -> ChartConfig:
    """Bar chart over the first two columns of the first row."""
    columns = list(rows[0].keys()) if rows else []
    return ChartConfig(
        type="bar",
        title=title,
        description=description,
        takeaway=takeaway,
        x_key=columns[0] if columns else "category",
        y_keys=[columns[1]] if len(columns) > 1 else ["value"],
        legend=True,
        multiple_lines=False,
        measurement_column="",
        line_categories=[],
    )


class ChartConfigGenerator:
    """Produces a ``ChartConfig`` for result rows and the question asked."""

    SAMPLE_ROWS = 3
    CACHE_KEY_ROWS = 5

    SYSTEM_PROMPT = (
        "You are a data visualization expert. Choose the best chart for the "
        "data and the user's question.\n\n"
        "Chart type selection rules:\n"
        "- pie: distributions, percentages, compositions with at most 8 "
        "categories (e.g. asset types, risk profiles). xKey is the category, "
        "yKeys[0] is the value.\n"
        "- bar: comparing quantities, rankings, counts. xKey is the category, "
        "yKeys are values.\n"
        "- line: time series and trends. xKey is time, yKeys are values.\n"
        "- area: cumulative data over time. xKey is time, yKeys are values.\n\n"
        "xKey and every entry of yKeys MUST be column names present in the "
        "data sample. If measurementColumn or lineCategories do not apply, "
        "use an empty string or an empty list. Do not include colors."
    )

    def __init__(self, llm: BaseChatModel, cache: Optional[TTLCache] = None):
        self.structured_llm = llm.with_structured_output(ChartConfig, method="function_calling")
        self.cache = cache if cache is not None else TTLCache(name="chart_cache")

    @classmethod
    def cache_key(cls, user_query: str, rows: List[Dict[str, Any]]) -> Hashable:
        sample = json.dumps(rows[: cls.CACHE_KEY_ROWS], sort_keys=True, default=str)
        return (user_query, sample)

    def build_messages(self, rows: List[Dict[str, Any]], user_query: str):
        sample = json.dumps(rows[: self.SAMPLE_ROWS], indent=2, default=str)
        return [
            SystemMessage(content=self.SYSTEM_PROMPT),
            HumanMessage(
                content=(
                    f"User query: {sanitize_prompt_input(user_query)}\n\n"
                    f"Data sample:\n{sample}"
                )
            ),
        ]

    def generate(self, rows: List[Dict[str, Any]], user_query: str) -> ChartConfig:
        if not rows:
            logger.info("No rows to chart; using fallback config")
            return fallback_config(rows)

        key = self.cache_key(user_query, rows)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached chart config")
            return cached

        try:
            config = self._request_config(rows, user_query)
        except Exception as e:
            req_id = uuid.uuid4().hex[:8]
            if isinstance(e, ChartConfigError):
                category = "invalid_config"
            else:
                category, _ = classify_llm_error(e)
            logger.warning(
                "Chart config generation failed, using fallback: req_id=%s category=%s error_class=%s message=%s",
                req_id,
                category,
                type(e).__name__,
                str(e)[:200],
            )
            return fallback_config(
                rows,
                description="Could not generate a specific chart, showing a basic bar chart.",
                takeaway="There was an issue generating the chart configuration.",
            )

        self.cache.set(key, config)
        return config

    def _request_config(self, rows: List[Dict[str, Any]], user_query: str) -> ChartConfig:
        result = self.structured_llm.invoke(self.build_messages(rows, user_query))
        if result is None:
            raise ChartConfigError("Model returned no chart configuration")
        config = result if isinstance(result, ChartConfig) else ChartConfig.model_validate(result)
        self._check_columns(config, rows)
        return config

    @staticmethod
    def _check_columns(config: ChartConfig, rows: List[Dict[str, Any]]) -> None:
        columns = set(rows[0].keys())
        missing = [k for k in [config.x_key, *config.y_keys] if k not in columns]
        if missing:
            raise ChartConfigError(f"Chart config references unknown columns: {missing}")
