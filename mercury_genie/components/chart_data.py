"""Display-side shaping of result rows for charting.

Works on rows that are already fetched and bounded by the guard's LIMIT.
Series colors live here, derived from key index, and are never part of a
cached ``ChartConfig``.
"""
import math
import re
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from mercury_genie.components.chart_config import ChartConfig

# Bar/pie results with more rows than this are cut to DISPLAY_SUBSET rows
DISPLAY_THRESHOLD = 8
DISPLAY_SUBSET = 20

SERIES_COLORS = [
    "#2563eb", "#16a34a", "#f59e0b", "#dc2626",
    "#7c3aed", "#0891b2", "#db2777", "#65a30d",
]

_INT_RE = re.compile(r"^[+-]?\d+$")


def to_title_case(name: str) -> str:
    """``total_market_value`` -> ``Total Market Value``"""
    return " ".join(word[:1].upper() + word[1:] for word in str(name).split("_"))


def coerce_numeric(value: Any) -> Any:
    """Turn numeric strings (``"12"``, ``"3.5"``) into numbers; leave the rest."""
    if not isinstance(value, str) or not value.strip():
        return value
    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def coerce_numeric_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{key: coerce_numeric(value) for key, value in row.items()} for row in rows]


def limit_for_display(rows: List[Dict[str, Any]], chart_type: str) -> List[Dict[str, Any]]:
    if chart_type in ("bar", "pie") and len(rows) > DISPLAY_THRESHOLD:
        return rows[:DISPLAY_SUBSET]
    return rows


def uses_multiple_lines(config: ChartConfig) -> bool:
    return bool(
        config.multiple_lines
        and config.measurement_column
        and config.measurement_column in config.y_keys
    )


def pivot_for_multiple_lines(
    rows: List[Dict[str, Any]], config: ChartConfig
) -> Tuple[List[Dict[str, Any]], str, List[str]]:
    """Pivot long rows into one row per x value and one column per category.

    Returns ``(data, x_field, line_fields)``.  When the config does not ask
    for multiple lines, or no category column exists, rows are returned
    unchanged with ``y_keys`` as the line fields.
    """
    x_field = config.x_key
    if not rows or not uses_multiple_lines(config):
        return rows, x_field, list(config.y_keys)

    measure = config.measurement_column
    category_column = next(
        (col for col in rows[0] if col not in (x_field, measure)), None
    )
    if category_column is None:
        return rows, x_field, list(config.y_keys)

    if config.line_categories:
        line_fields = [str(c) for c in config.line_categories]
    else:
        line_fields = list(OrderedDict.fromkeys(str(row.get(category_column)) for row in rows))

    pivoted: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    for row in rows:
        category = str(row.get(category_column))
        if category not in line_fields:
            continue
        x_value = row.get(x_field)
        point = pivoted.setdefault(x_value, {x_field: x_value})
        point[category] = row.get(measure)

    return list(pivoted.values()), x_field, line_fields


def series_styles(
    config: ChartConfig, rows: List[Dict[str, Any]], series_keys: Optional[List[str]] = None
) -> Dict[str, Dict[str, str]]:
    """Label and color per series.

    Pie charts are keyed by each row's category value; other charts by
    series key.  Colors cycle through ``SERIES_COLORS`` by index.
    """
    if config.type == "pie":
        keys = [str(row.get(config.x_key)) for row in rows]
    else:
        keys = list(series_keys or config.y_keys)

    styles: Dict[str, Dict[str, str]] = {}
    for index, key in enumerate(keys):
        styles[key] = {
            "label": to_title_case(key),
            "color": SERIES_COLORS[index % len(SERIES_COLORS)],
        }
    return styles


def prepare_chart_data(rows: List[Dict[str, Any]], config: ChartConfig) -> Dict[str, Any]:
    """Everything a renderer needs: shaped rows, axis key, series and styles."""
    data = limit_for_display(coerce_numeric_rows(rows), config.type)
    series = list(config.y_keys)
    if config.type == "line" and uses_multiple_lines(config):
        data, _, series = pivot_for_multiple_lines(data, config)

    return {
        "type": config.type,
        "x_key": config.x_key,
        "series": series,
        "data": data,
        "styles": series_styles(config, data, series),
    }
