"""Canned SQL for common questions and the suggestion list shown to users.

A question whose normalized form matches a key of ``PREDEFINED_QUERIES``
is answered with the stored SQL and never reaches the LLM.
"""
from typing import Dict, List, Optional

PREDEFINED_QUERIES: Dict[str, str] = {
    "show top 10 investment positions by number of clients": (
        "SELECT i.asset_name, i.ticker_symbol, "
        "COUNT(DISTINCT c.client_id) AS number_of_clients "
        "FROM investments i "
        "JOIN portfolios p ON p.portfolio_id = i.portfolio_id "
        "JOIN clients c ON c.client_id = p.client_id "
        "GROUP BY i.asset_name, i.ticker_symbol "
        "ORDER BY number_of_clients DESC LIMIT 10"
    ),
    "portfolios with highest market value": (
        "SELECT p.name AS portfolio_name, "
        "c.first_name || ' ' || c.last_name AS client_name, "
        "SUM(i.market_value) AS total_market_value "
        "FROM portfolios p "
        "JOIN clients c ON c.client_id = p.client_id "
        "JOIN investments i ON i.portfolio_id = p.portfolio_id "
        "GROUP BY p.portfolio_id, p.name, c.first_name, c.last_name "
        "ORDER BY total_market_value DESC LIMIT 10"
    ),
    "asset type distribution across all portfolios": (
        "SELECT i.asset_type, "
        "COUNT(DISTINCT p.portfolio_id) AS number_of_portfolios, "
        "SUM(i.market_value) AS total_market_value "
        "FROM investments i "
        "JOIN portfolios p ON p.portfolio_id = i.portfolio_id "
        "GROUP BY i.asset_type "
        "ORDER BY total_market_value DESC"
    ),
    "investments with allocation greater than 10%": (
        "SELECT i.asset_name, i.ticker_symbol, p.name AS portfolio_name, "
        "c.first_name || ' ' || c.last_name AS client_name, "
        "i.allocation_percentage, i.market_value "
        "FROM investments i "
        "JOIN portfolios p ON p.portfolio_id = i.portfolio_id "
        "JOIN clients c ON c.client_id = p.client_id "
        "WHERE i.allocation_percentage > 10 "
        "ORDER BY i.allocation_percentage DESC LIMIT 20"
    ),
}

# (full question, short label for narrow screens)
SUGGESTED_QUESTIONS: List[Dict[str, str]] = [
    {"question": "Show me top 5 portfolios by total value", "label": "Top portfolios"},
    {"question": "List top 3 clients with highest portfolio values", "label": "Top clients"},
    {"question": "Show distribution of risk profiles across clients", "label": "Risk profiles"},
    {"question": "Compare average portfolio values by risk level", "label": "Risk vs Value"},
    {"question": "Show total investments by asset type", "label": "Asset types"},
    {"question": "List portfolios created in the last 30 days", "label": "New portfolios"},
    {"question": "Show clients grouped by their financial goals", "label": "Goals"},
    {"question": "Compare market value across different portfolio types", "label": "Portfolio types"},
    {"question": "Show average investment allocation by asset type", "label": "Allocations"},
    {"question": "List clients with portfolios above $1M in value", "label": "High value"},
    {"question": "Show investment distribution by risk level", "label": "Risk dist."},
]


def normalize_question(question: str) -> str:
    """Cache/lookup key for a question: trimmed and lower-cased."""
    return (question or "").strip().lower()


def find_predefined_query(question: str) -> Optional[str]:
    return PREDEFINED_QUERIES.get(normalize_question(question))
