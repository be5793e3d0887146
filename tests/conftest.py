"""Shared test doubles: a scripted chat model and a recording HTTP session."""
import json

import pytest
from langchain_core.messages import AIMessage


class FakeStructuredModel:
    """Stands in for ``llm.with_structured_output(...)``."""

    def __init__(self, parent, schema):
        self.parent = parent
        self.schema = schema

    def invoke(self, messages):
        self.parent.structured_calls.append(messages)
        outcome = self.parent.structured_outputs.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeChatModel:
    """Returns scripted replies in order; exceptions in the script are raised."""

    def __init__(self, replies=None, structured_outputs=None):
        self.replies = list(replies or [])
        self.structured_outputs = list(structured_outputs or [])
        self.calls = []
        self.structured_calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)

    def with_structured_output(self, schema, method=None, **kwargs):
        return FakeStructuredModel(self, schema)


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        else:
            self.content = json.dumps(body).encode()

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return json.loads(self.content)


class FakeSession:
    """Records ``post`` calls and replays queued responses."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_llm():
    return FakeChatModel()


@pytest.fixture
def sample_rows():
    return [
        {"asset_type": "Equity", "total_market_value": "125000.50", "number_of_portfolios": 12},
        {"asset_type": "Bond", "total_market_value": "80000", "number_of_portfolios": 9},
        {"asset_type": "ETF", "total_market_value": "42000.25", "number_of_portfolios": 5},
    ]
