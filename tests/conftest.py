import json
from concurrent.futures import Future

import pytest

from smartcalc import observability
from smartcalc.errors import AICallError
from smartcalc.guardrails.schemas import CalculateAnswerOutput, SuggestCalculationOutput
from smartcalc.session import CalculatorSession
from smartcalc.tools.history_store import HistoryStore, MemoryStore


@pytest.fixture(autouse=True)
def trace_file(tmp_path, monkeypatch):
    path = tmp_path / "trace.jsonl"
    monkeypatch.setattr(observability, "TRACE_FILE", str(path))
    return path


def read_trace(path):
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class FakeGroq:
    """Stands in for GroqClient: returns scripted replies and records calls."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def chat(self, messages, model, max_tokens=512, temperature=0.2, use_cache=True):
        self.calls.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeFlows:
    def __init__(self, answer="4", suggestions=None, fail=False):
        self.answer = answer
        self.suggestions = suggestions or {"loan": "EMI calculation", "discount": "Savings calculation"}
        self.fail = fail
        self.questions = []
        self.suggested = []

    def ask(self, question):
        self.questions.append(question)
        if self.fail:
            raise AICallError("model unavailable")
        return CalculateAnswerOutput(answer=self.answer)

    def suggest(self, current_type, recent_types=None):
        self.suggested.append(current_type)
        if self.fail:
            raise AICallError("model unavailable")
        return SuggestCalculationOutput(suggested_calculation=self.suggestions[current_type])


class RecordingExecutor:
    """Holds submitted jobs until the test runs them."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn):
        future = Future()
        self.jobs.append((fn, future))
        return future

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for fn, future in jobs:
            try:
                future.set_result(fn())
            except Exception as e:
                future.set_exception(e)


@pytest.fixture
def store():
    return HistoryStore(MemoryStore())


@pytest.fixture
def flows():
    return FakeFlows()


@pytest.fixture
def session(store, flows):
    return CalculatorSession(history_store=store, flows=flows)
