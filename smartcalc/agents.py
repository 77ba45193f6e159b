# smartcalc/agents.py
import json
import re
from typing import Type

from pydantic import BaseModel, ValidationError

from smartcalc.config import DEFAULT_MODEL
from smartcalc.fallbacks import CircuitBreaker
from smartcalc.guardrails.schemas import CalculateAnswerOutput, SuggestCalculationOutput
from smartcalc.observability import log_trace
from smartcalc.state import AnswerState, SuggestionState

# Suggestions that never need the model
CANNED_SUGGESTIONS = {
    "loan": "EMI calculation",
    "discount": "Savings calculation",
}


def parse_model_output(text: str, schema: Type[BaseModel]) -> BaseModel:
    """Pull the first JSON object out of a model reply and validate it."""
    match = re.search(r"\{.*\}", text or "", re.S)
    if not match:
        raise ValueError(f"No JSON object found in LLM output: {(text or '')[:200]}")
    return schema.model_validate(json.loads(match.group(0)))


class _ModelAgent:
    def __init__(self, groq_client=None, model: str = DEFAULT_MODEL):
        self._groq = groq_client
        self.model = model

    @property
    def groq(self):
        # created on first use so canned paths work without an API key
        if self._groq is None:
            from smartcalc.tools.groq_client import GroqClient
            self._groq = GroqClient()
        return self._groq


# -------------------------------
# Answer Agent (natural-language math Q&A)
# -------------------------------
class AnswerAgent(_ModelAgent):
    name = "Answer"

    def run(self, state: AnswerState) -> AnswerState:
        messages = [
            {"role": "system", "content": (
                "You are a calculator that can answer math questions in natural language. "
                "Return ONLY valid JSON. Schema: {answer: string}"
            )},
            {"role": "user", "content": f"Question: {state['question']}\nAnswer: "},
        ]
        try:
            text = self.groq.chat(messages=messages, model=self.model, max_tokens=400, temperature=0.0)
            output = parse_model_output(text, CalculateAnswerOutput)
            state["answer"] = output.answer
            log_trace("answer.success", {"model": self.model})
        except (RuntimeError, OSError, ValueError, ValidationError) as e:
            state["errors"].append(f"answer_failed: {e}")
            log_trace("answer.error", {"error": str(e)})
        return state


# -------------------------------
# Suggestion Agents
# -------------------------------
class CannedSuggestionAgent:
    name = "CannedSuggestion"

    def run(self, state: SuggestionState) -> SuggestionState:
        state["suggestion"] = CANNED_SUGGESTIONS[state["current_type"]]
        state["source"] = "canned"
        return state


class SuggestionAgent(_ModelAgent):
    name = "Suggestion"

    def __init__(self, groq_client=None, model: str = DEFAULT_MODEL, breaker: CircuitBreaker = None):
        super().__init__(groq_client, model)
        self.breaker = breaker or CircuitBreaker(threshold=3)

    def run(self, state: SuggestionState) -> SuggestionState:
        if not self.breaker.ok():
            state["errors"].append("circuit_breaker_open")
            return state

        messages = [
            {"role": "system", "content": (
                "You are a calculation suggestion AI. Suggest only one calculation type. "
                "Return ONLY valid JSON. Schema: {suggested_calculation: string}"
            )},
            {"role": "user", "content": (
                f"Based on the user's current calculation type ({state['current_type']}) and recent "
                f"calculation types ({', '.join(state['recent_types'])}), suggest a relevant calculation "
                f"the user might want to perform next.\n\nSuggestion:"
            )},
        ]
        try:
            text = self.groq.chat(messages=messages, model=self.model, max_tokens=100, temperature=0.2)
            output = parse_model_output(text, SuggestCalculationOutput)
            state["suggestion"] = output.suggested_calculation
            state["source"] = "model"
            self.breaker.record_success()
            log_trace("suggestion.success", {"current_type": state["current_type"]})
        except (RuntimeError, OSError, ValueError, ValidationError) as e:
            self.breaker.record_failure()
            state["errors"].append(f"suggestion_failed: {e}")
            log_trace("suggestion.error", {"error": str(e), "failures": self.breaker.failures})
        return state
