# smartcalc/graph.py
from typing import List, Optional

from langgraph.graph import StateGraph, START, END

from smartcalc.agents import AnswerAgent, SuggestionAgent, CannedSuggestionAgent, CANNED_SUGGESTIONS
from smartcalc.errors import AICallError
from smartcalc.guardrails.schemas import (
    CalculateAnswerInput,
    CalculateAnswerOutput,
    SuggestCalculationInput,
    SuggestCalculationOutput,
)
from smartcalc.observability import log_trace
from smartcalc.state import AnswerState, SuggestionState


# -------------------------------
# Graph builders
# -------------------------------
def build_answer_graph(answerer: AnswerAgent) -> StateGraph:
    graph = StateGraph(AnswerState)  # type: ignore
    graph.add_node("answer", answerer.run)
    graph.add_edge(START, "answer")
    graph.add_edge("answer", END)
    return graph


def route_suggestion(state: SuggestionState) -> str:
    if state["current_type"] in CANNED_SUGGESTIONS:
        return "canned"
    return "model"


def build_suggestion_graph(suggester: SuggestionAgent, canned: Optional[CannedSuggestionAgent] = None) -> StateGraph:
    graph = StateGraph(SuggestionState)  # type: ignore
    graph.add_node("canned", (canned or CannedSuggestionAgent()).run)
    graph.add_node("model", suggester.run)
    graph.add_conditional_edges(START, route_suggestion, ["canned", "model"])
    graph.add_edge("canned", END)
    graph.add_edge("model", END)
    return graph


# -------------------------------
# Flows
# -------------------------------
class CalculationFlows:
    """
    The two AI collaborators of the calculator.

    ``ask`` answers a natural-language math question. ``suggest`` proposes the
    next calculation for a calculation type; ``loan`` and ``discount`` are
    answered from fixed text, anything else goes to the model.
    Both raise :class:`AICallError` when the model cannot produce a valid
    answer.
    """

    def __init__(self, groq_client=None, answerer: AnswerAgent = None, suggester: SuggestionAgent = None):
        self.answerer = answerer or AnswerAgent(groq_client)
        self.suggester = suggester or SuggestionAgent(groq_client)
        self._answer_app = build_answer_graph(self.answerer).compile()
        self._suggestion_app = build_suggestion_graph(self.suggester).compile()

    def ask(self, question: str) -> CalculateAnswerOutput:
        request = CalculateAnswerInput(question=question)
        res = self._answer_app.invoke({"question": request.question, "answer": "", "errors": []})
        if res["errors"]:
            raise AICallError("; ".join(res["errors"]))
        log_trace("graph.answer_complete", {"question": request.question})
        return CalculateAnswerOutput(answer=res["answer"])

    def suggest(self, current_type: str, recent_types: List[str] = None) -> SuggestCalculationOutput:
        request = SuggestCalculationInput(
            current_calculation_type=current_type,
            recent_calculation_types=list(recent_types or []),
        )
        res = self._suggestion_app.invoke({
            "current_type": request.current_calculation_type,
            "recent_types": request.recent_calculation_types,
            "suggestion": "",
            "source": "",
            "errors": [],
        })
        if res["errors"]:
            raise AICallError("; ".join(res["errors"]))
        log_trace("graph.suggestion_complete", {"current_type": current_type, "source": res["source"]})
        return SuggestCalculationOutput(suggested_calculation=res["suggestion"])
