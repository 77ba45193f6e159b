# smartcalc/machine.py
"""
Calculator state machine.

``reduce(state, action)`` returns a new :class:`CalculatorState` and never
touches its input. Work that has to happen outside the reducer (saving the
history, asking for a suggestion) is queued on ``state["outbox"]`` for the
session to perform.

Actions are dicts with a ``type`` key, e.g. ``{"type": "input", "token": "7"}``.
"""
from typing import Any, Dict

from smartcalc.state import AIMessage, CalculatorState, HistoryEntry, Mode
from smartcalc.tools.calculator import ERROR, evaluate

CONTINUATION_OPERATORS = ("+", "-", "*", "/", "%")

# expression keywords that trigger a suggestion in business mode
SUGGESTION_KEYWORDS = (
    ("loan", ("loan", "emi")),
    ("discount", ("discount",)),
)


def _copy(state: CalculatorState, **changes) -> CalculatorState:
    new = dict(state)
    new["outbox"] = []
    new.update(changes)
    return new  # type: ignore


def _input(state: CalculatorState, token: str) -> CalculatorState:
    if state["result"] and token not in CONTINUATION_OPERATORS:
        # a fresh token after "=" starts a new calculation
        expression, result = token, ""
    else:
        expression, result = state["expression"] + token, state["result"]
    return _copy(state, expression=expression, result=result, suggestion="",
                 generation=state["generation"] + 1)


def _calculate(state: CalculatorState) -> CalculatorState:
    expression = state["expression"]
    if not expression:
        return _copy(state)

    result = evaluate(expression)
    if result == ERROR:
        return _copy(state, result=result)

    entry = HistoryEntry.now(expression, result)
    generation = state["generation"] + 1
    outbox = [{"kind": "persist_history", "entry": entry}]
    if state["mode"] == Mode.BUSINESS:
        lowered = expression.lower()
        for calculation_type, keywords in SUGGESTION_KEYWORDS:
            if any(k in lowered for k in keywords):
                outbox.append({"kind": "request_suggestion",
                               "calculation_type": calculation_type,
                               "generation": generation})
    return _copy(state, result=result, history=[entry] + state["history"],
                 generation=generation, outbox=outbox)


def reduce(state: CalculatorState, action: Dict[str, Any]) -> CalculatorState:
    kind = action["type"]

    if kind == "input":
        return _input(state, action["token"])
    if kind == "calculate":
        return _calculate(state)
    if kind == "clear":
        return _copy(state, expression="", result="", suggestion="",
                     generation=state["generation"] + 1)
    if kind == "backspace":
        return _copy(state, expression=state["expression"][:-1])
    if kind == "select_mode":
        return _copy(state, mode=Mode(action["mode"]))
    if kind == "apply_history_entry":
        entry = action["entry"]
        return _copy(state, expression=entry.expression, result=entry.result)

    # suggestions
    if kind == "suggestion_received":
        if action["generation"] != state["generation"]:
            return _copy(state)
        return _copy(state, suggestion=action["text"])
    if kind == "accept_suggestion":
        if not state["suggestion"]:
            return _copy(state)
        return _copy(state, expression=state["suggestion"], suggestion="")

    # AI chat
    if kind == "ai_input_changed":
        return _copy(state, ai_input=action["text"])
    if kind == "ai_question":
        message = AIMessage(role="user", content=action["text"])
        return _copy(state, ai_messages=state["ai_messages"] + [message], ai_input="", is_typing=True)
    if kind == "ai_answer":
        message = AIMessage(role="assistant", content=action["text"])
        return _copy(state, ai_messages=state["ai_messages"] + [message], is_typing=False)

    # voice
    if kind == "recording_started":
        return _copy(state, is_recording=True)
    if kind == "recording_stopped":
        return _copy(state, is_recording=False)
    if kind == "voice_transcript":
        return _copy(state, ai_input=action["text"], is_recording=False)
    if kind == "voice_failed":
        return _copy(state, is_recording=False)

    # notifications
    if kind == "notify":
        note = {
            "title": action["title"],
            "description": action.get("description", ""),
            "variant": action.get("variant", "default"),
        }
        return _copy(state, notifications=state["notifications"] + [note])
    if kind == "dismiss_notifications":
        return _copy(state, notifications=[])

    raise ValueError(f"Unknown action: {kind}")
