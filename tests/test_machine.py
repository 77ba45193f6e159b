import copy
from datetime import datetime

import pytest

from smartcalc import machine
from smartcalc.machine import reduce
from smartcalc.state import HistoryEntry, Mode, init_state


def type_in(state, text):
    for ch in text:
        state = reduce(state, {"type": "input", "token": ch})
    return state


def settled(text="2+2", mode=Mode.STANDARD):
    state = init_state(mode=mode)
    state = type_in(state, text)
    return reduce(state, {"type": "calculate"})


def test_calculate_records_history():
    state = settled("2+2")
    assert state["expression"] == "2+2"
    assert state["result"] == "4"
    entry = state["history"][0]
    assert (entry.expression, entry.result) == ("2+2", "4")
    assert datetime.fromisoformat(entry.timestamp.replace("Z", "+00:00"))
    assert state["outbox"] == [{"kind": "persist_history", "entry": entry}]


def test_calculate_on_empty_expression_is_noop():
    state = init_state()
    assert reduce(state, {"type": "calculate"}) == state


def test_history_is_prepended_and_older_entries_untouched():
    first = settled("1+1")
    old_entry = first["history"][0]
    second = reduce(type_in(first, "3*3"), {"type": "calculate"})
    assert second["history"][0].expression == "3*3"
    assert second["history"][1] is old_entry
    assert len(first["history"]) == 1


def test_error_is_not_recorded():
    state = reduce(type_in(init_state(), "2+"), {"type": "calculate"})
    assert state["result"] == "Error"
    assert state["history"] == []
    assert state["outbox"] == []


def test_digit_after_result_starts_new_expression():
    state = reduce(settled("2+2"), {"type": "input", "token": "5"})
    assert state["expression"] == "5"
    assert state["result"] == ""


def test_digit_after_error_starts_new_expression():
    state = reduce(type_in(init_state(), "9/"), {"type": "calculate"})
    state = reduce(state, {"type": "input", "token": "7"})
    assert (state["expression"], state["result"]) == ("7", "")


def test_operator_after_result_appends_to_expression():
    state = reduce(settled("2+2"), {"type": "input", "token": "+"})
    # the operator extends the old expression text, not the result
    assert state["expression"] == "2+2+"
    assert state["result"] == "4"
    # a digit now still sees a displayed result and restarts
    state = reduce(state, {"type": "input", "token": "3"})
    assert (state["expression"], state["result"]) == ("3", "")


def test_clear_from_any_state():
    state = settled("2+2")
    state = reduce(state, {"type": "suggestion_received", "generation": state["generation"], "text": "x"})
    state = reduce(state, {"type": "clear"})
    assert (state["expression"], state["result"], state["suggestion"]) == ("", "", "")
    assert len(state["history"]) == 1


def test_backspace():
    state = reduce(type_in(init_state(), "12"), {"type": "backspace"})
    assert state["expression"] == "1"
    state = reduce(reduce(state, {"type": "backspace"}), {"type": "backspace"})
    assert state["expression"] == ""


def test_select_mode_keeps_display():
    state = reduce(settled("2+2"), {"type": "select_mode", "mode": "scientific"})
    assert state["mode"] is Mode.SCIENTIFIC
    assert (state["expression"], state["result"]) == ("2+2", "4")


def test_select_unknown_mode():
    with pytest.raises(ValueError):
        reduce(init_state(), {"type": "select_mode", "mode": "graphing"})


def test_unknown_action():
    with pytest.raises(ValueError):
        reduce(init_state(), {"type": "explode"})


def test_apply_history_entry_does_not_reevaluate():
    entry = HistoryEntry(expression="6*7", result="42", timestamp="2024-01-01T00:00:00.000Z")
    state = reduce(init_state(), {"type": "apply_history_entry", "entry": entry})
    assert (state["expression"], state["result"]) == ("6*7", "42")
    assert state["history"] == []
    assert state["outbox"] == []


def test_reduce_does_not_mutate_input():
    state = settled("1+2")
    before = copy.deepcopy(state)
    reduce(state, {"type": "input", "token": "+"})
    reduce(state, {"type": "clear"})
    assert state == before


def test_stale_suggestion_is_dropped():
    state = settled("2+2")
    stale = state["generation"]
    state = reduce(state, {"type": "input", "token": "1"})
    state = reduce(state, {"type": "suggestion_received", "generation": stale, "text": "EMI calculation"})
    assert state["suggestion"] == ""


def test_current_suggestion_applies_and_can_be_accepted():
    state = settled("2+2")
    state = reduce(state, {"type": "suggestion_received", "generation": state["generation"], "text": "EMI calculation"})
    assert state["suggestion"] == "EMI calculation"
    state = reduce(state, {"type": "accept_suggestion"})
    assert (state["expression"], state["suggestion"]) == ("EMI calculation", "")


def test_input_clears_suggestion():
    state = settled("2+2")
    state = reduce(state, {"type": "suggestion_received", "generation": state["generation"], "text": "s"})
    state = reduce(state, {"type": "input", "token": "+"})
    assert state["suggestion"] == ""


def test_business_keywords_never_evaluate():
    state = init_state(mode=Mode.BUSINESS)
    state = reduce(state, {"type": "input", "token": "EMI"})
    state = reduce(type_in(state, "500"), {"type": "calculate"})
    assert state["result"] == "Error"
    assert state["outbox"] == []


@pytest.mark.parametrize("expression, expected", [
    ("loan 5", ["loan"]),
    ("EMI 5", ["loan"]),
    ("Discount 5", ["discount"]),
    ("loan discount", ["loan", "discount"]),
    ("5+5", []),
])
def test_business_suggestion_requests(monkeypatch, expression, expected):
    monkeypatch.setattr(machine, "evaluate", lambda expr: "10")
    state = init_state(mode=Mode.BUSINESS)
    state = reduce(state, {"type": "input", "token": expression})
    state = reduce(state, {"type": "calculate"})
    requests = [e for e in state["outbox"] if e["kind"] == "request_suggestion"]
    assert [r["calculation_type"] for r in requests] == expected
    assert all(r["generation"] == state["generation"] for r in requests)


def test_suggestions_only_in_business_mode(monkeypatch):
    monkeypatch.setattr(machine, "evaluate", lambda expr: "10")
    state = reduce(init_state(), {"type": "input", "token": "loan"})
    state = reduce(state, {"type": "calculate"})
    assert [e["kind"] for e in state["outbox"]] == ["persist_history"]


def test_ai_messages():
    state = reduce(init_state(), {"type": "ai_input_changed", "text": "what is 2+2"})
    state = reduce(state, {"type": "ai_question", "text": "what is 2+2"})
    assert state["is_typing"] and state["ai_input"] == ""
    state = reduce(state, {"type": "ai_answer", "text": "4"})
    assert [(m.role, m.content) for m in state["ai_messages"]] == [("user", "what is 2+2"), ("assistant", "4")]
    assert not state["is_typing"]


def test_notifications():
    state = reduce(init_state(), {"type": "notify", "title": "Copied!"})
    assert state["notifications"] == [{"title": "Copied!", "description": "", "variant": "default"}]
    assert reduce(state, {"type": "dismiss_notifications"})["notifications"] == []
