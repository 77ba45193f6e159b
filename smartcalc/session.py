# smartcalc/session.py
import functools
import threading
from typing import Callable, Optional

from smartcalc.config import HISTORY_FILE
from smartcalc.errors import AICallError, VoiceError
from smartcalc.keypad import key_to_token, route
from smartcalc.machine import reduce
from smartcalc.observability import log_trace
from smartcalc.state import CalculatorState, HistoryEntry, Mode, init_state
from smartcalc.tools.history_store import HistoryStore, JsonFileStore

AI_FALLBACK = "Sorry, I couldn't process that. Please try again."
SHARE_TITLE = "SmartCalc AI Calculation"
SHARE_DEFAULT = "Check out SmartCalc AI!"


class CalculatorSession:
    """
    One calculator: state, history persistence and the AI collaborators.

    Suggestion requests run on ``executor`` when one is given (a
    ``concurrent.futures.Executor`` or anything whose ``submit(fn)`` returns a
    future) and inline otherwise. Failed jobs are traced. Replies are dispatched back
    tagged with the generation they were requested for, so a reply that
    arrives after further input is dropped by the reducer.

    ``recognizer`` is an optional speech recognizer with ``start()`` and
    ``stop()``; it reports back through :meth:`on_transcript`,
    :meth:`on_voice_error` and :meth:`on_recording_end`.
    ``sharer(title, text)`` and ``clipboard(text)`` are optional callables.
    """

    def __init__(self, history_store: HistoryStore = None, flows=None, executor=None,
                 recognizer=None, sharer: Optional[Callable[[str, str], None]] = None,
                 clipboard: Optional[Callable[[str], None]] = None, mode: Mode = Mode.STANDARD):
        self.store = history_store or HistoryStore(JsonFileStore(HISTORY_FILE))
        if flows is None:
            from smartcalc.graph import CalculationFlows
            flows = CalculationFlows()
        self.flows = flows
        self.executor = executor
        self.recognizer = recognizer
        self.sharer = sharer
        self.clipboard = clipboard
        self._lock = threading.RLock()
        self.state: CalculatorState = init_state(self.store.load(), mode)

    # -------------------------------
    # Dispatch
    # -------------------------------
    def dispatch(self, action: dict) -> CalculatorState:
        with self._lock:
            self.state = reduce(self.state, action)
            outbox, self.state["outbox"] = self.state["outbox"], []
            for effect in outbox:
                self._perform(effect)
            return self.state

    def _perform(self, effect: dict):
        if effect["kind"] == "persist_history":
            self.store.save(self.state["history"])
        elif effect["kind"] == "request_suggestion":
            job = functools.partial(self._fetch_suggestion, effect["calculation_type"], effect["generation"])
            if self.executor is None:
                job()
            else:
                future = self.executor.submit(job)
                future.add_done_callback(functools.partial(self._suggestion_done, effect["calculation_type"]))

    def _fetch_suggestion(self, calculation_type: str, generation: int):
        try:
            output = self.flows.suggest(calculation_type, [])
        except AICallError as e:
            log_trace("session.suggestion_dropped", {"calculation_type": calculation_type, "error": str(e)})
            return
        self.dispatch({"type": "suggestion_received", "generation": generation,
                       "text": output.suggested_calculation})

    def _suggestion_done(self, calculation_type: str, future):
        error = future.exception()
        if error is not None:
            log_trace("session.suggestion_failed", {"calculation_type": calculation_type, "error": repr(error)})

    # -------------------------------
    # Keypad
    # -------------------------------
    def press(self, token: str) -> CalculatorState:
        return self.dispatch(route(token))

    def key(self, key: str, ctrl: bool = False) -> bool:
        """Handle a keyboard key. Returns False when the key is not a calculator key."""
        token = key_to_token(key, ctrl)
        if token is None:
            return False
        self.press(token)
        return True

    def input(self, token: str) -> CalculatorState:
        return self.dispatch({"type": "input", "token": token})

    def calculate(self) -> CalculatorState:
        return self.dispatch({"type": "calculate"})

    def clear(self) -> CalculatorState:
        return self.dispatch({"type": "clear"})

    def backspace(self) -> CalculatorState:
        return self.dispatch({"type": "backspace"})

    def select_mode(self, mode) -> CalculatorState:
        return self.dispatch({"type": "select_mode", "mode": mode})

    def apply_history_entry(self, entry: HistoryEntry) -> CalculatorState:
        return self.dispatch({"type": "apply_history_entry", "entry": entry})

    def accept_suggestion(self) -> CalculatorState:
        return self.dispatch({"type": "accept_suggestion"})

    # -------------------------------
    # AI chat
    # -------------------------------
    def ask(self, question: str) -> CalculatorState:
        if not question.strip() or self.state["is_typing"]:
            return self.state
        self.dispatch({"type": "ai_question", "text": question})
        try:
            answer = self.flows.ask(question).answer
        except Exception as e:
            log_trace("session.ai_error", {"error": repr(e)})
            answer = AI_FALLBACK
        return self.dispatch({"type": "ai_answer", "text": answer})

    # -------------------------------
    # Voice
    # -------------------------------
    def toggle_recording(self) -> CalculatorState:
        if self.recognizer is None:
            return self.dispatch({"type": "notify", "title": "Not Supported",
                                  "description": "Voice recognition is not supported on this device.",
                                  "variant": "destructive"})
        if self.state["is_recording"]:
            self.recognizer.stop()
            return self.dispatch({"type": "recording_stopped"})
        try:
            self.recognizer.start()
        except VoiceError as e:
            return self.on_voice_error(e)
        return self.dispatch({"type": "recording_started"})

    def on_transcript(self, transcript: str) -> CalculatorState:
        return self.dispatch({"type": "voice_transcript", "text": transcript})

    def on_voice_error(self, error) -> CalculatorState:
        log_trace("session.voice_error", {"error": str(error)})
        self.dispatch({"type": "voice_failed"})
        return self.dispatch({"type": "notify", "title": "Voice Error",
                              "description": "Couldn't recognize speech.", "variant": "destructive"})

    def on_recording_end(self) -> CalculatorState:
        return self.dispatch({"type": "recording_stopped"})

    # -------------------------------
    # Sharing
    # -------------------------------
    def share_text(self) -> str:
        if self.state["result"]:
            return f"{self.state['expression']} = {self.state['result']}"
        return SHARE_DEFAULT

    def share(self) -> CalculatorState:
        text = self.share_text()
        if self.sharer is not None:
            try:
                self.sharer(SHARE_TITLE, text)
                return self.state
            except Exception as e:
                log_trace("session.share_failed", {"error": str(e)})
                self._copy_to_clipboard(text)
                return self.dispatch({"type": "notify", "title": "Sharing failed",
                                      "description": "The calculation has been copied to your clipboard."})
        self._copy_to_clipboard(text)
        return self.dispatch({"type": "notify", "title": "Copied to clipboard!"})

    def copy(self, text: str) -> CalculatorState:
        self._copy_to_clipboard(text)
        return self.dispatch({"type": "notify", "title": "Copied!",
                              "description": f'"{text}" has been copied to your clipboard.'})

    def _copy_to_clipboard(self, text: str):
        if self.clipboard is None:
            log_trace("session.clipboard_unavailable", {"text": text})
            return
        try:
            self.clipboard(text)
        except Exception as e:
            log_trace("session.clipboard_failed", {"error": str(e)})
