# smartcalc/state.py
from enum import Enum
from typing_extensions import TypedDict, Literal
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Mode(str, Enum):
    STANDARD = "standard"
    SCIENTIFIC = "scientific"
    BUSINESS = "business"
    STATISTICS = "statistics"
    AI = "ai"


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    expression: str
    result: str
    # older stores wrote the timestamp under "date"
    timestamp: str = Field(validation_alias=AliasChoices("timestamp", "date"))

    @classmethod
    def now(cls, expression: str, result: str) -> "HistoryEntry":
        stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return cls(expression=expression, result=result, timestamp=stamp)


class AIMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


# Calculator state (owned by a single session)
class CalculatorState(TypedDict):
    expression: str
    result: str
    mode: Mode
    suggestion: str
    generation: int                   # bumped whenever older suggestion requests go stale
    history: List[HistoryEntry]       # newest first
    ai_input: str
    ai_messages: List[AIMessage]
    is_typing: bool
    is_recording: bool
    notifications: List[Dict[str, str]]
    outbox: List[Dict[str, Any]]      # effects for the session to perform, e.g. persist_history


def init_state(history: Optional[List[HistoryEntry]] = None, mode: Mode = Mode.STANDARD) -> CalculatorState:
    return {
        "expression": "",
        "result": "",
        "mode": Mode(mode),
        "suggestion": "",
        "generation": 0,
        "history": list(history or []),
        "ai_input": "",
        "ai_messages": [],
        "is_typing": False,
        "is_recording": False,
        "notifications": [],
        "outbox": [],
    }


# Flow states for the AI graphs
class AnswerState(TypedDict):
    question: str
    answer: str
    errors: List[str]


class SuggestionState(TypedDict):
    current_type: str
    recent_types: List[str]
    suggestion: str
    source: str
    errors: List[str]
