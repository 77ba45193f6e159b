# smartcalc/keypad.py
from typing import NamedTuple, Optional, Tuple, Union

from smartcalc.state import Mode


class ButtonDescriptor(NamedTuple):
    label: str
    token: str
    visual_class: str = ""


ACTION = "action"
EQUALS = "equals"
TEXT = "text"
WIDE = "wide"


def _buttons(*specs: Union[str, tuple]) -> Tuple[ButtonDescriptor, ...]:
    # a bare string is its own label and token
    return tuple(ButtonDescriptor(s, s) if isinstance(s, str) else ButtonDescriptor(*s) for s in specs)


STANDARD = _buttons(
    ("C", "C", ACTION), ("%", "%", ACTION), ("⌫", "backspace", ACTION), ("÷", "/", ACTION),
    "7", "8", "9", ("×", "*", ACTION),
    "4", "5", "6", ("-", "-", ACTION),
    "1", "2", "3", ("+", "+", ACTION),
    ("0", "0", WIDE), ".", ("=", "=", EQUALS),
)

SCIENTIFIC = _buttons(
    ("sin", "sin("), ("cos", "cos("), ("tan", "tan("), ("C", "C", ACTION),
    ("log", "log("), ("ln", "ln("), "(", ")",
    ("√", "sqrt("), ("x²", "^2"), ("xʸ", "^"), ("π", "pi"),
    "7", "8", "9", ("÷", "/", ACTION),
    "4", "5", "6", ("×", "*", ACTION),
    "1", "2", "3", ("-", "-", ACTION),
    "0", ".", ("⌫", "backspace"), ("+", "+", ACTION),
    ("=", "=", EQUALS),
)

BUSINESS = _buttons(
    "C", "(", ")", ("DEL", "backspace", f"{ACTION} {TEXT}"),
    ("EMI", "EMI", TEXT), ("GST", "GST", TEXT), ("Discount", "Discount", TEXT), ("÷", "/", ACTION),
    "7", "8", "9", ("×", "*", ACTION),
    "4", "5", "6", ("-", "-", ACTION),
    "1", "2", "3", ("+", "+", ACTION),
    "0", ".", "%", ("=", "=", EQUALS),
)

LAYOUTS = {
    Mode.STANDARD: STANDARD,
    Mode.SCIENTIFIC: SCIENTIFIC,
    Mode.BUSINESS: BUSINESS,
    Mode.STATISTICS: (),
    Mode.AI: (),
}

PANELS = {
    Mode.STANDARD: "keypad",
    Mode.SCIENTIFIC: "keypad",
    Mode.BUSINESS: "keypad",
    Mode.STATISTICS: "statistics",
    Mode.AI: "chat",
}

# tokens handled by the state machine instead of being typed
COMMANDS = {
    "=": {"type": "calculate"},
    "C": {"type": "clear"},
    "backspace": {"type": "backspace"},
}


def layout(mode) -> Tuple[ButtonDescriptor, ...]:
    """Buttons for a mode in display order. Modes without a keypad get none."""
    return LAYOUTS[Mode(mode)]


def panel(mode) -> str:
    return PANELS[Mode(mode)]


def route(token: str) -> dict:
    """Turn a button token into a state machine action."""
    if token in COMMANDS:
        return dict(COMMANDS[token])
    return {"type": "input", "token": token}


def key_to_token(key: str, ctrl: bool = False) -> Optional[str]:
    """Map a keyboard key to a button token, or None when the key is not ours."""
    if ctrl and key.lower() == "c":
        return None
    if len(key) == 1 and key in "0123456789+-*/.()%":
        return key
    if key in ("Enter", "="):
        return "="
    if key == "Backspace":
        return "backspace"
    if key.lower() == "c" or key in ("Delete", "Escape"):
        return "C"
    return None
