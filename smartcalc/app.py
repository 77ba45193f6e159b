# smartcalc/app.py
"""
Terminal front end for SmartCalc.

Each line is read as keypad input (``12+7=``) unless it starts with a colon:

    :mode <standard|scientific|business|statistics|ai>
    :keys            show the keypad of the current mode
    :history         list past calculations
    :recall <n>      load history entry n into the display
    :ask <question>  ask the AI a math question
    :try             use the current suggestion
    :share           print the share text
    :quit
"""
import json

from smartcalc.keypad import layout, panel
from smartcalc.observability import export_session_summary, log_trace
from smartcalc.session import CalculatorSession
from smartcalc.state import Mode


def render(state) -> str:
    lines = [f"[{state['mode'].value}] {state['expression'] or ' '}", f"= {state['result'] or '0'}"]
    if state["suggestion"]:
        lines.append(f"Try: {state['suggestion']}  (:try)")
    for note in state["notifications"]:
        lines.append(f"! {note['title']} {note['description']}".rstrip())
    return "\n".join(lines)


def render_keys(mode) -> str:
    buttons = layout(mode)
    if not buttons:
        if panel(mode) == "statistics":
            return "Ask AI for statistical calculations! (:mode ai)"
        return "Ask me anything... (:ask <question>)"
    return " ".join(f"{b.label}" if b.label == b.token else f"{b.label}<{b.token}>" for b in buttons)


def handle_command(session: CalculatorSession, line: str) -> bool:
    command, _, arg = line[1:].partition(" ")
    arg = arg.strip()
    if command == "quit":
        return False
    if command == "mode":
        try:
            session.select_mode(arg)
        except ValueError:
            print(f"Unknown mode: {arg}. Choose from {', '.join(m.value for m in Mode)}")
        print(render_keys(session.state["mode"]))
    elif command == "keys":
        print(render_keys(session.state["mode"]))
    elif command == "history":
        if not session.state["history"]:
            print("No history yet.")
        for i, entry in enumerate(session.state["history"]):
            print(f"{i}: {entry.expression} = {entry.result}  ({entry.timestamp})")
    elif command == "recall":
        try:
            session.apply_history_entry(session.state["history"][int(arg)])
        except (ValueError, IndexError):
            print(f"No history entry {arg!r}")
    elif command == "ask":
        session.ask(arg)
        for message in session.state["ai_messages"][-2:]:
            print(f"{message.role}: {message.content}")
    elif command == "try":
        session.accept_suggestion()
    elif command == "share":
        print(session.share_text())
    else:
        print(__doc__)
    return True


def feed(session: CalculatorSession, line: str):
    """Press whole keypad tokens ('sin(', 'EMI') when given, keyboard keys otherwise."""
    tokens = {b.token for b in layout(session.state["mode"])}
    for chunk in line.split():
        if chunk in tokens:
            session.press(chunk)
            continue
        for ch in chunk:
            if not session.key(ch):
                session.input(ch)


def run():
    session = CalculatorSession()
    log_trace("app.start", {"history": len(session.state["history"])})
    print("SmartCalc AI. Type :help for commands.")
    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if line.startswith(":"):
            if not handle_command(session, line):
                break
        elif line:
            feed(session, line)
        print(render(session.state))
        session.dispatch({"type": "dismiss_notifications"})

    summary_file = export_session_summary({
        "calculations": len(session.state["history"]),
        "ai_messages": [m.model_dump() for m in session.state["ai_messages"]],
    })
    log_trace("app.exit", {"summary": summary_file})
    print(json.dumps({"summary": summary_file}))


if __name__ == "__main__":
    run()
