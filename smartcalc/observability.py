# smartcalc/observability.py
import json
import os
from datetime import datetime, timezone
from smartcalc.config import ARTIFACTS

TRACE_FILE = os.path.join(ARTIFACTS, "trace.jsonl")


def log_trace(step: str, data: dict):
    entry = {"time": datetime.now(timezone.utc).isoformat(), "step": step, "data": data}
    try:
        os.makedirs(os.path.dirname(TRACE_FILE) or ".", exist_ok=True)
        with open(TRACE_FILE, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError:
        pass


def export_session_summary(summary: dict, artifacts_dir: str = ARTIFACTS) -> str:
    os.makedirs(artifacts_dir, exist_ok=True)
    summary_file = os.path.join(artifacts_dir, "session_summary.json")
    with open(summary_file, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, default=str)
    return summary_file
