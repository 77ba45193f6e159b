# smartcalc/errors.py


class EvaluationError(ValueError):
    """Invalid characters, malformed expression or non-finite result."""


class PersistenceError(RuntimeError):
    """History could not be read from or written to the key-value store."""


class AICallError(RuntimeError):
    """The model call failed or its output did not match the flow schema."""


class VoiceError(RuntimeError):
    """Speech recognition failed or is unavailable."""
