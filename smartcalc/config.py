# smartcalc/config.py
import os
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

GROQ_API_KEY = os.environ.get("GROQ_API_KEY")
GROQ_BASE_URL = os.environ.get("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
DEFAULT_MODEL = os.environ.get("DEFAULT_GROQ_MODEL", "llama-3.3-70b-versatile")

ARTIFACTS = os.environ.get("SMARTCALC_ARTIFACTS", "artifacts")
HISTORY_FILE = os.environ.get("SMARTCALC_HISTORY_FILE", os.path.join(ARTIFACTS, "local_storage.json"))
HISTORY_KEY = "smartcalc-history"
