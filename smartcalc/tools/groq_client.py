# smartcalc/tools/groq_client.py
import os
import requests
import hashlib
import json
import threading
import time
from typing import List, Dict, Optional

from smartcalc.config import ARTIFACTS, GROQ_BASE_URL
from smartcalc.observability import log_trace

CACHE_FILE = os.path.join(os.environ.get("ARTIFACTS_CACHE", ARTIFACTS), "groq_cache.json")
UNAVAILABLE = "[GROQ_UNAVAILABLE]"
RETRIABLE_STATUS = (429, 502, 503, 504)


def _load_cache(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return {}


def _save_cache(path: str, c: dict):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(c, f, indent=2)


class GroqClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 cache_file: str = CACHE_FILE, session: Optional[requests.Session] = None,
                 backoff: float = 1.0):
        self.api_key = api_key or os.environ.get("GROQ_API_KEY")
        self.base_url = base_url or GROQ_BASE_URL
        if not self.api_key:
            raise RuntimeError("GROQ_API_KEY not set in env.")
        self.cache_file = cache_file
        self.cache = _load_cache(cache_file)
        self._cache_lock = threading.Lock()
        self.http = session or requests.Session()
        self.backoff = backoff

    def _cache_key(self, model: str, messages: List[Dict[str, str]]):
        h = hashlib.sha256(json.dumps({"model": model, "messages": messages}, sort_keys=True).encode()).hexdigest()
        return h

    def chat(self, messages: List[Dict[str, str]], model: str, max_tokens: int = 512,
             temperature: float = 0.2, use_cache: bool = True) -> str:
        key = self._cache_key(model, messages)
        if use_cache and key in self.cache:
            return self.cache[key]["resp"]

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        # retries / backoff for 429/5xx
        attempts = 0
        while attempts <= 2:
            attempts += 1
            resp = self.http.post(url, headers=headers, json=payload, timeout=30)
            if resp.status_code == 200:
                data = resp.json()
                try:
                    text = data["choices"][0]["message"]["content"]
                except (KeyError, IndexError, TypeError):
                    text = json.dumps(data)
                if use_cache:
                    # worker threads share the cache dict and file
                    with self._cache_lock:
                        self.cache[key] = {"resp": text, "meta": {"model": model, "time": time.time()}}
                        try:
                            _save_cache(self.cache_file, self.cache)
                        except OSError as e:
                            log_trace("groq.cache_error", {"error": str(e)})
                return text
            elif resp.status_code in RETRIABLE_STATUS:
                wait = self.backoff * (2 ** (attempts - 1))
                log_trace("groq.retry", {"status": resp.status_code, "attempt": attempts, "wait": wait})
                time.sleep(wait)
                continue
            else:
                # non-retriable error
                raise RuntimeError(f"GROQ API error {resp.status_code}: {resp.text}")

        # final fallback
        return UNAVAILABLE
