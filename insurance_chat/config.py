"""
Configuration for the Insurance Chat service.

One explicit config object is built at the entry point and passed into
constructors. Defaults match the bundled Ollama-compatible client.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace

# Default service settings
DEFAULT_MODEL = "llama3:8b"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 200
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_REQUEST_TIMEOUT = 60.0

# File paths
HISTORY_PATH = "data/chat_history.json"
LOG_DIR = "logs"
QUERY_LOG_FILE = "logs/query_log.json"

# Key the transcript is stored under in the local store
HISTORY_STORAGE_KEY = "insurance-chat-history"

ENV_PREFIX = "INSURANCE_CHAT_"


@dataclass(frozen=True)
class ChatConfig:
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    use_ai: bool = True
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def merged(self, **overrides) -> "ChatConfig":
        """
        Return a copy with the given fields replaced.

        None values are ignored so partial option dicts can be passed
        straight through.
        """
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls) -> "ChatConfig":
        """
        Build a config from INSURANCE_CHAT_* environment variables.

        Example: INSURANCE_CHAT_MODEL=llama3:8b INSURANCE_CHAT_USE_AI=false
        Unset variables keep their defaults.
        """
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in ("bool", bool):
                overrides[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            elif f.type in ("int", int):
                overrides[f.name] = int(raw)
            elif f.type in ("float", float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls().merged(**overrides)


DEFAULT_CONFIG = ChatConfig()
