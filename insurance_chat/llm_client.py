from __future__ import annotations

import logging
from typing import Optional

import requests

from insurance_chat.config import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the model provider cannot produce a completion."""


class LLMClient:
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.url = f"{self.base_url}/api/generate"
        self.timeout = timeout

    def list_models(self) -> list[str]:
        """Names of the models the provider has available."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMError(f"Model listing failed: {e}") from e

        if response.status_code != 200:
            raise LLMError(f"Model listing failed: {response.text}")

        return [m["name"] for m in response.json().get("models", [])]

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        options = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens

        payload = {
            "model": model or self.model,
            "prompt": prompt,
            "stream": False,
        }
        if options:
            payload["options"] = options

        logger.debug(f"Requesting completion from {payload['model']}")
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMError(f"LLM request failed: {e}") from e

        if response.status_code != 200:
            raise LLMError(f"LLM request failed: {response.text}")

        return response.json()["response"]
