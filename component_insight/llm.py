"""Multi-provider LLM adapter supporting Ollama, Groq, OpenAI, and Anthropic."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
import time
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

import requests

from .config import COMPONENT_PROMPT, LLM_API_KEY, LLM_ENDPOINT, LLM_MODEL, LLM_PROVIDER, LLM_TIMEOUT
from .prompts import build_component_messages, build_library_messages

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]

_FENCED_JSON = re.compile(r"```json(.*?)```", re.DOTALL)


class LLMError(Exception):
    """Raised when a component analysis request yields no usable result."""


class LLMProvider:
    """Base class for LLM providers."""

    def generate(self, messages: Messages) -> Optional[str]:
        """Return the assistant reply, or None when the provider is unavailable."""
        raise NotImplementedError


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider."""

    def __init__(self, model: str, endpoint: str, timeout: int = LLM_TIMEOUT):
        self.model = model
        self.endpoint = endpoint
        self.timeout = timeout

    def generate(self, messages: Messages) -> Optional[str]:
        # /api/generate takes a single prompt
        payload = json.dumps({
            "model": self.model,
            "prompt": messages_to_prompt(messages),
            "stream": False,
            "options": {"temperature": 0.1},
        }).encode("utf-8")

        req = urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
                return parsed.get("response")
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError) as exc:
            logger.warning("Ollama request failed: %s", exc)
            return None


class GroqProvider(LLMProvider):
    """Groq cloud API provider."""

    def __init__(self, model: str, api_key: str, timeout: int = LLM_TIMEOUT):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.endpoint = "https://api.groq.com/openai/v1/chat/completions"

    def generate(self, messages: Messages) -> Optional[str]:
        if not self.api_key:
            return None

        try:
            response = requests.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": 0.1,
                    "max_tokens": 4096,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"]
        except (requests.RequestException, KeyError, IndexError, ValueError) as exc:
            logger.warning("Groq request failed: %s", exc)
            return None


class OpenAIProvider(LLMProvider):
    """OpenAI API provider (also works with OpenRouter and other OpenAI-compatible APIs)."""

    def __init__(
        self,
        model: str,
        api_key: str,
        endpoint: str = "https://api.openai.com/v1/chat/completions",
        timeout: int = LLM_TIMEOUT,
    ):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout

    def generate(self, messages: Messages) -> Optional[str]:
        if not self.api_key:
            return None

        payload = json.dumps({
            "model": self.model,
            "messages": messages,
            "temperature": 0.1,
            "max_tokens": 4096,
        }).encode("utf-8")

        req = urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
                return parsed["choices"][0]["message"]["content"]
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError, KeyError, IndexError) as exc:
            logger.warning("OpenAI-compatible request failed: %s", exc)
            return None


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, model: str, api_key: str, timeout: int = LLM_TIMEOUT):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.endpoint = "https://api.anthropic.com/v1/messages"

    def generate(self, messages: Messages) -> Optional[str]:
        if not self.api_key:
            return None

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [m for m in messages if m["role"] != "system"],
            "max_tokens": 4096,
            "temperature": 0.1,
        }
        if system:
            body["system"] = system

        req = urllib.request.Request(
            self.endpoint,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
                return parsed["content"][0]["text"]
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError, KeyError, IndexError) as exc:
            logger.warning("Anthropic request failed: %s", exc)
            return None


def messages_to_prompt(messages: Messages) -> str:
    """Convert chat messages to a single prompt for completion-style endpoints."""
    labels = {"system": "System", "user": "User", "assistant": "Assistant"}
    return "\n\n".join(f"{labels.get(m['role'], m['role'])}: {m['content']}" for m in messages)


def structured_data_from_message(text: str) -> Optional[Dict[str, Any]]:
    """Extract the JSON object from a model reply.

    Replies without a fenced block are parsed as bare JSON; otherwise the last
    ```json block wins.
    """
    if "```json" not in text:
        candidate = text.strip()
    else:
        blocks = _FENCED_JSON.findall(text)
        candidate = blocks[-1].strip() if blocks else ""
    if not candidate:
        logger.debug("No JSON content in model reply: %.200s", text)
        return None
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("Failed to parse model reply: %.200s", text)
        return None
    return data if isinstance(data, dict) and data else None


class ComponentLLM:
    """Component analysis client on top of the configured provider."""

    def __init__(
        self,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ):
        """Initialize the client with provider selection.

        Args:
            model: Model name (defaults to config)
            provider: "ollama", "groq", "openai" or "anthropic" (defaults to config)
            api_key: API key for cloud providers (defaults to config)
            endpoint: Custom endpoint for Ollama or OpenAI-compatible gateways
            system_prompt: Replaces the built-in extraction prompt when given
                (defaults to the `prompt` key of the `[analysis]` config section)
        """
        self.provider_name = (provider or LLM_PROVIDER).lower()
        self.model = model or LLM_MODEL
        self.api_key = api_key or LLM_API_KEY
        self.endpoint = endpoint or LLM_ENDPOINT
        self.system_prompt = COMPONENT_PROMPT if system_prompt is None else system_prompt
        self.request_count = 0
        self.total_tokens = 0
        self._stats_lock = threading.Lock()

        self.provider = self._create_provider()

    def _create_provider(self) -> LLMProvider:
        if self.provider_name == "groq":
            return GroqProvider(self.model, self.api_key)
        if self.provider_name == "openai":
            return OpenAIProvider(self.model, self.api_key, self.endpoint or "https://api.openai.com/v1/chat/completions")
        if self.provider_name == "anthropic":
            return AnthropicProvider(self.model, self.api_key)
        return OllamaProvider(self.model, self.endpoint)

    def chat(self, messages: Messages) -> str:
        started = time.monotonic()
        reply = self.provider.generate(messages)
        if not reply:
            raise LLMError(f"LLM provider '{self.provider_name}' returned no response")

        prompt_chars = sum(len(m["content"]) for m in messages)
        with self._stats_lock:
            self.request_count += 1
            self.total_tokens += -(-(prompt_chars + len(reply)) // 4)
            count = self.request_count
        logger.debug("LLM request #%d done in %.0fms", count, (time.monotonic() - started) * 1000)
        return reply

    def analyze_component(self, code: str, name: str, related: Optional[List[str]] = None) -> Dict[str, Any]:
        messages = build_component_messages(code, name, related, self.system_prompt)
        data = structured_data_from_message(self.chat(messages))
        if data is None:
            raise LLMError(f"No JSON payload in the analysis of {name}")
        return data

    async def analyze_component_async(
        self, code: str, name: str, related: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Run :meth:`analyze_component` in a worker thread."""
        return await asyncio.to_thread(self.analyze_component, code, name, related)

    def analyze_library(self, package_json: Dict[str, Any], readme: Optional[str] = None) -> Dict[str, Any]:
        """Summarize a library from its package.json and README.

        Raises:
            LLMError: If the provider fails or the reply holds no JSON object.
        """
        data = structured_data_from_message(self.chat(build_library_messages(package_json, readme)))
        if data is None:
            raise LLMError("No JSON payload in the library summary")
        return data

    async def analyze_library_async(
        self, package_json: Dict[str, Any], readme: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(self.analyze_library, package_json, readme)

    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return {"request_count": self.request_count, "total_tokens": self.total_tokens}

    def reset_stats(self) -> None:
        with self._stats_lock:
            self.request_count = 0
            self.total_tokens = 0
