"""
Language model access for the claim document generators.

Three backends sit behind one call:
- OpenAI chat completions, when OPENAI_API_KEY is set
- a local Ollama server, when LOCAL_LLM_URL answers
- a mock that never reaches the network

LLM_BACKEND pins one of them ("openai", "local", "mock"); "auto" walks the
list in that order. Prompt text lives in claimdesk/ai/prompts.py, and every
caller keeps a templated fallback for when this module raises.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from flask import current_app, has_app_context

from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]

CLAIM_FACTS_RULE = (
    "Claim facts are fixed. Never make up measurements, storm dates, hail sizes, "
    "wind speeds or dollar figures; use only the numbers given in the claim data, "
    "and state their units (inches, mph, squares, dollars)."
)


def _setting(name: str, default: Any = None) -> Any:
    if has_app_context():
        value = current_app.config.get(name)
        if value not in (None, ""):
            return value
    return os.getenv(name, default)


@dataclass
class Completion:
    text: str
    backend: str
    model: str
    latency_ms: int = 0
    tokens: Dict[str, Optional[int]] = field(default_factory=dict)

    def as_meta(self) -> dict:
        return {
            "text": self.text,
            "model_source": self.backend,
            "model": self.model,
            "latency_ms": self.latency_ms,
        }


class _Timer:
    def __enter__(self):
        self.started = time.monotonic()
        self.ms = 0
        return self

    def __exit__(self, *exc):
        self.ms = int((time.monotonic() - self.started) * 1000)
        return False


class Backend:
    name = "base"
    model = ""

    def ready(self) -> bool:
        raise NotImplementedError

    def complete(self, messages: Messages, temperature=None, max_tokens=None) -> Completion:
        raise NotImplementedError


class MockBackend(Backend):
    name = "mock"
    model = "mock-llm"

    def ready(self) -> bool:
        return True

    def complete(self, messages, temperature=None, max_tokens=None):
        asked = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
        text = (
            "Mock model reply. Configure OPENAI_API_KEY or a local Ollama server "
            f"for generated claim documents. ({len(asked)} characters received)"
        )
        return Completion(text=text, backend=self.name, model=self.model)


class OpenAIBackend(Backend):
    name = "openai"

    @property
    def model(self):
        return _setting("OPENAI_MODEL", "gpt-4o-mini")

    def ready(self) -> bool:
        return bool(_setting("OPENAI_API_KEY"))

    def complete(self, messages, temperature=None, max_tokens=None):
        from openai import OpenAI

        client = OpenAI(api_key=_setting("OPENAI_API_KEY"), timeout=float(_setting("OPENAI_TIMEOUT", 60)))
        request = {"model": self.model, "messages": messages}
        if temperature is not None:
            request["temperature"] = temperature
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        with _Timer() as timer:
            reply = client.chat.completions.create(**request)

        choice = reply.choices[0].message.content if reply.choices else ""
        usage = reply.usage
        tokens = {}
        if usage is not None:
            tokens = {"prompt": usage.prompt_tokens, "completion": usage.completion_tokens}
        return Completion(
            text=(choice or "").strip(),
            backend=self.name,
            model=reply.model or self.model,
            latency_ms=timer.ms,
            tokens=tokens,
        )


class OllamaBackend(Backend):
    """Ollama's /api/generate takes one prompt, so roles are flattened into headed blocks."""

    name = "local"

    @property
    def model(self):
        return _setting("LOCAL_LLM_MODEL", "llama3.1")

    @property
    def url(self) -> str:
        return (_setting("LOCAL_LLM_URL", "http://localhost:11434") or "").rstrip("/")

    def ready(self) -> bool:
        if not self.url:
            return False
        try:
            return requests.get(f"{self.url}/api/tags", timeout=0.5).ok
        except requests.RequestException:
            return False

    @staticmethod
    def flatten(messages: Messages) -> str:
        blocks = []
        for message in messages:
            content = message.get("content")
            if not content:
                continue
            role = message.get("role", "user")
            blocks.append(content if role == "user" else f"[{role.upper()}]\n{content}")
        return "\n\n".join(blocks)

    def complete(self, messages, temperature=None, max_tokens=None):
        options = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        body = {"model": self.model, "prompt": self.flatten(messages), "stream": False}
        if options:
            body["options"] = options

        with _Timer() as timer:
            resp = requests.post(f"{self.url}/api/generate", json=body,
                                 timeout=int(_setting("LOCAL_LLM_TIMEOUT", 120)))
            resp.raise_for_status()
            payload = resp.json()

        tokens = {"prompt": payload.get("prompt_eval_count"), "completion": payload.get("eval_count")}
        return Completion(
            text=(payload.get("response") or "").strip(),
            backend=self.name,
            model=self.model,
            latency_ms=timer.ms,
            tokens=tokens,
        )


class LLMClient:
    def __init__(self):
        self.backends = {b.name: b for b in (OpenAIBackend(), OllamaBackend(), MockBackend())}

    def backend(self) -> Backend:
        pinned = str(_setting("LLM_BACKEND", "auto") or "auto").lower()
        if pinned in self.backends:
            return self.backends[pinned]
        for name in ("openai", "local"):
            if self.backends[name].ready():
                return self.backends[name]
        return self.backends["mock"]

    def status(self) -> dict:
        chosen = self.backend()
        return {"backend": chosen.name, "model": chosen.model, "available": chosen.name != "mock"}

    def complete(self, messages, temperature=None, max_tokens=None) -> Completion:
        if isinstance(messages, str):
            messages = [{"role": "user", "content": messages}]
        messages = [{"role": "system", "content": CLAIM_FACTS_RULE}] + list(messages)

        chosen = self.backend()
        try:
            result = chosen.complete(messages, temperature=temperature, max_tokens=max_tokens)
        except Exception as exc:
            logger.exception("%s backend failed", chosen.name)
            raise ExternalServiceError(f"Language model '{chosen.name}' is unavailable: {exc}") from exc

        logger.info("llm %s/%s answered in %sms tokens=%s", result.backend, result.model,
                    result.latency_ms, result.tokens)
        return result


llm = LLMClient()


def call_llm_with_meta(messages, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> dict:
    """Run one completion and return {"text", "model_source", "model", "latency_ms"}."""
    return llm.complete(messages, temperature=temperature, max_tokens=max_tokens).as_meta()
