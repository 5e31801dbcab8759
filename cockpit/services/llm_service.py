import time
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests
from openai import OpenAI, OpenAIError

from cockpit.core import config
from cockpit.core.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "langdock")
LANGDOCK_API_BASE = "https://api.langdock.com"
CLAUDE_MODEL_PREFIX = "claude"
REQUEST_TIMEOUT_SEC = 120

FORMAT_OPENAI = "openai_chat"
FORMAT_ANTHROPIC = "anthropic_messages"


@dataclass
class LLMCompletion:
    content: str
    model: Optional[str] = None
    usage: Any = None
    provider_format: str = FORMAT_OPENAI


def is_claude_model(model: str) -> bool:
    return (model or "").lower().startswith(CLAUDE_MODEL_PREFIX)


def _api_key(provider: str) -> str:
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown API provider: {provider}")
    key = config.OPENAI_API_KEY if provider == "openai" else config.LANGDOCK_API_KEY
    if not key:
        raise ConfigurationError(f"API key for {provider} is not configured")
    return key


def _openai_client(provider: str, api_key: str) -> OpenAI:
    if provider == "langdock":
        return OpenAI(api_key=api_key, base_url=f"{LANGDOCK_API_BASE}/openai/{config.LANGDOCK_REGION}/v1")
    return OpenAI(api_key=api_key)


def anthropic_messages_url() -> str:
    return f"{LANGDOCK_API_BASE}/anthropic/{config.LANGDOCK_REGION}/v1/messages"


def parse_anthropic_response(data) -> LLMCompletion:
    """Normalise an Anthropic messages response.

    LangDock returns either the message object itself or a one-element list
    wrapping it.
    """
    if isinstance(data, list):
        if not data:
            raise ProviderError("No content received from API")
        data = data[0]
    if not isinstance(data, dict):
        raise ProviderError("Unexpected response format from API")

    content = data.get("content")
    text = None
    if isinstance(content, list):
        text = "".join(
            block.get("text", "") for block in content
            if isinstance(block, dict) and block.get("type", "text") == "text"
        )
    elif isinstance(content, str):
        text = content
    elif isinstance(data.get("text"), str):
        text = data["text"]

    if not text or not text.strip():
        raise ProviderError("No content received from API")
    return LLMCompletion(
        content=text.strip(),
        model=data.get("model"),
        usage=data.get("usage"),
        provider_format=FORMAT_ANTHROPIC,
    )


def parse_openai_response(resp) -> LLMCompletion:
    choices = getattr(resp, "choices", None) or []
    if not choices:
        raise ProviderError("No content received from API")
    text = choices[0].message.content
    if not text or not text.strip():
        raise ProviderError("No content received from API")
    usage = getattr(resp, "usage", None)
    if usage is not None and hasattr(usage, "model_dump"):
        usage = usage.model_dump()
    return LLMCompletion(
        content=text.strip(),
        model=getattr(resp, "model", None),
        usage=usage,
        provider_format=FORMAT_OPENAI,
    )


def _anthropic_completion(api_key: str, model: str, prompt: str, temperature: float, max_tokens: int) -> LLMCompletion:
    body = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": [{"role": "user", "content": prompt}],
    }
    try:
        resp = requests.post(
            anthropic_messages_url(),
            json=body,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        logger.error("LangDock request failed: %s", e)
        raise ProviderError(f"Network error: {e.__class__.__name__}")

    if not resp.ok:
        try:
            message = (resp.json().get("error") or {}).get("message")
        except (ValueError, AttributeError):
            message = None
        logger.error("LangDock API error %s: %s", resp.status_code, message or resp.reason)
        raise ProviderError(f"API error: {message or resp.reason or resp.status_code}")

    try:
        data = resp.json()
    except ValueError:
        raise ProviderError("Unexpected response format from API")
    return parse_anthropic_response(data)


def _chat_completion(provider: str, api_key: str, model: str, prompt: str, temperature: float, max_tokens: int) -> LLMCompletion:
    client = _openai_client(provider, api_key)
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_completion_tokens=max_tokens,
        )
    except OpenAIError as e:
        logger.error("%s chat completion failed: %s", provider, e)
        raise ProviderError(f"API error: {e}")
    return parse_openai_response(resp)


def complete(prompt: str, provider: str, model: str, temperature: float = 0.7, max_tokens: int = 2000) -> LLMCompletion:
    """Send a single-turn prompt to the selected provider and model."""
    api_key = _api_key(provider)
    model = model or config.DEFAULT_MODEL
    t0 = time.time()
    if provider == "langdock" and is_claude_model(model):
        result = _anthropic_completion(api_key, model, prompt, temperature, max_tokens)
    else:
        result = _chat_completion(provider, api_key, model, prompt, temperature, max_tokens)
    logger.info("LLM completion done in %d ms (provider=%s, model=%s)", int((time.time() - t0) * 1000), provider, model)
    return result
