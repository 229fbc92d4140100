from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

from anthropic import Anthropic
from openai import OpenAI

from funnel_builder.config import settings
from funnel_builder.llm.json_recovery import parse_json_with_recovery


class LLMClientConfigError(Exception):
    pass


class LLMGenerationError(RuntimeError):
    pass


logger = logging.getLogger(__name__)
_DEFAULT_MODEL = settings.LLM_DEFAULT_MODEL
_DEFAULT_TIMEOUT = settings.LLM_REQUEST_TIMEOUT
_MAX_RETRIES = settings.LLM_REQUEST_RETRIES
_JSON_MAX_ATTEMPTS = 3
_JSON_RETRY_DELAY_SECONDS = 1.0
_JSON_RETRY_BACKOFF = 2.0
_JSON_ONLY_INSTRUCTION = (
    "CRITICAL: Respond with valid JSON only. Do not wrap it in markdown code fences "
    "and do not add any commentary before or after the JSON."
)


@dataclass
class LLMGenerationParams:
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: float = 0.7
    system: Optional[str] = None
    response_format: Optional[dict[str, Any]] = None


class LLMClient:
    """
    Lightweight wrapper for generation calls used by the wizard services.
    Routes to the appropriate provider client based on the requested model.
    """

    def __init__(self, default_model: Optional[str] = None) -> None:
        self.default_model = default_model or _DEFAULT_MODEL
        self._anthropic_client: Optional[Anthropic] = None
        self._openai_client: Optional[OpenAI] = None

    def generate_text(self, prompt: str, params: Optional[LLMGenerationParams] = None) -> str:
        model = params.model if params and params.model else self.default_model
        model = model or _DEFAULT_MODEL
        if self._is_openai_model(model):
            return self._generate_with_openai(prompt, model, params)
        if model.startswith("claude"):
            return self._generate_with_anthropic(prompt, model, params)
        raise LLMClientConfigError(f"Unsupported model {model}")

    def generate_json(self, prompt: str, params: Optional[LLMGenerationParams] = None) -> Any:
        """Generate a reply and parse it as JSON, retrying with backoff on provider or parse failures."""
        base = params or LLMGenerationParams()
        system = f"{base.system}\n\n{_JSON_ONLY_INSTRUCTION}" if base.system else _JSON_ONLY_INSTRUCTION
        json_params = LLMGenerationParams(
            model=base.model,
            max_tokens=base.max_tokens,
            temperature=base.temperature,
            system=system,
            response_format=base.response_format,
        )

        delay = _JSON_RETRY_DELAY_SECONDS
        last_error: Optional[Exception] = None
        for attempt in range(1, _JSON_MAX_ATTEMPTS + 1):
            try:
                text = self.generate_text(prompt, json_params)
                return parse_json_with_recovery(text)
            except LLMClientConfigError:
                raise
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "JSON generation attempt failed",
                    extra={"attempt": attempt, "max_attempts": _JSON_MAX_ATTEMPTS, "error": str(exc)},
                )
                if attempt < _JSON_MAX_ATTEMPTS:
                    time.sleep(delay)
                    delay *= _JSON_RETRY_BACKOFF
        raise LLMGenerationError(f"JSON generation failed after {_JSON_MAX_ATTEMPTS} attempts: {last_error}")

    def _is_openai_model(self, model: str) -> bool:
        lower = model.lower()
        prefixes = ("gpt-", "chatgpt-", "o")
        return any(lower.startswith(prefix) for prefix in prefixes)

    def _generate_with_openai(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> str:
        api_key = os.getenv("OPENAI_API_KEY") or settings.OPENAI_API_KEY
        if not api_key:
            raise LLMClientConfigError("OPENAI_API_KEY not configured")

        if not self._openai_client:
            client_kwargs = {
                "api_key": api_key,
                "timeout": float(_DEFAULT_TIMEOUT),
                "max_retries": _MAX_RETRIES,
            }
            base_url = os.getenv("OPENAI_BASE_URL")
            if base_url:
                client_kwargs["base_url"] = base_url
            self._openai_client = OpenAI(**client_kwargs)

        messages = []
        if params and params.system:
            messages.append({"role": "system", "content": params.system})
        messages.append({"role": "user", "content": prompt})

        completion_kwargs: dict[str, Any] = {"model": model, "messages": messages}
        temperature = params.temperature if params else None
        if temperature is not None and not model.lower().startswith("o"):
            completion_kwargs["temperature"] = temperature
        if params and params.max_tokens:
            completion_kwargs["max_completion_tokens"] = params.max_tokens
        if params and params.response_format:
            completion_kwargs["response_format"] = params.response_format

        try:
            completion = self._openai_client.chat.completions.create(**completion_kwargs)
        except Exception:
            logger.exception("OpenAI chat completion failed", extra={"model": model})
            raise

        text = None
        if completion and completion.choices:
            text = getattr(completion.choices[0].message, "content", None)
        if text:
            return text

        raise LLMGenerationError(f"OpenAI chat completion returned no content for model {model}")

    def _generate_with_anthropic(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> str:
        api_key = os.getenv("ANTHROPIC_API_KEY") or settings.ANTHROPIC_API_KEY
        if not api_key:
            raise LLMClientConfigError("ANTHROPIC_API_KEY not configured")

        if not self._anthropic_client:
            self._anthropic_client = Anthropic(api_key=api_key)

        request_kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens if params and params.max_tokens else 4096,
            "temperature": params.temperature if params else 0.7,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": _DEFAULT_TIMEOUT,
        }
        if params and params.system:
            request_kwargs["system"] = params.system

        text = None
        for _ in range(_MAX_RETRIES + 1):
            try:
                response = self._anthropic_client.messages.create(**request_kwargs)
                text_parts = [content.text for content in response.content if getattr(content, "text", None)]
                text = "".join(text_parts) if text_parts else None
                if text:
                    break
            except Exception:
                logger.exception("Anthropic generation attempt failed", extra={"model": model})
                text = None

        if text:
            return text

        raise LLMGenerationError(f"Anthropic returned no content for model {model}")
