"""
LLM provider abstraction and response parsing utilities.

Provides a provider-agnostic interface for multimodal LLM API calls with
automatic retries on transient errors and utilities for parsing structured
JSON responses.
"""

import base64
import json
import os
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Sequence, TypeVar

from dotenv import load_dotenv
from loguru import logger

from mediabrief.exceptions import ModelUnavailable

load_dotenv()

# Retry configuration
MAX_RETRIES = 5
BASE_DELAY = 1.0

MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "16000"))
TEMPERATURE = 0.1

T = TypeVar("T")


def _retry_with_backoff(
    operation: Callable[[], T],
    retryable_exception: type[Exception],
    error_message: str,
) -> T:
    """
    Execute operation with exponential backoff retry on specific exception.

    Args:
        operation: Callable that performs the API request and returns result
        retryable_exception: Exception type that triggers retry
        error_message: Message prefix for retry logging (e.g., "API overloaded")
    """
    for attempt in range(MAX_RETRIES):
        try:
            return operation()
        except retryable_exception:
            if attempt == MAX_RETRIES - 1:
                raise
            delay = BASE_DELAY * (2**attempt)
            logger.warning(
                f"{error_message}, retrying in {delay:.1f}s... "
                f"(attempt {attempt + 1}/{MAX_RETRIES})"
            )
            time.sleep(delay)


# --- LLM Provider Classes ---


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int
    truncated: bool = False
    finish_reason: Optional[str] = None


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses must:
    - Set _provider_prefix class attribute (e.g., "anthropic", "openai")
    - Set self._retryable_exception to the exception type that triggers retry
    - Set self._unavailable_exception to the SDK's base API error type
    - Set self._retry_message for logging during retries
    - Implement _call_api() for the actual API call
    - Call update_model(model) in __init__ to set model and name
    """

    _provider_prefix: str
    _retryable_exception: type[Exception]
    _unavailable_exception: type[Exception]
    _retry_message: str

    name: str
    model: str

    def update_model(self, model: str):
        """Update the model and refresh the provider name."""
        self.model = model
        self.name = f"{self._provider_prefix}/{model}"

    @abstractmethod
    def _call_api(
        self, system_prompt: str, user_prompt: str, images: Sequence[bytes] = ()
    ) -> LLMResponse:
        """Make a single API call (no retries). Implemented by subclasses."""
        pass

    def generate(
        self, system_prompt: str, user_prompt: str, images: Sequence[bytes] = ()
    ) -> LLMResponse:
        """
        Generate a response from the LLM with automatic retry on transient errors.

        Args:
            system_prompt: Instruction/schema prompt
            user_prompt: Request text
            images: PNG page images sent ahead of the request text, in order

        Raises:
            ModelUnavailable: On any provider or transport failure that survives retries
        """
        try:
            return _retry_with_backoff(
                partial(self._call_api, system_prompt, user_prompt, images),
                self._retryable_exception,
                self._retry_message,
            )
        except self._unavailable_exception as e:
            raise ModelUnavailable(
                "Model provider request failed", provider=self.name, original_error=e
            ) from e


def _encode_png(image: bytes) -> str:
    return base64.standard_b64encode(image).decode("utf-8")


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider with exponential backoff retry."""

    _provider_prefix = "anthropic"
    _retry_message = "API overloaded"

    def __init__(self, model: str = "claude-sonnet-4-20250514"):
        # Lazy import - anthropic SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install anthropic")

        self.update_model(model)

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ModelUnavailable(
                "ANTHROPIC_API_KEY environment variable not set", provider=self.name
            )

        self.client = anthropic.Anthropic(api_key=api_key)
        self._retryable_exception = anthropic.OverloadedError
        self._unavailable_exception = anthropic.APIError

    def _call_api(
        self, system_prompt: str, user_prompt: str, images: Sequence[bytes] = ()
    ) -> LLMResponse:
        content = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": "image/png", "data": _encode_png(image)},
            }
            for image in images
        ]
        content.append({"type": "text", "text": user_prompt})

        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            system=system_prompt,
            messages=[{"role": "user", "content": content}],
        )
        return LLMResponse(
            content="".join(block.text for block in response.content if block.type == "text"),
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            truncated=response.stop_reason == "max_tokens",
            finish_reason=response.stop_reason,
        )


class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider with exponential backoff retry and JSON response mode."""

    _provider_prefix = "openai"
    _retry_message = "Rate limit hit"

    def __init__(self, model: str = "gpt-4o-mini"):
        # Lazy import - openai SDK is heavy, only load if this provider is used
        try:
            import openai
        except ImportError:
            raise ImportError("openai package required. Install with: pip install openai")

        self.update_model(model)

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ModelUnavailable(
                "OPENAI_API_KEY environment variable not set", provider=self.name
            )

        self.client = openai.OpenAI(api_key=api_key)
        self._retryable_exception = openai.RateLimitError
        self._unavailable_exception = openai.OpenAIError

    def _call_api(
        self, system_prompt: str, user_prompt: str, images: Sequence[bytes] = ()
    ) -> LLMResponse:
        if images:
            user_content = [
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/png;base64,{_encode_png(image)}"},
                }
                for image in images
            ]
            user_content.append({"type": "text", "text": user_prompt})
        else:
            user_content = user_prompt

        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        )
        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            model=self.model,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
            truncated=choice.finish_reason == "length",
            finish_reason=choice.finish_reason,
        )


# --- Provider Factory ---


def get_provider(provider_name: str = None, model: str = None) -> LLMProvider:
    """
    Get an LLM provider instance.

    Args:
        provider_name: "anthropic" or "openai" (default: from LLM_PROVIDER env var)
        model: Model name (default: LLM_MODEL env var, then provider-specific default)

    Returns:
        LLMProvider instance

    Raises:
        ModelUnavailable: If the provider is unknown or its API key is not configured
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "openai").lower()
    if model is None:
        model = os.getenv("LLM_MODEL") or None

    if provider_name == "anthropic":
        return AnthropicProvider(model=model) if model else AnthropicProvider()
    elif provider_name == "openai":
        return OpenAIProvider(model=model) if model else OpenAIProvider()
    else:
        raise ModelUnavailable(f"Unknown provider: {provider_name}. Use 'anthropic' or 'openai'")


# --- Response Parsing Utilities ---


def parse_json_object(text: str) -> Optional[dict]:
    """
    Parse a JSON object from an LLM response, handling markdown code blocks.

    Args:
        text: LLM response text

    Returns:
        The parsed dict, or None if no JSON object can be recovered
    """
    text = (text or "").strip()

    # Try direct parse first
    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else None
    except json.JSONDecodeError:
        pass

    # Strip markdown code blocks
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)

    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else None
    except json.JSONDecodeError:
        pass

    # Try the outermost braces (model wrapped the object in prose)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            result = json.loads(text[start : end + 1])
            return result if isinstance(result, dict) else None
        except json.JSONDecodeError:
            pass

    return None
