"""LiteLLM adapters for the embedding and completion services.

All external model calls route through this module. LiteLLM's built-in retry
is used (``num_retries``, exponential backoff). Embedding failures raise;
completion failures are reported as ``CompletionResult(success=False)`` so the
orchestrator decides how to surface them.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)

EmbedFn = Callable[[str], Awaitable[Sequence[float]]]


@dataclass(frozen=True)
class CompletionResult:
    success: bool
    text: str | None = None
    error: str | None = None


CompleteFn = Callable[[str], Awaitable[CompletionResult]]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "vertex_ai": None,  # Application default credentials
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


async def aembed(model: str, text: str, num_retries: int = 3) -> list[float]:
    """Call litellm.aembedding() and return the embedding vector.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = await litellm.aembedding(
        model=model,
        input=[text],
        num_retries=num_retries,
    )
    return response.data[0]["embedding"]


async def acomplete(
    model: str,
    messages: list[dict],
    max_tokens: int = 2048,
    temperature: float = 0.0,
    num_retries: int = 3,
) -> CompletionResult:
    """Call litellm.acompletion(); never raises for provider errors."""
    try:
        response = await litellm.acompletion(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            num_retries=num_retries,
        )
    except Exception as exc:
        logger.warning("Completion call to %s failed: %s", model, exc)
        return CompletionResult(success=False, error=str(exc))

    content = response.choices[0].message.content
    if not content:
        return CompletionResult(success=False, error="Completion service returned no text.")
    return CompletionResult(success=True, text=content)


def embedder(model: str, num_retries: int = 3) -> EmbedFn:
    """Bind *model* into an ``async (text) -> vector`` embedding service."""

    async def _embed(text: str) -> list[float]:
        return await aembed(model, text, num_retries=num_retries)

    return _embed


def completer(
    model: str,
    max_tokens: int = 2048,
    temperature: float = 0.0,
    num_retries: int = 3,
) -> CompleteFn:
    """Bind *model* into an ``async (prompt) -> CompletionResult`` service."""

    async def _complete(prompt: str) -> CompletionResult:
        return await acomplete(
            model,
            [{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
            num_retries=num_retries,
        )

    return _complete
