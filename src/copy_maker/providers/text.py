"""Text generation gateway using Agno framework.

The gateway is the only place that talks to an LLM. Everything above it
works against the ProviderGateway protocol, so tests can swap in a fake.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol

import httpx
from pydantic import BaseModel

from ..errors import OperationCancelledError, ProviderError, ProviderErrorKind
from .config import ProviderConfig, TextProviderConfig, estimate_cost, load_provider_config

if TYPE_CHECKING:
    from ..services.session import CancellationToken

_logger = logging.getLogger("ai_calls")

# Type for AI event callback
AIEventCallback = Callable[[dict[str, Any]], Awaitable[None]] | None

_AUTH_STATUS_CODES = {401, 403}
_TRANSIENT_STATUS_CODES = {408, 409, 425, 429}


class ProviderResponse(BaseModel):
    """Text returned by one provider request."""

    text: str
    tokens_used: int = 0
    provider: str | None = None
    model: str | None = None
    cost_usd: float | None = None
    """Price of the call when the gateway knows it; estimated from tokens otherwise."""


class ProviderGateway(Protocol):
    """Anything that can turn a prompt pair into text."""

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        cancellation_token: CancellationToken | None = None,
    ) -> ProviderResponse:
        ...


# Provider name -> (module, class, keyword used for the base url)
_AGNO_MODELS: dict[str, tuple[str, str, str | None]] = {
    "openai": ("agno.models.openai", "OpenAIChat", None),
    "anthropic": ("agno.models.anthropic", "Claude", None),
    "groq": ("agno.models.groq", "Groq", None),
    "gemini": ("agno.models.google", "Gemini", None),
    "deepseek": ("agno.models.deepseek", "DeepSeek", None),
    "ollama": ("agno.models.ollama", "Ollama", "host"),
    "lmstudio": ("agno.models.lmstudio", "LMStudio", "base_url"),
}


def _create_agno_model(provider_name: str, provider_config: TextProviderConfig) -> Any:
    """Create an Agno model instance for the given provider.

    Unknown provider names are treated as OpenAI-compatible endpoints.
    """
    module_name, class_name, url_kwarg = _AGNO_MODELS.get(
        provider_name, ("agno.models.openai.like", "OpenAILike", "base_url")
    )
    # Import lazily so only the selected provider's SDK must be installed
    model_cls = getattr(importlib.import_module(module_name), class_name)

    kwargs: dict[str, Any] = {"id": provider_config.model_id}
    if provider_name not in ("ollama", "lmstudio"):
        kwargs["api_key"] = provider_config.get_api_key()
    base_url = provider_config.get_base_url()
    if url_kwarg and base_url:
        kwargs[url_kwarg] = base_url
    return model_cls(**kwargs)


def _status_code_of(error: BaseException) -> int | None:
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def classify_error(error: BaseException, provider: str | None = None) -> ProviderError:
    """Map any exception raised by a provider call to a ProviderError.

    Args:
        error: Exception raised while calling the provider.
        provider: Provider name for the error details.

    Returns:
        ProviderError with kind transient, auth_error or malformed_response.
        Errors that cannot be classified are treated as transient.
    """
    if isinstance(error, ProviderError):
        return error

    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ProviderError(
            f"{provider or 'provider'} timed out",
            ProviderErrorKind.TRANSIENT,
            provider=provider,
        )

    status = _status_code_of(error)
    if status is not None:
        if status in _AUTH_STATUS_CODES:
            kind = ProviderErrorKind.AUTH_ERROR
        elif status in _TRANSIENT_STATUS_CODES or status >= 500:
            kind = ProviderErrorKind.TRANSIENT
        elif 400 <= status < 500:
            # Request rejected as-is; sending it again cannot succeed
            kind = ProviderErrorKind.MALFORMED_RESPONSE
        else:
            kind = ProviderErrorKind.TRANSIENT
        return ProviderError(str(error), kind, provider=provider, status_code=status)

    return ProviderError(str(error) or type(error).__name__, ProviderErrorKind.TRANSIENT, provider=provider)


def extract_token_usage(response: Any) -> int | None:
    """Read total tokens from an Agno run response.

    Agno reports metrics either as an object with ``total_tokens`` or as a
    dict of per-message lists.
    """
    metrics = getattr(response, "metrics", None)
    if metrics is None:
        return None
    if isinstance(metrics, dict):
        total = metrics.get("total_tokens")
        if isinstance(total, list):
            return sum(int(t) for t in total if t is not None)
        return int(total) if total is not None else None
    total = getattr(metrics, "total_tokens", None)
    return int(total) if total is not None else None


async def call_with_cancellation(
    call: Awaitable[Any],
    cancellation_token: CancellationToken | None,
    timeout: float | None = None,
    operation: str | None = None,
) -> Any:
    """Await a provider call, abandoning it on cancellation or timeout.

    Args:
        call: Awaitable performing the provider request.
        cancellation_token: Token to race against. None means not cancellable.
        timeout: Seconds before the call counts as a transient failure.
        operation: Operation name for the cancellation error.

    Returns:
        Whatever the call returned.

    Raises:
        OperationCancelledError: Token fired before the call resolved.
        asyncio.TimeoutError: The call did not finish in time.
    """
    task = asyncio.ensure_future(call)
    if cancellation_token is None:
        return await asyncio.wait_for(task, timeout)

    if cancellation_token.is_cancelled:
        task.cancel()
        raise OperationCancelledError(operation)

    waiter = asyncio.ensure_future(cancellation_token.wait())
    try:
        done, _ = await asyncio.wait(
            {task, waiter},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if waiter in done or cancellation_token.is_cancelled:
        task.cancel()
        raise OperationCancelledError(operation)

    waiter.cancel()
    if task in done:
        return task.result()

    task.cancel()
    raise asyncio.TimeoutError()


class TextProvider:
    """Provider gateway over every text provider configured in YAML.

    Providers are tried in priority order. With ``fallback_on_error`` the
    next provider is tried after any classified failure; the last error
    propagates when all of them fail. Cancellation is never retried.

    Usage:
        provider = TextProvider()
        response = await provider.generate(system, user, token)
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        event_callback: AIEventCallback = None,
        provider_override: str | None = None,
    ):
        """Initialize the text provider.

        Args:
            config: Provider configuration. If None, loads from default config file.
            event_callback: Optional callback for AI events (for progress tracking).
            provider_override: Provider name to try first (e.g., 'openai').
        """
        self.config = config or load_provider_config()
        self._event_callback = event_callback
        self._provider_override = provider_override
        self._current_provider: str | None = None
        self._current_model: str | None = None
        self._total_calls = 0
        self._total_cost = 0.0

    async def _emit_event(self, event: dict[str, Any]) -> None:
        """Emit an AI event if callback is set."""
        if self._event_callback:
            await self._event_callback(event)

    def _get_providers(self) -> list[tuple[str, TextProviderConfig]]:
        """Get list of providers to try, respecting override."""
        providers = list(self.config.get_enabled_text_providers())
        if self._provider_override:
            override_name = self._provider_override.lower()
            if override_name in self.config.text_providers and not any(
                name == override_name for name, _ in providers
            ):
                providers.insert(0, (override_name, self.config.text_providers[override_name]))
            else:
                providers = sorted(providers, key=lambda x: 0 if x[0] == override_name else 1)
        return providers

    async def _run_agent(self, model: Any, system_prompt: str, user_prompt: str) -> Any:
        from agno.agent import Agent

        agent = Agent(
            model=model,
            instructions=system_prompt,
            markdown=False,
        )
        return await agent.arun(user_prompt)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        cancellation_token: CancellationToken | None = None,
    ) -> ProviderResponse:
        """Generate text for a prompt pair.

        Args:
            system_prompt: Role and rules for the model.
            user_prompt: The actual request.
            cancellation_token: Token of the running operation.

        Returns:
            ProviderResponse with the generated text and token usage.

        Raises:
            OperationCancelledError: Cancelled before the call resolved.
            ProviderError: Every provider failed (last classified error).
        """
        providers = self._get_providers()
        if not providers:
            raise ProviderError("No text providers configured", ProviderErrorKind.AUTH_ERROR)

        last_error: ProviderError | None = None
        failed_providers: list[str] = []

        for provider_name, provider_config in providers:
            model_id = provider_config.model_id
            try:
                model = _create_agno_model(provider_name, provider_config)
                self._current_provider = provider_name
                self._current_model = model_id

                await self._emit_event({
                    "type": "text_call",
                    "provider": provider_name,
                    "model": model_id,
                    "prompt_preview": user_prompt[:200],
                    "failed_providers": failed_providers.copy(),
                })

                _logger.info(
                    f"AI_REQUEST | provider:{provider_name} | model:{model_id}\n"
                    f"--- SYSTEM ---\n{system_prompt or '(none)'}\n"
                    f"--- PROMPT ---\n{user_prompt}\n"
                    f"--- END REQUEST ---"
                )

                start_time = time.time()
                response = await call_with_cancellation(
                    self._run_agent(model, system_prompt, user_prompt),
                    cancellation_token,
                    timeout=self.config.timeout_for(provider_config),
                )
                duration = time.time() - start_time

                text = (getattr(response, "content", None) or "").strip()
                if not text:
                    raise ProviderError(
                        f"{provider_name} returned an empty response",
                        ProviderErrorKind.MALFORMED_RESPONSE,
                        provider=provider_name,
                    )

                tokens = extract_token_usage(response)
                if tokens is None:
                    tokens = (len(system_prompt) + len(user_prompt) + len(text)) // 4
                actual_model = getattr(response, "model", None) or model_id
                self._current_model = actual_model
                self._total_calls += 1

                cost = estimate_cost(provider_name, tokens, provider_config.cost_per_1k_tokens)
                self._total_cost += cost

                _logger.info(
                    f"AI_RESPONSE | provider:{provider_name} | model:{actual_model} | "
                    f"duration:{duration:.2f}s | tokens:{tokens} | cost:${cost:.4f}\n"
                    f"--- RESPONSE ---\n{text}\n"
                    f"--- END RESPONSE ---"
                )

                await self._emit_event({
                    "type": "text_response",
                    "provider": provider_name,
                    "model": actual_model,
                    "response_preview": text[:200],
                    "duration_seconds": duration,
                    "tokens_used": tokens,
                    "cost_usd": cost,
                    "total_calls": self._total_calls,
                    "total_cost": self._total_cost,
                    "failed_providers": failed_providers.copy(),
                })

                return ProviderResponse(
                    text=text,
                    tokens_used=tokens,
                    provider=provider_name,
                    model=actual_model,
                    cost_usd=cost,
                )

            except OperationCancelledError:
                _logger.info(f"AI_CANCELLED | provider:{provider_name} | model:{model_id}")
                raise

            except Exception as e:
                error = classify_error(e, provider_name)
                last_error = error
                failed_providers.append(provider_name)
                _logger.warning(
                    f"AI_ERROR | provider:{provider_name} | kind:{error.kind.value} | error:{error.message}"
                )
                await self._emit_event({
                    "type": "text_error",
                    "provider": provider_name,
                    "kind": error.kind.value,
                    "error": error.message[:100],
                    "failed_providers": failed_providers.copy(),
                })
                if self.config.provider_settings.fallback_on_error:
                    continue
                raise error from e

        assert last_error is not None
        raise last_error

    @property
    def current_provider(self) -> str | None:
        """Get the name of the last used provider."""
        return self._current_provider

    @property
    def current_model(self) -> str | None:
        """Get the model of the last used provider."""
        return self._current_model

    @property
    def total_cost(self) -> float:
        """Estimated cost of every successful call so far."""
        return self._total_cost
