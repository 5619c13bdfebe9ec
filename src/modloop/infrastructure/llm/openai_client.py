"""
OpenAI-compatible model client.

Works against any endpoint speaking the OpenAI chat completions API
(OpenAI, Ollama, vLLM, ...).
"""

import logging
from dataclasses import dataclass
from typing import Any, cast

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import ModelError
from modloop.domain.interfaces import ModelClientInterface
from modloop.domain.models import ModelResponse, TokenUsage, ToolCall, ToolDefinition

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"

_UNAVAILABLE_MARKERS = (
    "model not found",
    "model_not_found",
    "does not exist",
    "not supported",
    "unknown model",
)

USER_TURN = "Carry out the current workflow step for this module."


def is_model_unavailable_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _UNAVAILABLE_MARKERS)


@dataclass
class OpenAIModelClientConfig:
    """Configuration for OpenAIModelClient.

    This typed config ensures unknown fields are rejected at construction time.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str = "ollama"  # required by the client, unused by Ollama
    timeout: float = 120.0
    temperature: float = 0.2
    context_window: int = 0
    premium_models: tuple[str, ...] | None = None  # None = every request is premium


class OpenAIModelClient(ModelClientInterface):
    """
    Invokes models through the openai library.

    The HTTP call itself cannot be interrupted; cancellation is observed
    before the call and again when it returns.
    """

    config_class = OpenAIModelClientConfig

    def __init__(
        self,
        config: OpenAIModelClientConfig | None = None,
        client: Any | None = None,
        **kwargs: Any,
    ):
        """
        Args:
            config: Typed configuration object (preferred)
            client: Pre-built OpenAI client, mainly for tests
            **kwargs: Fields of OpenAIModelClientConfig
        """
        if config is None:
            config = OpenAIModelClientConfig(**kwargs)

        try:
            import openai
        except ImportError as err:
            raise ImportError("openai library required: pip install openai") from err

        self._openai = openai
        self._config = config
        self._premium = (
            None
            if config.premium_models is None
            else {m.lower() for m in config.premium_models}
        )
        self._client = client or openai.OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=config.timeout,
        )

    def invoke(
        self,
        prompt: str,
        model: str,
        tools: tuple[ToolDefinition, ...],
        cancel: CancellationToken | None = None,
    ) -> ModelResponse:
        if cancel is not None:
            cancel.raise_if_cancelled()

        messages = [
            {"role": "system", "content": prompt},
            {"role": "user", "content": USER_TURN},
        ]
        request: dict[str, Any] = {
            "model": model,
            "messages": cast(Any, messages),
            "temperature": self._config.temperature,
        }
        if tools:
            request["tools"] = [self._tool_spec(tool) for tool in tools]

        try:
            response = self._client.chat.completions.create(**request)
        except self._openai.NotFoundError as e:
            raise ModelError(
                f"Model '{model}' not found: {e}", model=model, model_unavailable=True
            ) from e
        except self._openai.APIError as e:
            raise ModelError(
                f"Model API error for '{model}': {e}",
                model=model,
                model_unavailable=is_model_unavailable_message(str(e)),
            ) from e

        if cancel is not None:
            cancel.raise_if_cancelled()

        message = response.choices[0].message
        raw_calls = message.tool_calls or []
        tool_calls = tuple(
            ToolCall(call.function.name, call.function.arguments or "{}")
            for call in raw_calls
            if getattr(call, "function", None) is not None
        )
        usage = response.usage
        token_usage = TokenUsage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
            context_window=self._config.context_window,
            is_premium=self._premium is None or model.lower() in self._premium,
        )
        logger.debug(
            "Model %s answered: %d tokens, %d tool calls",
            model,
            token_usage.total_tokens,
            len(raw_calls),
        )
        return ModelResponse(
            text=message.content or "",
            token_usage=token_usage,
            tool_calls_made=len(raw_calls),
            tool_calls=tool_calls,
        )

    @staticmethod
    def _tool_spec(tool: ToolDefinition) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": {"type": "object", "properties": {}},
            },
        }
