"""
Scripted model client for testing without a model endpoint.

Replays predefined responses or errors in sequence.
"""

from collections.abc import Iterable

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import ModelError
from modloop.domain.interfaces import ModelClientInterface
from modloop.domain.models import ModelResponse, TokenUsage, ToolDefinition

ScriptItem = str | ModelResponse | BaseException


class ScriptedModelClient(ModelClientInterface):
    """Returns predefined responses for testing and dry runs."""

    def __init__(
        self,
        responses: Iterable[ScriptItem] = (),
        unavailable_models: Iterable[str] = (),
        default_response: str | None = None,
        token_usage: TokenUsage | None = None,
    ):
        """
        Args:
            responses: Items replayed in order. Strings become responses,
                exceptions are raised.
            unavailable_models: Models that always fail as unavailable
                without consuming a scripted item
            default_response: Returned once responses run out; without it an
                exhausted script raises RuntimeError
            token_usage: Usage attached to string responses
        """
        self._responses = list(responses)
        self._unavailable = {m.lower() for m in unavailable_models}
        self._default_response = default_response
        self._token_usage = token_usage or TokenUsage()
        self._position = 0
        self.calls: list[tuple[str, str]] = []  # (model, prompt)

    def invoke(
        self,
        prompt: str,
        model: str,
        tools: tuple[ToolDefinition, ...],
        cancel: CancellationToken | None = None,
    ) -> ModelResponse:
        """Return the next scripted response, or raise the next scripted error."""
        if cancel is not None:
            cancel.raise_if_cancelled()
        self.calls.append((model, prompt))

        if model.lower() in self._unavailable:
            raise ModelError(
                f"Model '{model}' is not available", model=model, model_unavailable=True
            )

        if self._position >= len(self._responses):
            if self._default_response is None:
                raise RuntimeError("ScriptedModelClient exhausted responses")
            return ModelResponse(self._default_response, self._token_usage)

        item = self._responses[self._position]
        self._position += 1
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, ModelResponse):
            return item
        return ModelResponse(item, self._token_usage)

    @property
    def call_count(self) -> int:
        """Number of times invoke() has been called."""
        return len(self.calls)

    @property
    def models_called(self) -> tuple[str, ...]:
        return tuple(model for model, _ in self.calls)

    def reset(self) -> None:
        """Rewind the script and forget recorded calls."""
        self._position = 0
        self.calls.clear()
