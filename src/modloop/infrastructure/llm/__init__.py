"""
Model adapters: clients, model selection, tools, prompts and token tracking.
"""

from modloop.infrastructure.llm.mock import ScriptedModelClient
from modloop.infrastructure.llm.openai_client import (
    OpenAIModelClient,
    OpenAIModelClientConfig,
)
from modloop.infrastructure.llm.prompts import DefaultPromptBuilder
from modloop.infrastructure.llm.selector import DefaultModelSelector
from modloop.infrastructure.llm.tokens import InMemoryTokenTracker
from modloop.infrastructure.llm.tools import DefaultToolRegistry

__all__ = [
    "DefaultModelSelector",
    "DefaultPromptBuilder",
    "DefaultToolRegistry",
    "InMemoryTokenTracker",
    "OpenAIModelClient",
    "OpenAIModelClientConfig",
    "ScriptedModelClient",
]
