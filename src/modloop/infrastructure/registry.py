"""
Model client registry with entry points discovery.

Provides dynamic client loading via Python entry points (modloop.model_clients
group). External packages can register clients in their pyproject.toml:

    [project.entry-points."modloop.model_clients"]
    my_client = "mypackage.clients:MyModelClient"
"""

import logging
from importlib.metadata import entry_points
from typing import Any

from modloop.domain.interfaces import ModelClientInterface

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "modloop.model_clients"


class ModelClientRegistry:
    """
    Registry for ModelClientInterface implementations.

    Uses lazy loading - entry points are only loaded on first access.

    Example usage:
        client = ModelClientRegistry.create("openai", base_url="http://localhost:11434/v1")
    """

    _clients: dict[str, type[ModelClientInterface]] = {}
    _loaded: bool = False

    @classmethod
    def _load_entry_points(cls) -> None:
        """Load clients from entry points (lazy, called once)."""
        if cls._loaded:
            return

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                cls._clients.setdefault(ep.name, ep.load())
            except Exception as e:
                logger.warning("Failed to load model client '%s' from entry point: %s", ep.name, e)

        cls._loaded = True

    @classmethod
    def register(cls, name: str, client_class: type[ModelClientInterface]) -> None:
        """
        Manually register a client class.

        Args:
            name: Client identifier (e.g., "openai")
            client_class: Class implementing ModelClientInterface
        """
        cls._clients[name] = client_class

    @classmethod
    def get(cls, name: str) -> type[ModelClientInterface]:
        """
        Raises:
            KeyError: If the client is not registered
        """
        cls._load_entry_points()
        if name not in cls._clients:
            available = ", ".join(sorted(cls._clients)) or "(none)"
            raise KeyError(f"Model client '{name}' not found. Available clients: {available}")
        return cls._clients[name]

    @classmethod
    def create(cls, name: str, **config: Any) -> ModelClientInterface:
        """
        Create a client instance by name.

        Raises:
            KeyError: If the client is not registered
            TypeError: If config doesn't match the constructor signature
        """
        return cls.get(name)(**config)

    @classmethod
    def available(cls) -> list[str]:
        cls._load_entry_points()
        return sorted(cls._clients)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered clients (useful for testing)."""
        cls._clients.clear()
        cls._loaded = False
