"""Factory for creating and managing AI providers."""

import logging
import os
from typing import Dict, Optional, Type

from ...domain.ports.ai_provider import AIProvider
from .groq_adapter import GroqAdapter, GroqConfig
from .openai_adapter import OpenAIAdapter, OpenAIConfig

logger = logging.getLogger(__name__)

MIN_CREDENTIAL_LENGTH = 11

CREDENTIAL_ENV_VARS = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def usable_credential(key: Optional[str]) -> Optional[str]:
    """Return the stripped key, or None when it is too short to be real."""
    if key is None:
        return None
    key = key.strip()
    return key if len(key) >= MIN_CREDENTIAL_LENGTH else None


def resolve_credential(override: Optional[str] = None, env_var: str = "GROQ_API_KEY") -> Optional[str]:
    """Resolve the API key for an AI provider.

    An explicit override wins over the environment. Keys of ten
    characters or fewer are treated as absent.

    Args:
        override: Key supplied by the caller, e.g. from admin settings
        env_var: Environment variable holding the default key

    Returns:
        The usable key, or None when AI is not configured
    """
    return usable_credential(override) or usable_credential(os.getenv(env_var))


class AIProviderFactory:
    """Factory for creating and managing AI providers."""

    def __init__(self):
        """Initialize the factory."""
        self._providers: Dict[str, Type[AIProvider]] = {}
        self._instances: Dict[str, AIProvider] = {}

        # Register default providers
        self.register_provider("groq", GroqAdapter)
        self.register_provider("openai", OpenAIAdapter)

    def register_provider(self, name: str, provider_class: Type[AIProvider]) -> None:
        """Register a new AI provider.

        Args:
            name: Provider name
            provider_class: Provider class
        """
        self._providers[name] = provider_class

    async def create_provider(
        self,
        name: str,
        api_key: Optional[str] = None,
        **kwargs
    ) -> Optional[AIProvider]:
        """Create and initialize a provider instance.

        Args:
            name: Provider name
            api_key: Explicit credential overriding the environment
            **kwargs: Provider-specific configuration

        Returns:
            Initialized provider instance, or None when no credential resolves

        Raises:
            ValueError: If provider not found
            ConnectionError: If the provider fails to initialize
        """
        if name not in self._providers:
            raise ValueError(f"Provider '{name}' not found")

        if name not in self._instances:
            credential = resolve_credential(api_key, CREDENTIAL_ENV_VARS.get(name, ""))
            if name == "groq":
                if credential is None:
                    logger.info("ℹ️ No Groq API key configured, AI assessment disabled")
                    return None
                kwargs.setdefault("model", os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"))
                provider = self._providers[name](config=GroqConfig(api_key=credential, **kwargs))
            elif name == "openai":
                if credential is None:
                    logger.info("ℹ️ No OpenAI API key configured, AI assessment disabled")
                    return None
                kwargs.setdefault("model", os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
                provider = self._providers[name](config=OpenAIConfig(api_key=credential, **kwargs))
            else:
                provider = self._providers[name](**kwargs)

            await provider.initialize()
            self._instances[name] = provider

        return self._instances[name]

    def get_provider(self, name: str) -> Optional[AIProvider]:
        """Get an existing provider instance.

        Args:
            name: Provider name

        Returns:
            Provider instance if exists, None otherwise
        """
        return self._instances.get(name)

    async def remove_provider(self, name: str) -> None:
        """Shut down and forget a running provider so it can be re-created."""
        provider = self._instances.pop(name, None)
        if provider is not None:
            await provider.shutdown()
            logger.info(f"🔌 AI provider '{name}' removed")

    @property
    def available_providers(self) -> Dict[str, bool]:
        """Get dictionary of registered providers and their availability."""
        return {
            name: name in self._instances
            for name in self._providers
        }

    async def shutdown(self) -> None:
        """Shutdown all provider instances."""
        for provider in self._instances.values():
            await provider.shutdown()
        self._instances.clear()
