"""OpenAI implementation of the AI provider interface."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from ...domain.errors import AssessmentUnavailable
from ...domain.models.item import Item
from ...domain.ports.ai_provider import AIAssessment, AIDescriptionEnhancement, AIMatchCandidate, AIProvider
from .prompts import PING_MESSAGES, build_batch_match_messages, build_claim_messages, build_enhance_messages
from .response_parser import parse_assessment, parse_batch_match, parse_enhancement, parse_ping

logger = logging.getLogger(__name__)


class OpenAIConfig(BaseModel):
    """Configuration for the OpenAI adapter."""

    api_key: str = Field(..., description="OpenAI API key")
    model: str = Field(default="gpt-4o-mini", description="Model to use")
    temperature: float = Field(default=0.2, description="Temperature for responses")
    max_tokens: int = Field(default=1200, description="Maximum tokens per assessment")
    match_max_tokens: int = Field(default=1500, description="Maximum tokens per batch match")
    enhance_temperature: float = Field(default=0.5, description="Temperature for description suggestions")
    enhance_max_tokens: int = Field(default=512, description="Maximum tokens per description suggestion")
    ping_max_tokens: int = Field(default=50, description="Maximum tokens for a connection test")
    timeout: float = Field(default=15.0, description="API timeout in seconds")


class OpenAIAdapter(AIProvider):
    """OpenAI chat-completions client using the official SDK."""

    def __init__(self, config: Optional[OpenAIConfig] = None, client: Optional[Any] = None):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            client: Preconfigured ``AsyncOpenAI`` client, mainly for tests
        """
        self._config = config or OpenAIConfig(api_key="")
        self._client = client
        self._owns_client = client is None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the SDK client and check that the model is reachable."""
        if self._client is None and not self._config.api_key:
            raise ConnectionError("Failed to initialize OpenAI provider: no API key configured")
        try:
            if self._client is None:
                self._client = AsyncOpenAI(
                    api_key=self._config.api_key,
                    timeout=self._config.timeout,
                    max_retries=0,
                )
            await self._client.models.retrieve(self._config.model)
            self._initialized = True
            logger.info(f"✅ OpenAI provider ready (model {self._config.model})")
        except Exception as e:
            self._initialized = False
            await self._close_client()
            raise ConnectionError(f"Failed to initialize OpenAI provider: {e}")

    async def assess_claim(
        self,
        item: Item,
        claim_description: str,
        security_qa: Sequence[Tuple[str, str]],
    ) -> AIAssessment:
        """Assess how likely the claimant owns the item."""
        content = await self._complete(
            build_claim_messages(item, claim_description, security_qa),
            self._config.max_tokens,
        )
        return parse_assessment(content)

    async def batch_match(self, new_item: Item, candidates: Sequence[Item]) -> List[AIMatchCandidate]:
        """Score candidates as the counterpart of a new report."""
        if not candidates:
            return []
        content = await self._complete(
            build_batch_match_messages(new_item, candidates),
            self._config.match_max_tokens,
        )
        return parse_batch_match(content)

    async def enhance_description(self, name: str, category: str, description: str) -> AIDescriptionEnhancement:
        """Suggest a richer description and keywords for an item report."""
        content = await self._complete(
            build_enhance_messages(name, category, description),
            self._config.enhance_max_tokens,
            temperature=self._config.enhance_temperature,
        )
        return parse_enhancement(content, description)

    async def ping(self) -> str:
        """Send a minimal request and return the model that answered."""
        content = await self._complete(PING_MESSAGES, self._config.ping_max_tokens)
        return parse_ping(content, self._config.model)

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> str:
        if not self.is_available:
            raise AssessmentUnavailable("OpenAI provider not initialized")

        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=messages,
                temperature=self._config.temperature if temperature is None else temperature,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
            return response.choices[0].message.content or ""
        except openai.APITimeoutError as e:
            raise AssessmentUnavailable(f"OpenAI request timed out: {e}") from e
        except openai.APIStatusError as e:
            logger.warning(f"⚠️ OpenAI API error {e.status_code}")
            raise AssessmentUnavailable(f"OpenAI API error: {e.status_code}") from e
        except openai.APIError as e:
            raise AssessmentUnavailable(f"OpenAI request failed: {e}") from e
        except (AttributeError, IndexError, TypeError) as e:
            raise AssessmentUnavailable(f"Unexpected OpenAI response shape: {e}") from e

    async def _close_client(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None

    async def shutdown(self) -> None:
        """Clean up resources and shut down the provider."""
        await self._close_client()
        self._initialized = False

    @property
    def provider_name(self) -> str:
        """Get the name of the AI provider."""
        return "OpenAI"

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        return self._initialized and self._client is not None

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        return {
            "claim_assessment": True,
            "batch_matching": True,
            "description_enhancement": True,
            "json_mode": True,
        }
