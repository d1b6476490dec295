"""Groq implementation of the AI provider interface."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import AssessmentUnavailable
from ...domain.models.item import Item
from ...domain.ports.ai_provider import AIAssessment, AIDescriptionEnhancement, AIMatchCandidate, AIProvider
from .prompts import PING_MESSAGES, build_batch_match_messages, build_claim_messages, build_enhance_messages
from .response_parser import parse_assessment, parse_batch_match, parse_enhancement, parse_ping

logger = logging.getLogger(__name__)


class GroqConfig(BaseModel):
    """Configuration for the Groq adapter."""

    api_key: str = Field(..., description="Groq API key")
    base_url: str = Field(default="https://api.groq.com/openai/v1", description="OpenAI-compatible API root")
    model: str = Field(default="llama-3.3-70b-versatile", description="Model to use")
    temperature: float = Field(default=0.2, description="Temperature for responses")
    max_tokens: int = Field(default=1200, description="Maximum tokens per assessment")
    match_max_tokens: int = Field(default=1500, description="Maximum tokens per batch match")
    enhance_temperature: float = Field(default=0.5, description="Temperature for description suggestions")
    enhance_max_tokens: int = Field(default=512, description="Maximum tokens per description suggestion")
    ping_max_tokens: int = Field(default=50, description="Maximum tokens for a connection test")
    timeout: float = Field(default=15.0, description="API timeout in seconds")


class GroqAdapter(AIProvider):
    """Groq chat-completions client over raw HTTP.

    Every failure surfaces as ``AssessmentUnavailable`` so the pipeline
    can fall back to local scoring.
    """

    def __init__(
        self,
        config: Optional[GroqConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            transport: Custom httpx transport, mainly for tests
        """
        self._config = config or GroqConfig(api_key="")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the HTTP client and verify the API key."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize Groq provider: no API key configured")
        try:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self._config.base_url,
                    timeout=self._config.timeout,
                    transport=self._transport,
                    headers={
                        "Authorization": f"Bearer {self._config.api_key}",
                        "Content-Type": "application/json",
                    },
                )

            # Listing models checks the key without spending tokens
            response = await self._client.get("/models")
            response.raise_for_status()
            self._initialized = True
            logger.info(f"✅ Groq provider ready (model {self._config.model})")
        except Exception as e:
            self._initialized = False
            if self._client:
                await self._client.aclose()
                self._client = None
            raise ConnectionError(f"Failed to initialize Groq provider: {e}")

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
        if not self._client:
            raise AssessmentUnavailable("Groq provider not initialized")

        try:
            response = await self._client.post(
                "/chat/completions",
                json={
                    "model": self._config.model,
                    "messages": messages,
                    "temperature": self._config.temperature if temperature is None else temperature,
                    "max_tokens": max_tokens,
                    "stream": False,
                    "response_format": {"type": "json_object"},
                },
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"] or ""
        except httpx.TimeoutException as e:
            raise AssessmentUnavailable(f"Groq request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"⚠️ Groq API error {e.response.status_code}: {e.response.text[:200]}")
            raise AssessmentUnavailable(f"Groq API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AssessmentUnavailable(f"Groq request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise AssessmentUnavailable(f"Unexpected Groq response shape: {e}") from e

    async def shutdown(self) -> None:
        """Clean up resources and shut down the provider."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    @property
    def provider_name(self) -> str:
        """Get the name of the AI provider."""
        return "Groq"

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
