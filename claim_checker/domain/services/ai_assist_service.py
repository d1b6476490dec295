"""Service for AI helpers offered to reporters and administrators."""

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, Field

from ..errors import AssessmentUnavailable
from ..ports.ai_provider import AIDescriptionEnhancement, AIProvider

logger = logging.getLogger(__name__)

FALLBACK_TIP = "Add color, brand, and unique features for better matching"


class AIConnectionStatus(BaseModel):
    """Outcome of a round trip to the configured AI provider."""

    success: bool
    message: str
    provider: Optional[str] = None
    model: Optional[str] = Field(None, description="Model that answered the test request")

    class Config:
        """Pydantic model configuration."""
        frozen = True


class AIAssistService:
    """Description suggestions and connection checks.

    Both operations degrade instead of raising: a missing or failing
    provider yields the reporter's own text or an unsuccessful status.
    """

    def __init__(self, ai_provider: Optional[AIProvider] = None, ai_timeout: float = 20.0):
        self.ai = ai_provider
        self.ai_timeout = ai_timeout
        logger.info("🔧 AIAssistService initialized")

    async def enhance_description(self, name: str, category: str, description: str) -> AIDescriptionEnhancement:
        """Suggest a description and keywords that match more easily.

        Args:
            name: Item name as reported
            category: Item category value
            description: The reporter's current description, possibly empty

        Returns:
            The AI suggestion, or the unchanged description with a generic tip
        """
        if self.ai is None or not self.ai.is_available:
            return self._fallback(description)

        try:
            return await asyncio.wait_for(
                self.ai.enhance_description(name, category, description),
                timeout=self.ai_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Description enhancement timed out after {self.ai_timeout}s")
        except AssessmentUnavailable as e:
            logger.warning(f"⚠️ Description enhancement unavailable: {e}")
        except Exception as e:
            logger.warning(f"⚠️ Description enhancement failed: {e}")
        return self._fallback(description)

    async def test_connection(self) -> AIConnectionStatus:
        """Send a minimal request to the provider and report the outcome."""
        if self.ai is None:
            return AIConnectionStatus(success=False, message="AI is not configured")
        name = self.ai.provider_name
        if not self.ai.is_available:
            return AIConnectionStatus(success=False, message=f"{name} AI is not available", provider=name)

        try:
            model = await asyncio.wait_for(self.ai.ping(), timeout=self.ai_timeout)
        except asyncio.TimeoutError:
            return AIConnectionStatus(success=False, message="Connection timed out", provider=name)
        except Exception as e:
            logger.warning(f"⚠️ {name} connection test failed: {e}")
            return AIConnectionStatus(success=False, message=str(e) or "Connection failed", provider=name)

        logger.info(f"✅ {name} connection test succeeded ({model})")
        return AIConnectionStatus(
            success=True,
            message=f"{name} AI is connected and ready!",
            provider=name,
            model=model,
        )

    @staticmethod
    def _fallback(description: str) -> AIDescriptionEnhancement:
        return AIDescriptionEnhancement(enhanced_description=description, tips=[FALLBACK_TIP])
