"""AI helper and AI settings endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ...domain.models.item import ItemCategory
from ...domain.ports.ai_provider import AIDescriptionEnhancement
from ...domain.services.ai_assist_service import AIAssistService, AIConnectionStatus
from ...infrastructure.dependencies import ServiceContainer, get_ai_assist_service, get_service_container
from .claims import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


class EnhanceDescriptionRequest(BaseModel):
    """Request model for improving an item report."""

    name: str = Field(..., min_length=1, description="Item name as reported")
    category: ItemCategory = Field(default=ItemCategory.OTHER, description="Item category")
    description: str = Field(default="", description="Current description, may be empty")


class CredentialRequest(BaseModel):
    """Request model for the admin AI key override."""

    api_key: Optional[str] = Field(None, description="New key, or null to fall back to the environment")


class CredentialResponse(BaseModel):
    """Response model describing the active AI setup."""

    provider: Optional[str] = Field(None, description="Running provider, if any")
    active: bool = Field(..., description="Whether AI assessment is enabled")
    source: str = Field(..., description="override, environment or none")
    providers: List[str] = Field(default_factory=list, description="Providers currently running")


def _credential_response(container: ServiceContainer) -> CredentialResponse:
    provider = container.get_ai_provider()
    return CredentialResponse(
        provider=provider.provider_name if provider else None,
        active=provider is not None and provider.is_available,
        source=container.ai_credential_source,
        providers=[name for name, running in container.ai_providers.items() if running],
    )


@router.post("/enhance-description", response_model=AIDescriptionEnhancement)
async def enhance_description(
    request: EnhanceDescriptionRequest,
    service: AIAssistService = Depends(get_ai_assist_service),
) -> AIDescriptionEnhancement:
    """Suggest a description and keywords that make a report easier to match."""
    return await service.enhance_description(request.name, request.category.value, request.description)


@router.post("/test", response_model=AIConnectionStatus)
async def test_connection(
    admin_email: str = Depends(require_admin),
    service: AIAssistService = Depends(get_ai_assist_service),
) -> AIConnectionStatus:
    """Check that the configured AI provider answers."""
    logger.info(f"🩺 AI connection test requested by {admin_email}")
    return await service.test_connection()


@router.get("/credential", response_model=CredentialResponse)
async def get_credential(
    admin_email: str = Depends(require_admin),
    container: ServiceContainer = Depends(get_service_container),
) -> CredentialResponse:
    """Describe where the active AI key comes from."""
    return _credential_response(container)


@router.post("/credential", response_model=CredentialResponse)
async def set_credential(
    request: CredentialRequest,
    admin_email: str = Depends(require_admin),
    container: ServiceContainer = Depends(get_service_container),
) -> CredentialResponse:
    """Set or remove the admin AI key and restart the provider."""
    try:
        await container.set_ai_credential(request.api_key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConnectionError as e:
        logger.error(f"❌ AI key update by {admin_email} failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI provider rejected the key")

    logger.info(f"🔑 AI key updated by {admin_email}")
    return _credential_response(container)
