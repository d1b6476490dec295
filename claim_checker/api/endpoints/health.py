"""Health check endpoints."""

from typing import Dict

from fastapi import APIRouter, Depends

from ...infrastructure.dependencies import ServiceContainer, get_service_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    container: ServiceContainer = Depends(get_service_container),
) -> Dict[str, Dict[str, bool]]:
    """Check the health of all service components.

    Returns:
        Availability of the store, AI providers and notifiers
    """
    store = container.get_store()
    notifier = container.get_notifier()
    ai_status = {
        provider_name.title(): is_active
        for provider_name, is_active in container.ai_providers.items()
    }

    return {
        "store": {store.provider_name: store.is_available},
        "ai_providers": ai_status,
        "notifiers": {notifier.provider_name: notifier.is_available},
    }
