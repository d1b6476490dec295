"""Dependency injection configuration for hexagonal architecture."""

import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..domain.ports.ai_provider import AIProvider
from ..domain.ports.claim_store import ClaimStore
from ..domain.ports.notifier import Notifier
from ..domain.services.ai_assist_service import AIAssistService
from ..domain.services.claim_review_service import ClaimReviewService
from ..domain.services.claim_verification_service import ClaimVerificationService
from ..domain.services.decision_engine import DecisionEngine, DecisionPolicy
from ..domain.services.matching_service import MatchingService
from ..domain.services.rule_checks import RuleCheckBattery, RuleCheckConfig
from .ai.factory import AIProviderFactory, usable_credential
from .notifications.composite import CompositeNotifier
from .notifications.formspree_adapter import FormspreeConfig, FormspreeNotifier
from .notifications.telegram_adapter import TelegramConfig, TelegramNotifier
from .store.firestore_adapter import FirestoreClaimStore, FirestoreConfig
from .store.memory_store import InMemoryClaimStore

load_dotenv()

logger = logging.getLogger(__name__)


def parse_admin_emails(raw: Optional[str]) -> List[str]:
    """Split a comma-separated admin list into normalized emails."""
    if not raw:
        return []
    return [email.strip().lower() for email in raw.split(",") if email.strip()]


class ServiceContainer:
    """Service container for dependency injection."""

    def __init__(
        self,
        store: Optional[ClaimStore] = None,
        notifier: Optional[Notifier] = None,
    ):
        """Initialize service container.

        Args:
            store: Store to use instead of the one selected by ``STORE_BACKEND``
            notifier: Notifier to use instead of the Telegram/Formspree pair
        """
        self._services: Dict[str, Any] = {}
        self._ai_factory = AIProviderFactory()
        self._ai_provider_name = os.getenv("AI_PROVIDER", "groq").lower()
        self._ai_override: Optional[str] = None
        self._setup_services(store, notifier)

    def _create_store(self) -> ClaimStore:
        backend = os.getenv("STORE_BACKEND", "memory").lower()
        if backend == "firestore":
            logger.info("🔥 Using Firestore claim store")
            return FirestoreClaimStore(FirestoreConfig.from_env())
        if backend != "memory":
            logger.warning(f"⚠️ Unknown STORE_BACKEND '{backend}', using in-memory store")
        logger.info("🧠 Using in-memory claim store")
        return InMemoryClaimStore()

    def _create_notifier(self) -> Notifier:
        return CompositeNotifier(
            chat=TelegramNotifier(TelegramConfig.from_env()),
            email=FormspreeNotifier(FormspreeConfig.from_env()),
        )

    def _setup_services(self, store: Optional[ClaimStore], notifier: Optional[Notifier]):
        """Setup all services and their dependencies."""
        logger.info("🔧 Setting up service container...")

        store = store or self._create_store()
        notifier = notifier or self._create_notifier()
        ai_timeout = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))
        rule_config = RuleCheckConfig.from_env()

        admin_emails = parse_admin_emails(os.getenv("ADMIN_EMAILS"))
        if not admin_emails:
            logger.warning("⚠️ ADMIN_EMAILS not set, admin endpoints will refuse every caller")

        # AI provider is attached on startup
        verification_service = ClaimVerificationService(
            store,
            notifier=notifier,
            battery=RuleCheckBattery(store, rule_config),
            engine=DecisionEngine(DecisionPolicy.from_env()),
            ai_timeout=ai_timeout,
            store_timeout=rule_config.store_timeout,
        )

        self._services = {
            'store': store,
            'notifier': notifier,
            'ai_provider': None,
            'claim_verification_service': verification_service,
            'claim_review_service': ClaimReviewService(store),
            'matching_service': MatchingService(store, notifier=notifier, ai_timeout=ai_timeout),
            'ai_assist_service': AIAssistService(ai_timeout=ai_timeout),
            'admin_emails': admin_emails,
        }

        logger.info("✅ Service container setup completed")

    async def _setup_ai_provider(self) -> Optional[AIProvider]:
        """Create the configured AI provider, or None to score locally."""
        name = self._ai_provider_name
        try:
            logger.info(f"🤖 Setting up AI provider '{name}'...")
            provider = self._ai_factory.get_provider(name)
            if provider is None:
                provider = await self._ai_factory.create_provider(name, api_key=self._ai_override)
        except (ConnectionError, ValueError) as e:
            logger.warning(f"⚠️ Failed to setup AI provider: {e}")
            provider = None

        if provider is None:
            logger.info("📋 Claims will be scored with local heuristics only")
        else:
            logger.info(f"✅ AI provider {provider.provider_name} ready")
        return provider

    async def startup(self) -> None:
        """Initialize the store and attach the AI provider.

        Raises:
            ConnectionError: If the store cannot be initialized
        """
        await self.get_store().initialize()
        logger.info(f"✅ Store {self.get_store().provider_name} ready")

        self._attach_ai_provider(await self._setup_ai_provider())

    def _attach_ai_provider(self, provider: Optional[AIProvider]) -> None:
        self._services['ai_provider'] = provider
        self.get_claim_verification_service().ai = provider
        self.get_matching_service().ai = provider
        self.get_ai_assist_service().ai = provider

    async def set_ai_credential(self, api_key: Optional[str]) -> Optional[AIProvider]:
        """Replace or clear the admin API key and restart the AI provider.

        Args:
            api_key: New key overriding the environment, or None to remove the override

        Returns:
            The restarted provider, or None when no credential resolves

        Raises:
            ValueError: If the key is too short to be a real credential
            ConnectionError: If the provider rejects the new key
        """
        override = None
        if api_key is not None and api_key.strip():
            override = usable_credential(api_key)
            if override is None:
                raise ValueError("API key is too short")

        name = self._ai_provider_name
        await self._ai_factory.remove_provider(name)
        self._ai_override = override
        try:
            provider = await self._ai_factory.create_provider(name, api_key=override)
        except ConnectionError:
            logger.warning(f"⚠️ AI provider '{name}' rejected the new key, restoring the previous setup")
            self._ai_override = None
            self._attach_ai_provider(await self._setup_ai_provider())
            raise

        self._attach_ai_provider(provider)
        action = "set" if override else "removed"
        logger.info(f"🔑 AI credential override {action}, provider {'ready' if provider else 'disabled'}")
        return provider

    @property
    def ai_credential_source(self) -> str:
        """Where the active AI key comes from: override, environment or none."""
        if self.get_ai_provider() is None:
            return "none"
        return "override" if self._ai_override else "environment"

    async def shutdown(self) -> None:
        """Wait for pending notifications and release every adapter."""
        await self.get_claim_verification_service().drain_notifications()
        await self._ai_factory.shutdown()
        await self.get_notifier().shutdown()
        await self.get_store().shutdown()
        logger.info("👋 Service container shut down")

    def get(self, service_name: str) -> Any:
        """Get a service by name.

        Args:
            service_name: Name of the service

        Returns:
            Service instance

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def get_store(self) -> ClaimStore:
        return self.get('store')

    def get_notifier(self) -> Notifier:
        return self.get('notifier')

    def get_ai_provider(self) -> Optional[AIProvider]:
        return self.get('ai_provider')

    def get_claim_verification_service(self) -> ClaimVerificationService:
        """Get claim verification service."""
        return self.get('claim_verification_service')

    def get_claim_review_service(self) -> ClaimReviewService:
        """Get claim review service."""
        return self.get('claim_review_service')

    def get_matching_service(self) -> MatchingService:
        """Get matching service."""
        return self.get('matching_service')

    def get_ai_assist_service(self) -> AIAssistService:
        """Get AI assist service."""
        return self.get('ai_assist_service')

    def get_admin_emails(self) -> List[str]:
        return self.get('admin_emails')

    @property
    def ai_providers(self) -> Dict[str, bool]:
        """Registered AI providers and whether each is running."""
        return self._ai_factory.available_providers


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance.

    Returns:
        Service container instance
    """
    return ServiceContainer()


# Convenience functions for FastAPI dependency injection
def get_claim_verification_service() -> ClaimVerificationService:
    """FastAPI dependency for claim verification service."""
    return get_service_container().get_claim_verification_service()


def get_claim_review_service() -> ClaimReviewService:
    """FastAPI dependency for claim review service."""
    return get_service_container().get_claim_review_service()


def get_matching_service() -> MatchingService:
    """FastAPI dependency for matching service."""
    return get_service_container().get_matching_service()


def get_ai_assist_service() -> AIAssistService:
    """FastAPI dependency for AI assist service."""
    return get_service_container().get_ai_assist_service()


def get_claim_store() -> ClaimStore:
    """FastAPI dependency for the claim store."""
    return get_service_container().get_store()


def get_admin_emails() -> List[str]:
    """FastAPI dependency for the configured admin emails."""
    return get_service_container().get_admin_emails()
