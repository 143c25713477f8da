from functools import lru_cache
from typing import List
from fastapi import Depends

from app.config.settings import settings
from app.core.lifecycle import ClientLifecycle
from app.models.schemas import Connection, MockTestSuite
from app.repositories.interfaces.ai_service import IAIService
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService
from app.repositories.interfaces.key_value_store import IKeyValueStore

from app.repositories.implementations.azure_devops_service import AzureDevOpsService
from app.repositories.implementations.azure_openai_service import AzureOpenAIService
from app.repositories.implementations.memory_key_value_store import InMemoryKeyValueStore

from app.services.connection_service import ConnectionService
from app.services.recommendation_service import RecommendationService


class Container:
    """Dependency injection container"""

    def __init__(self):
        self.ado_lifecycle: ClientLifecycle[IAzureDevOpsService] = ClientLifecycle()
        self._ai_service = None
        self._connection_store = InMemoryKeyValueStore()
        self._suite_store = InMemoryKeyValueStore()

    async def initialize_ado(self) -> None:
        """One-time Azure DevOps initialization; raises on failure"""
        service = await AzureDevOpsService.connect(settings)
        self.ado_lifecycle.mark_ready(service)

    def ado_service(self) -> IAzureDevOpsService:
        """Get the Azure DevOps service; raises ServiceNotReadyError until initialized"""
        return self.ado_lifecycle.require()

    def ai_service(self) -> IAIService:
        """Get AI service instance (singleton, built on first use)"""
        if self._ai_service is None:
            self._ai_service = AzureOpenAIService(settings)
        return self._ai_service

    def connection_store(self) -> IKeyValueStore[Connection]:
        return self._connection_store

    def suite_store(self) -> IKeyValueStore[List[MockTestSuite]]:
        return self._suite_store

    @lru_cache()
    def connection_service(self) -> ConnectionService:
        """Get connection service instance (singleton)"""
        return ConnectionService(
            connection_store=self.connection_store(),
            suite_store=self.suite_store(),
        )

    def recommendation_service(self, ado_service: IAzureDevOpsService) -> RecommendationService:
        return RecommendationService(
            ado_service=ado_service,
            ai_service_factory=self.ai_service,
            default_test_plan_id=settings.test_plan_id,
        )


# Global container instance
container = Container()


# Dependency providers for FastAPI
def get_ado_service() -> IAzureDevOpsService:
    """FastAPI dependency for the Azure DevOps service; doubles as the readiness gate"""
    return container.ado_service()


def get_connection_service() -> ConnectionService:
    """FastAPI dependency for connection service"""
    return container.connection_service()


def get_recommendation_service(
    ado_service: IAzureDevOpsService = Depends(get_ado_service),
) -> RecommendationService:
    """FastAPI dependency for recommendation service"""
    return container.recommendation_service(ado_service)
