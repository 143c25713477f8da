from typing import Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from fastapi.testclient import TestClient

from main import app
from app.core.dependencies import container, get_recommendation_service
from app.repositories.implementations.azure_openai_service import AzureOpenAIService
from app.services.recommendation_service import RecommendationService
from tests.stubs import StubAzureDevOpsService, fake_completion_client, openai_settings


@pytest.fixture(autouse=True)
def reset_container():
    """Each test starts with an uninitialized client and empty registries"""
    container.ado_lifecycle.reset()
    container.connection_store().clear_all()
    container.suite_store().clear_all()
    yield
    container.ado_lifecycle.reset()
    app.dependency_overrides.clear()


@pytest.fixture
def ado_stub():
    """Azure DevOps stub marked ready through the real readiness lifecycle"""
    stub = StubAzureDevOpsService()
    container.ado_lifecycle.mark_ready(stub)
    return stub


@pytest.fixture
def test_client():
    """Synchronous test client for simple tests"""
    return TestClient(app)


@pytest.fixture
def lenient_client():
    """Test client that returns 500 responses instead of re-raising server errors"""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def use_recommendation_service(ado_stub):
    """Install a RecommendationService built from the stub and a given AI factory"""

    def install(ai_service_factory, default_test_plan_id=None):
        service = RecommendationService(
            ado_service=ado_stub,
            ai_service_factory=ai_service_factory,
            default_test_plan_id=default_test_plan_id,
        )
        app.dependency_overrides[get_recommendation_service] = lambda: service
        return service

    return install


@pytest.fixture
def ai_with_content():
    """Build an AzureOpenAIService whose completions always return content"""

    def build(content: Optional[str]) -> AzureOpenAIService:
        return AzureOpenAIService(openai_settings(), client=fake_completion_client(content))

    return build


@pytest_asyncio.fixture
async def client():
    """Async client over the ASGI app, for tests that issue concurrent requests"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
