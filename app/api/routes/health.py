from fastapi import APIRouter, status
from datetime import datetime, timezone
from app.config.settings import settings
from app.core.dependencies import container
from app.models.schemas import HealthResponse

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "GET /health": "Health check",
    "GET /health/readiness": "Readiness of the Azure DevOps and Azure OpenAI clients",
    "GET /api/testplans": "Get all test plans",
    "GET /api/testplans/:id": "Get test plan by ID",
    "POST /api/testplans": "Create new test plan",
    "PUT /api/testplans/:id": "Update test plan",
    "DELETE /api/testplans/:id": "Delete test plan",
    "POST /api/testplans/recommendations": "Generate test plan recommendations from a PRD",
    "POST /api/testcases": "Create new test case",
    "GET /api/testcases/:id": "Get test case details by work item ID",
    "POST /api/testcases/batch": "Get multiple test case details",
    "POST /api/testplans/:planId/suites/:suiteId/testcases": "Add test cases to suite",
    "GET /api/testplans/:planId/suites/:suiteId/testcases": "Get test cases from suite",
    "GET /api/builds/:buildId/testresults": "Get test results for build",
    "POST /:resourceId/saveConnection": "Save connection configuration",
    "GET /:resourceId": "Get connection configuration",
    "GET /:resourceId/ado_plans": "Get ADO test plans and suites",
    "POST /:resourceId/createIssue/:testCaseId": "Create GitHub issue for test case",
}


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        clientInitialized=container.ado_lifecycle.is_ready,
    )


@router.get("/health/readiness")
async def readiness_check():
    """Readiness check endpoint"""
    checks = {
        "azure_devops": "ok" if container.ado_lifecycle.is_ready else "not_initialized",
        "azure_openai": "ok" if settings.azure_openai_endpoint and settings.azure_openai_api_key else "not_configured",
    }

    return {
        "status": "ready" if checks["azure_devops"] == "ok" else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc),
    }


@router.get("/")
async def api_directory():
    """Endpoint directory"""
    return {
        "message": "Azure DevOps Test Plans API Server",
        "version": "1.0.0",
        "environment": settings.environment,
        "endpoints": ENDPOINTS,
        "documentation": "/docs",
    }
