from typing import Optional
from fastapi import APIRouter, Depends, Query, status
import structlog

from app.api.params import parse_int_param
from app.core.dependencies import get_ado_service, get_recommendation_service
from app.core.exceptions import BadRequestError, NotFoundError
from app.models.schemas import (
    AddTestCasesToSuiteRequest,
    RecommendationRequest,
    RecommendationResponse,
    TestPlanCreateRequest,
    TestPlanUpdateRequest,
)
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService
from app.services.recommendation_service import RecommendationService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/testplans", tags=["test-plans"])


def _plan_id(value: str) -> int:
    return parse_int_param(value, "Invalid test plan ID", "Test plan ID must be a number")


def _plan_and_suite_ids(plan_id: str, suite_id: str):
    message = "Plan ID and Suite ID must be numbers"
    return parse_int_param(plan_id, "Invalid IDs", message), parse_int_param(suite_id, "Invalid IDs", message)


@router.get("")
async def get_all_test_plans(
    filter_active_plans: Optional[str] = Query(None, alias="filterActivePlans"),
    include_plan_details: Optional[str] = Query(None, alias="includePlanDetails"),
    ado: IAzureDevOpsService = Depends(get_ado_service),
):
    """Get all test plans"""
    filter_active = filter_active_plans != "false"
    include_details = include_plan_details == "true"

    test_plans = await ado.get_all_test_plans(filter_active, include_details)
    return {
        "success": True,
        "data": test_plans,
        "count": len(test_plans),
        "filters": {"filterActivePlans": filter_active, "includePlanDetails": include_details},
    }


@router.post("/recommendations", response_model=RecommendationResponse)
async def generate_recommendations(
    request: Optional[RecommendationRequest] = None,
    service: RecommendationService = Depends(get_recommendation_service),
):
    """Generate new test plan recommendations from a PRD"""
    request = request or RecommendationRequest()
    logger.info("Generating test plan recommendations", prd_length=len(request.prd or ""), test_plan_id=request.testPlanId)
    result = await service.generate(request.prd, request.testPlanId)
    return RecommendationResponse(success=True, data=result)


@router.get("/{id}")
async def get_test_plan(id: str, ado: IAzureDevOpsService = Depends(get_ado_service)):
    """Get test plan by ID"""
    plan_id = _plan_id(id)
    test_plan = await ado.get_test_plan(plan_id)
    if not test_plan:
        raise NotFoundError(f"Test plan with ID {plan_id} not found", error="Test plan not found")
    return {"success": True, "data": test_plan}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_test_plan(
    request: Optional[TestPlanCreateRequest] = None,
    ado: IAzureDevOpsService = Depends(get_ado_service),
):
    """Create new test plan"""
    request = request or TestPlanCreateRequest()
    if not request.name or not request.iteration:
        raise BadRequestError("name and iteration are required", error="Missing required fields")

    test_plan = await ado.create_test_plan(
        request.name,
        request.iteration,
        request.description,
        request.startDate,
        request.endDate,
        request.areaPath,
    )
    return {"success": True, "data": test_plan, "message": "Test plan created successfully"}


@router.put("/{id}")
async def update_test_plan(
    id: str,
    updates: Optional[TestPlanUpdateRequest] = None,
    ado: IAzureDevOpsService = Depends(get_ado_service),
):
    """Update test plan"""
    plan_id = _plan_id(id)
    updates = updates or TestPlanUpdateRequest()
    if not updates.iteration:
        raise BadRequestError("iteration is required for updates", error="Missing required field")

    updated = await ado.update_test_plan(plan_id, updates.model_dump(exclude_none=True))
    return {"success": True, "data": updated, "message": "Test plan updated successfully"}


@router.delete("/{id}")
async def delete_test_plan(id: str, ado: IAzureDevOpsService = Depends(get_ado_service)):
    """Delete test plan"""
    plan_id = _plan_id(id)
    await ado.delete_test_plan(plan_id)
    return {"success": True, "message": "Test plan deleted successfully"}


@router.post("/{plan_id}/suites/{suite_id}/testcases")
async def add_test_cases_to_suite(
    plan_id: str,
    suite_id: str,
    request: Optional[AddTestCasesToSuiteRequest] = None,
    ado: IAzureDevOpsService = Depends(get_ado_service),
):
    """Add test cases to suite"""
    plan, suite = _plan_and_suite_ids(plan_id, suite_id)
    request = request or AddTestCasesToSuiteRequest()
    if not request.testCaseIds:
        raise BadRequestError("testCaseIds is required", error="Missing required field")

    result = await ado.add_test_cases_to_suite(plan, suite, request.testCaseIds)
    return {"success": True, "data": result, "message": "Test cases added to suite successfully"}


@router.get("/{plan_id}/suites/{suite_id}/testcases")
async def get_suite_test_cases(
    plan_id: str,
    suite_id: str,
    ado: IAzureDevOpsService = Depends(get_ado_service),
):
    """Get test cases from suite"""
    plan, suite = _plan_and_suite_ids(plan_id, suite_id)
    test_cases = await ado.get_test_case_list(plan, suite)
    return {
        "success": True,
        "data": test_cases,
        "count": len(test_cases),
        "planId": plan,
        "suiteId": suite,
    }
