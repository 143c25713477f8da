from typing import Optional
from fastapi import APIRouter, Depends

from app.core.dependencies import get_ado_service, get_connection_service
from app.models.schemas import (
    CreateIssueRequest,
    SaveConnectionRequest,
    SaveConnectionResponse,
    SuitesResponse,
)
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService
from app.services.connection_service import ConnectionService

# resourceId is a caller-chosen key with no ownership check; these routes must
# be registered after every fixed path so they only catch what is left.
router = APIRouter(tags=["connections"])


@router.post("/{resource_id}/saveConnection", response_model=SaveConnectionResponse)
async def save_connection(
    resource_id: str,
    request: Optional[SaveConnectionRequest] = None,
    service: ConnectionService = Depends(get_connection_service),
):
    """Save connection configuration"""
    return await service.save_connection(resource_id, request or SaveConnectionRequest())


@router.get("/{resource_id}")
async def get_connection(resource_id: str, service: ConnectionService = Depends(get_connection_service)):
    """Get connection configuration"""
    connection = await service.get_connection(resource_id)
    return {
        "github_url": connection.github_url,
        "prd": connection.prd,
        "ado_url": connection.ado_url,
        "website_url": connection.website_url,
        "resourceId": connection.resourceId,
        "connectionId": connection.connectionId,
    }


@router.get("/{resource_id}/ado_plans", response_model=SuitesResponse, response_model_exclude_none=True)
async def get_ado_plans(
    resource_id: str,
    ado: IAzureDevOpsService = Depends(get_ado_service),
    service: ConnectionService = Depends(get_connection_service),
):
    """Get ADO test plans as mock suites"""
    suites = await service.list_ado_plans_as_suites(resource_id, ado)
    return SuitesResponse(suites=suites)


@router.post(
    "/{resource_id}/createIssue/{test_case_id}",
    response_model=SuitesResponse,
    response_model_exclude_none=True,
)
async def create_issue(
    resource_id: str,
    test_case_id: str,
    request: Optional[CreateIssueRequest] = None,
    service: ConnectionService = Depends(get_connection_service),
):
    """Create (simulated) GitHub issue for test case"""
    request = request or CreateIssueRequest()
    suites = await service.create_issue(
        resource_id,
        test_case_id,
        request.title,
        request.body,
        request.labels,
        request.assignees,
    )
    return SuitesResponse(suites=suites)
