from fastapi import APIRouter, Depends

from app.api.params import parse_int_param
from app.core.dependencies import get_ado_service
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService

router = APIRouter(prefix="/api/builds", tags=["builds"])


@router.get("/{build_id}/testresults")
async def get_build_test_results(build_id: str, ado: IAzureDevOpsService = Depends(get_ado_service)):
    """Get test results for build"""
    build = parse_int_param(build_id, "Invalid build ID", "Build ID must be a number")
    test_results = await ado.get_test_results_from_build_id(build)
    return {"success": True, "data": test_results, "buildId": build}
