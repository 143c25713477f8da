from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union
import structlog

from app.core.exceptions import BadRequestError
from app.models.schemas import RecommendationResult
from app.repositories.interfaces.ai_service import IAIService
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService

logger = structlog.get_logger()


class RecommendationService:
    """Generates new test plan proposals from a PRD and the plan's existing test cases"""

    def __init__(
        self,
        ado_service: IAzureDevOpsService,
        ai_service_factory: Callable[[], IAIService],
        default_test_plan_id: Optional[str] = None,
    ):
        self.ado_service = ado_service
        # Resolved lazily so request validation runs before the credentials check
        self.ai_service_factory = ai_service_factory
        self.default_test_plan_id = default_test_plan_id

    async def generate(self, prd: Optional[str], test_plan_id: Optional[Union[str, int]] = None) -> RecommendationResult:
        if not prd or not prd.strip():
            raise BadRequestError(
                "PRD (Product Requirements Document) is required",
                error="Missing required field",
            )

        resolved_id = test_plan_id if test_plan_id not in (None, "") else self.default_test_plan_id
        if resolved_id in (None, ""):
            raise BadRequestError(
                "testPlanId is required (in request body or TEST_PLAN_ID environment variable)",
                error="Missing test plan ID",
            )
        try:
            plan_id = int(resolved_id)
        except (TypeError, ValueError):
            raise BadRequestError("testPlanId must be a number", error="Invalid test plan ID")

        existing = await self._existing_test_cases(plan_id)

        ai_service = self.ai_service_factory()
        recommendations = await ai_service.generate_test_plan_recommendations(prd, existing, str(resolved_id))

        return RecommendationResult(
            testPlanId=str(resolved_id),
            prdLength=len(prd),
            existingTestCasesCount=len(existing),
            recommendations=recommendations,
            generatedAt=datetime.now(timezone.utc),
        )

    async def _existing_test_cases(self, plan_id: int) -> List[Dict[str, Any]]:
        try:
            return await self.ado_service.get_test_cases_for_plan(plan_id)
        except Exception as e:
            logger.warning(
                "Could not fetch existing test cases, continuing without them",
                test_plan_id=plan_id,
                error=str(e),
            )
            return []
