from abc import ABC, abstractmethod
from typing import List, Dict, Any
from app.models.schemas import TestPlanRecommendation


class IAIService(ABC):
    """Interface for AI/LLM operations"""

    @abstractmethod
    async def generate_test_plan_recommendations(
        self,
        prd: str,
        existing_test_plans: List[Dict[str, Any]],
        test_plan_id: str,
    ) -> List[TestPlanRecommendation]:
        """Propose new test plans for a PRD that do not duplicate the existing ones"""
        pass
