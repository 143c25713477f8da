import asyncio
import json
import re
from typing import Any, Dict, List, Optional

import structlog
from openai import AzureOpenAI

from app.config.settings import Settings, settings
from app.core.exceptions import ConfigurationError, RecommendationParseError, UpstreamError
from app.models.schemas import TestPlanRecommendation
from app.repositories.interfaces.ai_service import IAIService

logger = structlog.get_logger()

CODE_FENCE_JSON = re.compile(r"```json\s*\n?")
CODE_FENCE = re.compile(r"```\s*\n?")


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences the model sometimes wraps its JSON in."""
    return CODE_FENCE.sub("", CODE_FENCE_JSON.sub("", content)).strip()


def parse_recommendations(content: str) -> List[TestPlanRecommendation]:
    """Parse and shape-check the model output.

    Raises RecommendationParseError on invalid JSON or on any element missing a
    required field; the raw content is kept on the error for logging.
    """
    try:
        parsed = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise RecommendationParseError(str(e), content)

    if not isinstance(parsed, list):
        raise RecommendationParseError("Response must be an array of test plan recommendations", content)

    for index, rec in enumerate(parsed):
        if not isinstance(rec, dict) or not all(
            isinstance(rec.get(key), str) and rec.get(key) for key in ("name", "description", "objective")
        ) or not isinstance(rec.get("testCases"), list):
            raise RecommendationParseError(f"Invalid recommendation structure at index {index}", content)

        for tc_index, test_case in enumerate(rec["testCases"]):
            if (
                not isinstance(test_case, dict)
                or not test_case.get("title")
                or not test_case.get("description")
                or not isinstance(test_case.get("steps"), list)
                or not test_case.get("expectedResult")
            ):
                raise RecommendationParseError(
                    f"Invalid test case structure at recommendation {index}, test case {tc_index}", content
                )

    try:
        return [TestPlanRecommendation(**rec) for rec in parsed]
    except ValueError as e:
        raise RecommendationParseError(str(e), content)


class AzureOpenAIService(IAIService):
    """Azure OpenAI chat-completions implementation of AI service"""

    def __init__(self, config: Settings = settings, client: Optional[Any] = None):
        if not config.azure_openai_endpoint or not config.azure_openai_api_key:
            raise ConfigurationError(
                "Azure OpenAI configuration missing. Please set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY environment variables."
            )
        self.client = client or AzureOpenAI(
            azure_endpoint=config.azure_openai_endpoint,
            api_key=config.azure_openai_api_key,
            api_version=config.azure_openai_api_version,
        )
        # For Azure OpenAI the model argument is the deployment name
        self.deployment_name = config.azure_openai_deployment_name
        self.max_tokens = config.azure_openai_max_tokens

    async def generate_test_plan_recommendations(
        self,
        prd: str,
        existing_test_plans: List[Dict[str, Any]],
        test_plan_id: str,
    ) -> List[TestPlanRecommendation]:
        """Generate test plan recommendations (async wrapper around the sync client)"""
        system_prompt = self._get_system_prompt()
        user_prompt = self._build_user_prompt(prd, existing_test_plans, test_plan_id)
        logger.info(
            "Requesting test plan recommendations",
            deployment=self.deployment_name,
            test_plan_id=test_plan_id,
            prompt_length=len(user_prompt),
        )

        def sync_call():
            return self.client.chat.completions.create(
                model=self.deployment_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.7,
                max_tokens=self.max_tokens,
                top_p=0.9,
                frequency_penalty=0,
                presence_penalty=0,
                n=1,
            )

        try:
            response = await asyncio.get_event_loop().run_in_executor(None, sync_call)
        except Exception as e:
            logger.error("Azure OpenAI request failed", error=str(e))
            raise UpstreamError(f"Failed to generate recommendations: {e}") from e

        content = ""
        if getattr(response, "choices", None):
            content = response.choices[0].message.content or ""
        if not content:
            raise UpstreamError("No response content received from Azure OpenAI")

        try:
            recommendations = parse_recommendations(content)
        except RecommendationParseError as e:
            logger.error("Failed to parse recommendations", error=e.reason, content=e.raw_content)
            raise

        logger.info("Recommendations generated", count=len(recommendations))
        return recommendations

    def _get_system_prompt(self) -> str:
        """Get system prompt for test plan recommendation"""
        return """You are an expert Test Manager and Quality Assurance professional with extensive experience in creating comprehensive test plans based on Product Requirements Documents (PRDs). Your task is to analyze PRDs and generate detailed, actionable test plan recommendations.

Key Responsibilities:
1. Analyze the provided PRD to understand the product functionality, user flows, and requirements
2. Review existing test plans to understand current coverage (but do NOT duplicate them)
3. Generate NEW, comprehensive test plans that complement existing testing
4. Focus on areas that may be missing or need additional coverage
5. Ensure test cases are specific, measurable, and actionable

Guidelines:
- Create test plans that are DIFFERENT from existing ones
- Focus on edge cases, integration scenarios, and user experience flows
- Prioritize test cases based on risk and business impact
- Include various test types: Functional, Integration, Performance, Security, Usability
- Provide clear, step-by-step test procedures
- Ensure comprehensive coverage of the PRD requirements

Response Format:
Return a valid JSON array of test plan recommendations. Each recommendation should follow this exact structure:

{
  "name": "Test Plan Name",
  "description": "Brief description of what this test plan covers",
  "objective": "Clear objective of the test plan",
  "testCases": [
    {
      "title": "Test case title",
      "description": "What this test case validates",
      "steps": ["Step 1", "Step 2", "Step 3"],
      "expectedResult": "Expected outcome",
      "priority": "Critical|High|Medium|Low",
      "testType": "Functional|Integration|Performance|Security|Usability|Regression"
    }
  ],
  "coverage": {
    "functionalAreas": ["Area 1", "Area 2"],
    "riskAreas": ["Risk 1", "Risk 2"],
    "userScenarios": ["Scenario 1", "Scenario 2"]
  }
}"""

    def _build_user_prompt(self, prd: str, existing_test_plans: List[Dict[str, Any]], test_plan_id: str) -> str:
        """Build prompt embedding the PRD and the existing test plans"""
        if existing_test_plans:
            existing = (
                f"Here are the existing test plans and test cases for Test Plan ID {test_plan_id}:\n"
                f"{json.dumps(existing_test_plans, indent=2, default=str)}\n\n"
            )
        else:
            existing = "No existing test plans provided.\n\n"

        return f"""{existing}Product Requirements Document (PRD):
{prd}

Please analyze the PRD and generate 2-3 comprehensive test plan recommendations that:
1. Cover different aspects of the product requirements
2. Are DISTINCT from any existing test plans
3. Focus on critical user journeys and business scenarios
4. Include proper test case prioritization
5. Cover various testing types (functional, integration, performance, etc.)

Generate test plans that would provide maximum value and coverage for this product. Return ONLY the JSON array without any additional text or markdown formatting."""
