import secrets
import string
from typing import List, Optional
import structlog

from app.core.exceptions import NotFoundError, BadRequestError
from app.models.schemas import (
    Connection,
    MockTestCase,
    MockTestSuite,
    SaveConnectionRequest,
    SaveConnectionResponse,
)
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService
from app.repositories.interfaces.key_value_store import IKeyValueStore

logger = structlog.get_logger()

ID_ALPHABET = string.digits + string.ascii_lowercase
CONNECTION_ID_LENGTH = 10
ISSUE_ID_LENGTH = 8

SAMPLE_STEPS = [
    "Step 1: Navigate to application",
    "Step 2: Perform test action",
    "Step 3: Verify expected result",
]


def generate_short_id(length: int) -> str:
    """Random lowercase base36 identifier."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


class ConnectionService:
    """Saved integration configuration and the mock suites used by the issue demo.

    Both registries are keyed by the caller-supplied resourceId and carry no
    ownership check: anyone who knows a resourceId can read or overwrite it.
    """

    def __init__(
        self,
        connection_store: IKeyValueStore[Connection],
        suite_store: IKeyValueStore[List[MockTestSuite]],
    ):
        self.connection_store = connection_store
        self.suite_store = suite_store

    async def save_connection(self, resource_id: str, request: SaveConnectionRequest) -> SaveConnectionResponse:
        if not (request.github_url and request.prd and request.ado_url and request.website_url):
            raise BadRequestError(
                "github_url, prd, ado_url, and website_url are required",
                error="Missing required fields",
            )

        connection = Connection(
            resourceId=resource_id,
            connectionId=generate_short_id(CONNECTION_ID_LENGTH),
            github_url=request.github_url,
            prd=request.prd,
            ado_url=request.ado_url,
            website_url=request.website_url,
        )
        await self.connection_store.set(resource_id, connection)
        logger.info("Connection saved", resource_id=resource_id, connection_id=connection.connectionId)

        return SaveConnectionResponse(
            message="Connection saved successfully",
            status="success",
            resourceId=resource_id,
            connectionId=connection.connectionId,
        )

    async def get_connection(self, resource_id: str, hint: str = "") -> Connection:
        connection = await self.connection_store.get(resource_id)
        if connection is None:
            raise NotFoundError(
                f"No connection found for resourceId: {resource_id}{hint}",
                error="Connection not found",
            )
        return connection

    async def list_ado_plans_as_suites(self, resource_id: str, ado_service: IAzureDevOpsService) -> List[MockTestSuite]:
        """Derive one mock suite per Azure DevOps test plan and store them for resource_id"""
        await self.get_connection(resource_id, hint=". Please save connection first.")

        plans = await ado_service.get_all_test_plans(True, True)
        suites: List[MockTestSuite] = []
        for plan in plans:
            plan_id = plan.get("id")
            if not plan_id:
                continue
            name = plan.get("name")
            suites.append(MockTestSuite(
                name=name or f"Test Plan {plan_id}",
                testCaseId=str(plan_id),
                testCases=[MockTestCase(name=f"Sample test case for {name}", steps=list(SAMPLE_STEPS))],
            ))

        async with self.suite_store.lock(resource_id):
            await self.suite_store.set(resource_id, suites)
        logger.info("Mock suites derived from test plans", resource_id=resource_id, count=len(suites))
        return suites

    async def create_issue(
        self,
        resource_id: str,
        test_case_id: str,
        title: Optional[str],
        body: Optional[str],
        labels: Optional[List[str]] = None,
        assignees: Optional[List[str]] = None,
    ) -> List[MockTestSuite]:
        """Simulate opening a GitHub issue for a test case; only the mock suites change"""
        connection = await self.get_connection(resource_id, hint=". Please save connection first.")
        if not title or not body:
            raise BadRequestError("title and body are required", error="Missing required fields")

        issue_id = generate_short_id(ISSUE_ID_LENGTH)
        async with self.suite_store.lock(resource_id):
            suites = await self.suite_store.get(resource_id) or []

            matched = False
            for suite in suites:
                if suite.testCaseId == test_case_id:
                    suite.testCases = [
                        tc.model_copy(update={"issueId": issue_id, "status": "Creating"})
                        for tc in suite.testCases
                    ]
                    matched = True

            if not matched:
                suites.append(MockTestSuite(
                    name="GitHub Issue Suite",
                    testCaseId=test_case_id,
                    testCases=[MockTestCase(name=title, steps=[body], issueId=issue_id, status="Creating")],
                ))

            await self.suite_store.set(resource_id, suites)

        # No real issue is created; the GitHub side is simulated
        logger.info(
            "Mock GitHub issue created",
            resource_id=resource_id,
            test_case_id=test_case_id,
            issue_id=issue_id,
            title=title,
            github_url=connection.github_url,
            labels=labels or [],
            assignees=assignees or [],
        )
        return suites
