"""Azure DevOps Test Plans adapter.

Uses the official `azure-devops` SDK for test plan, suite and work item
operations and raw REST (via `httpx`) for build test results, which the
test plan client does not expose. Every public method maps to one vendor call;
errors propagate, except a missing test plan which is reported as None.
"""

import asyncio
import html
import re
import xml.etree.ElementTree as ET
from functools import partial
from typing import Optional, List, Dict, Any, Union

import httpx
import structlog
from azure.devops.connection import Connection
from azure.devops.exceptions import AzureDevOpsServiceError
from azure.devops.v7_1.test_plan.models import (
    SuiteTestCaseCreateUpdateParameters,
    TestPlanCreateParams,
    TestPlanUpdateParams,
    WorkItem,
)
from azure.devops.v7_1.work_item_tracking.models import JsonPatchOperation
from msrest.authentication import BasicAuthentication

from app.config.settings import Settings, settings
from app.core.exceptions import ConfigurationError
from app.repositories.interfaces.azure_devops_service import IAzureDevOpsService

logger = structlog.get_logger()

STEP_LINE_PREFIX = re.compile(r"^\s*\d+\.\s*")

# REST field names accepted by update_test_plan -> TestPlanUpdateParams kwargs
PLAN_UPDATE_FIELDS = {
    "name": "name",
    "iteration": "iteration",
    "description": "description",
    "startDate": "start_date",
    "endDate": "end_date",
    "areaPath": "area_path",
    "state": "state",
    "revision": "revision",
}


def build_steps_xml(steps: Optional[str]) -> Optional[str]:
    """Turn '1. action|expected' lines into the Microsoft.VSTS.TCM.Steps XML blob."""
    if not steps:
        return None
    lines = [line for line in steps.split("\n") if line.strip()]
    if not lines:
        return None
    root = ET.Element("steps", id="0", last=str(len(lines) + 1))
    for idx, line in enumerate(lines, start=2):
        action, _, expected = line.partition("|")
        step = ET.SubElement(root, "step", id=str(idx), type="ValidateStep")
        action_el = ET.SubElement(step, "parameterizedString", isformatted="true")
        action_el.text = STEP_LINE_PREFIX.sub("", action).strip()
        expected_el = ET.SubElement(step, "parameterizedString", isformatted="true")
        expected_el.text = expected.strip()
        ET.SubElement(step, "description")
    return ET.tostring(root, encoding="unicode")


def parse_steps_xml(xml_str: Optional[str]) -> List[Dict[str, str]]:
    """Parse the TCM Steps XML back into action/expectedResult pairs."""
    if not xml_str:
        return []
    steps: List[Dict[str, str]] = []
    try:
        root = ET.fromstring(xml_str)
    except ET.ParseError:
        logger.warning("Could not parse TCM Steps XML; treating as empty")
        return []
    for step_el in root.findall("step"):
        params = step_el.findall("parameterizedString")
        action = params[0].text or "" if len(params) > 0 else ""
        expected = params[1].text or "" if len(params) > 1 else ""
        steps.append({
            "action": _strip_html(action),
            "expectedResult": _strip_html(expected),
        })
    return steps


def _strip_html(text: str) -> str:
    return html.unescape(re.sub(r"<[^>]+>", "", text)).strip()


def _to_dict(model: Any) -> Any:
    """Serialize an SDK model to its REST (camelCase) representation."""
    if model is None:
        return None
    if hasattr(model, "serialize"):
        return model.serialize()
    return model


NOT_FOUND_TYPE_KEYS = {"TestObjectNotFoundException", "TestPlanNotFoundException"}


def _is_not_found(error: AzureDevOpsServiceError) -> bool:
    """The SDK raises on a 404 instead of returning nothing."""
    if getattr(error, "type_key", None) in NOT_FOUND_TYPE_KEYS:
        return True
    return "not found" in (error.message or "").lower()


def _unwrap(result: Any) -> List[Any]:
    """Paged SDK calls return an object with .value; older ones a plain list."""
    value = getattr(result, "value", result)
    return list(value or [])


class AzureDevOpsService(IAzureDevOpsService):
    """azure-devops SDK implementation of the Test Plans adapter"""

    def __init__(self, connection: Connection, config: Settings):
        self._connection = connection
        self._project = config.ado_project
        self._org_url = (config.ado_org_url or "").rstrip("/")
        self._pat = config.ado_pat
        self._api_version = config.ado_api_version
        self._test_plan_client = connection.clients_v7_1.get_test_plan_client()
        self._wit_client = connection.clients_v7_1.get_work_item_tracking_client()

    @classmethod
    async def connect(cls, config: Settings = settings) -> "AzureDevOpsService":
        """Open and authenticate the SDK connection; returns a ready adapter or raises."""
        missing = [
            name for name, value in (
                ("ADO_ORG_URL", config.ado_org_url),
                ("ADO_PROJECT", config.ado_project),
                ("ADO_PAT", config.ado_pat),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Azure DevOps configuration missing. Please set {', '.join(missing)} environment variables."
            )

        def sync_connect():
            connection = Connection(
                base_url=config.ado_org_url.rstrip("/"),
                creds=BasicAuthentication("", config.ado_pat),
            )
            connection.authenticate()
            return cls(connection, config)

        service = await asyncio.get_event_loop().run_in_executor(None, sync_connect)
        logger.info("Azure DevOps client initialized", org_url=config.ado_org_url, project=config.ado_project)
        return service

    async def _run(self, func, *args, **kwargs):
        return await asyncio.get_event_loop().run_in_executor(None, partial(func, *args, **kwargs))

    async def get_all_test_plans(self, filter_active_plans: bool = True, include_plan_details: bool = False) -> List[Dict[str, Any]]:
        result = await self._run(
            self._test_plan_client.get_test_plans,
            self._project,
            include_plan_details=include_plan_details,
            filter_active_plans=filter_active_plans,
        )
        plans = [_to_dict(plan) for plan in _unwrap(result)]
        logger.info("Fetched test plans", count=len(plans), filter_active_plans=filter_active_plans)
        return plans

    async def get_test_plan(self, plan_id: int) -> Optional[Dict[str, Any]]:
        try:
            plan = await self._run(self._test_plan_client.get_test_plan_by_id, self._project, plan_id)
        except AzureDevOpsServiceError as e:
            if not _is_not_found(e):
                raise
            logger.info("Test plan not found", plan_id=plan_id)
            return None
        return _to_dict(plan)

    async def create_test_plan(
        self,
        name: str,
        iteration: str,
        description: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        area_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = TestPlanCreateParams(
            name=name,
            iteration=iteration,
            description=description,
            start_date=start_date,
            end_date=end_date,
            area_path=area_path,
        )
        plan = await self._run(self._test_plan_client.create_test_plan, params, self._project)
        logger.info("Test plan created", plan_id=getattr(plan, "id", None), name=name)
        return _to_dict(plan)

    async def update_test_plan(self, plan_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        kwargs = {
            PLAN_UPDATE_FIELDS[key]: value
            for key, value in updates.items()
            if key in PLAN_UPDATE_FIELDS and value is not None
        }
        params = TestPlanUpdateParams(**kwargs)
        plan = await self._run(self._test_plan_client.update_test_plan, params, self._project, plan_id)
        logger.info("Test plan updated", plan_id=plan_id, fields=sorted(kwargs))
        return _to_dict(plan)

    async def delete_test_plan(self, plan_id: int) -> None:
        await self._run(self._test_plan_client.delete_test_plan, self._project, plan_id)
        logger.info("Test plan deleted", plan_id=plan_id)

    async def create_test_case(
        self,
        title: str,
        steps: Optional[str] = None,
        priority: Optional[int] = None,
        area_path: Optional[str] = None,
        iteration_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = [JsonPatchOperation(op="add", path="/fields/System.Title", value=title)]
        steps_xml = build_steps_xml(steps)
        if steps_xml:
            document.append(JsonPatchOperation(op="add", path="/fields/Microsoft.VSTS.TCM.Steps", value=steps_xml))
        if priority is not None:
            document.append(JsonPatchOperation(op="add", path="/fields/Microsoft.VSTS.Common.Priority", value=priority))
        if area_path:
            document.append(JsonPatchOperation(op="add", path="/fields/System.AreaPath", value=area_path))
        if iteration_path:
            document.append(JsonPatchOperation(op="add", path="/fields/System.IterationPath", value=iteration_path))

        work_item = await self._run(self._wit_client.create_work_item, document, self._project, "Test Case")
        logger.info("Test case created", work_item_id=work_item.id, title=title)
        return self._work_item_details(work_item)

    async def get_test_case_details(self, test_case_id: int) -> Dict[str, Any]:
        work_item = await self._run(self._wit_client.get_work_item, test_case_id, expand="All")
        return self._work_item_details(work_item)

    async def get_multiple_test_case_details(self, test_case_ids: List[int]) -> List[Dict[str, Any]]:
        work_items = await self._run(self._wit_client.get_work_items, test_case_ids, expand="All")
        return [self._work_item_details(item) for item in work_items if item is not None]

    async def add_test_cases_to_suite(self, plan_id: int, suite_id: int, test_case_ids: Union[List[Any], str, int]) -> List[Dict[str, Any]]:
        if isinstance(test_case_ids, list):
            ids = test_case_ids
        else:
            ids = [part.strip() for part in str(test_case_ids).split(",") if part.strip()]
        params = [SuiteTestCaseCreateUpdateParameters(work_item=WorkItem(id=int(tc_id))) for tc_id in ids]
        added = await self._run(
            self._test_plan_client.add_test_cases_to_suite, params, self._project, plan_id, suite_id
        )
        logger.info("Test cases added to suite", plan_id=plan_id, suite_id=suite_id, count=len(params))
        return [_to_dict(tc) for tc in _unwrap(added)]

    async def get_test_case_list(self, plan_id: int, suite_id: int) -> List[Dict[str, Any]]:
        result = await self._run(self._test_plan_client.get_test_case_list, self._project, plan_id, suite_id)
        return [_to_dict(tc) for tc in _unwrap(result)]

    async def get_test_results_from_build_id(self, build_id: int) -> List[Dict[str, Any]]:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self._org_url}/{self._project}/_apis/test/ResultsByBuild",
                params={"buildId": build_id, "api-version": self._api_version},
                auth=("", self._pat),
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            results = response.json().get("value", [])
        logger.info("Fetched build test results", build_id=build_id, count=len(results))
        return results

    async def get_test_cases_for_plan(self, plan_id: int) -> List[Dict[str, Any]]:
        plan = await self._run(self._test_plan_client.get_test_plan_by_id, self._project, plan_id)
        root_suite = getattr(plan, "root_suite", None)
        if root_suite is None or root_suite.id is None:
            return []
        result = await self._run(
            self._test_plan_client.get_test_case_list,
            self._project,
            plan_id,
            root_suite.id,
            is_recursive=True,
        )
        test_cases = []
        for tc in _unwrap(result):
            work_item = getattr(tc, "work_item", None)
            test_cases.append({
                "id": getattr(work_item, "id", None),
                "name": getattr(work_item, "name", None),
                "suite": getattr(getattr(tc, "test_suite", None), "name", None),
            })
        return test_cases

    @staticmethod
    def _work_item_details(work_item: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = work_item.fields or {}
        assigned_to = fields.get("System.AssignedTo")
        if isinstance(assigned_to, dict):
            assigned_to = assigned_to.get("displayName")
        return {
            "id": work_item.id,
            "rev": work_item.rev,
            "title": fields.get("System.Title", ""),
            "state": fields.get("System.State", ""),
            "priority": fields.get("Microsoft.VSTS.Common.Priority"),
            "areaPath": fields.get("System.AreaPath", ""),
            "iterationPath": fields.get("System.IterationPath", ""),
            "assignedTo": assigned_to,
            "automationStatus": fields.get("Microsoft.VSTS.TCM.AutomationStatus"),
            "steps": parse_steps_xml(fields.get("Microsoft.VSTS.TCM.Steps")),
            "url": work_item.url,
        }
