from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Union


class IAzureDevOpsService(ABC):
    """Interface for Azure DevOps Test Plans operations"""

    @abstractmethod
    async def get_all_test_plans(self, filter_active_plans: bool = True, include_plan_details: bool = False) -> List[Dict[str, Any]]:
        """List test plans of the configured project"""
        pass

    @abstractmethod
    async def get_test_plan(self, plan_id: int) -> Optional[Dict[str, Any]]:
        """Get a test plan by ID"""
        pass

    @abstractmethod
    async def create_test_plan(
        self,
        name: str,
        iteration: str,
        description: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        area_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a test plan"""
        pass

    @abstractmethod
    async def update_test_plan(self, plan_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update a test plan; updates use the REST (camelCase) field names"""
        pass

    @abstractmethod
    async def delete_test_plan(self, plan_id: int) -> None:
        """Delete a test plan"""
        pass

    @abstractmethod
    async def create_test_case(
        self,
        title: str,
        steps: Optional[str] = None,
        priority: Optional[int] = None,
        area_path: Optional[str] = None,
        iteration_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a Test Case work item"""
        pass

    @abstractmethod
    async def get_test_case_details(self, test_case_id: int) -> Dict[str, Any]:
        """Get a test case work item by ID"""
        pass

    @abstractmethod
    async def get_multiple_test_case_details(self, test_case_ids: List[int]) -> List[Dict[str, Any]]:
        """Get several test case work items, in the order requested"""
        pass

    @abstractmethod
    async def add_test_cases_to_suite(self, plan_id: int, suite_id: int, test_case_ids: Union[List[Any], str, int]) -> List[Dict[str, Any]]:
        """Add test cases to a static suite"""
        pass

    @abstractmethod
    async def get_test_case_list(self, plan_id: int, suite_id: int) -> List[Dict[str, Any]]:
        """List the test cases of a suite"""
        pass

    @abstractmethod
    async def get_test_results_from_build_id(self, build_id: int) -> List[Dict[str, Any]]:
        """Get test results published for a build"""
        pass

    @abstractmethod
    async def get_test_cases_for_plan(self, plan_id: int) -> List[Dict[str, Any]]:
        """List the test cases under the root suite of a plan"""
        pass
