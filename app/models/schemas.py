from pydantic import BaseModel, Field
from typing import List, Optional, Any, Union
from datetime import datetime
from enum import Enum


class RecommendationPriority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RecommendationTestType(str, Enum):
    FUNCTIONAL = "Functional"
    INTEGRATION = "Integration"
    PERFORMANCE = "Performance"
    SECURITY = "Security"
    USABILITY = "Usability"
    REGRESSION = "Regression"


# Request bodies. Fields are loosely typed on purpose: presence and shape are
# checked by the routes so the error envelope matches the documented messages.

class TestPlanCreateRequest(BaseModel):
    name: Optional[str] = None
    iteration: Optional[str] = None
    description: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    areaPath: Optional[str] = None


class TestPlanUpdateRequest(BaseModel):
    name: Optional[str] = None
    iteration: Optional[str] = None
    description: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    areaPath: Optional[str] = None
    state: Optional[str] = None
    revision: Optional[int] = None


class TestCaseCreateRequest(BaseModel):
    title: Optional[str] = None
    steps: Optional[str] = Field(None, description="Lines of '1. step text|expected result'")
    priority: Optional[int] = None
    areaPath: Optional[str] = None
    iterationPath: Optional[str] = None


class BatchTestCaseRequest(BaseModel):
    ids: Optional[Any] = None


class AddTestCasesToSuiteRequest(BaseModel):
    testCaseIds: Optional[Union[List[Any], str, int]] = None


class RecommendationRequest(BaseModel):
    prd: Optional[str] = None
    testPlanId: Optional[Union[str, int]] = None


class SaveConnectionRequest(BaseModel):
    github_url: Optional[str] = None
    prd: Optional[str] = None
    ado_url: Optional[str] = None
    website_url: Optional[str] = None


class CreateIssueRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    labels: Optional[List[str]] = None
    assignees: Optional[List[str]] = None


# Registry records

class Connection(BaseModel):
    resourceId: str
    connectionId: str
    github_url: str
    prd: str
    ado_url: str
    website_url: str


class MockTestCase(BaseModel):
    name: str
    steps: List[str] = Field(default_factory=list)
    issueId: Optional[str] = None
    status: Optional[str] = None


class MockTestSuite(BaseModel):
    name: str
    testCaseId: str
    testCases: List[MockTestCase] = Field(default_factory=list)


class SaveConnectionResponse(BaseModel):
    message: str
    status: str
    resourceId: str
    connectionId: str


class SuitesResponse(BaseModel):
    suites: List[MockTestSuite]


# Recommendation output

class RecommendedTestCase(BaseModel):
    title: str
    description: str
    steps: List[Any]
    expectedResult: str
    priority: Optional[str] = None
    testType: Optional[str] = None

    class Config:
        extra = "allow"


class RecommendationCoverage(BaseModel):
    functionalAreas: List[str] = Field(default_factory=list)
    riskAreas: List[str] = Field(default_factory=list)
    userScenarios: List[str] = Field(default_factory=list)

    class Config:
        extra = "allow"


class TestPlanRecommendation(BaseModel):
    name: str
    description: str
    objective: str
    testCases: List[RecommendedTestCase]
    coverage: Optional[RecommendationCoverage] = None

    class Config:
        extra = "allow"


class RecommendationResult(BaseModel):
    testPlanId: str
    prdLength: int
    existingTestCasesCount: int
    recommendations: List[TestPlanRecommendation]
    generatedAt: datetime


class RecommendationResponse(BaseModel):
    success: bool = True
    data: RecommendationResult


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    clientInitialized: bool
