from fastapi import APIRouter
from app.api.routes import health, test_plans, test_cases, builds, connections

api_router = APIRouter()

# Include all route modules; the resourceId routes catch remaining paths, so they go last
api_router.include_router(health.router)
api_router.include_router(test_plans.router)
api_router.include_router(test_cases.router)
api_router.include_router(builds.router)
api_router.include_router(connections.router)
