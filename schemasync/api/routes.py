from fastapi import APIRouter
from schemasync.api.routes_health import router as health_router
from schemasync.api.routes_runs import router as runs_router
from schemasync.api.routes_compare import router as compare_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(runs_router, tags=["runs"])
router.include_router(compare_router, tags=["compare"])
