"""Top-level API router."""

from fastapi import APIRouter

from pbb_monitor.api.routes.dashboards import router as dashboards_router
from pbb_monitor.api.routes.hamlets import router as hamlets_router
from pbb_monitor.api.routes.health import router as health_router
from pbb_monitor.api.routes.me import router as me_router
from pbb_monitor.api.routes.payments import router as payments_router
from pbb_monitor.api.routes.reports import router as reports_router
from pbb_monitor.api.routes.users import router as users_router
from pbb_monitor.api.routes.villages import router as villages_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(villages_router)
api_router.include_router(hamlets_router)
api_router.include_router(users_router)
api_router.include_router(payments_router)
api_router.include_router(dashboards_router)
api_router.include_router(reports_router)
