"""
API v1 router setup
Organized into: public, dashboard (admin token), calendar feed and cron routes
"""
from fastapi import APIRouter, Depends

from booking_engine.api.dependencies import require_admin_token, require_cron_token
from booking_engine.api.v1 import calendar, cron
from booking_engine.api.v1.dashboard import appointments as dashboard_appointments, overrides, settings
from booking_engine.api.v1.public import appointments as public_appointments

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    public_appointments.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (Admin token required)
# ============================================================================
for dashboard_router in (dashboard_appointments.router, settings.router, overrides.router):
    api_v1_router.include_router(
        dashboard_router,
        prefix="/dashboard",
        tags=["Dashboard"],
        dependencies=[Depends(require_admin_token)]
    )

# ============================================================================
# CALENDAR FEED (token in query string, for calendar apps)
# ============================================================================
api_v1_router.include_router(
    calendar.router,
    prefix="/calendar",
    tags=["Calendar"]
)

# ============================================================================
# CRON JOBS (CRON_SECRET bearer token)
# ============================================================================
api_v1_router.include_router(
    cron.router,
    prefix="/cron",
    tags=["Cron"],
    dependencies=[Depends(require_cron_token)]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and the authentication used per route group"""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required",
            "dashboard": "Bearer admin token required",
            "calendar": "Subscription token in the query string",
            "cron": "Bearer cron secret required"
        }
    }
