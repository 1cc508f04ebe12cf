from fastapi import APIRouter
from app.modules.auth.router import router as auth_router
from app.modules.admin.router import router as admin_router, organizations_router
from app.modules.activity.router import router as activity_router
from app.modules.work_items.router import router as work_items_router
from app.modules.strategy.router import router as strategy_router
from app.modules.knowledge_base.router import router as knowledge_base_router
from app.modules.email_templates.router import router as email_templates_router
from app.modules.bookings.router import router as bookings_router, public_router as public_bookings_router
from app.modules.integrations.router import router as integrations_router
from app.modules.data_explorer.router import router as data_explorer_router

api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_router, prefix="/core", tags=["core"])
api_router.include_router(organizations_router, prefix="/organizations", tags=["organizations"])
api_router.include_router(activity_router, prefix="/activity-logs", tags=["activity"])
api_router.include_router(work_items_router, prefix="/work-items", tags=["work-items"])
api_router.include_router(strategy_router, prefix="/strategy", tags=["strategy"])
api_router.include_router(knowledge_base_router, prefix="/knowledge-base", tags=["knowledge-base"])
api_router.include_router(email_templates_router, prefix="/email-templates", tags=["email-templates"])
# bookings_router carries /bookable-task-types and /work-items/{id}/... paths
api_router.include_router(bookings_router, tags=["bookings"])
api_router.include_router(public_bookings_router, prefix="/public/bookings", tags=["public-bookings"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["integrations"])
api_router.include_router(data_explorer_router, prefix="/data-explorer", tags=["data-explorer"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
