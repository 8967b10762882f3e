from datetime import datetime, timezone

from fastapi import APIRouter
from app.api.routes.auth import router as auth_router
from app.api.routes.rooms import router as rooms_router
from app.api.routes.bookings import router as bookings_router
from app.api.routes.reviews import router as reviews_router
from app.api.routes.admin import router as admin_router
from app.api.routes.manager import router as manager_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(rooms_router)
api_router.include_router(bookings_router)
api_router.include_router(reviews_router)
api_router.include_router(admin_router)
api_router.include_router(manager_router)


@api_router.get("/health", tags=["health"])
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
