from fastapi import APIRouter
from .auth import router as auth_router
from .employees import router as employees_router
from .organizational_positions import router as org_positions_router
from .recruitment import router as recruitment_router
from .users import router as users_router

# Everything scoped to one organization: /api/{org_slug}/...
org_router = APIRouter()

org_router.include_router(employees_router, prefix="/employees", tags=["employees"])
org_router.include_router(org_positions_router, prefix="/masters/organizational-positions", tags=["organizational-positions"])
org_router.include_router(recruitment_router, prefix="/recruitment")
org_router.include_router(users_router, prefix="/users", tags=["users"])

__all__ = ["auth_router", "org_router"]
