"""
Centralized Permission Service for the HR admin API

Role-based access per module. Every role carries one RolePermission row per
module with boolean flags:

    can_read, can_write, can_update, can_delete, can_approve, can_export

Access rules:
1. SUPER ADMIN without a role - allowed everywhere (platform routes)
2. SUPER ADMIN in an organization - only in support mode (X-Impersonate-Org),
   never delete/export; a platform role, if any, still applies
3. USER without a role - nothing
4. USER - the module must be enabled for the organization and the role flag set

The gate answers True/False and never raises. Routes turn False into 403
via require_permission().
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import (
    MSG_PERMISSION_DENIED, MSG_ORG_NOT_FOUND, MSG_ORG_INACTIVE,
    MSG_ORG_SUSPENDED, MSG_ORG_EXPIRED,
)
from ..database import get_db
from ..models.database import (
    User, Organization, OrgStatus, OrgModule, OrganizationModule, RolePermission,
)
from .auth import get_current_user
from ..utils.logging import set_tenant

logger = logging.getLogger("hr-admin.permissions")

ACTIONS = ("read", "write", "update", "delete", "approve", "export")

# Never allowed while a super admin is acting inside a tenant
SUPPORT_MODE_BLOCKED_ACTIONS = {"delete", "export"}

IMPERSONATE_HEADER = "X-Impersonate-Org"


class PermissionService:
    """Module permission checks for one request.

    Usage:
        permissions = PermissionService(db)

        if await permissions.has_permission(user, "recruitment", "read"):
            ...

        if await permissions.check_org_permission(user, org.id, "employees", "update"):
            ...
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._cache: dict = {}  # Simple per-request cache

    # ==================== MAIN PUBLIC API ====================

    async def has_permission(self, user: User, module_code: str, action: str) -> bool:
        """Check a role flag for a module, ignoring organization scoping."""
        if user.is_super_admin and not user.role_id:
            return True
        if not user.role_id:
            return False
        return await self._role_allows(user.role_id, module_code, action)

    async def check_org_permission(
        self,
        user: User,
        organization_id: int,
        module_code: str,
        action: str,
        is_impersonating: bool = False,
    ) -> bool:
        """Check an action on a module inside one organization."""
        return await self.explain_denial(
            user, organization_id, module_code, action, is_impersonating
        ) is None

    async def explain_denial(
        self,
        user: User,
        organization_id: int,
        module_code: str,
        action: str,
        is_impersonating: bool = False,
    ) -> Optional[str]:
        """None when allowed, otherwise the message to show the user."""
        if user.is_super_admin:
            if not is_impersonating:
                return "Super admins cannot access organization routes"
            if action in SUPPORT_MODE_BLOCKED_ACTIONS:
                return f"The {action} action is not available in support mode"
            if user.role_id and not await self._role_allows(user.role_id, module_code, action):
                return MSG_PERMISSION_DENIED
            return None

        if not user.role_id:
            return "You do not have a role assigned"

        if not await self.is_module_enabled(organization_id, module_code):
            return f"The {module_code} module is not enabled for your organization"

        if not await self._role_allows(user.role_id, module_code, action):
            return MSG_PERMISSION_DENIED
        return None

    async def has_any_permission(self, user: User, module_code: str) -> bool:
        if user.is_super_admin and not user.role_id:
            return True
        if not user.role_id:
            return False
        permission = await self._get_role_permission(user.role_id, module_code)
        if not permission:
            return False
        return any(getattr(permission, f"can_{action}") for action in ACTIONS)

    async def can_view_audit_info(self, user: User, module_code: str) -> bool:
        """created_by/updated_by/creator/updater are shown only to approvers."""
        return await self.has_permission(user, module_code, "approve")

    async def is_module_enabled(self, organization_id: int, module_code: str) -> bool:
        cache_key = ("module", organization_id, module_code)
        if cache_key in self._cache:
            return self._cache[cache_key]

        result = await self.db.execute(
            select(OrganizationModule.is_enabled)
            .join(OrgModule, OrgModule.id == OrganizationModule.module_id)
            .where(
                OrganizationModule.organization_id == organization_id,
                OrgModule.code == module_code,
                OrgModule.is_active.is_(True),
            )
        )
        enabled = bool(result.scalar_one_or_none())
        self._cache[cache_key] = enabled
        return enabled

    # ==================== HELPERS ====================

    async def _role_allows(self, role_id: int, module_code: str, action: str) -> bool:
        if action not in ACTIONS:
            logger.warning(f"Unknown permission action: {action}")
            return False
        permission = await self._get_role_permission(role_id, module_code)
        return bool(permission and getattr(permission, f"can_{action}"))

    async def _get_role_permission(self, role_id: int, module_code: str) -> Optional[RolePermission]:
        cache_key = ("role", role_id, module_code)
        if cache_key in self._cache:
            return self._cache[cache_key]

        try:
            result = await self.db.execute(
                select(RolePermission).where(
                    RolePermission.role_id == role_id,
                    RolePermission.module_code == module_code,
                )
            )
            permission = result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Permission lookup failed for role {role_id}/{module_code}: {e}")
            permission = None

        self._cache[cache_key] = permission
        return permission


# ==================== TENANT CONTEXT ====================

@dataclass
class TenantContext:
    """Organization, acting user and support-mode flag for an org-scoped request."""
    organization: Organization
    user: User
    permissions: PermissionService
    is_impersonating: bool = False
    audit_cache: dict = field(default_factory=dict)

    @property
    def organization_id(self) -> int:
        return self.organization.id

    async def can_view_audit_info(self, module_code: str) -> bool:
        if module_code not in self.audit_cache:
            self.audit_cache[module_code] = await self.permissions.can_view_audit_info(
                self.user, module_code
            )
        return self.audit_cache[module_code]


async def get_tenant_context(
    org_slug: str,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TenantContext:
    """Resolve the organization from the URL and check the user may act in it."""
    result = await db.execute(select(Organization).where(Organization.slug == org_slug))
    organization = result.scalar_one_or_none()
    if not organization:
        raise HTTPException(status_code=404, detail=MSG_ORG_NOT_FOUND)

    if organization.status == OrgStatus.suspended:
        raise HTTPException(status_code=403, detail=MSG_ORG_SUSPENDED)
    if not organization.is_active or organization.status != OrgStatus.active:
        raise HTTPException(status_code=403, detail=MSG_ORG_INACTIVE)
    if organization.subscription_expiry_date and organization.subscription_expiry_date < datetime.utcnow():
        raise HTTPException(status_code=403, detail=MSG_ORG_EXPIRED)

    is_impersonating = False
    if user.is_super_admin:
        if request.headers.get(IMPERSONATE_HEADER) != org_slug:
            raise HTTPException(status_code=403, detail="Super admins cannot access organization routes")
        is_impersonating = True
        logger.info(
            f"Support mode: superadmin {user.id} in organization {organization.slug}",
            extra={"user_id": user.id, "organization_id": organization.id}
        )
    elif user.organization_id != organization.id:
        raise HTTPException(status_code=403, detail="You do not have access to this organization")

    set_tenant(organization.slug, user.id, is_impersonating)

    return TenantContext(
        organization=organization,
        user=user,
        permissions=PermissionService(db),
        is_impersonating=is_impersonating,
    )


def require_permission(module_code: str, action: str):
    """Dependency factory: 403 unless the user may perform action on module."""

    async def dependency(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        denial = await ctx.permissions.explain_denial(
            ctx.user, ctx.organization_id, module_code, action, ctx.is_impersonating
        )
        if denial:
            logger.info(
                f"Permission denied: user {ctx.user.id} {module_code}.{action}",
                extra={"user_id": ctx.user.id, "organization_id": ctx.organization_id}
            )
            raise HTTPException(status_code=403, detail=denial)
        return ctx

    return dependency


def require_any_permission(module_code: str):
    """Dependency factory: 403 unless the user holds at least one flag on module."""

    async def dependency(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if ctx.is_impersonating:
            return ctx
        allowed = (
            await ctx.permissions.is_module_enabled(ctx.organization_id, module_code)
            and await ctx.permissions.has_any_permission(ctx.user, module_code)
        )
        if not allowed:
            logger.info(
                f"Permission denied: user {ctx.user.id} {module_code}.*",
                extra={"user_id": ctx.user.id, "organization_id": ctx.organization_id}
            )
            raise HTTPException(status_code=403, detail=MSG_PERMISSION_DENIED)
        return ctx

    return dependency
