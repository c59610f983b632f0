"""
Shared imports and helpers for the recruitment endpoints.
"""
import logging

from ...constants import MODULE_RECRUITMENT
from ...database import get_db
from ...services.permissions import TenantContext, require_permission
from ...utils.responses import success_response, pagination_meta
from ..common import get_org_object, page_params, serialize_many, serialize_one

logger = logging.getLogger("hr-admin.recruitment")

__all__ = [
    "logger", "get_db", "MODULE_RECRUITMENT", "TenantContext", "require_permission",
    "success_response", "pagination_meta",
    "get_org_object", "page_params", "serialize_many", "serialize_one",
]
