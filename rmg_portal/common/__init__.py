"""Common module: shared utilities for the RMG portal."""

from rmg_portal.common.audit import AuditTrail, TimestampMixin, create_audit_entry, snapshot
from rmg_portal.common.constants import (
    DEFAULT_PAGE_SIZE,
    HELPDESK_AGENT_ROLES,
    MAX_PAGE_SIZE,
    PEOPLE_ADMIN_ROLES,
    RMG_ROLES,
    ConfigStatus,
    ConfigType,
    EmployeeStatus,
    FLResourceStatus,
    FLStatus,
    NotificationType,
    ProjectStatus,
    TicketPriority,
    TicketStatus,
    UserRole,
)
from rmg_portal.common.exceptions import (
    AppException,
    DuplicateException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from rmg_portal.common.filters import apply_filters, apply_search
from rmg_portal.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    build_meta,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "TimestampMixin",
    "create_audit_entry",
    "snapshot",
    # Constants / Enums
    "ConfigStatus",
    "ConfigType",
    "EmployeeStatus",
    "FLResourceStatus",
    "FLStatus",
    "NotificationType",
    "ProjectStatus",
    "TicketPriority",
    "TicketStatus",
    "UserRole",
    "RMG_ROLES",
    "PEOPLE_ADMIN_ROLES",
    "HELPDESK_AGENT_ROLES",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "DuplicateException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "build_meta",
    "paginate",
]
