"""Enums and constants for the RMG portal, persisted as enum *values*."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr = "hr"
    rmg = "rmg"
    it_admin = "it_admin"
    it_employee = "it_employee"
    finance_specialist = "finance_specialist"
    facilities_specialist = "facilities_specialist"
    super_admin = "super_admin"


# ── Employee ────────────────────────────────────────────────────────

class EmployeeStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"


# ── Projects ────────────────────────────────────────────────────────

class ProjectStatus(str, enum.Enum):
    active = "active"
    on_hold = "on-hold"
    completed = "completed"
    cancelled = "cancelled"


class BillingType(str, enum.Enum):
    time_and_materials = "T&M"
    fixed_bid = "Fixed Bid"
    fixed_monthly = "Fixed Monthly"
    license = "License"


# ── Financial lines ─────────────────────────────────────────────────

class LocationType(str, enum.Enum):
    onsite = "Onsite"
    offshore = "Offshore"
    hybrid = "Hybrid"


class UnitOfMeasure(str, enum.Enum):
    hour = "Hr"
    day = "Day"
    month = "Month"


class FLStatus(str, enum.Enum):
    draft = "Draft"
    active = "Active"
    completed = "Completed"
    cancelled = "Cancelled"


class MilestoneStatus(str, enum.Enum):
    pending = "Pending"
    paid = "Paid"


class FLResourceStatus(str, enum.Enum):
    active = "Active"
    on_leave = "On Leave"
    inactive = "Inactive"


# ── Config master ───────────────────────────────────────────────────

class ConfigType(str, enum.Enum):
    revenue_type = "revenue-type"
    client_type = "client-type"
    lead_source = "lead-source"
    billing_type = "billing-type"
    project_currency = "project-currency"


class ConfigStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"


# ── Customer POs ────────────────────────────────────────────────────

class PaymentTerms(str, enum.Enum):
    net_30 = "Net 30"
    net_45 = "Net 45"
    net_60 = "Net 60"
    net_90 = "Net 90"
    immediate = "Immediate"
    custom = "Custom"


class POStatus(str, enum.Enum):
    active = "Active"
    closed = "Closed"
    expired = "Expired"


# ── Helpdesk ────────────────────────────────────────────────────────

class TicketStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    waiting = "waiting"
    resolved = "resolved"
    closed = "closed"


class TicketPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"
    urgent = "urgent"


TICKET_TRANSITIONS: dict[TicketStatus, list[TicketStatus]] = {
    TicketStatus.open: [TicketStatus.in_progress, TicketStatus.closed, TicketStatus.waiting],
    TicketStatus.in_progress: [TicketStatus.resolved, TicketStatus.closed, TicketStatus.waiting],
    TicketStatus.waiting: [TicketStatus.in_progress, TicketStatus.resolved, TicketStatus.closed],
    TicketStatus.resolved: [TicketStatus.closed, TicketStatus.open],
    TicketStatus.closed: [],
}


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    reminder = "reminder"
    alert = "alert"


BROADCAST_ROLE = "all"


# ── Role groups ─────────────────────────────────────────────────────

RMG_ROLES = (UserRole.rmg, UserRole.super_admin)
PEOPLE_ADMIN_ROLES = (UserRole.rmg, UserRole.hr, UserRole.super_admin)
HELPDESK_AGENT_ROLES = (UserRole.hr, UserRole.it_admin, UserRole.super_admin)


# ── Analytics thresholds ────────────────────────────────────────────

FULL_ALLOCATION = 100.0           # percent of one person
OVER_ALLOCATION_THRESHOLD = 100.0  # strictly greater → over-allocated
UNDER_ALLOCATION_THRESHOLD = 50.0  # strictly lower → under-allocated
AVAILABILITY_THRESHOLD = 80.0      # below → can take new demand
DAYS_PER_MONTH = 30
MAX_TREND_POINTS = 31
TOP_COST_EMPLOYEES = 10
DEFAULT_FORECAST_MONTHS = 6
DEFAULT_SKILLS_HORIZON_MONTHS = 3
DEFAULT_TEAM_SIZE = 5
UNASSIGNED_DEPARTMENT = "Unassigned"

# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
AMOUNT_TOLERANCE = 0.01
