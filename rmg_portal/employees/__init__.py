"""Employees module: the person record allocations and analytics join on."""

from rmg_portal.employees.models import Employee

__all__ = ["Employee"]
