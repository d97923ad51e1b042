"""Role → capability map and the guards every workflow calls.

Roles are a closed enum; each operation asks for a named capability rather
than comparing role strings, so a new role starts with no access at all.
"""

from __future__ import annotations

from enum import Enum

from repairshop.errors import Forbidden, Unauthenticated
from repairshop.models.enums import Role


class Capability(str, Enum):
    VIEW_JOBS = "view_jobs"
    MANAGE_JOBS = "manage_jobs"
    UPDATE_JOB_STATUS = "update_job_status"
    DELETE_JOB = "delete_job"
    MANAGE_CUSTOMERS = "manage_customers"
    VIEW_QUOTES = "view_quotes"
    SEND_QUOTE = "send_quote"
    CONVERT_QUOTE = "convert_quote"
    MANAGE_INVOICES = "manage_invoices"
    RECORD_PAYMENT = "record_payment"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"


_STAFF = frozenset({
    Capability.VIEW_JOBS,
    Capability.MANAGE_JOBS,
    Capability.UPDATE_JOB_STATUS,
    Capability.MANAGE_CUSTOMERS,
    Capability.VIEW_QUOTES,
    Capability.SEND_QUOTE,
    Capability.CONVERT_QUOTE,
    Capability.MANAGE_INVOICES,
    Capability.RECORD_PAYMENT,
})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.TECHNICIAN: _STAFF,
    Role.CUSTOMER: frozenset(),
}

# Roles whose job access is limited to jobs assigned to them.
ASSIGNMENT_SCOPED_ROLES = frozenset({Role.TECHNICIAN})


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def require_capability(actor, capability: Capability):
    """Raise Unauthenticated/Forbidden unless *actor* holds *capability*."""
    if actor is None:
        raise Unauthenticated()
    if not has_capability(actor.role, capability):
        raise Forbidden()
    return actor


def ensure_job_access(actor, job) -> None:
    """Technicians may only touch jobs assigned to them."""
    if actor.role in ASSIGNMENT_SCOPED_ROLES and job.assigned_technician_id != actor.user_id:
        raise Forbidden()
