"""
Role capabilities

Each role is represented by a capability set; services check the capability
an operation needs against the acting user's role before doing any work.
"""
import enum
import logging
from typing import FrozenSet, Optional

from app.core.errors import PermissionDeniedError
from app.models.user import Role, User
from app.utils.enums import enum_to_str

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    SUBMIT_LEAVE = "submit_leave"
    VIEW_OWN_LEAVES = "view_own_leaves"
    VIEW_PENDING_LEAVES = "view_pending_leaves"
    DECIDE_LEAVE = "decide_leave"
    ACKNOWLEDGE_LEAVE = "acknowledge_leave"
    RECORD_CHARGES = "record_charges"
    GENERATE_REPORT = "generate_report"
    VIEW_REPORTS = "view_reports"
    VIEW_VARIANCE = "view_variance"
    VIEW_AUDIT_TRAIL = "view_audit_trail"
    EXPORT_AUDIT_TRAIL = "export_audit_trail"


class RoleCapabilities:
    """Capabilities granted to one role"""

    role: Optional[Role] = None
    capabilities: FrozenSet[Capability] = frozenset()

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def __repr__(self) -> str:
        return f"{type(self).__name__}(role={enum_to_str(self.role)})"


class NoCapabilities(RoleCapabilities):
    """Unknown or missing role"""


class ContractStaffCapabilities(RoleCapabilities):
    role = Role.CONTRACT_STAFF
    capabilities = frozenset({
        Capability.SUBMIT_LEAVE,
        Capability.VIEW_OWN_LEAVES,
    })


class ManagerCapabilities(RoleCapabilities):
    role = Role.MANAGER
    capabilities = frozenset({
        Capability.VIEW_OWN_LEAVES,
        Capability.VIEW_PENDING_LEAVES,
        Capability.DECIDE_LEAVE,
        Capability.VIEW_AUDIT_TRAIL,
    })


class FinanceOfficerCapabilities(RoleCapabilities):
    role = Role.FINANCE_OFFICER
    capabilities = frozenset({
        Capability.ACKNOWLEDGE_LEAVE,
        Capability.RECORD_CHARGES,
        Capability.GENERATE_REPORT,
        Capability.VIEW_REPORTS,
        Capability.VIEW_VARIANCE,
        Capability.VIEW_AUDIT_TRAIL,
        Capability.EXPORT_AUDIT_TRAIL,
    })


ROLE_CAPABILITIES = {
    Role.CONTRACT_STAFF: ContractStaffCapabilities(),
    Role.MANAGER: ManagerCapabilities(),
    Role.FINANCE_OFFICER: FinanceOfficerCapabilities(),
}


def capabilities_for(role) -> RoleCapabilities:
    """Resolve the capability set for a role given as enum or string"""
    try:
        return ROLE_CAPABILITIES[Role(enum_to_str(role))]
    except (ValueError, KeyError):
        return NoCapabilities()


def ensure_capability(actor: User, capability: Capability) -> None:
    """
    Raise PermissionDeniedError unless ``actor`` may perform ``capability``

    Inactive users hold no capabilities.
    """
    if actor is None or not actor.active or not capabilities_for(actor.role).can(capability):
        role = enum_to_str(actor.role) if actor is not None else None
        logger.info(
            "permission denied: user_id=%s role=%s capability=%s",
            getattr(actor, "id", None), role, capability.value,
        )
        raise PermissionDeniedError(
            f"Role {role} is not permitted to {capability.value}",
            user_id=getattr(actor, "id", None),
            role=role,
            capability=capability.value,
        )
