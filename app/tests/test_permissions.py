"""
Tests for role capabilities
"""
import pytest

from app.core.errors import PermissionDeniedError
from app.core.permissions import Capability, NoCapabilities, capabilities_for, ensure_capability
from app.models.user import Role


@pytest.mark.parametrize(
    "role, allowed",
    [
        (Role.CONTRACT_STAFF, {Capability.SUBMIT_LEAVE, Capability.VIEW_OWN_LEAVES}),
        (
            Role.MANAGER,
            {
                Capability.VIEW_OWN_LEAVES,
                Capability.VIEW_PENDING_LEAVES,
                Capability.DECIDE_LEAVE,
                Capability.VIEW_AUDIT_TRAIL,
            },
        ),
        (
            Role.FINANCE_OFFICER,
            {
                Capability.ACKNOWLEDGE_LEAVE,
                Capability.RECORD_CHARGES,
                Capability.GENERATE_REPORT,
                Capability.VIEW_REPORTS,
                Capability.VIEW_VARIANCE,
                Capability.VIEW_AUDIT_TRAIL,
                Capability.EXPORT_AUDIT_TRAIL,
            },
        ),
    ],
)
def test_role_capability_table(role, allowed):
    caps = capabilities_for(role)
    assert {c for c in Capability if caps.can(c)} == allowed


def test_role_given_as_string():
    assert capabilities_for("manager").can(Capability.DECIDE_LEAVE)


def test_unknown_role_has_no_capabilities():
    caps = capabilities_for("auditor")
    assert isinstance(caps, NoCapabilities)
    assert not any(caps.can(c) for c in Capability)


def test_ensure_capability_denies_with_context(staff_user):
    with pytest.raises(PermissionDeniedError) as exc:
        ensure_capability(staff_user, Capability.GENERATE_REPORT)

    assert exc.value.context["role"] == "contract_staff"
    assert exc.value.context["capability"] == "generate_report"


def test_missing_actor_is_denied():
    with pytest.raises(PermissionDeniedError):
        ensure_capability(None, Capability.VIEW_OWN_LEAVES)
