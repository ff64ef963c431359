import pytest

from attendance_api.core.exceptions import PermissionDenied
from attendance_api.core.policy import (
    ADMINS,
    ANYONE_RELATED,
    SUPERADMIN_ONLY,
    Capability,
    authorize,
    capabilities,
)
from attendance_api.db.models import User


def _user(user_id: int, role: str, company_id: int | None) -> User:
    return User(id=user_id, name=f"u{user_id}", email=f"u{user_id}@example.com", role=role, company_id=company_id)


def test_self_access():
    employee = _user(1, "employee", 10)
    assert capabilities(employee, target=employee) == {Capability.SELF}
    assert authorize(employee, ANYONE_RELATED, target=employee) is Capability.SELF


def test_admin_is_limited_to_own_tenant():
    admin = _user(1, "admin", 10)
    colleague = _user(2, "employee", 10)
    stranger = _user(3, "employee", 20)

    assert authorize(admin, ADMINS, target=colleague) is Capability.SAME_TENANT_ADMIN
    with pytest.raises(PermissionDenied):
        authorize(admin, ADMINS, target=stranger)
    with pytest.raises(PermissionDenied):
        authorize(admin, ADMINS, company_id=20)
    assert authorize(admin, ADMINS) is Capability.SAME_TENANT_ADMIN


def test_admin_without_company_holds_no_tenant_rights():
    admin = _user(1, "admin", None)
    orphan = _user(2, "employee", None)
    with pytest.raises(PermissionDenied):
        authorize(admin, ADMINS, target=orphan)


def test_superadmin_crosses_tenants():
    root = _user(1, "superadmin", None)
    stranger = _user(3, "employee", 20)

    assert authorize(root, ADMINS, target=stranger) is Capability.SUPERADMIN
    assert authorize(root, SUPERADMIN_ONLY) is Capability.SUPERADMIN


def test_employee_cannot_act_on_others():
    employee = _user(1, "employee", 10)
    colleague = _user(2, "employee", 10)

    with pytest.raises(PermissionDenied) as exc_info:
        authorize(employee, ANYONE_RELATED, target=colleague, message="Nope")
    assert exc_info.value.message == "Nope"
    assert exc_info.value.status_code == 403
