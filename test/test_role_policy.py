from dataclasses import dataclass

import pytest

from invtrack.domain import policy
from invtrack.domain.roles import Role


@dataclass(frozen=True)
class Who:
    id: int
    role: Role


ADMIN = Who(1, Role.ADMIN)
OTHER_ADMIN = Who(2, Role.ADMIN)
MANAGER = Who(3, Role.MANAGER)
OTHER_MANAGER = Who(4, Role.MANAGER)
EMPLOYEE = Who(5, Role.EMPLOYEE)
OTHER_EMPLOYEE = Who(6, Role.EMPLOYEE)

EVERYONE = [ADMIN, OTHER_ADMIN, MANAGER, OTHER_MANAGER, EMPLOYEE, OTHER_EMPLOYEE]


@pytest.mark.parametrize("user", EVERYONE)
def test_nobody_can_delete_themselves(user):
    assert policy.can_delete(user, user) is False


@pytest.mark.parametrize("user", EVERYONE)
def test_everybody_can_edit_themselves(user):
    assert policy.can_edit(user, user) is True


@pytest.mark.parametrize("target", EVERYONE)
def test_employee_manages_and_deletes_nobody(target):
    assert policy.can_manage(EMPLOYEE, target) is False
    assert policy.can_delete(EMPLOYEE, target) is False


def test_employee_edits_only_self():
    assert policy.can_edit(EMPLOYEE, OTHER_EMPLOYEE) is False
    assert policy.can_edit(EMPLOYEE, MANAGER) is False
    assert policy.can_edit(EMPLOYEE, ADMIN) is False


def test_manager_rules():
    assert policy.can_edit(MANAGER, ADMIN) is False
    assert policy.can_edit(MANAGER, EMPLOYEE) is True
    assert policy.can_edit(MANAGER, OTHER_MANAGER) is True

    assert policy.can_manage(MANAGER, EMPLOYEE) is True
    assert policy.can_manage(MANAGER, OTHER_MANAGER) is False
    assert policy.can_manage(MANAGER, ADMIN) is False

    assert policy.can_delete(MANAGER, EMPLOYEE) is True
    assert policy.can_delete(MANAGER, OTHER_MANAGER) is False
    assert policy.can_delete(MANAGER, ADMIN) is False


@pytest.mark.parametrize("target", [OTHER_ADMIN, MANAGER, EMPLOYEE])
def test_admin_is_permissive_except_self_delete(target):
    assert policy.can_manage(ADMIN, target) is True
    assert policy.can_edit(ADMIN, target) is True
    assert policy.can_delete(ADMIN, target) is True
    assert policy.can_delete(ADMIN, ADMIN) is False


def test_available_roles_by_rank():
    assert policy.available_roles(ADMIN) == {Role.EMPLOYEE, Role.MANAGER, Role.ADMIN}
    assert policy.available_roles(MANAGER) == {Role.EMPLOYEE, Role.MANAGER}
    assert Role.ADMIN not in policy.available_roles(MANAGER)
    assert policy.available_roles(EMPLOYEE) == {Role.EMPLOYEE}


def test_access_levels():
    assert policy.has_elevated_access(ADMIN)
    assert policy.has_elevated_access(MANAGER)
    assert not policy.has_elevated_access(EMPLOYEE)

    assert policy.has_admin_access(ADMIN)
    assert not policy.has_admin_access(MANAGER)
    assert not policy.has_admin_access(EMPLOYEE)


def test_missing_actor_gets_nothing():
    assert not policy.has_elevated_access(None)
    assert not policy.has_admin_access(None)
    assert not policy.can_manage(None, EMPLOYEE)
    assert not policy.can_edit(None, EMPLOYEE)
    assert not policy.can_delete(None, EMPLOYEE)
    assert policy.available_roles(None) == frozenset()
