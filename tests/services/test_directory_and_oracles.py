"""Permission oracle and user directory tests."""

from tests.conftest import ALL_PERMISSIONS, CONTRACTOR_PERMISSIONS
from workflow_kernel.domain.dtos import Actor
from workflow_kernel.services.permission_oracle import (
    PermissionOracle,
    RolePermissionOracle,
    StaticPermissionOracle,
)
from workflow_kernel.services.user_directory import OrmUserDirectory, StaticUserDirectory


class TestRolePermissionOracle:
    def test_admin_gets_every_key_sorted(self, session_factory, users):
        oracle = RolePermissionOracle(session_factory)
        assert oracle.get_user_permissions(users.admin_id) == ALL_PERMISSIONS

    def test_contractor(self, session_factory, users):
        oracle = RolePermissionOracle(session_factory)
        assert oracle.get_user_permissions(users.contractor_id) == sorted(CONTRACTOR_PERMISSIONS)

    def test_role_without_permissions(self, session_factory, users):
        assert RolePermissionOracle(session_factory).get_user_permissions(users.viewer_id) == []

    def test_unknown_user(self, session_factory, users):
        assert RolePermissionOracle(session_factory).get_user_permissions("nobody") == []

    def test_satisfies_protocol(self, session_factory):
        assert isinstance(RolePermissionOracle(session_factory), PermissionOracle)


def test_static_oracle_grants_accumulate():
    oracle = StaticPermissionOracle({"u-1": ["b.key", "a.key"]})
    oracle.grant("u-1", "c.key", "a.key")
    assert oracle.get_user_permissions("u-1") == ["a.key", "b.key", "c.key"]
    assert oracle.get_user_permissions("u-2") == []


class TestOrmUserDirectory:
    def test_known_user(self, session_factory, users):
        actor = OrmUserDirectory(session_factory).get_user(users.approver_id)
        assert actor == Actor(
            id=users.approver_id, name="Lee Park", role="approver", email="lee@agency.test"
        )

    def test_name_falls_back_to_email(self, session_factory, users):
        actor = OrmUserDirectory(session_factory).get_user(users.unnamed_id)
        assert actor.name == "ops@agency.test"

    def test_unknown_user(self, session_factory, users):
        assert OrmUserDirectory(session_factory).get_user("nobody") is None


def test_static_directory():
    directory = StaticUserDirectory([Actor(id="u-1", name="Ana")])
    directory.add(Actor(id="u-2", name="Ben", role="payroll"))
    assert directory.get_user("u-2").role == "payroll"
    assert directory.get_user("u-3") is None
