# Overview: Pytest coverage for the role hierarchy and action table.

import pytest

from storekeep.access import (
    Action,
    Role,
    ROLE_CODES,
    assignable_roles,
    actions_for_role,
    get_action_definition,
    get_all_action_codes,
    minimum_role,
    validate_action_code,
)


class TestRoleOrdering:
    """OWNER > ADMIN > STAFF > CASHIER, compared by rank only."""

    def test_codes_in_descending_privilege(self):
        assert ROLE_CODES == ["OWNER", "ADMIN", "STAFF", "CASHIER"]

    @pytest.mark.parametrize(
        "higher,lower",
        [
            (Role.OWNER, Role.ADMIN),
            (Role.ADMIN, Role.STAFF),
            (Role.STAFF, Role.CASHIER),
            (Role.OWNER, Role.CASHIER),
        ],
    )
    def test_outranks_is_strict(self, higher, lower):
        assert higher.outranks(lower)
        assert not lower.outranks(higher)
        assert not higher.outranks(higher)

    def test_at_least_is_reflexive(self):
        for role in Role:
            assert role.at_least(role)

    def test_owner_satisfies_every_minimum(self):
        for role in Role:
            assert Role.OWNER.at_least(role)

    def test_parse_accepts_case_and_whitespace(self):
        assert Role.parse(" admin ") is Role.ADMIN
        assert Role.parse(Role.STAFF) is Role.STAFF

    @pytest.mark.parametrize("value", ["MANAGER", "", None, 3])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(ValueError):
            Role.parse(value)


class TestAssignableRoles:
    def test_owner_assigns_everything_below(self):
        assert assignable_roles(Role.OWNER) == [Role.ADMIN, Role.STAFF, Role.CASHIER]

    def test_admin_cannot_mint_admins(self):
        assert assignable_roles(Role.ADMIN) == [Role.STAFF, Role.CASHIER]

    def test_cashier_assigns_nothing(self):
        assert assignable_roles(Role.CASHIER) == []


class TestActionTable:
    def test_every_action_has_a_definition(self):
        for code in get_all_action_codes():
            definition = get_action_definition(code)
            assert definition["code"] == code
            assert definition["min_role"] in ROLE_CODES

    def test_unknown_action_fails_closed(self):
        assert not validate_action_code("LAUNCH_ROCKETS")
        assert get_action_definition("LAUNCH_ROCKETS") is None
        with pytest.raises(ValueError):
            minimum_role("LAUNCH_ROCKETS")

    @pytest.mark.parametrize(
        "action,expected",
        [
            (Action.CREATE_STORE, Role.ADMIN),
            (Action.DELETE_STORE, Role.ADMIN),
            (Action.CREATE_USER, Role.ADMIN),
            (Action.DELETE_USER, Role.ADMIN),
            (Action.APPROVE_TRANSFER, Role.ADMIN),
            (Action.CREATE_SALE, Role.CASHIER),
            (Action.VIEW_TRANSACTIONS, Role.CASHIER),
            (Action.CREATE_PRODUCT_CHECK, Role.STAFF),
            (Action.RESOLVE_PRODUCT_CHECK, Role.STAFF),
        ],
    )
    def test_minimum_roles(self, action, expected):
        assert minimum_role(action) is expected

    def test_actions_for_role_grows_with_rank(self):
        cashier = set(actions_for_role(Role.CASHIER))
        staff = set(actions_for_role(Role.STAFF))
        admin = set(actions_for_role(Role.ADMIN))
        owner = set(actions_for_role(Role.OWNER))

        assert cashier < staff < admin <= owner
        assert owner == set(get_all_action_codes())
        assert Action.APPROVE_TRANSFER not in staff
