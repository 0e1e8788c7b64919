"""
Authorization engine tests.

Verifies:
- Cross-tenant access is denied regardless of role
- Minimum-role table is applied after the tenant check
- Self-scoped user actions and the outrank rule for acting on other users
- authorize() never writes
"""

import pytest

from storekeep.access import Action, Principal, Role, get_all_action_codes
from storekeep.errors import (
    AuthorizationError,
    REASON_CROSS_TENANT,
    REASON_INSUFFICIENT_ROLE,
)
from storekeep.models import SecurityEvent, User
from storekeep.services import product_check_service, transaction_service
from storekeep.services.authorization_service import Decision, authorize, require


# =============================================================================
# TENANT CHECK
# =============================================================================


class TestCrossTenant:
    def test_owner_denied_on_other_tenant_store(self, owner_a, store_b1):
        decision = authorize(Principal.for_user(owner_a), Action.VIEW_STORES, store_b1)
        assert decision == Decision.deny(REASON_CROSS_TENANT)
        assert not decision

    def test_cross_tenant_wins_over_role(self, cashier_a, store_b1):
        """A CASHIER on a foreign ADMIN action is reported as cross-tenant, not insufficient-role."""
        decision = authorize(Principal.for_user(cashier_a), Action.DELETE_STORE, store_b1)
        assert decision.reason == REASON_CROSS_TENANT

    def test_self_scope_does_not_cross_tenants(self, admin_a, admin_b):
        decision = authorize(Principal.for_user(admin_a), Action.VIEW_USERS, admin_b)
        assert decision.reason == REASON_CROSS_TENANT

    def test_product_in_other_tenant(self, staff_a, product_b1):
        decision = authorize(Principal.for_user(staff_a), Action.MANAGE_CATALOG, product_b1)
        assert decision.reason == REASON_CROSS_TENANT


# =============================================================================
# ROLE THRESHOLDS
# =============================================================================


class TestRoleThresholds:
    @pytest.mark.parametrize(
        "user_fixture,allowed",
        [
            ("owner_a", True),
            ("admin_a", True),
            ("staff_a", False),
            ("cashier_a", False),
        ],
    )
    def test_delete_store_requires_admin(self, request, store_a1, user_fixture, allowed):
        user = request.getfixturevalue(user_fixture)
        decision = authorize(Principal.for_user(user), Action.DELETE_STORE, store_a1)
        assert decision.allowed is allowed
        if not allowed:
            assert decision.reason == REASON_INSUFFICIENT_ROLE

    def test_cashier_may_sell_and_read(self, cashier_a, store_a1, product_a1):
        principal = Principal.for_user(cashier_a)
        assert authorize(principal, Action.CREATE_SALE, product_a1)
        assert authorize(principal, Action.VIEW_CATALOG, product_a1)
        assert authorize(principal, Action.VIEW_STORES, store_a1)

    def test_cashier_may_not_manage_catalog(self, cashier_a, product_a1):
        decision = authorize(Principal.for_user(cashier_a), Action.MANAGE_CATALOG, product_a1)
        assert decision.reason == REASON_INSUFFICIENT_ROLE

    def test_staff_cannot_approve_transfer(self, staff_a, store_a1):
        decision = authorize(Principal.for_user(staff_a), Action.APPROVE_TRANSFER, store_a1)
        assert decision.reason == REASON_INSUFFICIENT_ROLE

    def test_unknown_action_is_error(self, owner_a, store_a1):
        with pytest.raises(ValueError):
            authorize(Principal.for_user(owner_a), "LAUNCH_ROCKETS", store_a1)


# =============================================================================
# USER TARGETS
# =============================================================================


class TestUserTargets:
    def test_cashier_may_view_and_update_self(self, cashier_a):
        principal = Principal.for_user(cashier_a)
        assert authorize(principal, Action.VIEW_USERS, cashier_a)
        assert authorize(principal, Action.UPDATE_USER, cashier_a)

    def test_cashier_may_not_update_peer(self, cashier_a, staff_a):
        decision = authorize(Principal.for_user(cashier_a), Action.UPDATE_USER, staff_a)
        assert decision.reason == REASON_INSUFFICIENT_ROLE

    def test_nobody_deletes_self(self, admin_a):
        decision = authorize(Principal.for_user(admin_a), Action.DELETE_USER, admin_a)
        assert decision.reason == REASON_INSUFFICIENT_ROLE

    def test_admin_must_outrank_target(self, owner_a, admin_a, staff_a):
        principal = Principal.for_user(admin_a)
        assert authorize(principal, Action.UPDATE_USER, staff_a)
        assert not authorize(principal, Action.UPDATE_USER, owner_a)

    def test_owner_may_delete_admin(self, owner_a, admin_a):
        assert authorize(Principal.for_user(owner_a), Action.DELETE_USER, admin_a)


# =============================================================================
# GUARD FORM AND PURITY
# =============================================================================


class TestRequire:
    def test_require_raises_with_reason(self, owner_a, store_b1):
        with pytest.raises(AuthorizationError) as exc_info:
            require(Principal.for_user(owner_a), Action.UPDATE_STORE, store_b1)

        assert exc_info.value.reason == REASON_CROSS_TENANT
        assert exc_info.value.action == Action.UPDATE_STORE
        assert exc_info.value.status_code == 403

    def test_require_passes_silently(self, admin_a, store_a1):
        assert require(Principal.for_user(admin_a), Action.UPDATE_STORE, store_a1) is None

    def test_authorize_is_side_effect_free(self, db_session, cashier_a, store_a1, store_b1):
        principal = Principal.for_user(cashier_a)
        before = db_session.query(SecurityEvent).count()

        first = authorize(principal, Action.DELETE_STORE, store_a1)
        second = authorize(principal, Action.DELETE_STORE, store_a1)
        authorize(principal, Action.VIEW_STORES, store_b1)

        assert first == second
        assert db_session.query(SecurityEvent).count() == before
        assert not db_session.dirty
        assert not db_session.new


# =============================================================================
# MONOTONICITY OVER REAL TARGETS
# =============================================================================


# Lower role first; whatever it may do, the next role up may do too
ADJACENT_ROLES = [
    ("cashier_a", "staff_a"),
    ("staff_a", "admin_a"),
    ("admin_a", "owner_a"),
]

TARGET_FOR_ACTION = {
    Action.VIEW_STORES: "store",
    Action.CREATE_STORE: "tenant",
    Action.UPDATE_STORE: "store",
    Action.DELETE_STORE: "store",
    Action.VIEW_USERS: "tenant",
    Action.CREATE_USER: "tenant",
    Action.UPDATE_USER: "new_hire",
    Action.DELETE_USER: "new_hire",
    Action.VIEW_CATALOG: "product",
    Action.MANAGE_CATALOG: "product",
    Action.DELETE_CATALOG: "product",
    Action.VIEW_TRANSACTIONS: "transfer",
    Action.CREATE_SALE: "store",
    Action.CREATE_TRANSFER: "store",
    Action.SUBMIT_TRANSFER_PROOF: "transfer",
    Action.APPROVE_TRANSFER: "transfer",
    Action.FINISH_TRANSFER: "transfer",
    Action.VIEW_PRODUCT_CHECKS: "check",
    Action.CREATE_PRODUCT_CHECK: "product",
    Action.RESOLVE_PRODUCT_CHECK: "check",
}


class TestRoleMonotonicity:
    @pytest.fixture
    def targets(self, db_session, password_hash, owner_a, store_a1, store_a2, product_a1):
        new_hire = User(
            username="new_hire",
            name="New Hire",
            password_hash=password_hash,
            role=Role.STAFF.value,
            owner_id=owner_a.id,
            is_active=True,
        )
        db_session.add(new_hire)

        owner = Principal.for_user(owner_a)
        transfer = transaction_service.create_transfer(
            owner, from_store_id=store_a1.id, to_store_id=store_a2.id, photo_proof_url="https://x/p.jpg"
        )
        check = product_check_service.create_check(owner, product_id=product_a1.id)
        db_session.commit()

        return {
            "tenant": owner_a,
            "store": store_a1,
            "product": product_a1,
            "new_hire": new_hire,
            "transfer": transfer,
            "check": check,
        }

    def test_every_action_is_covered(self):
        assert set(TARGET_FOR_ACTION) == set(get_all_action_codes())

    @pytest.mark.parametrize("lower,higher", ADJACENT_ROLES)
    @pytest.mark.parametrize("action", sorted(TARGET_FOR_ACTION))
    def test_higher_role_keeps_lower_roles_permissions(self, request, targets, action, lower, higher):
        target = targets[TARGET_FOR_ACTION[action]]
        lower_decision = authorize(Principal.for_user(request.getfixturevalue(lower)), action, target)
        higher_decision = authorize(Principal.for_user(request.getfixturevalue(higher)), action, target)

        if lower_decision.allowed:
            assert higher_decision.allowed
