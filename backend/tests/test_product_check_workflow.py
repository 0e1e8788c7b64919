# Overview: Pytest coverage for product check (stock audit) lifecycle and reporting.

import pytest
from sqlalchemy import text

from storekeep.access import Principal
from storekeep.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    REASON_ALREADY_RESOLVED,
    REASON_CONCURRENT_UPDATE,
    REASON_CROSS_TENANT,
    REASON_INSUFFICIENT_ROLE,
)
from storekeep.models import Product, ProductCheck
from storekeep.services import product_check_service
from storekeep.services.concurrency import flush_transition


class TestCreateCheck:
    def test_snapshot_expected_quantity(self, db_session, staff_a, product_a1):
        check = product_check_service.create_check(Principal.for_user(staff_a), product_id=product_a1.id)

        assert check.status == "PENDING"
        assert check.expected_quantity == 10
        assert check.store_id == product_a1.store_id
        assert check.checked_by == staff_a.id
        assert not check.is_resolved

    def test_cashier_cannot_open_check(self, db_session, cashier_a, product_a1):
        with pytest.raises(AuthorizationError) as exc_info:
            product_check_service.create_check(Principal.for_user(cashier_a), product_id=product_a1.id)
        assert exc_info.value.reason == REASON_INSUFFICIENT_ROLE

    def test_other_tenant_product(self, db_session, staff_a, product_b1):
        with pytest.raises(AuthorizationError) as exc_info:
            product_check_service.create_check(Principal.for_user(staff_a), product_id=product_b1.id)
        assert exc_info.value.reason == REASON_CROSS_TENANT

    def test_deleted_product(self, db_session, staff_a, product_a1):
        product_a1.soft_delete()
        db_session.commit()

        with pytest.raises(NotFoundError):
            product_check_service.create_check(Principal.for_user(staff_a), product_id=product_a1.id)


class TestResolveCheck:
    @pytest.fixture
    def pending(self, db_session, staff_a, product_a1):
        check = product_check_service.create_check(Principal.for_user(staff_a), product_id=product_a1.id)
        db_session.commit()
        return check

    def test_resolve_missing_records_discrepancy(self, db_session, admin_a, pending):
        check = product_check_service.resolve_check(
            Principal.for_user(admin_a),
            pending.id,
            status="MISSING",
            actual_quantity=8,
            note="two units unaccounted for",
        )

        assert check.status == "MISSING"
        assert check.resolved_by == admin_a.id
        assert check.resolved_at is not None
        assert check.has_discrepancy

    def test_resolving_does_not_touch_stock(self, db_session, staff_a, pending, product_a1):
        product_check_service.resolve_check(
            Principal.for_user(staff_a), pending.id, status="BROKEN", actual_quantity=9
        )
        db_session.commit()

        assert db_session.get(Product, product_a1.id).quantity == 10

    def test_resolved_check_is_append_only(self, db_session, staff_a, pending):
        principal = Principal.for_user(staff_a)
        product_check_service.resolve_check(principal, pending.id, status="OK", actual_quantity=10)
        db_session.commit()

        with pytest.raises(InvalidStateError) as exc_info:
            product_check_service.resolve_check(principal, pending.id, status="MISSING", actual_quantity=0)
        assert exc_info.value.reason == REASON_ALREADY_RESOLVED
        assert db_session.get(ProductCheck, pending.id).status == "OK"

    @pytest.mark.parametrize("status", ["PENDING", "MATCH", "ok "])
    def test_unknown_status(self, db_session, staff_a, pending, status):
        with pytest.raises(ValidationError):
            product_check_service.resolve_check(Principal.for_user(staff_a), pending.id, status=status)

    def test_negative_count(self, db_session, staff_a, pending):
        with pytest.raises(ValidationError):
            product_check_service.resolve_check(
                Principal.for_user(staff_a), pending.id, status="OK", actual_quantity=-1
            )

    def test_cashier_cannot_resolve(self, db_session, cashier_a, pending):
        with pytest.raises(AuthorizationError):
            product_check_service.resolve_check(Principal.for_user(cashier_a), pending.id, status="OK")

    def test_concurrent_resolution_detected(self, db_session, pending):
        check = db_session.get(ProductCheck, pending.id)
        # Another writer bumps the version behind this session's back
        db_session.execute(
            text("UPDATE product_checks SET version_id = version_id + 1 WHERE id = :id"),
            {"id": check.id},
        )
        check.note = "late write"

        with pytest.raises(InvalidStateError) as exc_info:
            flush_transition(check, f"Product check {check.id}")
        assert exc_info.value.reason == REASON_CONCURRENT_UPDATE


class TestReporting:
    @pytest.fixture
    def history(self, db_session, staff_a, product_a1):
        principal = Principal.for_user(staff_a)
        ok = product_check_service.create_check(principal, product_id=product_a1.id)
        missing = product_check_service.create_check(principal, product_id=product_a1.id)
        product_check_service.create_check(principal, product_id=product_a1.id)
        db_session.commit()

        product_check_service.resolve_check(principal, ok.id, status="OK", actual_quantity=10)
        product_check_service.resolve_check(principal, missing.id, status="MISSING", actual_quantity=7)
        db_session.commit()

    def test_history_for_product(self, db_session, cashier_a, product_a1, history):
        result = product_check_service.list_checks(Principal.for_user(cashier_a), product_id=product_a1.id)
        assert result["pagination"]["total"] == 3

        pending = product_check_service.list_checks(Principal.for_user(cashier_a), status="PENDING")
        assert pending["count"] == 1

    def test_statistics_cover_every_status(self, db_session, cashier_a, history):
        stats = product_check_service.check_statistics(Principal.for_user(cashier_a))

        assert stats["by_status"] == {"PENDING": 1, "OK": 1, "MISSING": 1, "BROKEN": 0}
        assert stats["total"] == 3

    def test_discrepancies(self, db_session, cashier_a, history):
        result = product_check_service.list_discrepancies(Principal.for_user(cashier_a))

        assert result["count"] == 1
        assert result["items"][0]["status"] == "MISSING"
        assert result["items"][0]["actual_quantity"] == 7

    def test_other_tenant_sees_nothing(self, db_session, admin_b, history):
        principal = Principal.for_user(admin_b)
        assert product_check_service.list_checks(principal)["pagination"]["total"] == 0
        assert product_check_service.check_statistics(principal)["total"] == 0
