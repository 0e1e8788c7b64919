# Overview: Pytest coverage for the sale/transfer state machine and its stock movements.

"""
Transaction Workflow Tests

SALE: finished at creation.
TRANSFER: DRAFT -> AWAITING_APPROVAL -> APPROVED -> FINISHED, where only
ADMIN+ approves, approval needs transfer proof, and only an APPROVED
transfer can be finished.
"""

import pytest
from sqlalchemy import text

from storekeep.access import Principal
from storekeep.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    REASON_ALREADY_APPROVED,
    REASON_ALREADY_FINISHED,
    REASON_CONCURRENT_UPDATE,
    REASON_CROSS_TENANT,
    REASON_INSUFFICIENT_ROLE,
    REASON_NOT_APPROVED,
    REASON_NOT_TRANSFER,
)
from storekeep.models import Product, Transaction
from storekeep.models.documents import derive_transaction_state
from storekeep.services import transaction_service


def _transfer(principal, from_store, to_store, **kwargs):
    return transaction_service.create_transfer(
        principal,
        from_store_id=from_store.id,
        to_store_id=to_store.id,
        **kwargs,
    )


class TestDerivedState:
    @pytest.mark.parametrize(
        "kwargs,expected",
        [
            (dict(type="TRANSFER", is_finished=False, approved_by=None, photo_proof_url=None), "DRAFT"),
            (dict(type="TRANSFER", is_finished=False, approved_by=None, photo_proof_url="p"), "AWAITING_APPROVAL"),
            (dict(type="TRANSFER", is_finished=False, approved_by=1, photo_proof_url="p"), "APPROVED"),
            (dict(type="TRANSFER", is_finished=True, approved_by=1, photo_proof_url="p"), "FINISHED"),
            (dict(type="SALE", is_finished=False, approved_by=None, photo_proof_url="p"), "DRAFT"),
            (dict(type="SALE", is_finished=True, approved_by=None, photo_proof_url=None), "FINISHED"),
        ],
    )
    def test_state_from_flags(self, kwargs, expected):
        assert derive_transaction_state(**kwargs) == expected


class TestSales:
    def test_storeless_sale_is_finished_at_creation(self, db_session, cashier_a):
        sale = transaction_service.create_sale(Principal.for_user(cashier_a), amount_cents=1250)

        assert sale.is_finished is True
        assert sale.state == "FINISHED"
        assert sale.from_store_id is None
        assert sale.finished_by == cashier_a.id
        assert sale.amount_cents == 1250

    def test_product_sale_decrements_stock(self, db_session, cashier_a, product_a1):
        sale = transaction_service.create_sale(
            Principal.for_user(cashier_a),
            product_id=product_a1.id,
            quantity=3,
        )

        assert sale.from_store_id == product_a1.store_id
        assert sale.amount_cents == 1500
        assert db_session.get(Product, product_a1.id).quantity == 7

    def test_sale_cannot_oversell(self, db_session, cashier_a, product_a1):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(
                Principal.for_user(cashier_a),
                product_id=product_a1.id,
                quantity=11,
            )

    def test_sale_store_must_match_product(self, db_session, cashier_a, store_a2, product_a1):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(
                Principal.for_user(cashier_a),
                store_id=store_a2.id,
                product_id=product_a1.id,
                quantity=1,
            )

    def test_sale_in_other_tenant_store(self, db_session, cashier_a, product_b1):
        with pytest.raises(AuthorizationError) as exc_info:
            transaction_service.create_sale(
                Principal.for_user(cashier_a),
                product_id=product_b1.id,
                quantity=1,
            )
        assert exc_info.value.reason == REASON_CROSS_TENANT

    def test_finishing_a_sale_is_invalid_state(self, db_session, staff_a):
        sale = transaction_service.create_sale(Principal.for_user(staff_a))

        with pytest.raises(InvalidStateError) as exc_info:
            transaction_service.finish_transaction(Principal.for_user(staff_a), sale.id)
        assert exc_info.value.reason == REASON_ALREADY_FINISHED

    def test_approving_a_sale_is_validation_error(self, db_session, admin_a):
        sale = transaction_service.create_sale(Principal.for_user(admin_a))

        with pytest.raises(ValidationError) as exc_info:
            transaction_service.approve_transfer(
                Principal.for_user(admin_a), sale.id, transfer_proof_url="https://x/t.jpg"
            )
        assert exc_info.value.reason == REASON_NOT_TRANSFER


class TestTransferCreation:
    def test_draft_without_photo(self, db_session, cashier_a, store_a1, store_a2):
        transfer = _transfer(Principal.for_user(cashier_a), store_a1, store_a2)
        assert transfer.state == "DRAFT"
        assert transfer.is_finished is False

    def test_awaiting_with_photo(self, db_session, admin_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2, photo_proof_url="https://x/p.jpg"
        )
        assert transfer.state == "AWAITING_APPROVAL"

    def test_stores_must_differ(self, db_session, admin_a, store_a1):
        with pytest.raises(ValidationError):
            _transfer(Principal.for_user(admin_a), store_a1, store_a1)

    def test_both_stores_required(self, db_session, admin_a, store_a1):
        with pytest.raises(ValidationError):
            transaction_service.create_transfer(
                Principal.for_user(admin_a), from_store_id=store_a1.id, to_store_id=None
            )

    def test_destination_in_other_tenant(self, db_session, admin_a, store_a1, store_b1):
        with pytest.raises(AuthorizationError) as exc_info:
            _transfer(Principal.for_user(admin_a), store_a1, store_b1)
        assert exc_info.value.reason == REASON_CROSS_TENANT

    def test_deleted_store_is_not_found(self, db_session, admin_a, store_a1, store_a2):
        store_a2.soft_delete()
        db_session.commit()

        with pytest.raises(NotFoundError):
            _transfer(Principal.for_user(admin_a), store_a1, store_a2)

    def test_product_must_be_in_source_store(self, db_session, admin_a, store_a1, store_a2, product_a1):
        with pytest.raises(ValidationError):
            _transfer(
                Principal.for_user(admin_a), store_a2, store_a1,
                product_id=product_a1.id, quantity=1,
            )

    def test_stock_checked_but_not_moved(self, db_session, admin_a, store_a1, store_a2, product_a1):
        with pytest.raises(ValidationError):
            _transfer(
                Principal.for_user(admin_a), store_a1, store_a2,
                product_id=product_a1.id, quantity=50,
            )

        _transfer(
            Principal.for_user(admin_a), store_a1, store_a2,
            product_id=product_a1.id, quantity=4,
        )
        assert db_session.get(Product, product_a1.id).quantity == 10


class TestTransferLifecycle:
    def test_full_lifecycle_moves_stock(self, db_session, admin_a, staff_a, store_a1, store_a2, product_a1):
        transfer = _transfer(
            Principal.for_user(staff_a), store_a1, store_a2,
            product_id=product_a1.id, quantity=4,
        )
        assert transfer.state == "DRAFT"

        transaction_service.submit_transfer_proof(
            Principal.for_user(staff_a), transfer.id, photo_proof_url="https://x/p.jpg"
        )
        assert transfer.state == "AWAITING_APPROVAL"

        transaction_service.approve_transfer(
            Principal.for_user(admin_a), transfer.id, transfer_proof_url="https://x/t.pdf"
        )
        assert transfer.state == "APPROVED"
        assert transfer.approved_by == admin_a.id

        transaction_service.finish_transaction(Principal.for_user(staff_a), transfer.id)
        db_session.commit()

        assert transfer.state == "FINISHED"
        assert transfer.finished_by == staff_a.id

        source = db_session.get(Product, product_a1.id)
        destination = Product.live().filter_by(store_id=store_a2.id, sku="SKU-1").one()
        assert source.quantity == 6
        assert destination.quantity == 4
        assert destination.sale_price_cents == source.sale_price_cents

    def test_finish_reuses_existing_counterpart(self, db_session, admin_a, store_a1, store_a2, product_a1):
        counterpart = Product(store_id=store_a2.id, sku="SKU-1", name="Widget", quantity=2, sale_price_cents=500)
        db_session.add(counterpart)
        db_session.commit()

        principal = Principal.for_user(admin_a)
        transfer = _transfer(
            principal, store_a1, store_a2,
            product_id=product_a1.id, quantity=5,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )
        transaction_service.approve_transfer(principal, transfer.id)
        transaction_service.finish_transaction(principal, transfer.id)
        db_session.commit()

        assert db_session.get(Product, counterpart.id).quantity == 7
        assert Product.live().filter_by(store_id=store_a2.id, sku="SKU-1").count() == 1

    def test_staff_cannot_approve(self, db_session, staff_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(staff_a), store_a1, store_a2,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )

        with pytest.raises(AuthorizationError) as exc_info:
            transaction_service.approve_transfer(Principal.for_user(staff_a), transfer.id)
        assert exc_info.value.reason == REASON_INSUFFICIENT_ROLE
        assert transfer.approved_by is None

    def test_approval_requires_transfer_proof(self, db_session, admin_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2, photo_proof_url="https://x/p.jpg"
        )

        with pytest.raises(ValidationError):
            transaction_service.approve_transfer(Principal.for_user(admin_a), transfer.id)

    def test_approval_requires_photo_proof(self, db_session, admin_a, store_a1, store_a2):
        transfer = _transfer(Principal.for_user(admin_a), store_a1, store_a2)

        with pytest.raises(ValidationError):
            transaction_service.approve_transfer(
                Principal.for_user(admin_a), transfer.id, transfer_proof_url="https://x/t.pdf"
            )

    def test_draft_cannot_skip_awaiting_approval(self, db_session, admin_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2, transfer_proof_url="https://x/t.pdf"
        )
        db_session.commit()
        assert transfer.state == "DRAFT"

        with pytest.raises(ValidationError):
            transaction_service.approve_transfer(Principal.for_user(admin_a), transfer.id)

        db_session.expire_all()
        reloaded = db_session.get(Transaction, transfer.id)
        assert reloaded.state == "DRAFT"
        assert reloaded.approved_by is None

    def test_finish_unapproved_is_invalid_state(self, db_session, admin_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2, photo_proof_url="https://x/p.jpg"
        )

        with pytest.raises(InvalidStateError) as exc_info:
            transaction_service.finish_transaction(Principal.for_user(admin_a), transfer.id)
        assert exc_info.value.reason == REASON_NOT_APPROVED

    def test_double_approval_is_invalid_state(self, db_session, admin_a, owner_a, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )
        transaction_service.approve_transfer(Principal.for_user(admin_a), transfer.id)
        db_session.commit()

        with pytest.raises(InvalidStateError) as exc_info:
            transaction_service.approve_transfer(Principal.for_user(owner_a), transfer.id)
        assert exc_info.value.reason == REASON_ALREADY_APPROVED

    def test_finished_is_terminal(self, db_session, admin_a, store_a1, store_a2):
        principal = Principal.for_user(admin_a)
        transfer = _transfer(
            principal, store_a1, store_a2,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )
        transaction_service.approve_transfer(principal, transfer.id)
        transaction_service.finish_transaction(principal, transfer.id)
        db_session.commit()

        for call in (
            lambda: transaction_service.approve_transfer(principal, transfer.id),
            lambda: transaction_service.finish_transaction(principal, transfer.id),
            lambda: transaction_service.submit_transfer_proof(
                principal, transfer.id, photo_proof_url="https://x/other.jpg"
            ),
        ):
            with pytest.raises(InvalidStateError) as exc_info:
                call()
            assert exc_info.value.reason == REASON_ALREADY_FINISHED

    def test_submit_proof_requires_some_proof(self, db_session, cashier_a, store_a1, store_a2):
        transfer = _transfer(Principal.for_user(cashier_a), store_a1, store_a2)

        with pytest.raises(ValidationError):
            transaction_service.submit_transfer_proof(Principal.for_user(cashier_a), transfer.id)

    def test_other_tenant_cannot_touch_transfer(self, db_session, admin_a, admin_b, store_a1, store_a2):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )
        db_session.commit()

        with pytest.raises(AuthorizationError) as exc_info:
            transaction_service.approve_transfer(Principal.for_user(admin_b), transfer.id)
        assert exc_info.value.reason == REASON_CROSS_TENANT

        with pytest.raises(AuthorizationError):
            transaction_service.get_transaction(Principal.for_user(admin_b), transfer.id)


def _bump_version_after_authorization(monkeypatch, session):
    """Make another writer commit between the locked read and the flush."""
    real_require = transaction_service.require

    def require_then_bump(principal, action, target):
        real_require(principal, action, target)
        if isinstance(target, Transaction):
            session.execute(
                text("UPDATE transactions SET version_id = version_id + 1 WHERE id = :id"),
                {"id": target.id},
            )

    monkeypatch.setattr(transaction_service, "require", require_then_bump)


class TestConcurrentTransitions:
    @pytest.fixture
    def awaiting(self, db_session, admin_a, store_a1, store_a2, product_a1):
        transfer = _transfer(
            Principal.for_user(admin_a), store_a1, store_a2,
            product_id=product_a1.id, quantity=2,
            photo_proof_url="https://x/p.jpg", transfer_proof_url="https://x/t.pdf",
        )
        db_session.commit()
        return transfer.id

    def test_racing_approval(self, db_session, admin_a, awaiting, monkeypatch):
        _bump_version_after_authorization(monkeypatch, db_session)

        with pytest.raises(InvalidStateError) as exc_info:
            transaction_service.approve_transfer(Principal.for_user(admin_a), awaiting)
        assert exc_info.value.reason == REASON_CONCURRENT_UPDATE

        db_session.expire_all()
        assert db_session.get(Transaction, awaiting).approved_by is None

    def test_racing_finish(self, db_session, admin_a, product_a1, awaiting, monkeypatch):
        transaction_service.approve_transfer(Principal.for_user(admin_a), awaiting)
        db_session.commit()
        _bump_version_after_authorization(monkeypatch, db_session)

        with pytest.raises(InvalidStateError) as exc_info:
            transaction_service.finish_transaction(Principal.for_user(admin_a), awaiting)
        assert exc_info.value.reason == REASON_CONCURRENT_UPDATE

        db_session.expire_all()
        assert db_session.get(Transaction, awaiting).is_finished is False
        assert db_session.get(Product, product_a1.id).quantity == 10


class TestListing:
    def test_list_is_tenant_scoped_and_filterable(
        self, db_session, admin_a, cashier_a, admin_b, store_a1, store_a2
    ):
        transaction_service.create_sale(Principal.for_user(cashier_a))
        _transfer(Principal.for_user(admin_a), store_a1, store_a2, photo_proof_url="https://x/p.jpg")
        transaction_service.create_sale(Principal.for_user(admin_b))
        db_session.commit()

        everything = transaction_service.list_transactions(Principal.for_user(cashier_a))
        assert everything["pagination"]["total"] == 2

        awaiting = transaction_service.list_transactions(
            Principal.for_user(admin_a), state="AWAITING_APPROVAL"
        )
        assert [t["type"] for t in awaiting["items"]] == ["TRANSFER"]

        sales = transaction_service.list_transactions(Principal.for_user(admin_a), type="SALE")
        assert sales["count"] == 1

        by_store = transaction_service.list_transactions(Principal.for_user(admin_a), store_id=store_a2.id)
        assert by_store["count"] == 1

        theirs = transaction_service.list_transactions(Principal.for_user(admin_b))
        assert theirs["pagination"]["total"] == 1

    def test_list_rejects_unknown_state(self, db_session, admin_a):
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(Principal.for_user(admin_a), state="LOST")
