# Overview: Pytest coverage for tenant isolation behavior over HTTP.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two tenants with separate stores and users, then
verify that:
1. Tenant A cannot read or write data owned by tenant B
2. Passing a foreign store_id is rejected
3. Tenant-wide listings never include other tenants' rows
4. Security events are logged for cross-tenant access attempts
"""

import pytest

from storekeep.models import Product, SecurityEvent, Store, Transaction


class TestCrossTenantReads:
    @pytest.mark.parametrize(
        "path",
        [
            "/api/stores/{store}",
            "/api/products/{product}",
            "/api/products?store_id={store}",
            "/api/categories?store_id={store}",
            "/api/users/{user}",
        ],
    )
    def test_read_denied(self, client, db_session, owner_a, admin_b, store_b1, product_b1, headers_for, path):
        url = path.format(store=store_b1.id, product=product_b1.id, user=admin_b.id)
        resp = client.get(url, headers=headers_for(owner_a))

        assert resp.status_code == 403
        assert resp.json["reason"] == "cross-tenant"

    def test_listings_are_scoped(self, client, db_session, owner_a, store_a1, store_b1, headers_for):
        resp = client.get("/api/stores", headers=headers_for(owner_a))
        assert [s["id"] for s in resp.json["items"]] == [store_a1.id]


class TestCrossTenantWrites:
    def test_cannot_create_product_in_foreign_store(self, client, db_session, admin_a, store_b1, headers_for):
        resp = client.post("/api/products", headers=headers_for(admin_a), json={
            "store_id": store_b1.id,
            "sku": "EVIL",
            "name": "Evil",
            "sale_price_cents": 1,
        })
        assert resp.status_code == 403
        assert db_session.query(Product).filter_by(sku="EVIL").count() == 0

    def test_cannot_update_foreign_store(self, client, db_session, owner_a, store_b1, headers_for):
        resp = client.patch(f"/api/stores/{store_b1.id}", headers=headers_for(owner_a), json={"name": "Mine"})
        assert resp.status_code == 403

        db_session.expire_all()
        assert db_session.get(Store, store_b1.id).name == "Store B1"

    def test_cannot_sell_foreign_stock(self, client, db_session, cashier_a, product_b1, headers_for):
        resp = client.post("/api/transactions", headers=headers_for(cashier_a), json={
            "type": "SALE",
            "product_id": product_b1.id,
            "quantity": 1,
        })
        assert resp.status_code == 403

        db_session.expire_all()
        assert db_session.get(Product, product_b1.id).quantity == 3
        assert db_session.query(Transaction).count() == 0

    def test_cannot_transfer_into_foreign_store(self, client, db_session, admin_a, store_a1, store_b1, headers_for):
        resp = client.post("/api/transactions", headers=headers_for(admin_a), json={
            "type": "TRANSFER",
            "from_store_id": store_a1.id,
            "to_store_id": store_b1.id,
        })
        assert resp.status_code == 403
        assert resp.json["reason"] == "cross-tenant"

    def test_cannot_check_foreign_product(self, client, db_session, admin_a, product_b1, headers_for):
        resp = client.post("/api/product-checks", headers=headers_for(admin_a), json={"product_id": product_b1.id})
        assert resp.status_code == 403


class TestSecurityEvents:
    def test_cross_tenant_attempt_logged(self, client, db_session, owner_a, store_b1, headers_for):
        resp = client.delete(f"/api/stores/{store_b1.id}", headers=headers_for(owner_a))
        assert resp.status_code == 403

        event = db_session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").one()
        assert event.user_id == owner_a.id
        assert event.owner_id == owner_a.id
        assert event.action == "DELETE_STORE"
        assert event.resource == f"/api/stores/{store_b1.id}"
        assert event.success is False

    def test_role_denial_logged_with_tenant(self, client, db_session, owner_a, cashier_a, store_a1, headers_for):
        resp = client.delete(f"/api/stores/{store_a1.id}", headers=headers_for(cashier_a))
        assert resp.status_code == 403

        event = db_session.query(SecurityEvent).filter_by(event_type="ACCESS_DENIED").one()
        assert event.user_id == cashier_a.id
        assert event.owner_id == owner_a.id
        assert event.reason == "insufficient-role"

    def test_denied_write_leaves_no_trace(self, client, db_session, staff_a, store_a1, headers_for):
        resp = client.delete(f"/api/stores/{store_a1.id}", headers=headers_for(staff_a))
        assert resp.status_code == 403

        db_session.expire_all()
        store = db_session.get(Store, store_a1.id)
        assert store.deleted_at is None
        assert store.is_active is True
