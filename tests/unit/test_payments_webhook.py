import json
from decimal import Decimal

import pytest

from storefront.app_setup.exceptions import SignatureInvalid
from storefront.payments import service as payments_service
from storefront.payments.metadata import make_metadata

ADDRESS = {"fullName": "Jane Doe", "streetAddress": "1 Main St", "city": "Springfield", "state": "IL", "zipCode": "62701"}


def _succeeded_event(product, quantity=2, payment_id="pi_123"):
    items = [{"product": product["id"], "name": product["name"], "price": float(product["price"]), "quantity": quantity, "image": None}]
    metadata = make_metadata({"id": "user-1", "clerk_id": "clerk_1"}, items, ADDRESS, Decimal("53.20"))
    return {
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": payment_id, "object": "payment_intent", "amount": 5320, "metadata": metadata}},
    }


def _deliver(gateway, event):
    return payments_service.handle_webhook(json.dumps(event).encode("utf-8"), "valid", gateway)


def test_succeeded_event_creates_order_and_decrements_stock(store, gateway):
    mug = store.add_product(name="Mug", price=20, stock=5)

    assert _deliver(gateway, _succeeded_event(mug)) == {"received": True}

    [order] = store.orders
    assert order["user_id"] == "user-1"
    assert order["clerk_id"] == "clerk_1"
    assert order["payment_result"] == {"id": "pi_123", "status": "succeeded"}
    assert order["total_price"] == 53.2
    assert order["status"] == "pending"
    assert order["shipping_address"] == ADDRESS
    assert order["order_items"][0]["quantity"] == 2
    assert store.products[mug["id"]]["stock"] == 3


def test_duplicate_delivery_creates_exactly_one_order(store, gateway):
    mug = store.add_product(name="Mug", price=20, stock=5)
    event = _succeeded_event(mug)

    assert _deliver(gateway, event) == {"received": True}
    assert _deliver(gateway, event) == {"received": True}

    assert len(store.orders) == 1
    assert store.products[mug["id"]]["stock"] == 3


def test_concurrent_delivery_unique_violation_is_a_noop(store, gateway, monkeypatch):
    # Les deux livraisons passent la vérification avant qu'aucune n'écrive
    monkeypatch.setattr("storefront.payments.repository.find_order_by_payment_id", lambda payment_id: None)
    mug = store.add_product(name="Mug", price=20, stock=5)
    event = _succeeded_event(mug)

    _deliver(gateway, event)
    _deliver(gateway, event)

    assert len(store.orders) == 1
    assert store.decrements == [(mug["id"], 2)]


def test_stock_never_goes_negative(store, gateway):
    mug = store.add_product(name="Mug", price=20, stock=1)

    _deliver(gateway, _succeeded_event(mug, quantity=3))

    assert store.products[mug["id"]]["stock"] == 0


@pytest.mark.parametrize("event_type", ["payment_intent.payment_failed", "charge.succeeded", "customer.created"])
def test_other_events_acknowledged_without_effect(store, gateway, event_type):
    mug = store.add_product(name="Mug", price=20, stock=5)
    event = _succeeded_event(mug)
    event["type"] = event_type

    assert _deliver(gateway, event) == {"received": True}
    assert store.orders == []
    assert store.products[mug["id"]]["stock"] == 5


def test_processing_error_is_logged_and_acknowledged(store, gateway, caplog):
    mug = store.add_product(name="Mug", price=20, stock=5)
    event = _succeeded_event(mug)
    del event["data"]["object"]["metadata"]["userId"]

    with caplog.at_level("ERROR", logger="storefront.payments.service"):
        assert _deliver(gateway, event) == {"received": True}

    assert store.orders == []
    assert "pi_123" in caplog.text


def test_invalid_signature_propagates(store, gateway):
    mug = store.add_product(name="Mug", price=20, stock=5)
    payload = json.dumps(_succeeded_event(mug)).encode("utf-8")

    with pytest.raises(SignatureInvalid):
        payments_service.handle_webhook(payload, "t=1,v1=forged", gateway)
    assert store.orders == []


def test_decrement_stock_continues_after_item_failure(store, monkeypatch):
    mug = store.add_product(name="Mug", price=20, stock=5)
    cup = store.add_product(name="Cup", price=10, stock=5)

    def _decrement(product_id, quantity):
        if product_id == mug["id"]:
            raise RuntimeError("rpc down")
        return store.decrement_stock(product_id, quantity)

    monkeypatch.setattr("storefront.products.repository.decrement_stock", _decrement)

    updated = payments_service.decrement_stock([
        {"product": mug["id"], "quantity": 1},
        {"product": cup["id"], "quantity": 2},
        {"product": "ghost", "quantity": 1},
    ])

    assert updated == 1
    assert store.products[cup["id"]]["stock"] == 3
    assert store.products[mug["id"]]["stock"] == 5


def test_reconcile_requires_payment_id(store):
    with pytest.raises(ValueError):
        payments_service.reconcile_payment_intent({"metadata": {}})
