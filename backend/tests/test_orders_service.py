from decimal import Decimal

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

from conftest import caller_for, order_create
from config import settings
from models.log import AuditLog
from models.order import Order, OrderItem
from models.payment import Payment
from services import orders as order_service
from services import payments as payment_service
from services.caller import Caller
from services.errors import (
    Forbidden, InvalidStatus, InvalidStatusTransition, OrderNotFound, ProductNotFound,
    ProductUnavailable, RateLimitExceeded, StorageError, TotalMismatch,
)


def _count(db, model):
    db.expire_all()
    return db.query(model).count()


def test_create_order_persists_calculated_totals(db, scarf):
    data = order_create([(scarf, 2)], "31.00", "5.00", "36.00")

    order = order_service.create_order(db, Caller.anonymous(), data)

    assert order.subtotal == Decimal("31.00")
    assert order.delivery_total == Decimal("5.00")
    assert order.total == Decimal("36.00")
    assert order.status == "pending"
    assert order.payment_method == "card"
    assert order.address == {"street": "1 Loom Lane", "city": "Bath", "postcode": "BA1 1AA"}


def test_claimed_values_within_a_penny_are_not_stored(db, scarf):
    data = order_create([(scarf, 2)], "30.99", "5.01", "36.00")

    order = order_service.create_order(db, Caller.anonymous(), data)

    assert order.subtotal == Decimal("31.00")
    assert order.delivery_total == Decimal("5.00")


def test_order_total_equals_sum_of_line_items(db, scarf, blanket, customer):
    data = order_create([(scarf, 3), (blanket, 2)], "86.50", "15.48", "101.98")

    order = order_service.create_order(db, caller_for(customer), data)
    items = order_service.get_order_items(db, caller_for(customer), order.id)

    assert sum(i.product_price * i.quantity for i in items) == order.subtotal
    assert sum(i.delivery_charge * i.quantity for i in items) == order.delivery_total
    assert order.total == order.subtotal + order.delivery_total


def test_line_items_snapshot_catalog_name_and_price(db, scarf):
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")
    data.line_items[0].product_name = "Free scarf"

    order = order_service.create_order(db, Caller.anonymous(), data)

    item = order.items[0]
    assert item.product_id == scarf.id
    assert item.product_name == "Chunky Wool Scarf"
    assert item.product_price == Decimal("15.50")
    assert item.delivery_charge == Decimal("2.50")
    assert item.quantity == 1


def test_line_items_survive_catalog_changes(db, scarf, customer):
    data = order_create([(scarf, 2)], "31.00", "5.00", "36.00")
    order = order_service.create_order(db, caller_for(customer), data)

    scarf.price = Decimal("99.00")
    db.commit()
    db.delete(scarf)
    db.commit()

    items = order_service.get_order_items(db, caller_for(customer), order.id)
    assert items[0].product_id is None
    assert items[0].product_name == "Chunky Wool Scarf"
    assert items[0].product_price == Decimal("15.50")


def test_deleting_order_removes_items_and_payments(db, scarf, blanket):
    data = order_create([(scarf, 1), (blanket, 1)], "35.50", "6.49", "41.99")
    order = order_service.create_order(db, Caller.anonymous(), data)
    payment_service.create_payment(db, Caller.anonymous(), order.id, "card", "pi_3Pwool", order.total)
    kept = order_service.create_order(db, Caller.anonymous(), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))

    # Plain DELETE, so only the database cascades run
    db.execute(delete(Order).where(Order.id == order.id))
    db.commit()

    assert _count(db, OrderItem) == 1
    assert _count(db, Payment) == 0
    assert db.query(OrderItem).one().order_id == kept.id


def test_price_tampering_persists_nothing(db, blanket):
    data = order_create([(blanket, 1)], "1.00", "3.99", "4.99")

    with pytest.raises(TotalMismatch):
        order_service.create_order(db, Caller.anonymous(), data)

    assert _count(db, Order) == 0
    assert _count(db, OrderItem) == 0
    assert _count(db, AuditLog) == 0


def test_unavailable_product_persists_nothing(db, retired_hat):
    data = order_create([(retired_hat, 1)], "9.00", "1.00", "10.00")

    with pytest.raises(ProductUnavailable):
        order_service.create_order(db, Caller.anonymous(), data)

    assert _count(db, Order) == 0


def test_unknown_product(db, scarf):
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")
    data.line_items[0].product_id = "does-not-exist"

    with pytest.raises(ProductNotFound):
        order_service.create_order(db, Caller.anonymous(), data)


def test_anonymous_order_has_no_user(db, scarf):
    order = order_service.create_order(db, Caller.anonymous(), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))
    assert order.user_id is None


def test_authenticated_order_belongs_to_user(db, scarf, customer):
    order = order_service.create_order(db, caller_for(customer), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))
    assert order.user_id == customer.id


def test_rate_limit_blocks_next_guest_but_not_signed_in_user(db, scarf, customer, monkeypatch):
    monkeypatch.setattr(settings, "ANON_ORDER_LIMIT_PER_HOUR", 3)
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")

    for _ in range(3):
        order_service.create_order(db, Caller.anonymous(), data)

    with pytest.raises(RateLimitExceeded):
        order_service.create_order(db, Caller.anonymous(), data)
    assert _count(db, Order) == 3

    order = order_service.create_order(db, caller_for(customer), data)
    assert order.user_id == customer.id


def test_order_creation_is_audited(db, scarf):
    order = order_service.create_order(db, Caller.anonymous(), order_create([(scarf, 2)], "31.00", "5.00", "36.00"))

    entry = db.query(AuditLog).filter(AuditLog.record_id == order.id).one()
    assert entry.event_type == "order_created"
    assert entry.table_name == "orders"
    assert entry.user_id is None
    assert entry.event_data == {
        "email": "guest@knitmail.co.uk",
        "total": "36.00",
        "payment_method": "card",
        "is_anonymous": True,
    }


def test_failed_line_item_rolls_back_whole_order(db, scarf, blanket, monkeypatch):
    original = order_service._snapshot_item
    calls = []

    def flaky(session, line, position):
        calls.append(position)
        if position == 1:
            raise OperationalError("INSERT INTO order_items", {}, Exception("disk I/O error"))
        return original(session, line, position)

    monkeypatch.setattr(order_service, "_snapshot_item", flaky)
    data = order_create([(scarf, 1), (blanket, 1)], "35.50", "6.49", "41.99")

    with pytest.raises(StorageError):
        order_service.create_order(db, Caller.anonymous(), data)

    assert calls == [0, 1]
    assert _count(db, Order) == 0
    assert _count(db, OrderItem) == 0
    assert _count(db, AuditLog) == 0


def test_get_user_orders_only_returns_own_orders(db, scarf, customer, other_customer):
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")
    mine = order_service.create_order(db, caller_for(customer), data)
    order_service.create_order(db, caller_for(other_customer), data)
    order_service.create_order(db, Caller.anonymous(), data)

    orders = order_service.get_user_orders(db, caller_for(customer))
    assert [o.id for o in orders] == [mine.id]
    assert order_service.get_user_orders(db, Caller.anonymous()) == []


def test_get_order_by_id_visibility(db, scarf, customer, other_customer, admin):
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")
    order = order_service.create_order(db, caller_for(customer), data)
    guest_order = order_service.create_order(db, Caller.anonymous(), data)

    assert order_service.get_order_by_id(db, caller_for(customer), order.id).id == order.id
    assert order_service.get_order_by_id(db, caller_for(admin), order.id).id == order.id
    assert order_service.get_order_by_id(db, caller_for(other_customer), order.id) is None
    assert order_service.get_order_by_id(db, Caller.anonymous(), guest_order.id) is None
    assert order_service.get_order_by_id(db, caller_for(admin), guest_order.id).id == guest_order.id


def test_get_order_items_hidden_order(db, scarf, customer, other_customer):
    order = order_service.create_order(db, caller_for(customer), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))

    with pytest.raises(OrderNotFound):
        order_service.get_order_items(db, caller_for(other_customer), order.id)


def test_get_all_orders_requires_elevated_caller(db, customer):
    with pytest.raises(Forbidden):
        order_service.get_all_orders(db, caller_for(customer))


def test_get_all_orders_filters(db, scarf, admin):
    data = order_create([(scarf, 1)], "15.50", "2.50", "18.00")
    card = order_service.create_order(db, Caller.anonymous(), data)
    paypal = order_service.create_order(db, Caller.anonymous(), order_create(
        [(scarf, 1)], "15.50", "2.50", "18.00", payment_method="paypal"))
    order_service.update_order_status(db, caller_for(admin), paypal.id, "paid")

    assert {o.id for o in order_service.get_all_orders(db, caller_for(admin))} == {card.id, paypal.id}
    assert [o.id for o in order_service.get_all_orders(db, caller_for(admin), payment_method="paypal")] == [paypal.id]
    assert [o.id for o in order_service.get_all_orders(db, caller_for(admin), status="pending")] == [card.id]
    assert len(order_service.get_all_orders(db, caller_for(admin), limit=1)) == 1


def test_update_order_status_requires_elevated_caller(db, scarf, customer):
    order = order_service.create_order(db, caller_for(customer), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))

    with pytest.raises(Forbidden):
        order_service.update_order_status(db, caller_for(customer), order.id, "paid")


def test_update_order_status_walks_the_lifecycle(db, scarf, admin):
    order = order_service.create_order(db, Caller.anonymous(), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))

    for status in ("paid", "shipped", "delivered"):
        order = order_service.update_order_status(db, caller_for(admin), order.id, status)
        assert order.status == status

    events = db.query(AuditLog).filter(AuditLog.event_type == "order_status_changed").all()
    assert len(events) == 3


def test_update_order_status_rejects_skips_and_unknown_values(db, scarf, admin):
    order = order_service.create_order(db, Caller.anonymous(), order_create([(scarf, 1)], "15.50", "2.50", "18.00"))

    with pytest.raises(InvalidStatusTransition):
        order_service.update_order_status(db, caller_for(admin), order.id, "shipped")
    with pytest.raises(InvalidStatus):
        order_service.update_order_status(db, caller_for(admin), order.id, "lost")
    with pytest.raises(OrderNotFound):
        order_service.update_order_status(db, caller_for(admin), "missing", "paid")

    order_service.update_order_status(db, caller_for(admin), order.id, "cancelled")
    with pytest.raises(InvalidStatusTransition):
        order_service.update_order_status(db, caller_for(admin), order.id, "paid")
